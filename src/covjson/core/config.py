"""
The config module is responsible for managing the configuration of covjson and is based on the
Donfig python library.

Example:
    Ranges that are loaded from a locator are not kept by default. To keep every decoded range
    on the coverage it was loaded from, enable ``coverage.cache_ranges``:

    ```python
    from covjson.core.config import config

    config.set({"coverage.cache_ranges": True})
    ```

    Instead of setting the value programmatically with ``config.set``, you can also set the value
    with an environment variable. The environment variable ``COVJSON_COVERAGE__CACHE_RANGES`` can
    be set to ``True``. The double underscore ``__`` is used to indicate nested access.

    ```bash
    export COVJSON_COVERAGE__CACHE_RANGES="True"
    ```

For more information, see the Donfig documentation at https://github.com/pytroll/donfig.
"""

from __future__ import annotations

from typing import Any

from donfig import Config as DConfig


class BadConfigError(ValueError):
    _msg = "bad Config: %r"


class Config(DConfig):  # type: ignore[misc]
    """The Config will collect configuration from config files and environment variables

    Example environment variables:
    Grabs environment variables of the form "COVJSON_FOO__BAR_BAZ=123" and
    turns these into config variables of the form ``{"foo": {"bar-baz": 123}}``
    It transforms the key and value in the following way:

    -  Lower-cases the key text
    -  Treats ``__`` (double-underscore) as nested access
    -  Calls ``ast.literal_eval`` on the value

    """

    def reset(self) -> None:
        self.clear()
        self.refresh()


# The default configuration for covjson
config = Config(
    "covjson",
    defaults=[
        {
            "namespace": "http://coveragejson.org/def#",
            "coverage": {"cache_ranges": False},
            "async": {"timeout": None},
            "threading": {"max_workers": None},
            "fetch": {"storage_options": {}},
        }
    ],
)


def parse_cache_ranges(data: Any) -> bool:
    if data is None:
        return bool(config.get("coverage.cache_ranges"))
    if isinstance(data, bool):
        return data
    raise BadConfigError(f"Expected a boolean for 'cache_ranges', got {data!r}")
