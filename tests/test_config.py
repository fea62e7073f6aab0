from __future__ import annotations

import os
from unittest import mock

import pytest

from covjson.core.common import expand_type
from covjson.core.config import BadConfigError, config, parse_cache_ranges


def test_config_defaults_set() -> None:
    assert config.defaults == [
        {
            "namespace": "http://coveragejson.org/def#",
            "coverage": {"cache_ranges": False},
            "async": {"timeout": None},
            "threading": {"max_workers": None},
            "fetch": {"storage_options": {}},
        }
    ]
    assert config.get("namespace") == "http://coveragejson.org/def#"
    assert config.get("coverage.cache_ranges") is False
    assert config.get("async.timeout") is None


def test_config_defaults_can_be_overridden() -> None:
    assert config.get("coverage.cache_ranges") is False
    with config.set({"coverage.cache_ranges": True}):
        assert config.get("coverage.cache_ranges") is True


def test_config_from_env() -> None:
    with mock.patch.dict(os.environ, {"COVJSON_COVERAGE__CACHE_RANGES": "True"}):
        config.refresh()
        assert config.get("coverage.cache_ranges") is True


@pytest.mark.parametrize(
    ("data", "expected"), [(True, True), (False, False), (None, False)]
)
def test_parse_cache_ranges(data: bool | None, expected: bool) -> None:
    assert parse_cache_ranges(data) is expected


def test_parse_cache_ranges_uses_config() -> None:
    with config.set({"coverage.cache_ranges": True}):
        assert parse_cache_ranges(None) is True


def test_parse_cache_ranges_invalid() -> None:
    with pytest.raises(BadConfigError):
        parse_cache_ranges("yes")


def test_namespace() -> None:
    assert expand_type("Grid") == "http://coveragejson.org/def#Grid"
    assert expand_type("https://example.com/Grid") == "https://example.com/Grid"
    with config.set({"namespace": "urn:test:"}):
        assert expand_type("Grid") == "urn:test:Grid"
