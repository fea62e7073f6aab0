from __future__ import annotations

import copy
from typing import TYPE_CHECKING

import pytest

from covjson.core.config import config
from covjson.core.sync import cleanup_resources
from covjson.storage import LoggingFetcher, MemoryFetcher

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

PROFILE_COVERAGE: dict[str, Any] = {
    "type": "Coverage",
    "domain": {
        "type": "Profile",
        "x": -10.1,
        "y": -40.2,
        "z": [5.4562, 8.9282],
        "t": "2013-01-13T11:12:20Z",
    },
    "parameters": {
        "PSAL": {
            "type": "Parameter",
            "unit": {"symbol": "psu"},
            "observedProperty": {"label": "Sea Water Salinity"},
        }
    },
    "ranges": {
        "type": "RangeSet",
        "PSAL": {"type": "Range", "values": [43.9599, 43.9599]},
    },
}

# 2 time steps x 3 rows x 4 columns, value = 100 * t + 10 * y + x
GRID_DOMAIN: dict[str, Any] = {
    "type": "Domain",
    "profile": "Grid",
    "axes": {
        "x": {"start": 0, "stop": 30, "num": 4},
        "y": {"values": [50.0, 51.0, 52.0]},
        "t": {"values": ["2015-01-01T00:00:00Z", "2015-01-02T00:00:00Z"]},
        "z": {"values": [5]},
    },
    "rangeAxisOrder": ["t", "y", "x"],
}

GRID_VALUES = [100 * t + 10 * y + x for t in range(2) for y in range(3) for x in range(4)]

GRID_COVERAGE: dict[str, Any] = {
    "type": "Coverage",
    "profile": "GridCoverage",
    "id": "grid-1",
    "bbox": [0, 50, 30, 52],
    "domain": GRID_DOMAIN,
    "parameters": {
        "TEMP": {
            "type": "Parameter",
            "description": {"en": "Temperature"},
            "observedProperty": {"label": {"en": "Air temperature"}},
            "unit": {"label": {"en": "Kelvin"}, "symbol": "K"},
        },
        "LAND": {
            "type": "Parameter",
            "observedProperty": {
                "label": {"en": "Land cover"},
                "categories": [{"id": "water", "label": {"en": "Water"}}],
            },
            "categoryEncoding": {"water": 1, "forest": [2, 3]},
        },
    },
    "ranges": {
        "TEMP": {"type": "Range", "dataType": "float", "values": GRID_VALUES},
        "LAND": {"type": "Range", "dataType": "integer", "values": [1] * 24},
    },
}


@pytest.fixture
def profile_coverage_data() -> dict[str, Any]:
    return copy.deepcopy(PROFILE_COVERAGE)


@pytest.fixture
def grid_coverage_data() -> dict[str, Any]:
    return copy.deepcopy(GRID_COVERAGE)


@pytest.fixture
def grid_domain_data() -> dict[str, Any]:
    return copy.deepcopy(GRID_DOMAIN)


@pytest.fixture
def remote_grid_coverage() -> tuple[dict[str, Any], LoggingFetcher[MemoryFetcher]]:
    """A grid coverage whose domain and ranges are all behind locators."""
    data = copy.deepcopy(GRID_COVERAGE)
    fetcher = MemoryFetcher(
        {
            "mem://domain": data["domain"],
            "mem://temp": data["ranges"]["TEMP"],
            "mem://land": data["ranges"]["LAND"],
        }
    )
    data["domain"] = "mem://domain"
    data["domainProfile"] = "Grid"
    data["ranges"] = {"TEMP": "mem://temp", "LAND": "mem://land"}
    return data, LoggingFetcher(fetcher)


@pytest.fixture(autouse=True)
def reset_config() -> Generator[None, None, None]:
    config.reset()
    yield
    config.reset()


@pytest.fixture
def clean_state() -> Generator[None, None, None]:
    cleanup_resources()
    yield
    cleanup_resources()
