from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import fsspec
import pytest

from covjson.api.asynchronous import read
from covjson.core.config import config
from covjson.core.coverage import AsyncCoverage
from covjson.errors import FetchError
from covjson.storage import FsspecFetcher
from covjson.storage._fsspec import _make_async

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def coverage_dir(tmp_path: Path, grid_coverage_data: dict[str, Any]) -> Path:
    (tmp_path / "domain.json").write_text(json.dumps(grid_coverage_data["domain"]))
    (tmp_path / "temp.json").write_text(json.dumps(grid_coverage_data["ranges"]["TEMP"]))
    grid_coverage_data["domain"] = str(tmp_path / "domain.json")
    grid_coverage_data["ranges"] = {
        "TEMP": str(tmp_path / "temp.json"),
        "LAND": grid_coverage_data["ranges"]["LAND"],
    }
    (tmp_path / "coverage.json").write_text(json.dumps(grid_coverage_data))
    (tmp_path / "broken.json").write_text("{not json")
    (tmp_path / "list.json").write_text("[1, 2, 3]")
    return tmp_path


def test_storage_options_from_config() -> None:
    assert FsspecFetcher().storage_options == {}
    with config.set({"fetch.storage_options": {"auto_mkdir": True}}):
        assert FsspecFetcher().storage_options == {"auto_mkdir": True}
    assert FsspecFetcher({"a": 1}).storage_options == {"a": 1}


def test_make_async() -> None:
    fs = fsspec.filesystem("file")
    afs = _make_async(fs)
    assert afs.asynchronous


@pytest.mark.asyncio
async def test_fetch_local_file(coverage_dir: Path) -> None:
    fetcher = FsspecFetcher()
    doc = await fetcher.fetch(str(coverage_dir / "temp.json"))
    assert doc["type"] == "Range"
    assert len(doc["values"]) == 24


@pytest.mark.asyncio
async def test_fetch_url(coverage_dir: Path) -> None:
    doc = await FsspecFetcher().fetch((coverage_dir / "domain.json").as_uri())
    assert doc["profile"] == "Grid"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("name", "match"),
    [("missing.json", "missing.json"), ("broken.json", "invalid JSON"), ("list.json", "list")],
)
async def test_fetch_errors(coverage_dir: Path, name: str, match: str) -> None:
    with pytest.raises(FetchError, match=match):
        await FsspecFetcher().fetch(str(coverage_dir / name))


@pytest.mark.asyncio
async def test_read_coverage_from_files(coverage_dir: Path) -> None:
    cov = await read(str(coverage_dir / "coverage.json"))
    assert isinstance(cov, AsyncCoverage)
    assert isinstance(cov.fetcher, FsspecFetcher)
    rng = await cov.load_range("TEMP")
    assert rng.get(t=1, y=2, x=3) == 123
    land = await cov.load_range("LAND")
    assert land.get() == 1
