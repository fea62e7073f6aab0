from covjson.storage._fsspec import FsspecFetcher
from covjson.storage._logging import LoggingFetcher
from covjson.storage._memory import MemoryFetcher

__all__ = [
    "FsspecFetcher",
    "LoggingFetcher",
    "MemoryFetcher",
]
