from covjson.api.synchronous import read
from covjson.core.axis import Axis
from covjson.core.collection import AsyncCoverageCollection, CoverageCollection
from covjson.core.config import config
from covjson.core.coverage import AsyncCoverage, AsyncSubsetCoverage, Coverage
from covjson.core.domain import Domain, transform_domain
from covjson.core.indexing import ExactValue, IndexSlice, NearestValue, ValueRange
from covjson.core.parameter import Parameter
from covjson.core.range import Range, transform_range
from covjson.core.view import StridedView

__version__ = "0.1.0"

__all__ = [
    "AsyncCoverage",
    "AsyncCoverageCollection",
    "AsyncSubsetCoverage",
    "Axis",
    "Coverage",
    "CoverageCollection",
    "Domain",
    "ExactValue",
    "IndexSlice",
    "NearestValue",
    "Parameter",
    "Range",
    "StridedView",
    "ValueRange",
    "__version__",
    "config",
    "read",
]
