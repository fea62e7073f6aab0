__all__ = [
    "BaseCovJSONError",
    "BoundsCheckError",
    "FetchError",
    "InvalidAxisSpecError",
    "InvalidConstraintError",
    "InvalidConstraintTypeError",
    "InvalidRangeEncodingError",
    "MissingAxisOrderError",
    "UnsupportedDocumentError",
    "ValueNotFoundError",
]


class BaseCovJSONError(ValueError):
    """
    Base error which all covjson errors are sub-classed from.
    """

    _msg: str = "{}"

    def __init__(self, *args: object) -> None:
        """
        If a single argument is passed, treat it as a pre-formatted message.

        If multiple arguments are passed, they are used as arguments for a template string class
        variable.
        """
        if len(args) == 1:
            super().__init__(args[0])
        else:
            super().__init__(self._msg.format(*args))


class FetchError(BaseCovJSONError, OSError):
    """
    Raised when a domain, range or document could not be fetched or decoded from a locator.
    """

    _msg = "Could not fetch {!r}: {}"


class InvalidAxisSpecError(BaseCovJSONError):
    """
    Raised when a regular axis (start/stop/num) is inconsistent.
    """

    _msg = (
        "Regular axis {!r} of length 1 must have equal start/stop values, "
        "got start={!r} stop={!r}"
    )


class MissingAxisOrderError(BaseCovJSONError):
    """
    Raised when a domain has more than one multi-valued axis but declares no range axis order.
    """


class InvalidRangeEncodingError(BaseCovJSONError):
    """Raised when the value encoding of a range is incomplete or does not fit the domain."""


class InvalidConstraintError(BaseCovJSONError):
    """Raised when an index constraint has an invalid start, stop or step."""

    _msg = "Invalid constraint for {!r}: {}"


class ValueNotFoundError(BaseCovJSONError, LookupError):
    """Raised when an exact value constraint matches no axis value."""

    _msg = "Domain value not found on axis {!r}: {!r}"


class InvalidConstraintTypeError(BaseCovJSONError, TypeError):
    """
    Raised when a value constraint has an unsupported shape, or when a numeric comparison is
    requested against an axis with non-numeric values.
    """


class UnsupportedDocumentError(BaseCovJSONError):
    """Raised when a document is neither a Coverage nor a CoverageCollection."""


class BoundsCheckError(IndexError):
    _msg = ""

    def __init__(self, axis_name: str, index: int, dim_len: int) -> None:
        self._msg = f"index {index} out of bounds for axis {axis_name!r} with length {dim_len}"
        super().__init__(self._msg)
