"""Exceptions raised by ordinal pattern analysis."""

from __future__ import annotations


class OpaError(ValueError):
    """Raised when analysis input cannot be scored."""

    error_code = "OPA_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(f"{self.error_code}: {message}")


class InvalidDimension(OpaError):
    """Raised when row, hypothesis or pairing lengths do not line up."""

    error_code = "OPA_INVALID_DIMENSION"


class EmptyPairSet(OpaError):
    """Raised when a row has fewer than two observed values to compare."""

    error_code = "OPA_EMPTY_PAIR_SET"


class InvalidThreshold(OpaError):
    error_code = "OPA_INVALID_THRESHOLD"


class PermutationSpaceTooLarge(OpaError):
    """Raised when exhaustive permutation would enumerate too many orderings."""

    error_code = "OPA_PERMUTATION_SPACE_TOO_LARGE"


class InvalidRepCount(OpaError):
    error_code = "OPA_INVALID_REP_COUNT"


class InvalidHypothesis(OpaError):
    error_code = "OPA_INVALID_HYPOTHESIS"


class IncompatibleFits(OpaError):
    """Raised when two fits cannot be compared against a shared null distribution."""

    error_code = "OPA_INCOMPATIBLE_FITS"


class InvalidData(OpaError):
    """Raised when the data matrix holds values that are not numbers."""

    error_code = "OPA_INVALID_DATA"
