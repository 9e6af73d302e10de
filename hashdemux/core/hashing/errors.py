"""Exceptions and warnings raised by the hashing core."""


class HashingError(ValueError):
    """Base class for input-validity errors in HTO demultiplexing."""


class InputShapeError(HashingError):
    """Count matrix or ambient profile has an invalid shape or content.

    Raised when the matrix is not two-dimensional, has fewer than two HTO
    rows, contains negative or non-finite counts, or when the ambient
    profile does not match the number of HTOs.
    """


class DegenerateAmbientError(HashingError):
    """Fewer than two HTOs remain after discarding zero-ambient HTOs."""


class InsufficientBarcodesError(HashingError):
    """Too few barcodes to compute a median and MAD."""


class DegenerateThresholdWarning(UserWarning):
    """A MAD collapsed to zero, so the outlier threshold equals the median."""
