"""
Error taxonomy for tensorlab.

Every error is raised synchronously to the immediate caller before any
buffer is allocated or written.
"""


class TensorError(ValueError):
    """Base class for all tensorlab errors."""

    default_message = "invalid tensor operation"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)


class ElementCountMismatchError(TensorError):
    """The number of values does not match the product of the shape."""

    default_message = "elements mismatch shape"


class IndexOutOfBoundsError(TensorError):
    """Coordinate count does not match the rank, or a coordinate is out of range."""

    default_message = "index out of bounds"


# Rank mismatches are reported with the same kind as out-of-range coordinates.
RankMismatchError = IndexOutOfBoundsError


class ShapeMismatchError(TensorError):
    """Operand shapes are incompatible for the requested operation."""

    default_message = "shapes don't match"
