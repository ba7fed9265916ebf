# --- Purpose: Owns the in-memory representation of a tensor. ---

import math
import numbers
import operator
from typing import Sequence, Tuple

import numpy as np

from . import config
from .config import DTYPE
from .errors import (
    TensorError,
    ElementCountMismatchError,
    IndexOutOfBoundsError,
    ShapeMismatchError,
)


def normalize_shape(shape) -> Tuple[int, ...]:
    """Validate a shape descriptor and return it as a tuple of ints."""
    try:
        dims = tuple(operator.index(dim) for dim in shape)
    except TypeError:
        raise TensorError(f"shape must be a sequence of integers, got {shape!r}") from None
    if any(dim < 0 for dim in dims):
        raise TensorError(f"shape dimensions must be non-negative, got {dims}")
    return dims


class Tensor:
    """
    A dense, row-major tensor of 32-bit floats.

    The tensor owns a flat buffer and a shape tuple. The number of values
    always equals the product of the shape; this is checked once at
    construction and every operation builds its result so that it holds.
    Operations never modify a tensor in place, they return a new one.
    """

    # Make numpy defer to our reflected operators (e.g. np.float32(2) * t)
    __array_ufunc__ = None

    def __init__(self, values, shape: Sequence[int]):
        """
        Build a tensor from flat row-major values.

        Args:
            values: Sequence (or numpy array) of numbers, copied into the tensor
            shape: Sequence of non-negative dimension sizes

        Raises:
            ElementCountMismatchError: if len(values) != product(shape)
        """
        dims = normalize_shape(shape)
        flat = np.asarray(values, dtype=DTYPE).reshape(-1)
        if flat.size != math.prod(dims):
            raise ElementCountMismatchError(
                f"elements mismatch shape: got {flat.size} values for shape {dims}"
            )
        self._data = flat.copy()
        self._shape = dims

    @classmethod
    def _from_buffer(cls, buffer: np.ndarray, shape: Tuple[int, ...]) -> 'Tensor':
        """Internal constructor that takes ownership of an already valid buffer."""
        obj = cls.__new__(cls)
        obj._data = buffer
        obj._shape = tuple(shape)
        return obj

    # ------------------------------------------------------------------
    # Layout queries
    # ------------------------------------------------------------------

    @property
    def data(self) -> np.ndarray:
        """Read-only view of the flat row-major buffer."""
        view = self._data.view()
        view.flags.writeable = False
        return view

    @property
    def shape(self) -> Tuple[int, ...]:
        return self._shape

    @property
    def ndim(self) -> int:
        return len(self._shape)

    @property
    def size(self) -> int:
        return self._data.size

    @property
    def dtype(self) -> np.dtype:
        return self._data.dtype

    @property
    def rows(self) -> int:
        self._require_rank2("rows")
        return self._shape[0]

    @property
    def cols(self) -> int:
        self._require_rank2("cols")
        return self._shape[1]

    def _require_rank2(self, what: str):
        if self.ndim != 2:
            raise ShapeMismatchError(f"{what} requires a rank-2 tensor, got shape {self._shape}")

    def value_at(self, coords: Sequence[int]) -> float:
        """
        Read a single element.

        For a rank-2 tensor the flat index is ``row * cols + col``; other
        ranks use the same row-major rule extended over every dimension.

        Raises:
            IndexOutOfBoundsError: wrong number of coordinates, or a
                coordinate outside its dimension
        """
        coords = tuple(operator.index(c) for c in coords)
        if len(coords) != self.ndim:
            raise IndexOutOfBoundsError(
                f"index out of bounds: expected {self.ndim} coordinates, got {len(coords)}"
            )

        index = 0
        for axis, (coord, dim) in enumerate(zip(coords, self._shape)):
            if not 0 <= coord < dim:
                raise IndexOutOfBoundsError(
                    f"index out of bounds: coordinate {coord} on axis {axis} with size {dim}"
                )
            index = index * dim + coord
        return float(self._data[index])

    def __getitem__(self, key) -> float:
        if not isinstance(key, tuple):
            key = (key,)
        return self.value_at(key)

    # ------------------------------------------------------------------
    # Elementwise arithmetic
    # ------------------------------------------------------------------

    def _require_same_shape(self, other: 'Tensor'):
        if not isinstance(other, Tensor):
            raise TypeError(f"expected a Tensor operand, got {type(other).__name__}")
        if self._shape != other._shape:
            raise ShapeMismatchError(
                f"shapes don't match: {self._shape} and {other._shape}"
            )

    def add(self, other: 'Tensor') -> 'Tensor':
        """Elementwise sum of two tensors of identical shape."""
        self._require_same_shape(other)
        return Tensor._from_buffer(self._data + other._data, self._shape)

    def sub(self, other: 'Tensor') -> 'Tensor':
        """Elementwise difference of two tensors of identical shape."""
        self._require_same_shape(other)
        return Tensor._from_buffer(self._data - other._data, self._shape)

    def mul(self, other: 'Tensor') -> 'Tensor':
        """Hadamard (elementwise) product of two tensors of identical shape."""
        self._require_same_shape(other)
        return Tensor._from_buffer(self._data * other._data, self._shape)

    def mul_scalar(self, scalar: float) -> 'Tensor':
        return Tensor._from_buffer(self._data * DTYPE(scalar), self._shape)

    # ------------------------------------------------------------------
    # Layout transforms and matrix multiplication
    # ------------------------------------------------------------------

    def transpose(self) -> 'Tensor':
        """
        Return the transpose of a rank-2 tensor in a freshly allocated buffer.

        ``result.values[j * rows + i] == self.values[i * cols + j]``.
        """
        self._require_rank2("transpose")
        rows, cols = self._shape
        # copy() always allocates, even when the transposed view is already contiguous
        buffer = self._data.reshape(rows, cols).T.copy().reshape(-1)
        return Tensor._from_buffer(buffer, (cols, rows))

    @property
    def T(self) -> 'Tensor':
        return self.transpose()

    def matmul(self, other: 'Tensor', strategy=None) -> 'Tensor':
        """
        Matrix product ``self @ other`` for rank-2 tensors.

        Args:
            other: Right operand, shape (k, m) when self has shape (n, k)
            strategy: A MatmulStrategy or its string value; defaults to
                config.DEFAULT_MATMUL_STRATEGY

        Raises:
            ShapeMismatchError: if either operand is not rank 2 or the inner
                dimensions differ
        """
        from .backend import matmul

        return matmul(self, other, strategy=strategy)

    def matmul_parallel(self, other: 'Tensor', num_workers: int = None) -> 'Tensor':
        """Matrix product computed by the row-partitioned thread pool kernel."""
        from .backend import matmul, MatmulStrategy

        return matmul(self, other, strategy=MatmulStrategy.PARALLEL, num_workers=num_workers)

    # ------------------------------------------------------------------
    # Operator sugar
    # ------------------------------------------------------------------

    def __add__(self, other):
        if not isinstance(other, Tensor):
            return NotImplemented
        return self.add(other)

    def __sub__(self, other):
        if not isinstance(other, Tensor):
            return NotImplemented
        return self.sub(other)

    def __mul__(self, other):
        if isinstance(other, Tensor):
            return self.mul(other)
        if isinstance(other, numbers.Real):
            return self.mul_scalar(other)
        return NotImplemented

    def __rmul__(self, other):
        # Handles the case `2 * tensor`
        if isinstance(other, numbers.Real):
            return self.mul_scalar(other)
        return NotImplemented

    def __matmul__(self, other):
        if not isinstance(other, Tensor):
            return NotImplemented
        return self.matmul(other)

    # ------------------------------------------------------------------
    # Conversion and comparison
    # ------------------------------------------------------------------

    def to_numpy(self) -> np.ndarray:
        """Return a writable copy of the values reshaped to the tensor's shape."""
        return self._data.reshape(self._shape).copy()

    def tolist(self) -> list:
        """Return the flat values as a list of Python floats."""
        return self._data.tolist()

    def allclose(self, other: 'Tensor', rtol: float = None, atol: float = None) -> bool:
        """
        True when shapes are equal and all values agree within tolerance.

        Tolerances default to config.DEFAULT_RTOL / config.DEFAULT_ATOL.
        """
        rtol = config.DEFAULT_RTOL if rtol is None else rtol
        atol = config.DEFAULT_ATOL if atol is None else atol
        if not isinstance(other, Tensor) or self._shape != other._shape:
            return False
        return bool(np.allclose(self._data, other._data, rtol=rtol, atol=atol))

    def __repr__(self):
        values = np.array2string(self._data, separator=', ', threshold=16)
        return f"Tensor(shape={self._shape}, dtype={self._data.dtype.name}, data={values})"
