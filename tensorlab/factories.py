"""
Convenience constructors for common tensors.

Every factory returns a Tensor that satisfies the same element-count
invariant as one built with ``Tensor(values, shape)``.
"""

import math

import numpy as np

from . import config
from .config import DTYPE
from .core import Tensor, normalize_shape


def zeros(shape) -> Tensor:
    """Tensor of the given shape filled with 0.0."""
    dims = normalize_shape(shape)
    return Tensor._from_buffer(np.zeros(math.prod(dims), dtype=DTYPE), dims)


def ones(shape) -> Tensor:
    dims = normalize_shape(shape)
    return Tensor._from_buffer(np.ones(math.prod(dims), dtype=DTYPE), dims)


def full(shape, fill_value: float) -> Tensor:
    dims = normalize_shape(shape)
    return Tensor._from_buffer(np.full(math.prod(dims), fill_value, dtype=DTYPE), dims)


def identity(n: int) -> Tensor:
    """Square (n, n) identity matrix."""
    dims = normalize_shape((n, n))
    return Tensor._from_buffer(np.eye(n, dtype=DTYPE).reshape(-1), dims)


def random(shape, seed=None, low: float = None, high: float = None) -> Tensor:
    """
    Tensor with values drawn uniformly from [low, high).

    Args:
        shape: Dimension sizes
        seed: Seed (or numpy Generator) for reproducible draws
        low: Inclusive lower bound, defaults to config.RANDOM_LOW
        high: Exclusive upper bound, defaults to config.RANDOM_HIGH
    """
    dims = normalize_shape(shape)
    low = DTYPE(config.RANDOM_LOW if low is None else low)
    high = DTYPE(config.RANDOM_HIGH if high is None else high)
    if not low < high:
        raise ValueError(f"random() requires low < high in float32, got [{low}, {high})")

    rng = np.random.default_rng(seed)
    unit = rng.random(math.prod(dims), dtype=DTYPE)
    values = low + (high - low) * unit
    # float32 rounding can carry the largest draws up to `high`
    np.minimum(values, np.nextafter(high, low), out=values)
    return Tensor._from_buffer(values.astype(DTYPE, copy=False), dims)
