# --- Purpose: Contains the matrix multiplication kernels. ---

import logging
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import List, Tuple

import numpy as np

from . import config
from .config import DTYPE
from .core import Tensor
from .errors import ShapeMismatchError
from .observability import get_profiler

logger = logging.getLogger(__name__)


class MatmulStrategy(str, Enum):
    """Loop orders available for matrix multiplication."""
    INNER_PRODUCT = "inner_product"
    ACCUMULATE = "accumulate"
    PARALLEL = "parallel"


def _validate_matmul_shapes(left: Tensor, right: Tensor) -> Tuple[int, int, int]:
    """Check matmul preconditions and return (n, k, m)."""
    if not isinstance(left, Tensor) or not isinstance(right, Tensor):
        raise TypeError("matmul operands must be Tensor instances")
    if left.ndim != 2 or right.ndim != 2:
        raise ShapeMismatchError(
            f"matmul requires rank-2 operands, got shapes {left.shape} and {right.shape}"
        )
    n, k = left.shape
    k_right, m = right.shape
    if k != k_right:
        raise ShapeMismatchError(
            f"inner dimensions must match for multiplication: {left.shape} @ {right.shape}"
        )
    return n, k, m


def matmul_inner_product(left: Tensor, right: Tensor) -> Tensor:
    """
    Textbook matmul: one dot product per output cell.

    The shared dimension is walked in the innermost loop, reading the right
    operand directly with stride m. Kept as the baseline the other kernels
    are measured against.
    """
    n, k, m = _validate_matmul_shapes(left, right)
    a = left._data
    b = right._data
    out = np.zeros(n * m, dtype=DTYPE)

    for i in range(n):
        for j in range(m):
            total = DTYPE(0.0)
            for c in range(k):
                total += a[i * k + c] * b[c * m + j]
            out[i * m + j] = total

    return Tensor._from_buffer(out, (n, m))


def matmul_accumulate(left: Tensor, right: Tensor) -> Tensor:
    """
    Matmul in i, c, j order: each left element scales a full row of the
    right operand and is accumulated into the output row.

    Both the right operand row and the output row are swept contiguously,
    and every output cell still receives its products in ascending c.
    """
    n, k, m = _validate_matmul_shapes(left, right)
    a = left._data
    b = right._data
    out = np.zeros(n * m, dtype=DTYPE)

    for i in range(n):
        out_row = out[i * m:(i + 1) * m]
        for c in range(k):
            # j is the innermost (vectorized) loop
            out_row += a[i * k + c] * b[c * m:(c + 1) * m]

    return Tensor._from_buffer(out, (n, m))


def partition_rows(n_rows: int, num_parts: int) -> List[Tuple[int, int]]:
    """
    Split ``range(n_rows)`` into at most ``num_parts`` contiguous, disjoint
    [start, stop) ranges whose sizes differ by at most one.
    """
    num_parts = max(1, min(num_parts, n_rows))
    base, extra = divmod(n_rows, num_parts)

    ranges = []
    start = 0
    for part in range(num_parts):
        stop = start + base + (1 if part < extra else 0)
        ranges.append((start, stop))
        start = stop
    return ranges


def _compute_row_range(a: np.ndarray, b_t: np.ndarray, out: np.ndarray,
                       row_start: int, row_end: int, block_cols: int):
    """
    Helper that fills output rows [row_start, row_end). This is what each thread runs.

    ``a`` is the left operand (n, k), ``b_t`` the transposed right operand
    (m, k) and ``out`` the (n, m) output. Only rows in the given range of
    ``out`` are written. Output columns are processed ``block_cols`` at a
    time so the scratch buffer stays at ``block_cols * k`` floats.
    """
    m = b_t.shape[0]
    for i in range(row_start, row_end):
        for col_start in range(0, m, block_cols):
            col_end = min(col_start + block_cols, m)
            # products[j, c] = left[i, c] * right[c, j], contiguous along c
            products = b_t[col_start:col_end] * a[i]
            # running sums along c in ascending order, matching the serial kernels
            np.add.accumulate(products, axis=1, out=products)
            out[i, col_start:col_end] = products[:, -1]
    return row_start, row_end


def matmul_parallel(left: Tensor, right: Tensor, num_workers: int = None) -> Tensor:
    """
    Row-partitioned parallel matmul.

    The right operand is transposed once so every output cell is a scan over
    two contiguous rows. Output rows are split into disjoint ranges, one task
    per range on a thread pool. Tasks share the read-only operands and each
    writes only its own rows, so no locking is needed; the call blocks until
    every task has finished.
    """
    n, k, m = _validate_matmul_shapes(left, right)
    workers = config.DEFAULT_NUM_WORKERS if num_workers is None else num_workers
    if workers < 1:
        raise ValueError(f"num_workers must be at least 1, got {workers}")

    out = np.zeros(n * m, dtype=DTYPE)
    if n == 0 or m == 0 or k == 0:
        return Tensor._from_buffer(out, (n, m))

    right_t = right.transpose()
    a = left._data.reshape(n, k)
    b_t = right_t._data.reshape(m, k)
    out_2d = out.reshape(n, m)

    ranges = partition_rows(n, workers)
    block_cols = max(1, config.PARALLEL_SCRATCH_ELEMENTS // k)
    logger.debug(f"Parallel matmul ({n}x{k}) @ ({k}x{m}) over {len(ranges)} row ranges, "
                 f"{block_cols} output columns per block")

    with ThreadPoolExecutor(max_workers=len(ranges)) as executor:
        futures = [
            executor.submit(_compute_row_range, a, b_t, out_2d, row_start, row_end, block_cols)
            for row_start, row_end in ranges
        ]
        # result() re-raises any task failure in the calling thread
        for future in futures:
            future.result()

    return Tensor._from_buffer(out, (n, m))


_SERIAL_KERNELS = {
    MatmulStrategy.INNER_PRODUCT: matmul_inner_product,
    MatmulStrategy.ACCUMULATE: matmul_accumulate,
}


def matmul(left: Tensor, right: Tensor, strategy=None, num_workers: int = None) -> Tensor:
    """
    Dispatch a matrix multiplication to the selected kernel.

    Args:
        left: Left operand of shape (n, k)
        right: Right operand of shape (k, m)
        strategy: MatmulStrategy or its string value; defaults to
            config.DEFAULT_MATMUL_STRATEGY
        num_workers: Thread count, only accepted with the parallel strategy

    Returns:
        A new Tensor of shape (n, m)

    Raises:
        ShapeMismatchError: incompatible operands
        ValueError: unknown strategy, or num_workers given for a serial strategy
    """
    strategy = MatmulStrategy(strategy or config.DEFAULT_MATMUL_STRATEGY)
    if num_workers is not None and strategy is not MatmulStrategy.PARALLEL:
        raise ValueError(f"num_workers only applies to the parallel strategy, not '{strategy.value}'")
    n, k, m = _validate_matmul_shapes(left, right)
    logger.debug(f"Dispatching matmul with strategy '{strategy.value}'")

    metadata = {'dims': (n, k, m)}
    if strategy is MatmulStrategy.PARALLEL:
        metadata['workers'] = config.DEFAULT_NUM_WORKERS if num_workers is None else num_workers

    with get_profiler().profile(f"matmul.{strategy.value}", **metadata):
        if strategy is MatmulStrategy.PARALLEL:
            return matmul_parallel(left, right, num_workers=num_workers)
        return _SERIAL_KERNELS[strategy](left, right)
