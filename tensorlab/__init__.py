"""
tensorlab: dense row-major float32 tensors with serial and parallel matrix multiplication.
"""

from .core import Tensor
from .errors import (
    TensorError,
    ElementCountMismatchError,
    IndexOutOfBoundsError,
    RankMismatchError,
    ShapeMismatchError,
)
from .backend import (
    MatmulStrategy,
    matmul,
    matmul_inner_product,
    matmul_accumulate,
    matmul_parallel,
    partition_rows,
)
from .factories import zeros, ones, full, identity, random
from .observability import configure_logging, get_profiler, ExecutionProfiler

__version__ = "0.1.0"
