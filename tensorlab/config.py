# tensorlab/config.py
"""
Centralized configuration for the tensorlab library.
This module provides a single source of truth for all configurable parameters.
Defaults are looked up when an operation runs, so assigning to
``tensorlab.config.<NAME>`` takes effect immediately (DTYPE excepted).
"""

import os

import numpy as np

# Storage parameters
DTYPE = np.float32  # Element type of every tensor buffer

# Matrix multiplication parameters
DEFAULT_MATMUL_STRATEGY = "accumulate"  # Serial strategy used by Tensor.matmul
DEFAULT_NUM_WORKERS = max(1, os.cpu_count() or 1)  # Thread pool size for the parallel kernel
PARALLEL_SCRATCH_ELEMENTS = 1 << 16  # Per-task scratch floats in the parallel kernel (bounds output columns per block)

# Factory parameters
RANDOM_LOW = -1.0
RANDOM_HIGH = 1.0  # Exclusive upper bound

# Comparison tolerances used by Tensor.allclose
DEFAULT_RTOL = 1e-5
DEFAULT_ATOL = 1e-6

# Record matmul dispatches in the global profiler
PROFILE_KERNELS = False
