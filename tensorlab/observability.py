"""
Observability utilities for tensorlab.

This module provides:
- Logging configuration for the ``tensorlab`` logger namespace
- A matmul profiler that records strategy, problem size and worker count per run
"""

import logging
import time
from contextlib import contextmanager
from typing import Optional, Dict, Any, List
from dataclasses import dataclass, field, asdict
from collections import defaultdict
import json

from . import config


# ============================================================================
# Logging Configuration
# ============================================================================

def configure_logging(level: str = "INFO", log_file: Optional[str] = None):
    """
    Configure logging for the tensorlab package.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path to write logs

    Returns:
        The configured ``tensorlab`` logger.
    """
    log_level = getattr(logging, level.upper())

    console_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    tensorlab_logger = logging.getLogger('tensorlab')
    tensorlab_logger.setLevel(log_level)

    # Reconfiguring replaces handlers instead of stacking duplicates
    for handler in list(tensorlab_logger.handlers):
        tensorlab_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(console_formatter)
    tensorlab_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)  # Always log everything to file
        file_handler.setFormatter(detailed_formatter)
        tensorlab_logger.addHandler(file_handler)

    tensorlab_logger.propagate = False

    return tensorlab_logger


# ============================================================================
# Matmul Profiling
# ============================================================================

@dataclass
class KernelRun:
    """Timing of a single matmul dispatch."""
    name: str
    start_time: float
    duration: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def flops(self) -> Optional[int]:
        """Multiply-adds counted as two operations, from the (n, k, m) metadata."""
        dims = self.metadata.get('dims')
        if dims is None:
            return None
        n, k, m = dims
        return 2 * n * k * m


class ExecutionProfiler:
    """
    Records matmul dispatches and aggregates them per strategy.

    ``enabled=None`` makes the profiler follow ``config.PROFILE_KERNELS``
    at call time; ``enable()``/``disable()`` override it until ``reset()``.

    Example:
        profiler = get_profiler()
        profiler.enable()
        a.matmul_parallel(b, num_workers=4)
        profiler.print_summary()
    """

    def __init__(self, enabled: Optional[bool] = True):
        self.runs: List[KernelRun] = []
        self._default_enabled = enabled
        self._enabled = enabled

    @property
    def enabled(self) -> bool:
        if self._enabled is None:
            return bool(config.PROFILE_KERNELS)
        return self._enabled

    @contextmanager
    def profile(self, name: str, **metadata):
        """
        Time the enclosed block as one run of ``name``.

        Args:
            name: Operation name, e.g. "matmul.parallel"
            **metadata: dims=(n, k, m), workers=..., and anything else to keep
        """
        if not self.enabled:
            yield None
            return

        run = KernelRun(name=name, start_time=time.perf_counter(), metadata=metadata)
        try:
            yield run
        finally:
            run.duration = time.perf_counter() - run.start_time
            self.runs.append(run)

    def get_summary(self) -> Dict[str, Dict[str, Any]]:
        """
        Aggregate runs per operation name.

        Returns:
            Mapping of name to count, total/mean/min/max seconds, GFLOP/s
            over all runs, and the distinct (n, k, m) sizes and worker counts seen
        """
        grouped = defaultdict(list)
        for run in self.runs:
            grouped[run.name].append(run)

        summary = {}
        for name, runs in grouped.items():
            durations = [run.duration for run in runs]
            total = sum(durations)
            flops = [run.flops for run in runs]
            summary[name] = {
                'count': len(runs),
                'total': total,
                'mean': total / len(runs),
                'min': min(durations),
                'max': max(durations),
                'gflops': (sum(flops) / total / 1e9) if total > 0 and None not in flops else None,
                'dims': sorted({tuple(run.metadata['dims']) for run in runs if 'dims' in run.metadata}),
                'workers': sorted({run.metadata['workers'] for run in runs if run.metadata.get('workers')}),
            }
        return summary

    def print_summary(self):
        """Print one line per strategy with its sizes, timings and throughput."""
        summary = self.get_summary()

        print("\n" + "=" * 96)
        print("MATMUL PROFILE SUMMARY")
        print("=" * 96)
        print(f"{'Operation':<22} {'Count':>6} {'Total (s)':>11} {'Mean (s)':>11} {'GFLOP/s':>9}  Sizes (n,k,m) / workers")
        print("-" * 96)

        sorted_ops = sorted(summary.items(), key=lambda x: x[1]['total'], reverse=True)
        for name, stats in sorted_ops:
            gflops = f"{stats['gflops']:>9.3f}" if stats['gflops'] is not None else f"{'-':>9}"
            sizes = ", ".join("x".join(str(d) for d in dims) for dims in stats['dims'])
            workers = f" / {','.join(str(w) for w in stats['workers'])}" if stats['workers'] else ""
            print(f"{name:<22} {stats['count']:>6} {stats['total']:>11.4f} {stats['mean']:>11.6f} {gflops}  {sizes}{workers}")

        print("=" * 96 + "\n")

    def save_json(self, filepath: str):
        """Write the summary and every individual run to a JSON file."""
        data = {
            'summary': self.get_summary(),
            'runs': [dict(asdict(run), flops=run.flops) for run in self.runs],
        }

        with open(filepath, 'w') as f:
            json.dump(data, f, indent=2)

    def reset(self):
        """Drop recorded runs and return to the constructor's enabled setting."""
        self.runs.clear()
        self._enabled = self._default_enabled

    def enable(self):
        self._enabled = True

    def disable(self):
        self._enabled = False


# Global profiler consulted by backend.matmul; follows config.PROFILE_KERNELS
_global_profiler = ExecutionProfiler(enabled=None)

def get_profiler() -> ExecutionProfiler:
    """Get the global profiler instance."""
    return _global_profiler
