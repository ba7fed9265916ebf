# benchmarks/matmul_strategies.py
import os
import sys

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from tensorlab import MatmulStrategy
from benchmarks.utils import create_operands
from benchmarks.utils import Benchmark

# --- Benchmark Configuration ---
# The inner-product baseline is a pure Python triple loop, keep shapes modest
SCENARIOS = {
    "square": ((128, 128), (128, 128)),
    "tall": ((512, 32), (32, 64)),
    "wide": ((16, 256), (256, 512)),
}
NUM_WORKERS = 4


def run_strategy(left, right, strategy):
    if strategy is MatmulStrategy.PARALLEL:
        return left.matmul_parallel(right, num_workers=NUM_WORKERS)
    return left.matmul(right, strategy=strategy)


def run_benchmark():
    """
    Times every matmul strategy on each scenario and checks that all of
    them agree with the accumulate kernel.
    """
    results = {}
    for name, (shape_left, shape_right) in SCENARIOS.items():
        left, right = create_operands(shape_left, shape_right)
        reference = left.matmul(right, strategy=MatmulStrategy.ACCUMULATE)

        for strategy in MatmulStrategy:
            with Benchmark(f"{name}: {strategy.value}") as b:
                result = run_strategy(left, right, strategy)
            results[(name, strategy.value)] = {
                'time': b.elapsed,
                'mem': b.peak_mem,
                'cpu': b.avg_cpu,
                'match': result.allclose(reference),
            }

    # --- Report Results ---
    print("\n" + "=" * 72)
    print("                    MATMUL STRATEGY BENCHMARK")
    print("=" * 72)
    print(f"{'Scenario':<10} | {'Strategy':<14} | {'Time (s)':>10} | {'Peak MB':>9} | {'CPU %':>7} | Match")
    print("-" * 72)
    for (name, strategy), stats in results.items():
        print(f"{name:<10} | {strategy:<14} | {stats['time']:>10.4f} | {stats['mem']:>9.1f} "
              f"| {stats['cpu']:>7.1f} | {'yes' if stats['match'] else 'NO'}")
    print("=" * 72)
    return results


if __name__ == '__main__':
    run_benchmark()
