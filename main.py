#!/usr/bin/env python3
"""
tensorlab demo

Prints a handful of example computations and, optionally, compares the
matrix multiplication strategies on random matrices.

Example:
    python main.py
    python main.py --compare --size 96 --workers 4
"""

import argparse
import sys

from tensorlab import (
    Tensor,
    ElementCountMismatchError,
    MatmulStrategy,
    configure_logging,
    get_profiler,
    random,
)


def show_examples():
    """Print the basic tensor operations on small literal inputs."""
    print("tensorlab: dense tensor operations")
    print("=" * 50)

    try:
        Tensor([1.0, 2.0, 3.0], [2, 2])
    except ElementCountMismatchError as e:
        print(f"Tensor([1, 2, 3], [2, 2]) -> {type(e).__name__}: {e}")

    a = Tensor([1.0, 2.0, 3.0, 4.0], [2, 2])
    b = Tensor([5.0, 6.0, 7.0, 8.0], [2, 2])
    print(f"A + B = {(a + b).tolist()}")
    print(f"B - A = {(b - a).tolist()}")
    print(f"A * B = {(a * b).tolist()}  (Hadamard)")
    print(f"A * 10 = {(a * 10).tolist()}")

    left = Tensor([1.0, 2.0, 3.0, 4.0, 5.0, 6.0], [2, 3])
    right = Tensor([7.0, 8.0, 9.0, 1.0, 2.0, 3.0], [3, 2])
    product = left @ right
    print(f"(2x3) @ (3x2) = {product.tolist()} with shape {product.shape}")

    t = Tensor([1.0, 3.0, 5.0, 2.0, 4.0, 6.0], [2, 3])
    t_t = t.transpose()
    print(f"transpose of shape {t.shape} -> {t_t.tolist()} with shape {t_t.shape}")
    print("=" * 50)


def compare_strategies(size: int, workers: int, seed: int, profile_json: str = None):
    """Run every matmul strategy on the same random inputs and print timings."""
    profiler = get_profiler()
    profiler.reset()
    profiler.enable()

    a = random((size, size), seed=seed)
    b = random((size, size), seed=seed + 1)

    reference = None
    for strategy in MatmulStrategy:
        if strategy is MatmulStrategy.PARALLEL:
            result = a.matmul_parallel(b, num_workers=workers)
        else:
            result = a.matmul(b, strategy=strategy)
        if reference is None:
            reference = result
        status = "match" if result.allclose(reference) else "MISMATCH"
        print(f" - {strategy.value:<14} {status}")

    profiler.print_summary()
    if profile_json:
        profiler.save_json(profile_json)
        print(f"Profile written to {profile_json}")
    profiler.disable()


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Demonstrate tensorlab tensor operations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        '--compare',
        action='store_true',
        help='Also time every matmul strategy on random square matrices'
    )
    parser.add_argument(
        '--size',
        type=int,
        default=64,
        help='Matrix size for --compare (default: 64)'
    )
    parser.add_argument(
        '--workers',
        type=int,
        default=None,
        help='Thread count for the parallel strategy (default: CPU count)'
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=0,
        help='Random seed for --compare (default: 0)'
    )
    parser.add_argument(
        '--profile-json',
        type=str,
        default=None,
        help='Write the --compare profile (summary and every run) to this JSON file'
    )
    parser.add_argument(
        '--log-level',
        type=str,
        default='WARNING',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Logging level for the tensorlab logger'
    )

    args = parser.parse_args(argv)
    configure_logging(level=args.log_level)

    show_examples()
    if args.compare:
        compare_strategies(args.size, args.workers, args.seed, args.profile_json)
    return 0


if __name__ == "__main__":
    sys.exit(main())
