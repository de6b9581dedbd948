"""
Multi-size tick throughput measurement.

Runs the grid at several board sizes and reports median/p90 tick time.
"""

import time
import gc

import numpy as np

from antgrid.data_types import GridConfig
from antgrid.grid import Grid
from antgrid.rng import make_rng


def run_tick_perf_test(size: int, ticks: int = 50, runs: int = 5, seed: int = 42) -> dict:
    """
    Run tick timing at a given square board size.

    Args:
        size: Board width and height
        ticks: Ticks per run
        runs: Number of runs (fresh board each run)
        seed: Base RNG seed

    Returns:
        Dict with p50, p90, min, max (ms per tick) and final ant count
    """
    timings = []
    ants = 0

    for run in range(runs):
        config = GridConfig(width=size, height=size)
        grid = Grid.from_config(config, rng=make_rng(seed + run))

        gc.collect()
        gc.disable()
        try:
            for _ in range(ticks):
                start = time.perf_counter()
                grid.tick()
                timings.append((time.perf_counter() - start) * 1000.0)
        finally:
            gc.enable()

        ants = len(grid.ants)

    timings = np.array(timings)
    return {
        'p50': float(np.median(timings)),
        'p90': float(np.percentile(timings, 90)),
        'min': float(timings.min()),
        'max': float(timings.max()),
        'ants': ants,
    }


def main():
    print("=" * 60)
    print("Tick Throughput")
    print("=" * 60)

    for size in (25, 50, 100, 200):
        result = run_tick_perf_test(size)
        print(f"  {size:4d}x{size:<4d} | p50={result['p50']:7.3f} ms | "
              f"p90={result['p90']:7.3f} ms | max={result['max']:7.3f} ms | "
              f"ants={result['ants']}")

    print("[OK] Done")


if __name__ == '__main__':
    main()
