"""
Ant grid simulation host.

Builds a Grid from a data pack (or a GridConfig), advances it tick by
tick, and keeps timing and lifecycle telemetry. Headless: rendering and
pacing belong to whatever drives it.
"""

import os
import time
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np

from .constants import TICK_TIME_WINDOW, TICK_SUMMARY_INTERVAL
from .data_types import GridConfig
from .grid import Grid, CellKind, TELEMETRY_KEYS
from .loader import load_all_data
from .rng import make_rng, make_seed


class AntSimulation:
    """
    Main simulation class for the ant grid.

    Owns one Grid, the tick loop, and rolling performance metrics.
    """

    def __init__(
        self,
        data_root: Optional[Path] = None,
        config: Optional[GridConfig] = None,
        schema_dir: Optional[Path] = None,
        rng: Optional[np.random.Generator] = None,
        verbose: bool = True
    ):
        """
        Initialize simulation from a data pack or an explicit config.

        Args:
            data_root: Path to data directory (grid/default.yaml inside)
            config: GridConfig to use instead of a data pack
            schema_dir: Optional path to JSON schemas
            rng: Optional random source (overrides the config seed)
            verbose: Print status lines
        """
        self.verbose = verbose
        self.name = 'custom'

        if config is None:
            if data_root is None:
                config = GridConfig()
            else:
                self._log("Loading data pack...")
                data = load_all_data(data_root, schema_dir)
                config = data['grid']
                self.name = data['name']

        if rng is None and config.seed is not None:
            rng = make_rng(make_seed(config.seed, self.name, config.width, config.height))

        self.config: GridConfig = config
        self.grid: Grid = Grid.from_config(config, rng)
        self.tick_count: int = 0

        # Performance metrics
        self._tick_times: List[float] = []
        self._tick_time_sum: float = 0.0
        self._tick_time_window: int = TICK_TIME_WINDOW  # Rolling average window

        # Lifecycle telemetry accumulated over the run
        self._telemetry_totals: Dict[str, int] = dict.fromkeys(TELEMETRY_KEYS, 0)

        self._log(f"[OK] Simulation initialized: {self.config.width}x{self.config.height} grid, "
                  f"{len(self.grid.ants)} ants, {self.grid.count(CellKind.FOOD)} food, "
                  f"seed={self.config.seed}")

    def _log(self, message: str):
        if self.verbose:
            print(message)

    def tick(self):
        """Advance the grid one step and record timing/telemetry."""
        start_time = time.perf_counter()

        self.grid.tick()
        self.tick_count += 1

        for key, value in self.grid.last_tick_telemetry.items():
            self._telemetry_totals[key] += value

        elapsed = time.perf_counter() - start_time
        self._record_tick_time(elapsed)

        # Debug invariant check (zero perf impact when env var not set)
        if os.getenv('ANTGRID_DEBUG_INVARIANTS') == '1':
            self.grid.check_invariants()

    def run(self, ticks: int, summary_every: int = TICK_SUMMARY_INTERVAL):
        """
        Advance several ticks back to back (no pacing).

        Args:
            ticks: Number of ticks
            summary_every: Print a summary every N ticks (0 disables)
        """
        for _ in range(ticks):
            self.tick()
            if summary_every and self.tick_count % summary_every == 0:
                self.print_tick_summary()

            if not self.grid.ants:
                self._log(f"[WARN] Population extinct at tick {self.tick_count}")
                break

    def get_tick_stats(self) -> dict:
        """
        Get current tick timing statistics.

        Returns:
            Dict with tick_count, avg_tick_time_ms, last_tick_time_ms
        """
        if not self._tick_times:
            return {
                'tick_count': self.tick_count,
                'avg_tick_time_ms': 0.0,
                'last_tick_time_ms': 0.0
            }

        avg_time = self._tick_time_sum / len(self._tick_times)
        last_time = self._tick_times[-1]

        return {
            'tick_count': self.tick_count,
            'avg_tick_time_ms': avg_time * 1000.0,
            'last_tick_time_ms': last_time * 1000.0
        }

    def _record_tick_time(self, elapsed: float):
        """
        Record tick timing for rolling average.

        Args:
            elapsed: Tick time in seconds
        """
        self._tick_times.append(elapsed)
        self._tick_time_sum += elapsed

        # Maintain rolling window
        if len(self._tick_times) > self._tick_time_window:
            removed = self._tick_times.pop(0)
            self._tick_time_sum -= removed

    def get_telemetry(self) -> dict:
        """
        Lifecycle counters.

        Returns:
            Dict with 'last_tick' and 'totals' counter dicts
        """
        return {
            'last_tick': dict(self.grid.last_tick_telemetry),
            'totals': dict(self._telemetry_totals)
        }

    def get_snapshot(self) -> dict:
        """
        Get complete simulation state snapshot.

        Returns:
            Dict with grid snapshot, timing and telemetry
        """
        snapshot = self.grid.get_snapshot()
        snapshot['name'] = self.name
        snapshot['timing'] = self.get_tick_stats()
        snapshot['telemetry'] = self.get_telemetry()
        return snapshot

    def print_tick_summary(self):
        """Print tick summary to console (lightweight monitoring)"""
        stats = self.get_tick_stats()
        print(f"Tick {stats['tick_count']:5d} | "
              f"Avg: {stats['avg_tick_time_ms']:6.3f} ms | "
              f"Last: {stats['last_tick_time_ms']:6.3f} ms | "
              f"Ants: {len(self.grid.ants)} | "
              f"Food: {self.grid.count(CellKind.FOOD)}")

    def print_telemetry(self):
        """Print accumulated lifecycle counters and team populations"""
        totals = self._telemetry_totals
        print(f"\n[Telemetry] Tick {self.tick_count} ({len(self.grid.ants)} ants)")
        print(f"  Food:     grown={totals['food_grown']} eaten={totals['food_eaten']}")
        print(f"  Actions:  moves={totals['moves']} attacks={totals['attacks']} "
              f"hits={totals['hits']} mutations={totals['mutations']}")
        print(f"  Life:     births={totals['births']} deaths={totals['deaths']} "
              f"overwritten={totals['overwritten']}")

        population = self.grid.population_by_team()
        print("  Teams:    " + " ".join(f"{team.value}={n}" for team, n in population.items()))

        if self.grid.ants:
            energies = np.array([ant.energy for ant in self.grid.ants.values()])
            ages = np.array([ant.age for ant in self.grid.ants.values()])
            print(f"  Energy:   mean={energies.mean():.1f} min={energies.min()} max={energies.max()}")
            print(f"  Age:      mean={ages.mean():.1f} max={ages.max()}")
