from __future__ import annotations

import argparse
import csv
import json
import logging
import math
from pathlib import Path
from typing import Optional

from ..sim.core.config import SimulationConfig
from ..sim.core.world import Flock
from ..sim.types.steer import SteerInput

logger = logging.getLogger(__name__)


_BASIC_HEADER = [
    "tick",
    "population",
    "spawned",
    "neighbor_checks",
    "tick_ms",
]

_DETAILED_HEADER = [
    "tick",
    "population",
    "spawned",
    "neighbor_checks",
    "tick_ms",
    "separation_steered",
    "alignment_steered",
    "cohesion_steered",
    "manual_steered",
    "wrapped",
    "neighbor_checks_per_agent",
    "tick_ms_per_agent",
    "polarization",
    "centroid_x",
    "centroid_y",
    "occupied_cells",
    "max_cell_occupancy",
]


def _format_basic_row(metrics: object, tick_ms: float) -> list[object]:
    return [
        metrics.tick,
        metrics.population,
        metrics.spawned,
        metrics.neighbor_checks,
        f"{tick_ms:.3f}",
    ]


def polarization(flock: Flock) -> float:
    """Length of the mean heading: 1.0 when every boid flies the same way, near 0 when scattered."""
    boids = flock.agents
    if not boids:
        return 0.0
    sum_x = 0.0
    sum_y = 0.0
    for boid in boids:
        sum_x += boid.heading.x
        sum_y += boid.heading.y
    return math.hypot(sum_x, sum_y) / len(boids)


def _format_detailed_row(flock: Flock, metrics: object, tick_ms: float) -> list[object]:
    population = metrics.population
    if population <= 0:
        neighbor_checks_per_agent = 0.0
        tick_ms_per_agent = 0.0
        centroid_x = 0.0
        centroid_y = 0.0
        occupied_cells = 0
        max_cell_occupancy = 0
    else:
        neighbor_checks_per_agent = metrics.neighbor_checks / population
        tick_ms_per_agent = tick_ms / population
        cell_size = flock.config.cell_size
        sum_x = 0.0
        sum_y = 0.0
        cell_counts: dict[tuple[int, int], int] = {}
        for boid in flock.agents:
            sum_x += boid.position.x
            sum_y += boid.position.y
            cell_key = (int(boid.position.x // cell_size), int(boid.position.y // cell_size))
            cell_counts[cell_key] = cell_counts.get(cell_key, 0) + 1
        centroid_x = sum_x / population
        centroid_y = sum_y / population
        occupied_cells = len(cell_counts)
        max_cell_occupancy = max(cell_counts.values()) if cell_counts else 0

    return [
        metrics.tick,
        population,
        metrics.spawned,
        metrics.neighbor_checks,
        f"{tick_ms:.3f}",
        metrics.separation_steered,
        metrics.alignment_steered,
        metrics.cohesion_steered,
        metrics.manual_steered,
        metrics.wrapped,
        f"{neighbor_checks_per_agent:.4f}",
        f"{tick_ms_per_agent:.4f}",
        f"{polarization(flock):.4f}",
        f"{centroid_x:.4f}",
        f"{centroid_y:.4f}",
        occupied_cells,
        max_cell_occupancy,
    ]


def _percentile(sorted_values: list[float], percentile: float) -> float:
    if not sorted_values:
        return 0.0
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    pos = (len(sorted_values) - 1) * percentile
    low = int(math.floor(pos))
    high = int(math.ceil(pos))
    if low == high:
        return float(sorted_values[low])
    weight = pos - low
    return float(sorted_values[low] + (sorted_values[high] - sorted_values[low]) * weight)


def _summary_stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {"min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p90": 0.0, "p99": 0.0}
    sorted_values = sorted(values)
    count = len(values)
    return {
        "min": float(sorted_values[0]),
        "max": float(sorted_values[-1]),
        "avg": float(sum(values) / count),
        "p50": _percentile(sorted_values, 0.50),
        "p90": _percentile(sorted_values, 0.90),
        "p99": _percentile(sorted_values, 0.99),
    }


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    log_format: str = "detailed",
    summary_path: Optional[Path] = None,
    summary_window: int = 500,
    config_path: Optional[Path] = None,
    population: Optional[int] = None,
    steer: SteerInput = SteerInput.NONE,
) -> Flock:
    log_mode = log_format.lower().strip()
    if log_mode not in {"basic", "detailed"}:
        raise ValueError(f"Unknown log format: {log_format}")

    config = SimulationConfig.from_yaml(config_path) if config_path else SimulationConfig()
    if seed is not None:
        config.seed = seed
    if population is not None:
        config.initial_population = population
        config.max_population = max(config.max_population, population)
    flock = Flock(config)
    logger.info("Running %d headless steps with %d boids (seed %d)", steps, len(flock.agents), config.seed)

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_DETAILED_HEADER if log_mode == "detailed" else _BASIC_HEADER)

    tick_ms_series: list[float] = []
    neighbor_checks_series: list[float] = []
    polarization_series: list[float] = []

    try:
        for _ in range(steps):
            metrics = flock.step(config.time_step, steer)
            tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms

            if summary_path:
                tick_ms_series.append(tick_ms)
                neighbor_checks_series.append(float(metrics.neighbor_checks))
                polarization_series.append(polarization(flock))

            if writer:
                if log_mode == "detailed":
                    writer.writerow(_format_detailed_row(flock, metrics, tick_ms))
                else:
                    writer.writerow(_format_basic_row(metrics, tick_ms))
    finally:
        if csv_file:
            csv_file.close()

    if summary_path:
        window = max(1, int(summary_window))
        tail_slice = slice(max(0, len(tick_ms_series) - window), len(tick_ms_series))
        summary = {
            "steps": steps,
            "seed": config.seed,
            "population": len(flock.agents),
            "log_format": log_mode,
            "deterministic_log": deterministic_log,
            "steer": steer.value,
            "tick_ms": _summary_stats(tick_ms_series),
            "neighbor_checks": _summary_stats(neighbor_checks_series),
            "polarization": _summary_stats(polarization_series),
            "final_polarization": polarization(flock),
            "tail_window": {
                "window": window,
                "tick_ms": _summary_stats(tick_ms_series[tail_slice]),
                "polarization": _summary_stats(polarization_series[tail_slice]),
            },
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))

    logger.info("Finished %d steps at tick %d", steps, flock.tick)
    return flock


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless boids flock simulation")
    parser.add_argument("--steps", type=int, default=3000)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML simulation config")
    parser.add_argument("--population", type=int, default=150, help="Boids spawned at random positions on start")
    parser.add_argument(
        "--steer",
        choices=[value.value for value in SteerInput],
        default=SteerInput.NONE.value,
        help="Manual steer signal held for the whole run.",
    )
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write metrics")
    parser.add_argument(
        "--log-format",
        choices=["basic", "detailed"],
        default="detailed",
        help="CSV format to write when --log is provided.",
    )
    parser.add_argument(
        "--summary",
        type=Path,
        default=None,
        help="Optional JSON file to write summary stats for the run.",
    )
    parser.add_argument(
        "--summary-window",
        type=int,
        default=500,
        help="Tail window size (ticks) for summary stats.",
    )
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("--log-level", default="INFO", help="Python logging level")
    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    run_headless(
        args.steps,
        args.seed,
        args.log,
        deterministic_log=args.deterministic_log,
        log_format=args.log_format,
        summary_path=args.summary,
        summary_window=args.summary_window,
        config_path=args.config,
        population=args.population,
        steer=SteerInput.parse(args.steer),
    )


if __name__ == "__main__":
    main()
