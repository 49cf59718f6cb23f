from __future__ import annotations

import argparse
import csv
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from loguru import logger

from ..config import SimulationConfig
from ..neat.population import Population
from ..sim.types.metrics import GenerationMetrics

_HEADER = [
    "generation",
    "species",
    "agents",
    "average_fitness",
    "best_fitness",
    "generation_ms",
]


def _format_row(metrics: GenerationMetrics, generation_ms: float) -> list[object]:
    return [
        metrics.generation,
        metrics.species,
        metrics.agents,
        f"{metrics.average_fitness:.6f}",
        f"{metrics.best_fitness:.6f}",
        f"{generation_ms:.3f}",
    ]


def run_training(
    generations: int,
    seed: Optional[int] = None,
    log_path: Optional[Path] = None,
    config_path: Optional[Path] = None,
    deterministic_log: bool = False,
    config: Optional[SimulationConfig] = None,
) -> List[GenerationMetrics]:
    if config is None:
        config = SimulationConfig.from_yaml(config_path) if config_path else SimulationConfig()
    if seed is not None:
        config = replace(config, seed=seed)
    population = Population(config)
    logger.info(
        f"[headless] Training {config.evolution.population_size} agents for {generations} generations "
        f"(seed={config.seed})"
    )

    history: List[GenerationMetrics] = []
    csv_file = None
    writer = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_HEADER)
    try:
        for _ in range(generations):
            metrics = population.run_generation()
            history.append(metrics)
            if writer:
                generation_ms = 0.0 if deterministic_log else metrics.duration_ms
                writer.writerow(_format_row(metrics, generation_ms))
    finally:
        if csv_file:
            csv_file.close()
    return history


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless NEAT training")
    parser.add_argument("--generations", type=int, default=20)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write per-generation metrics")
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (generation_ms is forced to 0.000 so identical seeds match).",
    )
    args = parser.parse_args()
    run_training(
        args.generations,
        seed=args.seed,
        log_path=args.log,
        config_path=args.config,
        deterministic_log=args.deterministic_log,
    )


if __name__ == "__main__":
    main()
