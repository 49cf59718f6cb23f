#!/usr/bin/env python3
"""Write the default training configuration as YAML."""
from __future__ import annotations

import argparse
from dataclasses import asdict
from pathlib import Path

import yaml

from neatarena.config import SimulationConfig


def build_document(config: SimulationConfig) -> dict:
    document = asdict(config)
    network = document["network"]
    network["sensors"] = list(network["sensors"])
    network["actuators"] = list(network["actuators"])
    return document


def write_config(path: Path, config: SimulationConfig, overwrite: bool) -> None:
    if path.exists() and not overwrite:
        raise FileExistsError(f"{path} already exists. Use --overwrite to replace.")
    path.write_text(yaml.safe_dump(build_document(config), sort_keys=False))


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Write the default training configuration as YAML.")
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("config/default.yaml"),
        help="File to write the configuration to.",
    )
    parser.add_argument(
        "--overwrite", action="store_true", help="Overwrite an existing file."
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    output: Path = args.output
    output.parent.mkdir(parents=True, exist_ok=True)
    write_config(output, SimulationConfig(), args.overwrite)
    print(f"Wrote default configuration to {output}")


if __name__ == "__main__":
    main()
