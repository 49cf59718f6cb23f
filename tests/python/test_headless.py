from __future__ import annotations

import csv

import pytest

from neatarena.app.headless import run_training


def _read_csv(path):
    with path.open(newline="") as handle:
        return list(csv.reader(handle))


def test_headless_log_header_and_rows(tmp_path, small_config):
    log_path = tmp_path / "training.csv"
    history = run_training(generations=2, log_path=log_path, deterministic_log=True, config=small_config)
    rows = _read_csv(log_path)
    assert len(rows) == 3
    assert rows[0] == [
        "generation",
        "species",
        "agents",
        "average_fitness",
        "best_fitness",
        "generation_ms",
    ]
    assert [int(row[0]) for row in rows[1:]] == [1, 2]
    assert [int(row[2]) for row in rows[1:]] == [8, 8]
    assert all(row[5] == "0.000" for row in rows[1:])
    assert [m.generation for m in history] == [1, 2]
    assert float(rows[2][3]) == pytest.approx(history[1].average_fitness, abs=1e-6)


def test_headless_deterministic_log_is_reproducible(tmp_path, small_config):
    first = tmp_path / "first.csv"
    second = tmp_path / "second.csv"
    run_training(generations=2, seed=5, log_path=first, deterministic_log=True, config=small_config)
    run_training(generations=2, seed=5, log_path=second, deterministic_log=True, config=small_config)
    assert first.read_text() == second.read_text()


def test_headless_reads_yaml_config(tmp_path):
    config_path = tmp_path / "tiny.yaml"
    config_path.write_text(
        "total_time: 0.25\nruns: 1\nevolution:\n  population_size: 4\n"
    )
    history = run_training(generations=1, seed=2, config_path=config_path)
    assert history[0].agents == 4


@pytest.mark.slow
def test_long_training_run_stays_consistent(small_config):
    history = run_training(generations=25, config=small_config)
    assert len(history) == 25
    for metrics in history:
        assert metrics.agents == small_config.evolution.population_size
        assert 0.0 <= metrics.average_fitness <= metrics.best_fitness <= 1.0
        assert metrics.species >= 1
