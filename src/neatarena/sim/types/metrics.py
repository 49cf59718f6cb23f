from __future__ import annotations

from dataclasses import dataclass

from ...exceptions import ContractViolation


@dataclass(slots=True)
class GenerationMetrics:
    generation: int
    species: int
    agents: int
    average_fitness: float
    best_fitness: float
    duration_ms: float = 0.0


@dataclass(frozen=True, slots=True)
class TrialResult:
    """Episode-averaged, normalized fitness components of one trial.

    Every component must lie in [0, 1]; anything else means the physics or
    the normalization is broken, so construction fails loudly.
    """

    delta: float
    traveled: float
    rotation: float
    heading_error: float
    fitness: float

    def __post_init__(self) -> None:
        for name in ("delta", "traveled", "rotation", "heading_error"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ContractViolation(f"Fitness component {name}={value!r} must be between 0 and 1")
        if not self.fitness >= 0.0:
            raise ContractViolation(f"Fitness cannot be negative: {self.fitness!r}")
