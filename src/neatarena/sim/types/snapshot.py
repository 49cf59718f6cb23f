from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(slots=True)
class WorldSnapshot:
    width: float
    height: float
    bot: Dict[str, float]
    ball: Dict[str, float]
    score: int
    distance: float
    steps: int
    elapsed: float
    bot_collisions: int


@dataclass(slots=True)
class AgentObservation:
    agent_id: int
    species_id: Optional[int]
    fitness: float
    world: WorldSnapshot
    activations: Dict[int, float]

    def to_payload(self) -> Dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "species_id": self.species_id,
            "fitness": self.fitness,
            "world": {
                "width": self.world.width,
                "height": self.world.height,
                "bot": self.world.bot,
                "ball": self.world.ball,
                "score": self.world.score,
                "distance": self.world.distance,
                "steps": self.world.steps,
                "elapsed": self.world.elapsed,
                "bot_collisions": self.world.bot_collisions,
            },
            "activations": {str(k): v for k, v in self.activations.items()},
        }
