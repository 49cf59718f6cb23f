from __future__ import annotations

import math
from typing import Callable, Dict

from ..exceptions import ConfigurationError

ActivationFunction = Callable[[float], float]


def plain(value: float) -> float:
    return value


def sigmoid(value: float) -> float:
    if value >= 0:
        return 1.0 / (1.0 + math.exp(-value))
    z = math.exp(value)
    return z / (1.0 + z)


def relu(value: float) -> float:
    return max(0.0, value)


def tanh(value: float) -> float:
    return math.tanh(value)


def softsign(value: float) -> float:
    return value / (1.0 + abs(value))


ACTIVATIONS: Dict[str, ActivationFunction] = {
    "plain": plain,
    "sigmoid": sigmoid,
    "relu": relu,
    "tanh": tanh,
    "softsign": softsign,
}


def resolve_activation(name: str) -> ActivationFunction:
    try:
        return ACTIVATIONS[name]
    except KeyError:
        raise ConfigurationError(f"Unknown activation function: {name}") from None
