class NeatArenaError(Exception):
    """Base for all neatarena exceptions."""

    pass


class ContractViolation(NeatArenaError):
    """A broken invariant inside the evolutionary engine or fitness substrate.

    Raised for out-of-range fitness components, undefined genes during
    crossover or distance computation, and agents that reference a species
    the population no longer owns. Never recovered from inside the core.
    """

    pass


class TrainingInProgressError(NeatArenaError):
    """A request that needs exclusive access arrived mid-generation."""

    pass


class ConfigurationError(NeatArenaError):
    """Invalid configuration supplied at startup."""

    pass
