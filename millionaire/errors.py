"""Exceptions raised by the Millionaire Maker engine."""


class MillionaireError(Exception):
    """Base class for engine errors."""


class InsufficientHistory(MillionaireError):
    """Fewer valid draws than an operation requires."""

    def __init__(self, required, found, operation="operation"):
        self.required = required
        self.found = found
        super().__init__(
            f"Not enough historical data for {operation}. "
            f"Required: {required}, Found: {found}."
        )


class PoolTooSmall(MillionaireError):
    """The candidate pool cannot fill a single combination."""

    def __init__(self, pool_size, standard_size):
        self.pool_size = pool_size
        self.standard_size = standard_size
        super().__init__(
            f"Number pool of {pool_size} is too small for a {standard_size}-number "
            "ticket. Try increasing the pool size."
        )


class NoValidCombination(MillionaireError):
    """The attempt budget ran out before any combination passed the filters."""

    def __init__(self, attempts):
        self.attempts = attempts
        super().__init__(
            f"No combination passed the enabled filters within {attempts} attempts. "
            "Try relaxing the filters or increasing the pool size."
        )


class ExternalModelUnavailable(MillionaireError):
    """The external scoring model is missing or produced unusable output."""
