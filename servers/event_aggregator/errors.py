"""Error taxonomy for the aggregator.

Adapter-scoped errors never leave a provider boundary; they are converted
into ProviderResult values. Only InvalidDateExpression and CacheError reach
the command line.
"""


class AggregatorError(Exception):
    """Base class for all aggregator errors."""


class AdapterSkip(AggregatorError):
    """Raised when a source is intentionally not queried (e.g. no credential)."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class AdapterError(AggregatorError):
    """Network or parse fault scoped to a single source."""


class RenderEngineFault(AdapterError):
    """Headless rendering session could not be started."""


class InvalidDateExpression(AggregatorError):
    """User supplied a date expression that cannot be resolved."""

    def __init__(self, expression: str, detail: str = ""):
        message = f"Invalid date expression: {expression!r}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.expression = expression


class CacheError(AggregatorError):
    """Result cache could not be initialized or written."""
