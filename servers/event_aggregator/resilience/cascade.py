"""Ordered extraction cascade: first strategy with a non-empty result wins."""

from typing import Any, Callable, Sequence, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")


class ExtractionCascade:
    """Apply extraction strategies in order until one yields results.

    Each strategy is a plain callable returning a possibly-empty list. A
    strategy that raises is logged and treated as empty, so a broken
    markup block cannot hide results from the next strategy.
    """

    def __init__(self, *strategies: Callable[..., Sequence[T]]):
        """Initialize cascade with ordered strategies.

        Args:
            *strategies: Callables tried in order
        """
        self.strategies = strategies

    def run(self, *args: Any, **kwargs: Any) -> list[T]:
        """Run strategies in order until one returns a non-empty list.

        Args:
            *args: Positional arguments passed to each strategy
            **kwargs: Keyword arguments passed to each strategy

        Returns:
            Result of the first productive strategy, or an empty list
        """
        for i, strategy in enumerate(self.strategies):
            try:
                result = list(strategy(*args, **kwargs))
            except (ValueError, TypeError, KeyError, AttributeError) as e:
                logger.warning(
                    "extraction_strategy_failed",
                    strategy=strategy.__name__,
                    attempt=i + 1,
                    error=str(e),
                )
                continue

            if result:
                if i > 0:
                    logger.debug(
                        "extraction_fallback_used",
                        strategy=strategy.__name__,
                        attempt=i + 1,
                        total_strategies=len(self.strategies),
                    )
                return result

        logger.debug(
            "extraction_cascade_empty",
            strategies=[s.__name__ for s in self.strategies],
        )
        return []
