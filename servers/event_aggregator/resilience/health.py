"""Per-run health monitoring for event sources."""

from datetime import datetime
from typing import Any, Optional

import structlog

from ..models import ProviderResult, ProviderStats

logger = structlog.get_logger()


class HealthMonitor:
    """Record the outcome of every provider in a run.

    Tracks ok/skip/error/rejected outcomes and turns them into the
    ProviderStats list reported alongside the aggregated events.
    """

    def __init__(self):
        """Initialize health monitor with empty status."""
        self.status: dict[str, dict[str, Any]] = {}

    def record_result(
        self,
        source: str,
        result: ProviderResult,
        duration_ms: Optional[int] = None,
    ) -> None:
        """Record a structured provider result.

        Args:
            source: Name of the event source
            result: The provider's result value
            duration_ms: Wall time spent in the provider
        """
        self.status[source] = {
            "healthy": result.kind != "error",
            "kind": result.kind,
            "status": result.status,
            "last_check": datetime.now().isoformat(),
            "event_count": len(result.events),
            "duration_ms": duration_ms,
            "last_error": result.message if result.kind == "error" else None,
        }
        if result.kind == "error":
            logger.warning("source_unhealthy", source=source, status=result.status)
        else:
            logger.debug("source_healthy", source=source, status=result.status)

    def record_rejection(self, source: str, error: BaseException) -> None:
        """Record a provider call that raised instead of returning a result.

        Args:
            source: Name of the event source
            error: The exception that escaped the provider
        """
        message = f"{type(error).__name__}: {error}"
        self.status[source] = {
            "healthy": False,
            "kind": "rejected",
            "status": f"rejected({message})",
            "last_check": datetime.now().isoformat(),
            "event_count": 0,
            "duration_ms": None,
            "last_error": message,
        }
        logger.error("source_rejected", source=source, error=message)

    def get_unhealthy_sources(self) -> list[str]:
        """Get list of sources that failed in this run."""
        return [
            name for name, status in self.status.items() if not status.get("healthy", True)
        ]

    def get_stats(self) -> list[ProviderStats]:
        """Get per-source stats in the order sources were recorded."""
        return [
            ProviderStats(
                source=name,
                status=status["status"],
                count=status["event_count"],
                duration_ms=status["duration_ms"],
                error_message=status["last_error"],
            )
            for name, status in self.status.items()
        ]
