"""
Concurrent fan-out over all configured providers.

Every provider runs as its own task; the run waits for all of them
(join-all, never first-failure). Results are concatenated in provider
order, not completion order.
"""

import asyncio
import time
from typing import Optional, Protocol, Sequence

import structlog

from .config import Settings
from .models import DateRange, Event, ProviderResult
from .resilience import HealthMonitor

log = structlog.get_logger(__name__)


class Adapter(Protocol):
    """Anything with a name and an async fetch_events coroutine."""

    name: str

    async def fetch_events(self, date_range: DateRange, settings: Settings) -> ProviderResult:
        ...


async def _timed(adapter: Adapter, date_range: DateRange, settings: Settings) -> tuple[ProviderResult, int]:
    started = time.monotonic()
    result = await adapter.fetch_events(date_range, settings)
    return result, int((time.monotonic() - started) * 1000)


async def run_providers(
    adapters: Sequence[Adapter],
    date_range: DateRange,
    settings: Settings,
    monitor: Optional[HealthMonitor] = None,
) -> list[Event]:
    """
    Invoke every adapter concurrently and collect their events.

    Args:
        adapters: Providers in configuration order
        date_range: Resolved query window
        settings: Run settings passed to each provider
        monitor: Optional health monitor receiving each outcome

    Returns:
        Events from ok and skip results, in adapter order
    """
    monitor = monitor or HealthMonitor()

    outcomes = await asyncio.gather(
        *(_timed(adapter, date_range, settings) for adapter in adapters),
        return_exceptions=True,
    )

    events: list[Event] = []
    for adapter, outcome in zip(adapters, outcomes):
        if isinstance(outcome, BaseException):
            log.error(
                "provider_rejected",
                provider=adapter.name,
                error=f"{type(outcome).__name__}: {outcome}",
            )
            monitor.record_rejection(adapter.name, outcome)
            continue

        result, duration_ms = outcome
        log.info(
            "provider_result",
            provider=adapter.name,
            status=result.status,
            duration_ms=duration_ms,
        )
        monitor.record_result(adapter.name, result, duration_ms)
        if result.kind in ("ok", "skip"):
            events.extend(result.events)

    return events
