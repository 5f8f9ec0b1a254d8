"""
Aggregation pipeline.

resolve date range -> cache lookup -> run providers concurrently ->
deduplicate/sort -> category filter -> cap -> cache store
"""

from datetime import datetime
from typing import Optional

import structlog

from .cache import ResultCache, make_cache_key
from .config import Settings
from .dates import resolve_date_range
from .dedup import deduplicate, filter_by_category
from .models import AggregationResult
from .orchestrator import Adapter, run_providers
from .resilience import HealthMonitor
from .sources import build_providers

log = structlog.get_logger(__name__)


class EventAggregator:
    """Fetch, merge and filter events from all configured sources."""

    def __init__(
        self,
        settings: Settings,
        cache: Optional[ResultCache] = None,
        providers: Optional[list[Adapter]] = None,
    ):
        self.settings = settings
        self.cache = cache
        self.providers = providers if providers is not None else build_providers(settings)

    async def fetch_events(
        self,
        date_expr: Optional[str] = None,
        category: str = "all",
        now: Optional[datetime] = None,
    ) -> AggregationResult:
        """
        Run one aggregation.

        Args:
            date_expr: Date expression ("today", "weekend", "YYYY-MM-DD[:YYYY-MM-DD]")
            category: Category filter, "all" for no filtering
            now: Reference time for relative expressions

        Returns:
            AggregationResult with merged, sorted, capped events

        Raises:
            InvalidDateExpression: If date_expr cannot be resolved
            CacheError: If the cache cannot be written
        """
        date_range = resolve_date_range(date_expr, now)
        location = self.settings.location
        key = make_cache_key(location.city, date_range, location.radius_km)

        if self.cache is not None:
            entry = self.cache.get(key)
            if entry is not None:
                log.info("cache_hit", key=key, count=len(entry.events))
                return self._finish(entry.events, date_range, category, from_cache=True)

        log.info(
            "fetch_started",
            city=location.city,
            start=date_range.start.isoformat(),
            end=date_range.end.isoformat(),
            radius_km=location.radius_km,
            providers=[p.name for p in self.providers],
        )

        monitor = HealthMonitor()
        events = await run_providers(self.providers, date_range, self.settings, monitor)
        merged = deduplicate(events)

        if self.cache is not None:
            self.cache.put(key, merged)

        return self._finish(
            merged,
            date_range,
            category,
            stats=monitor.get_stats(),
            failed_sources=monitor.get_unhealthy_sources(),
        )

    def _finish(self, events, date_range, category, from_cache=False, stats=None, failed_sources=None):
        filtered = filter_by_category(events, category)[: self.settings.limit]
        return AggregationResult(
            events=filtered,
            date_range=date_range,
            stats=stats or [],
            failed_sources=failed_sources or [],
            from_cache=from_cache,
        )
