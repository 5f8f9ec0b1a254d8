"""
Generic web scraper for event listing pages.

Cost: Free (uses httpx + BeautifulSoup)
Use Case: Venue calendars, city marketing pages, local aggregators

Structured JSON-LD is preferred; pages without it fall back to heuristic
event-card scanning.
"""

import re
from typing import Optional

import structlog
from bs4 import BeautifulSoup

from ..config import Settings, WebSource
from ..models import DateRange, Event
from ..resilience import ExtractionCascade
from .base import HTTP_TIMEOUT, FetchFunc, Provider, fetch_html
from .extraction import (
    CardSelectors,
    extract_card_events,
    extract_jsonld_events,
    select_first_nonempty,
)

log = structlog.get_logger(__name__)


# Candidate event-card containers, most specific first
EVENT_CONTAINER_PATTERNS = [
    "[itemtype*='schema.org/Event']",
    "[data-event-id]",
    "[data-event]",
    ".event-item",
    ".event-card",
    "article.event",
    ".event",
    "li[class*='event']",
    "article[class*='event']",
    "[class*='veranstaltung']",
]

EVENT_PATH_PATTERN = re.compile(
    r"/(?:events?|veranstaltung\w*|termine?)(?:[/?#._-]|$)", re.IGNORECASE
)

GENERIC_CARD = CardSelectors(
    name="h1, h2, h3, h4, [class*='title']",
    date="time, [datetime], [class*='date'], [class*='datum']",
    venue="[class*='venue'], [class*='location'], [class*='ort']",
    link="a[href]",
    link_pattern=EVENT_PATH_PATTERN,
)


def extract_structured(soup: BeautifulSoup, source: WebSource) -> list[Event]:
    """Tier 1: JSON-LD Event objects."""
    return extract_jsonld_events(soup, source.url, source.source_id, source.name)


def extract_heuristic(soup: BeautifulSoup, source: WebSource) -> list[Event]:
    """Tier 2: heuristic event cards."""
    containers = select_first_nonempty(soup, EVENT_CONTAINER_PATTERNS)
    return extract_card_events(containers, GENERIC_CARD, source.url, source.source_id, source.name)


PAGE_CASCADE = ExtractionCascade(extract_structured, extract_heuristic)


def parse_event_page(html: str, source: WebSource, date_range: Optional[DateRange] = None) -> list[Event]:
    """
    Extract events from a page's HTML.

    Args:
        html: Raw page markup
        source: Configured source (URL, display name, id)
        date_range: If given, dated events outside the range are dropped

    Returns:
        Events from the first productive extraction tier
    """
    soup = BeautifulSoup(html, "html.parser")
    events = PAGE_CASCADE.run(soup, source)
    if date_range is not None:
        events = [e for e in events if date_range.overlaps(e.start, e.end)]
    return events


def make_web_fetcher(source: WebSource) -> FetchFunc:
    """Bind a configured web source to the provider fetch signature."""

    async def fetch_web_events(date_range: DateRange, settings: Settings) -> list[Event]:
        html = await fetch_html(source.url, settings)
        events = parse_event_page(html, source, date_range)
        log.debug("web_page_parsed", source=source.source_id, count=len(events))
        return events

    return fetch_web_events


def web_provider(source: WebSource) -> Provider:
    return Provider(source.source_id, make_web_fetcher(source), timeout=HTTP_TIMEOUT)
