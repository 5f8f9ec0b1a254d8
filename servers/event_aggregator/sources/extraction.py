"""
Extraction strategies shared by the HTML and rendered-page adapters.

Two tiers, applied through an ExtractionCascade:
1. JSON-LD: schema.org Event objects embedded in <script type="application/ld+json">
2. Heuristic cards: CSS container patterns plus first-matching sub-selectors

Every strategy takes a parsed page and returns a possibly-empty list of Events.
"""

import html
import json
import re
from typing import Any, Iterator, Optional, Sequence
from urllib.parse import urljoin

import structlog
from bs4 import BeautifulSoup, Tag

from ..dates import parse_event_datetime
from ..models import Event
from .base import build_event

log = structlog.get_logger(__name__)


# schema.org types accepted as events (explicit set, no substring matching)
EVENT_TYPES = frozenset({
    "Event",
    "BusinessEvent",
    "ChildrensEvent",
    "ComedyEvent",
    "CourseInstance",
    "DanceEvent",
    "EducationEvent",
    "ExhibitionEvent",
    "Festival",
    "FoodEvent",
    "LiteraryEvent",
    "MusicEvent",
    "SaleEvent",
    "ScreeningEvent",
    "SocialEvent",
    "SportsEvent",
    "TheaterEvent",
    "VisualArtsEvent",
})

CURRENCY_SYMBOLS = {
    "EUR": "€",
    "USD": "$",
    "GBP": "£",
    "CHF": "CHF ",
}

MIN_NAME_LENGTH = 3


class CardSelectors:
    """Sub-selectors used to read one event card."""

    def __init__(
        self,
        name: str,
        date: str,
        venue: Optional[str] = None,
        link: str = "a[href]",
        link_pattern: Optional[re.Pattern] = None,
    ):
        self.name = name
        self.date = date
        self.venue = venue
        self.link = link
        self.link_pattern = link_pattern


def format_price(amount: Any, currency: Optional[str] = None, prefix: str = "") -> Optional[str]:
    """Render a price like 'from 12.5€'."""
    if amount is None or amount == "":
        return None
    try:
        value = float(amount)
        text = f"{value:g}"
    except (TypeError, ValueError):
        text = str(amount).strip()
    symbol = CURRENCY_SYMBOLS.get((currency or "").upper(), f" {currency}" if currency else "")
    return f"{prefix}{text}{symbol}".strip()


def clean_text(value: Any) -> Optional[str]:
    """Unescape and collapse whitespace; non-strings become None."""
    if not isinstance(value, str):
        return None
    text = " ".join(html.unescape(value).split())
    return text or None


def absolute_url(href: Optional[str], base_url: str) -> Optional[str]:
    if not href:
        return None
    href = href.strip()
    if href.startswith(("javascript:", "mailto:", "#")):
        return None
    return urljoin(base_url, href)


# -- JSON-LD -----------------------------------------------------------------

def iter_jsonld_objects(soup: BeautifulSoup) -> Iterator[dict[str, Any]]:
    """Yield every JSON object from all JSON-LD blocks, flattening arrays and @graph."""
    for tag in soup.find_all("script", type="application/ld+json"):
        raw = tag.string or tag.get_text() or ""
        try:
            data = json.loads(raw, strict=False)
        except json.JSONDecodeError:
            log.debug("jsonld_block_invalid", length=len(raw))
            continue
        yield from _flatten(data)


def _flatten(data: Any) -> Iterator[dict[str, Any]]:
    if isinstance(data, list):
        for item in data:
            yield from _flatten(item)
    elif isinstance(data, dict):
        if "@graph" in data:
            yield from _flatten(data["@graph"])
        else:
            yield data


def is_event_type(item: dict[str, Any]) -> bool:
    """Check @type (string or list) against the accepted event types."""
    declared = item.get("@type")
    if isinstance(declared, str):
        declared = [declared]
    if not isinstance(declared, list):
        return False
    return any(isinstance(t, str) and t in EVENT_TYPES for t in declared)


def _location_fields(location: Any) -> tuple[Optional[str], Optional[str]]:
    """Return (venue name, address) from a schema.org location value."""
    if isinstance(location, list):
        location = location[0] if location else None
    if isinstance(location, str):
        return clean_text(location), None
    if not isinstance(location, dict):
        return None, None

    venue = clean_text(location.get("name"))
    address = location.get("address")
    if isinstance(address, dict):
        parts = [
            clean_text(address.get("streetAddress")),
            " ".join(
                p for p in (
                    clean_text(address.get("postalCode")),
                    clean_text(address.get("addressLocality")),
                ) if p
            ) or None,
        ]
        address = ", ".join(p for p in parts if p) or None
    else:
        address = clean_text(address)
    return venue, address


def _jsonld_price(item: dict[str, Any]) -> Optional[str]:
    free = item.get("isAccessibleForFree")
    if free is True or (isinstance(free, str) and free.lower() == "true"):
        return "free"

    offers = item.get("offers")
    if isinstance(offers, list):
        offers = offers[0] if offers else None
    if isinstance(offers, dict):
        price = offers.get("price", offers.get("lowPrice"))
        if price in (0, "0", "0.00"):
            return "free"
        return format_price(price, offers.get("priceCurrency"))
    return None


def map_jsonld_event(
    item: dict[str, Any],
    base_url: str,
    source_id: str,
    default_location: Optional[str] = None,
) -> Optional[Event]:
    """Map one schema.org Event object to the canonical model."""
    venue, address = _location_fields(item.get("location"))
    return build_event(
        name=clean_text(item.get("name")) or "",
        start=parse_event_datetime(item.get("startDate")),
        end=parse_event_datetime(item.get("endDate")),
        venue=venue,
        address=address or default_location,
        url=absolute_url(item.get("url"), base_url) if isinstance(item.get("url"), str) else None,
        price=_jsonld_price(item),
        description=clean_text(item.get("description")),
        sources=[source_id],
    )


def extract_jsonld_events(
    soup: BeautifulSoup,
    base_url: str,
    source_id: str,
    default_location: Optional[str] = None,
) -> list[Event]:
    """Strategy 1: structured data. A malformed entry is skipped on its own."""
    events = []
    for item in iter_jsonld_objects(soup):
        if not is_event_type(item):
            continue
        try:
            event = map_jsonld_event(item, base_url, source_id, default_location)
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            log.debug("jsonld_entry_skipped", source=source_id, error=str(e))
            continue
        if event:
            events.append(event)
    return events


# -- Heuristic cards ---------------------------------------------------------

def select_first_nonempty(soup: BeautifulSoup, patterns: Sequence[str]) -> list[Tag]:
    """Return matches of the first pattern that matches anything."""
    for pattern in patterns:
        found = soup.select(pattern)
        if found:
            return found
    return []


def select_most_matches(soup: BeautifulSoup, patterns: Sequence[str]) -> list[Tag]:
    """Return matches of the pattern with the most hits (earliest wins ties)."""
    best: list[Tag] = []
    for pattern in patterns:
        found = soup.select(pattern)
        if len(found) > len(best):
            best = found
    return best


def _first_text(element: Tag, selector: Optional[str]) -> Optional[str]:
    if not selector:
        return None
    found = element.select_one(selector)
    if not found:
        return None
    return clean_text(found.get_text(" ", strip=True))


def _first_date(element: Tag, selector: str) -> Optional[str]:
    found = element.select_one(selector)
    if not found:
        return None
    return found.get("datetime") or clean_text(found.get_text(" ", strip=True))


def _first_link(element: Tag, selectors: CardSelectors, base_url: str) -> Optional[str]:
    candidates = [element] if element.name == "a" and element.get("href") else []
    candidates += element.select(selectors.link)
    for anchor in candidates:
        href = anchor.get("href")
        if not href:
            continue
        if selectors.link_pattern and not selectors.link_pattern.search(href):
            continue
        url = absolute_url(href, base_url)
        if url:
            return url
    return None


def map_card(
    element: Tag,
    selectors: CardSelectors,
    base_url: str,
    source_id: str,
    default_location: Optional[str] = None,
) -> Optional[Event]:
    """Read one event card; None when no usable name is present."""
    name = _first_text(element, selectors.name)
    if not name or len(name) < MIN_NAME_LENGTH:
        return None

    return build_event(
        name=name,
        start=parse_event_datetime(_first_date(element, selectors.date)),
        venue=_first_text(element, selectors.venue) or default_location,
        address=default_location,
        url=_first_link(element, selectors, base_url),
        sources=[source_id],
    )


def extract_card_events(
    containers: Sequence[Tag],
    selectors: CardSelectors,
    base_url: str,
    source_id: str,
    default_location: Optional[str] = None,
) -> list[Event]:
    """Strategy 2: map every matched container through the card selectors."""
    events = []
    for element in containers:
        event = map_card(element, selectors, base_url, source_id, default_location)
        if event:
            events.append(event)
    return events
