"""
Ticketmaster Discovery API integration.

Free tier: 5000 calls/day, 5 requests/second
Requires TICKETMASTER_API_KEY; without it the source is skipped.

This is the only structured source: geo radius search sorted by date.
"""

from datetime import datetime
from typing import Any, Optional

import httpx
import structlog

from ..config import TICKETMASTER_SOURCE_ID, Settings
from ..dates import parse_event_datetime, parse_local_date, to_utc_string
from ..errors import AdapterError, AdapterSkip
from ..models import DEFAULT_CATEGORY, DateRange, Event
from .base import HTTP_TIMEOUT, build_event
from .extraction import format_price

log = structlog.get_logger(__name__)


TICKETMASTER_BASE = "https://app.ticketmaster.com/discovery/v2/events.json"
SOURCE_ID = TICKETMASTER_SOURCE_ID


def build_params(date_range: DateRange, settings: Settings) -> dict[str, Any]:
    """Build the Discovery API query for the configured region and range."""
    location = settings.location
    return {
        "apikey": settings.ticketmaster_api_key,
        "latlong": f"{location.latitude},{location.longitude}",
        "radius": location.radius_km,
        "unit": "km",
        "startDateTime": to_utc_string(date_range.start),
        "endDateTime": to_utc_string(date_range.end),
        "size": settings.limit,
        "sort": "date,asc",
        "locale": "de",
    }


async def fetch_ticketmaster_events(date_range: DateRange, settings: Settings) -> list[Event]:
    """
    Fetch events around the configured location from Ticketmaster.

    Args:
        date_range: Inclusive query window
        settings: Run settings (credential, location, limit)

    Returns:
        Normalized events

    Raises:
        AdapterSkip: If no API key is configured
        AdapterError: On HTTP or payload errors
    """
    if not settings.ticketmaster_api_key:
        raise AdapterSkip("no credential")

    try:
        async with httpx.AsyncClient(timeout=HTTP_TIMEOUT) as client:
            response = await client.get(
                TICKETMASTER_BASE, params=build_params(date_range, settings)
            )
            response.raise_for_status()
            data = response.json()
    except httpx.HTTPStatusError as e:
        raise AdapterError(f"HTTP {e.response.status_code}") from e
    except httpx.HTTPError as e:
        raise AdapterError(f"{type(e).__name__}: {e}") from e
    except ValueError as e:
        raise AdapterError(f"invalid JSON response: {e}") from e

    if not isinstance(data, dict):
        raise AdapterError("unexpected response shape")

    items = _dict(data.get("_embedded")).get("events") or []
    events = []
    for item in items:
        event = parse_ticketmaster_event(item)
        if event:
            events.append(event)

    log.debug("ticketmaster_parsed", received=len(items), kept=len(events))
    return events


def _dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _parse_when(block: Any) -> Optional[datetime]:
    """Most specific timestamp of a dates.start / dates.end block."""
    if not isinstance(block, dict):
        return None
    return parse_event_datetime(block.get("dateTime")) or parse_local_date(block.get("localDate"))


def _venue_fields(item: dict) -> tuple[Optional[str], Optional[str]]:
    venues = _dict(item.get("_embedded")).get("venues")
    venue = _dict(venues[0]) if isinstance(venues, list) and venues else {}

    parts = [
        _dict(venue.get("address")).get("line1"),
        _dict(venue.get("city")).get("name"),
    ]
    address = ", ".join(p.strip() for p in parts if isinstance(p, str) and p.strip())
    name = venue.get("name")
    return (name if isinstance(name, str) and name else None), address or None


def _category(item: dict) -> str:
    classifications = item.get("classifications")
    if not isinstance(classifications, list) or not classifications:
        return DEFAULT_CATEGORY
    name = _dict(_dict(classifications[0]).get("segment")).get("name")
    return name.lower() if isinstance(name, str) and name.strip() else DEFAULT_CATEGORY


def _price(item: dict) -> Optional[str]:
    ranges = [r for r in item.get("priceRanges") or [] if isinstance(r, dict) and r.get("min") is not None]
    if not ranges:
        return None
    cheapest = min(ranges, key=lambda r: float(r["min"]))
    return format_price(cheapest["min"], cheapest.get("currency"), prefix="from ")


def _description(item: dict) -> Optional[str]:
    for field in ("info", "pleaseNote"):
        value = item.get(field)
        if isinstance(value, str) and value.strip():
            return value
    return None


def parse_ticketmaster_event(item: dict) -> Optional[Event]:
    """Parse a Discovery API event into our Event model."""
    if not isinstance(item, dict):
        return None

    dates = _dict(item.get("dates"))
    venue, address = _venue_fields(item)

    try:
        price = _price(item)
    except (TypeError, ValueError):
        price = None

    return build_event(
        name=item.get("name") or "",
        start=_parse_when(dates.get("start")),
        end=_parse_when(dates.get("end")),
        venue=venue,
        address=address,
        category=_category(item),
        url=item.get("url"),
        price=price,
        description=_description(item),
        sources=[SOURCE_ID],
    )
