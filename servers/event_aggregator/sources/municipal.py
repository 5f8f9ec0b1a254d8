"""
giessen.de municipal event listing.

The listing is a plain <ul><li> list where title, date and teaser are inline
text, often prefixed with an image attribution ("© Photographer  Title").
Names are therefore recovered from the URL slug first.
"""

import re
from typing import Optional
from urllib.parse import unquote, urljoin

import structlog
from bs4 import BeautifulSoup, Tag

from ..config import MUNICIPAL_SOURCE_ID, Settings
from ..dates import parse_german_datetime
from ..models import DateRange, Event, truncate
from .base import build_event, fetch_html

log = structlog.get_logger(__name__)


BASE_URL = "https://www.giessen.de"
LISTING_URL = f"{BASE_URL}/Erleben/Veranstaltungen/"
SOURCE_ID = MUNICIPAL_SOURCE_ID
CITY_NAME = "Gießen"

MIN_NAME_LENGTH = 3

# Navigation and index labels that look like list items but are not events
NAVIGATION_LABELS = frozenset({
    "heute",
    "morgen",
    "diese woche",
    "dieses wochenende",
    "4 wochen",
    "veranstaltungen",
    "musikalischer sommer",
    "raumkataster",
    "index",
    "today",
    "tomorrow",
    "this week",
    "this weekend",
    "4 weeks",
    "events",
})

SLUG_PATTERN = re.compile(r"Veranstaltungen/([^.?#]+)")
ATTRIBUTION_PATTERN = re.compile(r"^©\s*.+?\s{2,}")
DATE_TOKEN = re.compile(r"\d{2}\.\d{2}\.\d{4}")

# "25.02.2026 18:00 Uhr" / "25.02.2026 18:00 bis 22:00 Uhr"
TIMED_DATE = re.compile(r"(\d{2}\.\d{2}\.\d{4})\s+(\d{2}:\d{2})(?:\s+bis\s+(\d{2}:\d{2}))?\s*Uhr")
# "24.02.2026 bis 26.02.2026"
DATE_SPAN = re.compile(r"(\d{2}\.\d{2}\.\d{4})\s+bis\s+(\d{2}\.\d{2}\.\d{4})")
BARE_DATE = re.compile(r"(\d{2}\.\d{2}\.\d{4})")

DESCRIPTION_AFTER_TIME = re.compile(r"Uhr\s+(.+?)(?:\s+Mehr\s*\.\.\.)?$")
DESCRIPTION_AFTER_YEAR = re.compile(r"\d{4}\s+(.{10,}?)$")


def _collapse(text: str) -> str:
    return " ".join(text.split())


def name_from_slug(href: Optional[str]) -> Optional[str]:
    """'/Erleben/Veranstaltungen/Kultur-im-Park.php' -> 'Kultur im Park'."""
    if not href:
        return None
    match = SLUG_PATTERN.search(href)
    if not match:
        return None
    slug = unquote(match.group(1)).rstrip("/").rsplit("/", 1)[-1]
    slug = re.sub(r"\.php$", "", slug)
    return _collapse(slug.replace("-", " ")) or None


def name_from_text(raw: str) -> str:
    """Strip a leading '© attribution' prefix from rendered link text."""
    text = ATTRIBUTION_PATTERN.sub("", raw.strip())
    text = re.sub(r"^©\s*", "", text)
    return _collapse(text)


def is_navigation(name: str, href: Optional[str]) -> bool:
    if name.strip().lower() in NAVIGATION_LABELS:
        return True
    return bool(href and "index.php?" in href)


def extract_dates(text: str) -> tuple[Optional[str], Optional[str]]:
    """
    Pick start/end date strings from inline text.

    Patterns are tried in order and are mutually exclusive: a timed single
    date, then a date span, then a bare date.
    """
    timed = TIMED_DATE.search(text)
    if timed:
        return f"{timed.group(1)} {timed.group(2)}", None

    span = DATE_SPAN.search(text)
    if span:
        return span.group(1), span.group(2)

    bare = BARE_DATE.search(text)
    if bare:
        return bare.group(1), None

    return None, None


def extract_description(text: str) -> Optional[str]:
    match = DESCRIPTION_AFTER_TIME.search(text) or DESCRIPTION_AFTER_YEAR.search(text)
    if not match:
        return None
    return truncate(match.group(1))


def parse_list_item(item: Tag, date_range: DateRange) -> Optional[Event]:
    """Parse one <li>; None for non-events and events outside the range."""
    link = item.select_one("a[href*='/Veranstaltungen/']")
    if link is None:
        return None

    href = link.get("href")
    text = _collapse(item.get_text(" "))

    name = name_from_slug(href)
    if not name or len(name) < MIN_NAME_LENGTH:
        name = name_from_text(link.get_text(" "))
    if not name or len(name) < MIN_NAME_LENGTH:
        return None
    if is_navigation(name, href):
        return None

    raw_start, raw_end = extract_dates(text)
    start = parse_german_datetime(raw_start)
    end = parse_german_datetime(raw_end)

    if not date_range.overlaps(start, end):
        return None

    # Text fallback names can carry the date inline
    name = DATE_TOKEN.split(name)[0].strip() or name

    return build_event(
        name=name,
        start=start,
        end=end,
        address=CITY_NAME,
        url=urljoin(BASE_URL, href) if href else None,
        description=extract_description(text),
        sources=[SOURCE_ID],
    )


def parse_listing(html: str, date_range: DateRange) -> list[Event]:
    """Parse the municipal listing page into events within date_range."""
    soup = BeautifulSoup(html, "html.parser")
    events = []
    for item in soup.select("ul li"):
        event = parse_list_item(item, date_range)
        if event:
            events.append(event)
    return events


async def fetch_municipal_events(date_range: DateRange, settings: Settings) -> list[Event]:
    """Fetch and parse the giessen.de event listing."""
    html = await fetch_html(LISTING_URL, settings)
    events = parse_listing(html, date_range)
    log.debug("municipal_parsed", source=SOURCE_ID, count=len(events))
    return events
