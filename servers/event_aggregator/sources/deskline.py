"""
Deskline (feratel) tourism widget scraping via Playwright.

Used by: marburg.de, wetzlar.de (and many other German tourism sites)

These sites load their event list through a Deskline widget inside an
iframe after onload JavaScript, so a headless browser has to render the
page before anything can be extracted.
"""

from typing import Optional

import structlog
from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Frame, Page, async_playwright
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..config import DesklineCity, Settings
from ..errors import AdapterError, RenderEngineFault
from ..models import DateRange, Event
from ..resilience import ExtractionCascade
from .base import RENDER_TIMEOUT, FetchFunc, Provider
from .extraction import (
    CardSelectors,
    extract_card_events,
    extract_jsonld_events,
    select_most_matches,
)

log = structlog.get_logger(__name__)


WIDGET_ORIGIN = "deskline"
WIDGET_IFRAME_SELECTOR = f"iframe[src*='{WIDGET_ORIGIN}']"

# Worst case of launch + navigation + every wait stays under RENDER_TIMEOUT
LAUNCH_TIMEOUT_MS = 5000
NAVIGATION_TIMEOUT_MS = 12000
IFRAME_TIMEOUT_MS = 5000
CONTENT_TIMEOUT_MS = 4000
SETTLE_DELAY_MS = 3000

BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]

# Containers the widget renders inside its iframe
WIDGET_CONTAINER_PATTERNS = [
    ".event-item",
    ".search-result-item",
    "[class*='EventCard']",
    "[class*='event-card']",
    "article",
    ".list-item",
    "[class*='resultItem']",
    "[class*='result-item']",
    ".dw-result-item",
    ".dw-event",
]
WIDGET_CONTENT_SELECTOR = "[class*='event'], [class*='Event'], .search-result, article, .list-item"

WIDGET_CARD = CardSelectors(
    name="h2, h3, h4, [class*='title'], [class*='name']",
    date="time, [class*='date'], [class*='Date']",
    venue="[class*='location'], [class*='venue'], [class*='Location']",
    link="a[href]",
)

# Second pass over the top-level document when the frame yields nothing
PAGE_CONTAINER_PATTERNS = [
    "[class*='event']",
    "[class*='Event']",
    ".search-result",
    "article",
]

PAGE_CARD = CardSelectors(
    name="h2, h3, h4, [class*='title']",
    date="time, [class*='date']",
    link="a[href]",
)


def jsonld_events(soup: BeautifulSoup, base_url: str, city: DesklineCity) -> list[Event]:
    return extract_jsonld_events(soup, base_url, city.source_id, city.name)


def widget_cards(soup: BeautifulSoup, base_url: str, city: DesklineCity) -> list[Event]:
    containers = select_most_matches(soup, WIDGET_CONTAINER_PATTERNS)
    return extract_card_events(containers, WIDGET_CARD, base_url, city.source_id, city.name)


def page_cards(soup: BeautifulSoup, base_url: str, city: DesklineCity) -> list[Event]:
    containers = select_most_matches(soup, PAGE_CONTAINER_PATTERNS)
    return extract_card_events(containers, PAGE_CARD, base_url, city.source_id, city.name)


FRAME_CASCADE = ExtractionCascade(jsonld_events, widget_cards)
PAGE_CASCADE = ExtractionCascade(jsonld_events, page_cards)


def extract_widget_events(html: str, base_url: str, city: DesklineCity) -> list[Event]:
    """Run the frame-level extraction cascade on rendered widget HTML."""
    return FRAME_CASCADE.run(BeautifulSoup(html, "html.parser"), base_url, city)


def extract_page_events(html: str, base_url: str, city: DesklineCity) -> list[Event]:
    """Run the top-level fallback cascade on the rendered page HTML."""
    return PAGE_CASCADE.run(BeautifulSoup(html, "html.parser"), base_url, city)


async def _wait_quietly(target: Page | Frame, selector: str, timeout_ms: int) -> bool:
    """Best-effort wait; a timeout only means extraction works with what is there."""
    try:
        await target.wait_for_selector(selector, timeout=timeout_ms)
        return True
    except PlaywrightTimeoutError:
        log.debug("render_wait_timeout", selector=selector, timeout_ms=timeout_ms)
        return False


async def _widget_frames(page: Page) -> list[Frame]:
    await _wait_quietly(page, WIDGET_IFRAME_SELECTOR, IFRAME_TIMEOUT_MS)
    frames = [f for f in page.frames if WIDGET_ORIGIN in (f.url or "")]
    return frames or [page.main_frame]


async def render_city_events(page: Page, city: DesklineCity) -> list[Event]:
    """Navigate an open page to the city's calendar and extract events."""
    await page.goto(city.url, wait_until="networkidle", timeout=NAVIGATION_TIMEOUT_MS)

    events: list[Event] = []
    for i, frame in enumerate(await _widget_frames(page)):
        # Only the first frame gets a content wait; later frames have had time to load
        if i == 0:
            await _wait_quietly(frame, WIDGET_CONTENT_SELECTOR, CONTENT_TIMEOUT_MS)
        html = await frame.content()
        events.extend(extract_widget_events(html, frame.url or city.url, city))

    if not events:
        log.debug("widget_frame_empty", source=city.source_id)
        await page.wait_for_timeout(SETTLE_DELAY_MS)
        html = await page.content()
        events = extract_page_events(html, page.url or city.url, city)

    return events


class RenderSession:
    """Scoped headless browser session; always released on exit."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.playwright = None
        self.browser = None
        self.page: Optional[Page] = None

    async def __aenter__(self) -> "RenderSession":
        try:
            self.playwright = await async_playwright().start()
            self.browser = await self.playwright.chromium.launch(
                headless=True, args=BROWSER_ARGS, timeout=LAUNCH_TIMEOUT_MS
            )
        except (PlaywrightError, OSError) as e:
            await self.close()
            raise RenderEngineFault(f"browser launch failed: {e}") from e

        try:
            context = await self.browser.new_context(
                user_agent=self.settings.user_agent,
                locale="de-DE",
                extra_http_headers={"Accept-Language": self.settings.accept_language},
            )
            self.page = await context.new_page()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def close(self) -> None:
        browser, self.browser = self.browser, None
        playwright, self.playwright = self.playwright, None
        try:
            if browser:
                await browser.close()
        finally:
            if playwright:
                await playwright.stop()


def make_deskline_fetcher(city: DesklineCity) -> FetchFunc:
    """Bind a Deskline city to the provider fetch signature."""

    async def fetch_deskline_events(date_range: DateRange, settings: Settings) -> list[Event]:
        try:
            async with RenderSession(settings) as session:
                events = await render_city_events(session.page, city)
        except PlaywrightError as e:
            raise AdapterError(f"render failed: {e}") from e

        kept = [e for e in events if date_range.overlaps(e.start, e.end)]
        log.debug("deskline_rendered", source=city.source_id, found=len(events), kept=len(kept))
        return kept

    return fetch_deskline_events


def deskline_provider(city: DesklineCity) -> Provider:
    return Provider(city.source_id, make_deskline_fetcher(city), timeout=RENDER_TIMEOUT)
