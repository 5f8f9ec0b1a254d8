"""
Provider contract and boundary.

A provider wraps one fetch coroutine:

    async def fetch(date_range: DateRange, settings: Settings) -> list[Event]

The fetch coroutine may raise AdapterSkip / AdapterError / RenderEngineFault.
Provider.fetch_events() bounds it with a timeout and turns every fault into a
ProviderResult, so nothing raises past the provider.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional

import httpx
import structlog
from pydantic import ValidationError

from ..config import Settings
from ..errors import AdapterError, AdapterSkip
from ..models import DateRange, Event, ProviderResult

log = structlog.get_logger(__name__)


HTTP_TIMEOUT = 15.0
RENDER_TIMEOUT = 30.0

FetchFunc = Callable[[DateRange, Settings], Awaitable[list[Event]]]


class Provider:
    """One configured event source behind a fault-isolating boundary."""

    def __init__(self, name: str, fetch: FetchFunc, timeout: float = HTTP_TIMEOUT):
        self.name = name
        self.fetch = fetch
        self.timeout = timeout

    def __repr__(self) -> str:
        return f"Provider({self.name!r}, timeout={self.timeout:g})"

    async def fetch_events(self, date_range: DateRange, settings: Settings) -> ProviderResult:
        """Run the source with its timeout; always returns a ProviderResult."""
        try:
            events = await asyncio.wait_for(
                self.fetch(date_range, settings), timeout=self.timeout
            )
            return ProviderResult.ok(events)
        except asyncio.TimeoutError:
            return ProviderResult.error(f"timeout after {self.timeout:g}s")
        except AdapterSkip as e:
            return ProviderResult.skip(e.reason)
        except AdapterError as e:
            return ProviderResult.error(str(e))
        except Exception as e:
            log.exception("provider_crashed", provider=self.name)
            return ProviderResult.error(f"{type(e).__name__}: {e}")


async def fetch_html(url: str, settings: Settings) -> str:
    """
    Fetch a page with a browser user agent and the configured locale.

    Raises:
        AdapterError: On HTTP status or transport errors
    """
    headers = {
        "User-Agent": settings.user_agent,
        "Accept-Language": settings.accept_language,
    }
    try:
        async with httpx.AsyncClient(timeout=HTTP_TIMEOUT) as client:
            response = await client.get(url, headers=headers, follow_redirects=True)
            response.raise_for_status()
            return response.text
    except httpx.HTTPStatusError as e:
        raise AdapterError(f"HTTP {e.response.status_code} from {url}") from e
    except httpx.HTTPError as e:
        raise AdapterError(f"{type(e).__name__}: {e}") from e


def build_event(**fields: Any) -> Optional[Event]:
    """Construct an Event, returning None for records that fail validation."""
    try:
        return Event(**fields)
    except ValidationError as e:
        log.debug("event_dropped", name=fields.get("name"), error=e.errors()[0]["msg"])
        return None
