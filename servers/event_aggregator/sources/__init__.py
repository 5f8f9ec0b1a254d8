"""
Event source adapters.

Each source is wrapped in a Provider:
- fetch_events(date_range, settings) -> ProviderResult
- Per-source timeout; failures come back as values, never exceptions
"""

from ..config import Settings
from .base import HTTP_TIMEOUT, Provider
from .deskline import deskline_provider
from .municipal import SOURCE_ID as MUNICIPAL_SOURCE_ID
from .municipal import fetch_municipal_events
from .ticketmaster import SOURCE_ID as TICKETMASTER_SOURCE_ID
from .ticketmaster import fetch_ticketmaster_events
from .web_scraper import web_provider


def build_providers(settings: Settings) -> list[Provider]:
    """Providers in configuration order; results are concatenated in this order."""
    providers = [Provider(TICKETMASTER_SOURCE_ID, fetch_ticketmaster_events, timeout=HTTP_TIMEOUT)]

    if settings.municipal_enabled:
        providers.append(
            Provider(MUNICIPAL_SOURCE_ID, fetch_municipal_events, timeout=HTTP_TIMEOUT)
        )

    providers.extend(web_provider(source) for source in settings.web_sources)
    providers.extend(deskline_provider(city) for city in settings.deskline_cities)
    return providers


__all__ = [
    "Provider",
    "build_providers",
]
