"""Runtime configuration for the aggregator."""

from .settings import (
    MUNICIPAL_SOURCE_ID,
    TICKETMASTER_SOURCE_ID,
    DesklineCity,
    Location,
    Settings,
    WebSource,
    get_default_config,
    load_settings,
)

__all__ = [
    "MUNICIPAL_SOURCE_ID",
    "TICKETMASTER_SOURCE_ID",
    "DesklineCity",
    "Location",
    "Settings",
    "WebSource",
    "get_default_config",
    "load_settings",
]
