"""
Settings for an aggregation run.

Resolution order (later wins):
- Built-in defaults (Gießen, 30 km radius)
- Optional JSON config file
- Environment variables (TICKETMASTER_API_KEY, CITY, RADIUS_KM)
"""

import json
import os
from pathlib import Path
from typing import Any, Mapping, Optional

import structlog
from pydantic import BaseModel, Field, model_validator

log = structlog.get_logger(__name__)


BROWSER_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

TICKETMASTER_SOURCE_ID = "ticketmaster"
MUNICIPAL_SOURCE_ID = "giessen.de"


class Location(BaseModel):
    """Center and radius of the searched region."""

    city: str = "Gießen"
    latitude: float = 50.5840
    longitude: float = 8.6784
    radius_km: int = Field(default=30, gt=0)


class WebSource(BaseModel):
    """A page scraped with the generic JSON-LD/heuristic extractor."""

    name: str  # Display name, also the default venue/address
    url: str
    source_id: str


class DesklineCity(BaseModel):
    """A tourism site embedding a Deskline (feratel) event widget."""

    name: str
    url: str
    source_id: str


class Settings(BaseModel):
    """All knobs for one run."""

    location: Location = Field(default_factory=Location)
    limit: int = Field(default=30, gt=0)

    ticketmaster_api_key: Optional[str] = None
    municipal_enabled: bool = True
    web_sources: list[WebSource] = Field(default_factory=list)
    deskline_cities: list[DesklineCity] = Field(default_factory=list)

    user_agent: str = BROWSER_USER_AGENT
    accept_language: str = "de-DE,de;q=0.9"

    cache_dir: Path = Path(".cache")
    cache_ttl_minutes: int = 30

    @model_validator(mode="after")
    def _unique_source_ids(self) -> "Settings":
        """Provider stats are keyed by source id, so ids must not repeat."""
        seen = {TICKETMASTER_SOURCE_ID}
        if self.municipal_enabled:
            seen.add(MUNICIPAL_SOURCE_ID)
        for source in [*self.web_sources, *self.deskline_cities]:
            if source.source_id in seen:
                raise ValueError(f"duplicate source_id: {source.source_id!r}")
            seen.add(source.source_id)
        return self


def get_default_config() -> dict[str, Any]:
    """Return default config as a plain dict."""
    return {
        "location": {
            "city": "Gießen",
            "latitude": 50.5840,
            "longitude": 8.6784,
            "radius_km": 30,
        },
        "limit": 30,
        "municipal_enabled": True,
        "web_sources": [],
        "deskline_cities": [
            {
                "name": "Marburg",
                "url": "https://www.marburg.de/kultur-und-tourismus/veranstaltungskalender/#/veranstaltungen",
                "source_id": "marburg.de",
            },
            {
                "name": "Wetzlar",
                "url": "https://www.wetzlar.de/leben-in-wetzlar/veranstaltungen/index.php#/veranstaltungen",
                "source_id": "wetzlar.de",
            },
        ],
        "cache_dir": ".cache",
        "cache_ttl_minutes": 30,
    }


def _merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge override into a copy of base."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _env_overrides(env: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    location: dict[str, Any] = {}

    if env.get("TICKETMASTER_API_KEY"):
        overrides["ticketmaster_api_key"] = env["TICKETMASTER_API_KEY"].strip()
    if env.get("CITY"):
        location["city"] = env["CITY"].strip()
    if env.get("RADIUS_KM"):
        location["radius_km"] = int(env["RADIUS_KM"])

    if location:
        overrides["location"] = location
    return overrides


def load_settings(
    config_path: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> Settings:
    """
    Build Settings from defaults, an optional JSON file and the environment.

    Args:
        config_path: JSON config file; falls back to $EVENTS_CONFIG
        env: Environment mapping (defaults to os.environ)

    Returns:
        Validated Settings

    Raises:
        pydantic.ValidationError: If the merged config is invalid
        OSError / json.JSONDecodeError: If the config file cannot be read
    """
    env = os.environ if env is None else env
    config = get_default_config()

    if config_path is None and env.get("EVENTS_CONFIG"):
        config_path = Path(env["EVENTS_CONFIG"])

    if config_path is not None:
        file_config = json.loads(Path(config_path).read_text(encoding="utf-8"))
        config = _merge(config, file_config)
        log.info("config_file_loaded", path=str(config_path))

    config = _merge(config, _env_overrides(env))
    return Settings.model_validate(config)
