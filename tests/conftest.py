"""Shared pytest fixtures for aggregator tests."""

from datetime import datetime
from pathlib import Path

import pytest

from servers.event_aggregator.config import DesklineCity, Settings, WebSource
from servers.event_aggregator.models import LOCAL_TZ, DateRange, Event


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Provide settings without credentials or rendered sources."""
    return Settings(cache_dir=tmp_path / "cache")


@pytest.fixture
def week_range() -> DateRange:
    """Provide the week of 2026-02-10."""
    return DateRange(
        start=datetime(2026, 2, 10, 0, 0, tzinfo=LOCAL_TZ),
        end=datetime(2026, 2, 17, 23, 59, 59, tzinfo=LOCAL_TZ),
    )


@pytest.fixture
def web_source() -> WebSource:
    """Provide a generic web source."""
    return WebSource(
        name="Kulturzentrum",
        url="https://kultur.example.de/programm/",
        source_id="kultur.example.de",
    )


@pytest.fixture
def marburg() -> DesklineCity:
    """Provide the Marburg Deskline city."""
    return DesklineCity(
        name="Marburg",
        url="https://www.marburg.de/kultur-und-tourismus/veranstaltungskalender/#/veranstaltungen",
        source_id="marburg.de",
    )


@pytest.fixture
def sample_event() -> Event:
    """Provide a sample event."""
    return Event(
        name="Stadtfest",
        start=datetime(2026, 6, 1, 18, 0),
        venue="Kirchenplatz",
        address="Kirchenplatz, Gießen",
        category="other",
        sources=["ticketmaster"],
    )


@pytest.fixture
def sample_events() -> list[Event]:
    """Provide a list of events including cross-source duplicates."""
    return [
        Event(
            name="Stadtfest",
            start=datetime(2026, 6, 1, 18, 0),
            sources=["a"],
        ),
        Event(
            name="Jazz im Keller",
            start=datetime(2026, 5, 30, 20, 0),
            venue="Jazzkeller",
            price="from 12€",
            sources=["ticketmaster"],
        ),
        Event(
            name="stadtfest!",
            start=datetime(2026, 6, 1, 20, 0),
            price="free",
            sources=["b"],
        ),
        Event(
            name="Flohmarkt",
            sources=["giessen.de"],
        ),
        Event(
            name="Lesung: Neue Stimmen",
            start=datetime(2026, 5, 29, 19, 30),
            sources=["marburg.de"],
        ),
    ]


@pytest.fixture
def fixtures_path() -> Path:
    """Provide path to test fixtures directory."""
    return Path(__file__).parent / "fixtures"
