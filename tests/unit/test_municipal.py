"""Tests for the giessen.de municipal listing parser."""

from datetime import datetime
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from servers.event_aggregator.config import Settings
from servers.event_aggregator.models import LOCAL_TZ, DateRange
from servers.event_aggregator.sources.municipal import (
    LISTING_URL,
    SOURCE_ID,
    extract_dates,
    extract_description,
    fetch_municipal_events,
    is_navigation,
    name_from_slug,
    name_from_text,
    parse_listing,
)


class TestNameFromSlug:
    """Tests for recovering names from URL slugs."""

    def test_php_slug(self):
        assert name_from_slug("/Erleben/Veranstaltungen/Kultur-im-Park.php") == "Kultur im Park"

    def test_percent_encoded(self):
        assert name_from_slug("/Erleben/Veranstaltungen/Stadtf%C3%BChrung-Altstadt.php") == "Stadtführung Altstadt"

    def test_nested_path_uses_last_segment(self):
        assert name_from_slug("/Erleben/Veranstaltungen/2026/Osterfeuer") == "Osterfeuer"

    def test_no_slug(self):
        assert name_from_slug("/Erleben/Veranstaltungen/") is None
        assert name_from_slug("/Rathaus/Service/") is None
        assert name_from_slug(None) is None


class TestNameFromText:
    """Tests for stripping image attributions from link text."""

    def test_attribution_removed(self):
        assert name_from_text("© Stadt Gießen  Kammerkonzert im Rathaus") == "Kammerkonzert im Rathaus"

    def test_plain_text(self):
        assert name_from_text("  Theaterabend ") == "Theaterabend"


class TestIsNavigation:
    """Tests for the navigation denylist."""

    @pytest.mark.parametrize("label", ["heute", "Morgen", "Diese Woche", "Musikalischer Sommer", "This weekend"])
    def test_labels(self, label: str):
        assert is_navigation(label, "/Erleben/Veranstaltungen/x.php")

    def test_index_link(self):
        assert is_navigation("Konzert", "/Erleben/Veranstaltungen/index.php?kat=3")

    def test_real_event(self):
        assert not is_navigation("Kammerkonzert im Rathaus", "/Erleben/Veranstaltungen/Kammerkonzert.php")


class TestExtractDates:
    """Tests for the inline date patterns."""

    def test_timed(self):
        assert extract_dates("25.02.2026 18:00 Uhr Vortrag") == ("25.02.2026 18:00", None)

    def test_timed_with_end_time(self):
        assert extract_dates("25.02.2026 18:00 bis 22:00 Uhr") == ("25.02.2026 18:00", None)

    def test_span(self):
        assert extract_dates("24.02.2026 bis 26.02.2026 Ausstellung") == ("24.02.2026", "26.02.2026")

    def test_bare(self):
        assert extract_dates("Am 14.03.2026 auf dem Marktplatz") == ("14.03.2026", None)

    def test_none(self):
        assert extract_dates("Termine nach Vereinbarung") == (None, None)


def test_extract_description():
    text = "Kammerkonzert 12.02.2026 19:30 Uhr Streichquartett mit Werken von Haydn Mehr ..."
    assert extract_description(text) == "Streichquartett mit Werken von Haydn"


class TestParseListing:
    """Tests for the full listing page."""

    @pytest.fixture
    def html(self, fixtures_path: Path) -> str:
        return (fixtures_path / "giessen_listing.html").read_text(encoding="utf-8")

    def test_events_in_range(self, html: str, week_range: DateRange):
        events = parse_listing(html, week_range)

        assert [e.name for e in events] == [
            "Kammerkonzert im Rathaus",
            "Kunstausstellung Farbraeume",
            "Stadtfuehrung Altstadt",
            "Theaterabend",
        ]

    def test_navigation_filtered(self, html: str, week_range: DateRange):
        names = {e.name.lower() for e in parse_listing(html, week_range)}
        assert not names & {"heute", "morgen", "index", "musikalischer sommer", "veranstaltungen"}

    def test_timed_event_fields(self, html: str, week_range: DateRange):
        event = parse_listing(html, week_range)[0]

        assert event.start == datetime(2026, 2, 12, 19, 30, tzinfo=LOCAL_TZ)
        assert event.end is None
        assert event.address == "Gießen"
        assert event.url == "https://www.giessen.de/Erleben/Veranstaltungen/Kammerkonzert-im-Rathaus.php"
        assert event.description == "Streichquartett mit Werken von Haydn und Brahms"
        assert event.sources == [SOURCE_ID]

    def test_span_overlapping_range_kept(self, html: str, week_range: DateRange):
        exhibition = parse_listing(html, week_range)[1]

        assert exhibition.start == datetime(2026, 2, 9, tzinfo=LOCAL_TZ)
        assert exhibition.end == datetime(2026, 2, 20, tzinfo=LOCAL_TZ)

    def test_undated_kept(self, html: str, week_range: DateRange):
        tour = parse_listing(html, week_range)[2]
        assert tour.start is None

    def test_other_range(self, html: str):
        march = DateRange(
            start=datetime(2026, 3, 14, tzinfo=LOCAL_TZ),
            end=datetime(2026, 3, 14, 23, 59, 59, tzinfo=LOCAL_TZ),
        )
        names = [e.name for e in parse_listing(html, march)]

        assert names == ["Fruehlingsmarkt", "Stadtfuehrung Altstadt"]

    def test_empty_page(self, week_range: DateRange):
        assert parse_listing("<html><body></body></html>", week_range) == []


@pytest.mark.asyncio
async def test_fetch_municipal_events(fixtures_path: Path, settings: Settings, week_range: DateRange):
    mock_response = MagicMock()
    mock_response.text = (fixtures_path / "giessen_listing.html").read_text(encoding="utf-8")
    mock_response.raise_for_status = MagicMock()

    with patch("httpx.AsyncClient") as mock_client:
        mock_client.return_value.__aenter__ = AsyncMock(return_value=mock_client.return_value)
        mock_client.return_value.__aexit__ = AsyncMock(return_value=None)
        mock_client.return_value.get = AsyncMock(return_value=mock_response)

        events = await fetch_municipal_events(week_range, settings)

    assert len(events) == 4
    assert mock_client.return_value.get.call_args.args[0] == LISTING_URL
