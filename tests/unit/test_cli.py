"""Tests for the command line entry point."""

import json
from datetime import datetime
from unittest.mock import AsyncMock, patch

import pytest
import structlog

from servers.event_aggregator.__main__ import build_parser, main
from servers.event_aggregator.errors import CacheError
from servers.event_aggregator.logging_config import configure_logging
from servers.event_aggregator.models import AggregationResult, DateRange, Event


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path):
    for name in ("TICKETMASTER_API_KEY", "CITY", "RADIUS_KM", "EVENTS_CONFIG"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    with patch("servers.event_aggregator.__main__.configure_logging"):
        yield


@pytest.fixture
def fake_aggregator(week_range: DateRange):
    result = AggregationResult(
        events=[
            Event(
                name="Kammerkonzert",
                start=datetime(2026, 2, 12, 19, 30),
                venue="Rathaus",
                sources=["giessen.de"],
            )
        ],
        date_range=week_range,
    )
    with patch("servers.event_aggregator.__main__.EventAggregator") as mock_cls:
        mock_cls.return_value.fetch_events = AsyncMock(return_value=result)
        yield mock_cls


class TestParser:
    """Tests for argument parsing."""

    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.type == "all"
        assert args.date is None
        assert args.json is False
        assert args.no_cache is False

    def test_flags(self):
        args = build_parser().parse_args(
            ["--city", "Marburg", "--radius", "50", "--type", "music", "--limit", "5",
             "--date", "weekend", "--json", "--no-cache", "-v"]
        )
        assert args.city == "Marburg"
        assert args.radius == 50
        assert args.limit == 5
        assert args.verbose is True


class TestMain:
    """Tests for main()."""

    def test_invalid_date_exit_code(self, capsys):
        assert main(["--date", "someday", "--no-cache"]) == 2
        assert "Invalid date expression: 'someday'" in capsys.readouterr().err

    def test_json_output(self, fake_aggregator, capsys):
        assert main(["--json", "--no-cache"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data[0]["name"] == "Kammerkonzert"
        assert data[0]["source_label"] == "giessen.de"

    def test_text_output(self, fake_aggregator, capsys):
        assert main(["--no-cache", "--city", "Marburg"]) == 0

        out = capsys.readouterr().out
        assert out.startswith("1 events in Marburg and surroundings")
        assert "19:30  Kammerkonzert @ Rathaus" in out

    def test_overrides_reach_settings(self, fake_aggregator):
        main(["--no-cache", "--city", "Marburg", "--radius", "50", "--limit", "5", "--type", "music"])

        settings = fake_aggregator.call_args.args[0]
        assert settings.location.city == "Marburg"
        assert settings.location.radius_km == 50
        assert settings.limit == 5
        assert fake_aggregator.call_args.kwargs["cache"] is None
        fake_aggregator.return_value.fetch_events.assert_awaited_once_with(
            date_expr=None, category="music"
        )

    def test_cache_enabled_by_default(self, fake_aggregator, tmp_path):
        main([])
        assert fake_aggregator.call_args.kwargs["cache"] is not None

    def test_cache_error_exit_code(self, capsys):
        with patch("servers.event_aggregator.__main__.EventAggregator") as mock_cls:
            mock_cls.return_value.fetch_events = AsyncMock(side_effect=CacheError("disk full"))
            assert main(["--no-cache"]) == 1
        assert "disk full" in capsys.readouterr().err


def test_configure_logging():
    try:
        configure_logging(verbose=True)
        config = structlog.get_config()
        assert structlog.is_configured()
        assert isinstance(config["processors"][-1], structlog.dev.ConsoleRenderer)
    finally:
        structlog.reset_defaults()
