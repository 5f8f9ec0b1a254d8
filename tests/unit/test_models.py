"""Tests for Pydantic models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from servers.event_aggregator.models import (
    LOCAL_TZ,
    AggregationResult,
    DateRange,
    Event,
    ProviderResult,
    truncate,
)


class TestEvent:
    """Tests for Event model."""

    def test_create_minimal_event(self):
        event = Event(name="Flohmarkt", sources=["giessen.de"])
        assert event.start is None
        assert event.category == "other"
        assert event.source_label == "giessen.de"

    def test_name_whitespace_collapsed(self):
        event = Event(name="  Jazz \n im   Keller ", sources=["a"])
        assert event.name == "Jazz im Keller"

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            Event(name="   ", sources=["a"])

    def test_sources_required(self):
        with pytest.raises(ValidationError):
            Event(name="Konzert", sources=[])

    def test_blank_source_rejected(self):
        with pytest.raises(ValidationError):
            Event(name="Konzert", sources=[" "])

    def test_naive_start_gets_local_timezone(self):
        event = Event(name="Konzert", start=datetime(2026, 2, 12, 19, 30), sources=["a"])
        assert event.start.tzinfo is LOCAL_TZ
        assert event.start.hour == 19

    def test_aware_start_converted_to_local(self):
        event = Event(
            name="Konzert",
            start=datetime(2026, 2, 12, 18, 30, tzinfo=timezone.utc),
            sources=["a"],
        )
        # Central European winter time is UTC+1
        assert event.start.hour == 19
        assert event.start.isoformat().startswith("2026-02-12T19:30")

    def test_description_truncated(self):
        event = Event(name="Lesung", description="x" * 500, sources=["a"])
        assert len(event.description) == 200

    def test_category_lowercased(self):
        event = Event(name="Konzert", category="Music", sources=["a"])
        assert event.category == "music"

    def test_source_label_joins_sources(self):
        event = Event(name="Stadtfest", sources=["a", "b"])
        assert event.source_label == "a, b"

    def test_event_is_frozen(self):
        event = Event(name="Stadtfest", sources=["a"])
        with pytest.raises(ValidationError):
            event.name = "Other"

    def test_effective_end_inverted_range(self):
        event = Event(
            name="Konzert",
            start=datetime(2026, 2, 12, 20, 0),
            end=datetime(2026, 2, 12, 18, 0),
            sources=["a"],
        )
        assert event.effective_end == event.start

    def test_json_dump_contains_source_label(self):
        event = Event(name="Stadtfest", sources=["a", "b"])
        data = event.model_dump(mode="json")
        assert data["source_label"] == "a, b"
        assert data["sources"] == ["a", "b"]


class TestDateRange:
    """Tests for DateRange model."""

    def test_start_after_end_rejected(self):
        with pytest.raises(ValidationError):
            DateRange(
                start=datetime(2026, 2, 12, tzinfo=LOCAL_TZ),
                end=datetime(2026, 2, 11, tzinfo=LOCAL_TZ),
            )

    def test_undated_event_overlaps(self, week_range: DateRange):
        assert week_range.overlaps(None) is True

    def test_event_inside_range(self, week_range: DateRange):
        assert week_range.overlaps(datetime(2026, 2, 12, 19, 0, tzinfo=LOCAL_TZ))

    def test_event_after_range(self, week_range: DateRange):
        assert not week_range.overlaps(datetime(2026, 2, 18, 0, 0, 1, tzinfo=LOCAL_TZ))

    def test_ranged_event_started_before(self, week_range: DateRange):
        """An exhibition that started earlier but still runs overlaps."""
        assert week_range.overlaps(
            datetime(2026, 2, 1, tzinfo=LOCAL_TZ),
            datetime(2026, 2, 11, tzinfo=LOCAL_TZ),
        )

    def test_ranged_event_ended_before(self, week_range: DateRange):
        assert not week_range.overlaps(
            datetime(2026, 2, 1, tzinfo=LOCAL_TZ),
            datetime(2026, 2, 8, tzinfo=LOCAL_TZ),
        )

    def test_end_of_day_boundary_inclusive(self, week_range: DateRange):
        assert week_range.overlaps(week_range.end)


class TestProviderResult:
    """Tests for ProviderResult model."""

    def test_ok_status(self):
        result = ProviderResult.ok([Event(name="A", sources=["x"])])
        assert result.kind == "ok"
        assert result.status == "ok(1)"

    def test_skip_status(self):
        result = ProviderResult.skip("no credential")
        assert result.status == "skip(no credential)"
        assert result.events == []

    def test_error_status(self):
        assert ProviderResult.error("HTTP 500").status == "error(HTTP 500)"

    def test_error_cannot_carry_events(self):
        with pytest.raises(ValidationError):
            ProviderResult(kind="error", events=[Event(name="A", sources=["x"])])


class TestAggregationResult:
    """Tests for AggregationResult model."""

    def test_total_computed(self, week_range: DateRange, sample_events):
        result = AggregationResult(events=sample_events, date_range=week_range)
        assert result.total == 5
        assert result.from_cache is False


def test_truncate_empty_is_none():
    assert truncate("   ") is None
    assert truncate(None) is None
    assert truncate(" abc ", limit=2) == "ab"
