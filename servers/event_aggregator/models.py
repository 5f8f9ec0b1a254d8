"""
Pydantic models for event data structures.

These models define the core data types used throughout the aggregator:
- Event: Canonical record every source adapter must produce
- DateRange: Inclusive time window for a query
- ProviderResult: Outcome of one adapter call (ok / skip / error)
- ProviderStats, AggregationResult: Per-run reporting
"""

from datetime import datetime
from typing import Literal, Optional

from dateutil import tz
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator


LOCAL_TZ = tz.gettz("Europe/Berlin")

DESCRIPTION_LIMIT = 200
DEFAULT_CATEGORY = "other"


def truncate(text: Optional[str], limit: int = DESCRIPTION_LIMIT) -> Optional[str]:
    """Strip and cut text to limit characters; empty becomes None."""
    if not text:
        return None
    text = text.strip()
    return text[:limit] or None


class Event(BaseModel):
    """Represents a single event in canonical form."""

    model_config = ConfigDict(frozen=True)

    name: str
    start: Optional[datetime] = None
    end: Optional[datetime] = None  # Only for ranged events

    venue: Optional[str] = None
    address: Optional[str] = None
    category: str = DEFAULT_CATEGORY  # music, sports, arts & theatre, other, ...

    url: Optional[str] = None
    price: Optional[str] = None  # Free text: "from 25€", "free"
    description: Optional[str] = None

    # Contributing source identifiers, grows only through merging
    sources: list[str] = Field(min_length=1)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        value = " ".join(value.split())
        if not value:
            raise ValueError("event name must not be empty")
        return value

    @field_validator("start", "end")
    @classmethod
    def _make_aware(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=LOCAL_TZ)
        return value.astimezone(LOCAL_TZ)

    @field_validator("description")
    @classmethod
    def _truncate_description(cls, value: Optional[str]) -> Optional[str]:
        return truncate(value)

    @field_validator("category")
    @classmethod
    def _normalize_category(cls, value: str) -> str:
        return value.strip().lower() or DEFAULT_CATEGORY

    @field_validator("sources")
    @classmethod
    def _sources_not_blank(cls, value: list[str]) -> list[str]:
        if any(not s.strip() for s in value):
            raise ValueError("source identifiers must not be empty")
        return value

    @computed_field
    @property
    def source_label(self) -> str:
        """Comma-joined contributing sources."""
        return ", ".join(self.sources)

    @property
    def effective_end(self) -> Optional[datetime]:
        """End of the event; an inverted range counts as a single instant at start."""
        if self.start is None:
            return self.end
        if self.end is None or self.end < self.start:
            return self.start
        return self.end


class DateRange(BaseModel):
    """Inclusive [start, end] query window."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _ordered(self) -> "DateRange":
        if self.start > self.end:
            raise ValueError("date range start must not be after its end")
        return self

    def overlaps(self, start: Optional[datetime], end: Optional[datetime] = None) -> bool:
        """
        Check whether an event span touches this range.

        Undated events always overlap: filtering only applies once a date
        was actually extracted.
        """
        if start is None:
            return True
        effective_end = end if end is not None and end >= start else start
        return effective_end >= self.start and start <= self.end


class ProviderResult(BaseModel):
    """Outcome of one adapter invocation. Failures are values, never exceptions."""

    events: list[Event] = Field(default_factory=list)
    kind: Literal["ok", "skip", "error"]
    message: Optional[str] = None

    @model_validator(mode="after")
    def _errors_carry_no_events(self) -> "ProviderResult":
        if self.kind == "error" and self.events:
            raise ValueError("an error result cannot carry events")
        return self

    @classmethod
    def ok(cls, events: list[Event]) -> "ProviderResult":
        return cls(events=list(events), kind="ok")

    @classmethod
    def skip(cls, reason: str) -> "ProviderResult":
        return cls(kind="skip", message=reason)

    @classmethod
    def error(cls, message: str) -> "ProviderResult":
        return cls(kind="error", message=message)

    @property
    def status(self) -> str:
        if self.kind == "ok":
            return f"ok({len(self.events)})"
        return f"{self.kind}({self.message})"


class ProviderStats(BaseModel):
    """Statistics from a single provider call."""

    source: str
    status: str  # ok(n), skip(reason), error(message), rejected(message)
    count: int = 0
    duration_ms: Optional[int] = None
    error_message: Optional[str] = None


class AggregationResult(BaseModel):
    """Result of one aggregation run."""

    events: list[Event]
    date_range: DateRange
    stats: list[ProviderStats] = Field(default_factory=list)
    failed_sources: list[str] = Field(default_factory=list)
    from_cache: bool = False

    @computed_field
    @property
    def total(self) -> int:
        return len(self.events)
