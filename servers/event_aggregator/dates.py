"""
Date range resolution and date-string normalization.

Supported date expressions:
- None / ""              -> today through end of day in 7 days
- "today"                -> today
- "weekend"              -> next Saturday through Sunday
- "YYYY-MM-DD:YYYY-MM-DD" -> explicit inclusive range
- "YYYY-MM-DD"           -> single day

All datetimes produced here are timezone-aware in LOCAL_TZ.
"""

import re
from datetime import date, datetime, time, timedelta
from typing import Any, Optional

from dateutil import parser, tz

from .errors import InvalidDateExpression
from .models import LOCAL_TZ, DateRange


DEFAULT_WINDOW_DAYS = 7
SATURDAY = 5

ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
GERMAN_DATE_PATTERN = re.compile(
    r"(\d{1,2})\.(\d{1,2})\.(\d{4})(?:\s+(\d{1,2}):(\d{2}))?"
)


def localize(value: datetime) -> datetime:
    """Attach LOCAL_TZ to naive datetimes, convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=LOCAL_TZ)
    return value.astimezone(LOCAL_TZ)


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=LOCAL_TZ)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time(23, 59, 59), tzinfo=LOCAL_TZ)


def _parse_iso_day(text: str, expression: str) -> date:
    text = text.strip()
    if not ISO_DATE_PATTERN.match(text):
        raise InvalidDateExpression(expression, f"expected YYYY-MM-DD, got {text!r}")
    try:
        return date.fromisoformat(text)
    except ValueError as e:
        raise InvalidDateExpression(expression, str(e)) from e


def resolve_date_range(expr: Optional[str], now: Optional[datetime] = None) -> DateRange:
    """
    Turn a user date expression into a concrete inclusive range.

    Args:
        expr: Date expression (see module docstring), or None for the default window
        now: Reference time; defaults to the current local time

    Returns:
        DateRange with start <= end

    Raises:
        InvalidDateExpression: For any unsupported or malformed expression
    """
    now = localize(now) if now else datetime.now(LOCAL_TZ)
    today = now.date()

    if expr is None or not expr.strip():
        return DateRange(
            start=start_of_day(today),
            end=end_of_day(today + timedelta(days=DEFAULT_WINDOW_DAYS)),
        )

    expr = expr.strip()

    if expr == "today":
        return DateRange(start=start_of_day(today), end=end_of_day(today))

    if expr == "weekend":
        # On a Saturday this jumps a full week ahead
        days_until_saturday = ((SATURDAY - now.weekday()) % 7) or 7
        saturday = today + timedelta(days=days_until_saturday)
        return DateRange(
            start=start_of_day(saturday),
            end=end_of_day(saturday + timedelta(days=1)),
        )

    if ":" in expr:
        parts = expr.split(":")
        if len(parts) != 2:
            raise InvalidDateExpression(expr, "expected exactly one ':' separator")
        first = _parse_iso_day(parts[0], expr)
        second = _parse_iso_day(parts[1], expr)
        if first > second:
            raise InvalidDateExpression(expr, "range start is after range end")
        return DateRange(start=start_of_day(first), end=end_of_day(second))

    day = _parse_iso_day(expr, expr)
    return DateRange(start=start_of_day(day), end=end_of_day(day))


def parse_german_datetime(text: Optional[str]) -> Optional[datetime]:
    """Parse the first 'D.M.YYYY[ H:MM]' occurrence in text."""
    if not text:
        return None

    match = GERMAN_DATE_PATTERN.search(text)
    if not match:
        return None

    day, month, year, hour, minute = match.groups()
    try:
        return datetime(
            int(year), int(month), int(day),
            int(hour or 0), int(minute or 0),
            tzinfo=LOCAL_TZ,
        )
    except ValueError:
        return None


def parse_event_datetime(raw: Any) -> Optional[datetime]:
    """Normalize a scraped date string (ISO 8601 or German) to an aware datetime.

    Anything that is not a non-empty string yields None.
    """
    if not isinstance(raw, str) or not raw.strip():
        return None

    raw = raw.strip()
    try:
        return localize(parser.isoparse(raw))
    except (ValueError, OverflowError):
        pass

    return parse_german_datetime(raw)


def parse_local_date(value: Any) -> Optional[datetime]:
    """Parse a bare 'YYYY-MM-DD' into local midnight."""
    if not isinstance(value, str) or not value:
        return None
    try:
        return start_of_day(date.fromisoformat(value))
    except ValueError:
        return None


def to_utc_string(value: datetime) -> str:
    """Format as 'YYYY-MM-DDTHH:MM:SSZ' in UTC."""
    return value.astimezone(tz.UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
