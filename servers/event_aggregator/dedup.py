"""
Cross-source deduplication for events.

Events are matched on a fuzzy identity key:
- Name: lower-cased, reduced to [a-z0-9äöüß], first 40 characters
- Date: first 10 characters of the ISO start (YYYY-MM-DD), empty if unknown

The first event seen for a key is canonical; later ones are merged into it.
"""

import re
from typing import Optional

import structlog

from .models import DEFAULT_CATEGORY, Event

log = structlog.get_logger(__name__)


NAME_KEY_LENGTH = 40
DATE_KEY_LENGTH = 10

NON_KEY_CHARS = re.compile(r"[^a-z0-9äöüß]")

# Optional fields copied from a duplicate when the canonical record lacks them
FILLABLE_FIELDS = ("venue", "price", "address", "url", "description", "end")


def normalize_name(name: str) -> str:
    """Reduce a name to its comparable core."""
    if not name:
        return ""
    return NON_KEY_CHARS.sub("", name.lower())[:NAME_KEY_LENGTH]


def identity_key(event: Event) -> str:
    """Generate the fuzzy identity key used to recognize the same event."""
    date_part = event.start.isoformat()[:DATE_KEY_LENGTH] if event.start else ""
    return f"{normalize_name(event.name)}|{date_part}"


def merge_events(canonical: Event, duplicate: Event) -> Event:
    """
    Merge a duplicate into the canonical record.

    Returns a new Event; neither input is modified. The canonical record
    keeps its own values and only gains fields it does not have yet.
    Source lists are concatenated as-is, so repeats from the same source
    are kept.
    """
    update: dict = {}
    for field in FILLABLE_FIELDS:
        if getattr(canonical, field) is None and getattr(duplicate, field) is not None:
            update[field] = getattr(duplicate, field)

    if canonical.category == DEFAULT_CATEGORY and duplicate.category != DEFAULT_CATEGORY:
        update["category"] = duplicate.category

    update["sources"] = [*canonical.sources, *duplicate.sources]
    return canonical.model_copy(update=update)


def _sort_key(event: Event) -> tuple[bool, float]:
    # Undated events sort after everything else
    if event.start is None:
        return (True, 0.0)
    return (False, event.start.timestamp())


def sort_events(events: list[Event]) -> list[Event]:
    """Stable sort by start time, undated last."""
    return sorted(events, key=_sort_key)


def deduplicate(events: list[Event]) -> list[Event]:
    """
    Deduplicate events by identity key and sort them.

    Args:
        events: Flat list from all providers, in provider order

    Returns:
        Merged events sorted ascending by start, undated last
    """
    if not events:
        return []

    merged: dict[str, Event] = {}
    duplicates = 0

    for event in events:
        key = identity_key(event)
        existing = merged.get(key)
        if existing is None:
            merged[key] = event
            continue

        merged[key] = merge_events(existing, event)
        duplicates += 1
        log.debug(
            "event_merged",
            key=key,
            name=existing.name,
            sources=merged[key].source_label,
        )

    log.info("dedup_complete", original=len(events), merged=duplicates, final=len(merged))
    return sort_events(list(merged.values()))


def filter_by_category(events: list[Event], category: Optional[str]) -> list[Event]:
    """Keep events of the given category; uncategorized events always pass."""
    if not category or category == "all":
        return list(events)

    category = category.lower()
    return [e for e in events if e.category in (category, DEFAULT_CATEGORY)]

