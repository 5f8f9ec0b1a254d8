"""Output rendering: JSON for machines, grouped text for people."""

import json
from typing import Any, Optional

from .models import DateRange, Event
from .template_engine import TemplateEngine


TEXT_TEMPLATE = "events.txt.j2"
UNKNOWN_DAY = "Date unknown"
UNKNOWN_TIME = "??:??"

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def render_json(events: list[Event]) -> str:
    """Serialize events as an indented JSON array."""
    payload = [event.model_dump(mode="json") for event in events]
    return json.dumps(payload, indent=2, ensure_ascii=False)


def _day_label(event: Event) -> str:
    if event.start is None:
        return UNKNOWN_DAY
    return f"{WEEKDAYS[event.start.weekday()]}, {event.start:%d.%m.}"


def group_by_day(events: list[Event]) -> list[dict[str, Any]]:
    """Group consecutive events sharing a calendar day (input is already sorted)."""
    days: list[dict[str, Any]] = []
    for event in events:
        label = _day_label(event)
        if not days or days[-1]["label"] != label:
            days.append({"label": label, "events": []})
        days[-1]["events"].append({
            "time": f"{event.start:%H:%M}" if event.start else UNKNOWN_TIME,
            "name": event.name,
            "venue": event.venue,
            "price": event.price,
            "url": event.url,
        })
    return days


def render_text(
    events: list[Event],
    date_range: DateRange,
    city: str,
    engine: Optional[TemplateEngine] = None,
) -> str:
    """Render events grouped per day through the text template."""
    engine = engine or TemplateEngine()
    context = {
        "total": len(events),
        "city": city,
        "range_start": f"{date_range.start:%d.%m.%Y}",
        "range_end": f"{date_range.end:%d.%m.%Y}",
        "days": group_by_day(events),
    }
    return engine.render(TEXT_TEMPLATE, context).rstrip() + "\n"
