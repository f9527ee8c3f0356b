"""Checklist rendering of resolved occurrences - ics_agenda."""

from collections.abc import Iterable
from datetime import tzinfo

from .agenda_models import Occurrence

TIME_FORMAT = "%H:%M"


def format_occurrence_line(occurrence: Occurrence, calendar_name: str, tz: tzinfo) -> str:
    """Render one occurrence as a markdown checklist item.

    Example:
        ``- [ ] 09:00 Work Standup (recurring) Room 4``

    Args:
        occurrence: Occurrence to render
        calendar_name: Name of the calendar it came from
        tz: Zone the start time is displayed in
    """
    start = occurrence.start.astimezone(tz).strftime(TIME_FORMAT)
    parts = [start, calendar_name, occurrence.summary, occurrence.location or ""]
    return f"- [ ] {' '.join(part for part in parts if part)}".strip()


def build_agenda(entries: Iterable[tuple[str, Occurrence]], tz: tzinfo) -> str:
    """Render (calendar name, occurrence) pairs as a sorted checklist.

    Lines sort lexically, which is chronological for same-day HH:MM prefixes.
    """
    lines = [format_occurrence_line(occurrence, name, tz) for name, occurrence in entries]
    return "\n".join(sorted(lines))
