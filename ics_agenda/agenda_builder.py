"""Builds a day's checklist from local calendar files - ics_agenda."""

import logging
from collections.abc import Iterable
from datetime import date, tzinfo
from pathlib import Path
from typing import Union

from .agenda_exceptions import ICSParseError
from .agenda_formatter import build_agenda
from .agenda_models import CalendarSource, Occurrence
from .ics_parser import LiteICSComponentParser
from .occurrence_resolver import DEFAULT_RECURRENCE_MARKER, OccurrenceResolver

logger = logging.getLogger(__name__)


def collect_day_occurrences(
    sources: Iterable[CalendarSource],
    day: Union[str, date],
    local_tz: tzinfo,
    recurrence_marker: str = DEFAULT_RECURRENCE_MARKER,
) -> list[tuple[str, Occurrence]]:
    """Resolve ``day`` for every calendar source.

    A calendar whose file cannot be read or parsed is logged and skipped;
    the remaining calendars are still resolved.

    Returns:
        (calendar name, occurrence) pairs
    """
    parser = LiteICSComponentParser(local_tz)
    resolver = OccurrenceResolver(local_tz=local_tz, recurrence_marker=recurrence_marker)

    entries: list[tuple[str, Occurrence]] = []
    for source in sources:
        try:
            ics_content = Path(source.path).expanduser().read_text(encoding="utf-8")
            components = parser.parse_components(ics_content)
        except (OSError, UnicodeDecodeError, ICSParseError) as e:
            logger.warning("Skipping calendar %s (%s): %s", source.name, source.path, e)
            continue

        resolution = resolver.resolve(components, day)
        logger.info(
            "Calendar %s: %d occurrences on %s",
            source.name,
            len(resolution.occurrences),
            resolution.day.isoformat(),
        )
        entries.extend((source.name, occurrence) for occurrence in resolution.occurrences)
    return entries


def build_day_agenda(
    sources: Iterable[CalendarSource],
    day: Union[str, date],
    local_tz: tzinfo,
    recurrence_marker: str = DEFAULT_RECURRENCE_MARKER,
) -> str:
    """Render the sorted checklist for ``day`` across calendar sources."""
    entries = collect_day_occurrences(sources, day, local_tz, recurrence_marker)
    return build_agenda(entries, local_tz)
