"""ics_agenda - resolve the events of one day from an iCalendar feed.

Expands recurring series for the target day, applies exception dates and
per-date overrides, and corrects rule-generated instances for timezone
offset drift.
"""

__version__ = "0.1.0"

from .agenda_exceptions import (
    AgendaConfigError,
    AgendaError,
    ICSParseError,
    MalformedComponentError,
    RuleEvaluationError,
    TimezoneResolutionError,
)
from .agenda_models import DayResolution, Occurrence, ParsedEvent, ResolutionDiagnostic
from .ics_parser import LiteICSComponentParser, parse_ics
from .occurrence_resolver import OccurrenceResolver, resolve_occurrences
from .rrule_evaluator import DateutilRecurrenceRule, RecurrenceRule
from .tz_corrector import TimezoneOffsetCorrector

__all__ = [
    "AgendaConfigError",
    "AgendaError",
    "DateutilRecurrenceRule",
    "DayResolution",
    "ICSParseError",
    "LiteICSComponentParser",
    "MalformedComponentError",
    "Occurrence",
    "OccurrenceResolver",
    "ParsedEvent",
    "RecurrenceRule",
    "ResolutionDiagnostic",
    "RuleEvaluationError",
    "TimezoneOffsetCorrector",
    "TimezoneResolutionError",
    "parse_ics",
    "resolve_occurrences",
]
