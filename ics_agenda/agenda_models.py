"""Data models for day agenda resolution - ics_agenda."""

from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from .rrule_evaluator import RecurrenceRule

EVENT_COMPONENT_TYPE = "VEVENT"


class ParsedEvent(BaseModel):
    """One calendar component as produced by the ICS parser.

    A component without a recurrence rule is a single, non-repeating event.
    Instances are treated as read-only inputs by the resolver.
    """

    uid: str = Field(default="", description="Component UID")
    component_type: str = Field(
        default=EVENT_COMPONENT_TYPE, description="iCalendar component name (VEVENT, VTODO, ...)"
    )

    summary: str = Field(default="", description="Event summary/title")
    description: Optional[str] = Field(default=None, description="Event description")
    location: Optional[str] = Field(default=None, description="Event location")

    start: Optional[datetime] = Field(default=None, description="Event start instant")
    end: Optional[datetime] = Field(default=None, description="Event end instant")

    # Opaque to the resolver apart from ``tzid`` and ``between()``
    recurrence_rule: Optional[RecurrenceRule] = Field(
        default=None, description="Recurrence rule evaluator"
    )
    overrides: dict[str, "ParsedEvent"] = Field(
        default_factory=dict, description="Per-date replacement instances keyed by YYYY-MM-DD"
    )
    exceptions: set[str] = Field(
        default_factory=set, description="Suppressed occurrence dates as YYYY-MM-DD"
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @property
    def is_recurring(self) -> bool:
        """Check if the component carries a recurrence rule."""
        return self.recurrence_rule is not None

    @property
    def is_event(self) -> bool:
        """Check if the component is a VEVENT."""
        return self.component_type.upper() == EVENT_COMPONENT_TYPE

    @property
    def duration(self) -> timedelta:
        """Length of the event; zero when either bound is missing."""
        if self.start is None or self.end is None:
            return timedelta(0)
        return self.end - self.start

    def validation_error(self) -> Optional[str]:
        """Describe why this component cannot be resolved.

        Returns:
            Human-readable problem description, or None if the component is usable
        """
        if self.start is None:
            return "component has no start"
        if self.end is None:
            return "component has no end"
        if self.end < self.start:
            return f"component ends ({self.end.isoformat()}) before it starts ({self.start.isoformat()})"
        return None


ParsedEvent.model_rebuild()


class Occurrence(BaseModel):
    """One materialized event instance on the target day."""

    summary: str = Field(..., description="Event summary, suffixed for rule-generated instances")
    description: Optional[str] = Field(default=None, description="Event description")
    location: Optional[str] = Field(default=None, description="Event location")
    start: datetime = Field(..., description="Instance start")
    end: datetime = Field(..., description="Instance end")

    model_config = ConfigDict(frozen=True)

    def sort_key(self) -> tuple[datetime, str]:
        """Key for chronological display ordering."""
        return (self.start, self.summary)

    @field_serializer("start", "end")
    def serialize_datetime(self, dt: datetime) -> str:
        """Serialize datetime fields to ISO format."""
        return dt.isoformat()


class DiagnosticKind(str, Enum):
    """Kinds of per-component problems reported during resolution."""

    MALFORMED_COMPONENT = "malformed_component"
    RULE_EVALUATION_FAILURE = "rule_evaluation_failure"


class ResolutionDiagnostic(BaseModel):
    """A per-component problem that was isolated instead of aborting resolution."""

    uid: str
    kind: DiagnosticKind
    message: str

    model_config = ConfigDict(use_enum_values=True)


class DayResolution(BaseModel):
    """Result of resolving one target day."""

    day: date
    occurrences: list[Occurrence] = Field(default_factory=list)
    diagnostics: list[ResolutionDiagnostic] = Field(default_factory=list)

    @property
    def has_diagnostics(self) -> bool:
        """Check if any component was skipped or partially resolved."""
        return bool(self.diagnostics)

    def sorted_occurrences(self) -> list[Occurrence]:
        """Occurrences in chronological order."""
        return sorted(self.occurrences, key=lambda occurrence: occurrence.sort_key())


class CalendarSource(BaseModel):
    """A named local ICS file to build the agenda from."""

    name: str = Field(..., description="Human-readable name for this calendar")
    path: str = Field(..., description="Path to the .ics file")
