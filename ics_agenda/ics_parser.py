"""ICS parsing into resolver-ready components - ics_agenda.

Turns iCalendar text into ``ParsedEvent`` records: one per component, with
RECURRENCE-ID instances folded into their master's ``overrides`` and EXDATE
values collected into its ``exceptions``.
"""

import logging
import uuid
from datetime import date, datetime, timedelta, tzinfo
from typing import Any, Optional

from icalendar import Calendar

from .agenda_exceptions import ICSParseError, RuleEvaluationError, TimezoneResolutionError
from .agenda_models import EVENT_COMPONENT_TYPE, ParsedEvent
from .datetime_utils import date_key
from .rrule_evaluator import DateutilRecurrenceRule
from .timezone_utils import TimezoneDetector

logger = logging.getLogger(__name__)

SUPPORTED_COMPONENTS = ("VEVENT", "VTODO", "VJOURNAL")


def _as_list(value: Any) -> list[Any]:
    """Normalize icalendar properties that may appear once or many times."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


class LiteICSComponentParser:
    """Parser for iCalendar text into ParsedEvent records."""

    def __init__(self, local_tz: tzinfo, detector: Optional[TimezoneDetector] = None):
        """Initialize component parser.

        Args:
            local_tz: Observer's zone, used for floating and all-day values
            detector: Zone lookup for TZID parameters
        """
        self.local_tz = local_tz
        self.detector = detector or TimezoneDetector()

    def parse_components(self, ics_content: str) -> dict[str, ParsedEvent]:
        """Parse ICS content into components keyed by component id.

        Args:
            ics_content: Raw ICS text

        Returns:
            Mapping of component id to ParsedEvent, each tagged with its component type

        Raises:
            ICSParseError: If the text is not a readable calendar
        """
        if not ics_content or not ics_content.strip():
            raise ICSParseError("Empty ICS content")

        try:
            calendar = Calendar.from_ical(ics_content)
        except ValueError as e:
            raise ICSParseError(f"Failed to parse ICS content: {e}") from e

        calendar_tzid = self._calendar_property(calendar, "X-WR-TIMEZONE")
        calendar_tz = self._lookup_zone(calendar_tzid) if calendar_tzid else None

        masters: dict[str, ParsedEvent] = {}
        instances: list[tuple[str, str, ParsedEvent]] = []
        total_components = 0

        for component in calendar.walk():
            if component.name not in SUPPORTED_COMPONENTS:
                continue
            total_components += 1

            parsed = self._parse_component(component, calendar_tz, calendar_tzid)
            recurrence_id = component.get("RECURRENCE-ID")
            if recurrence_id is not None and component.name == EVENT_COMPONENT_TYPE:
                instances.append((parsed.uid, date_key(recurrence_id.dt), parsed))
                continue

            component_id = parsed.uid
            suffix = 1
            while component_id in masters:
                suffix += 1
                component_id = f"{parsed.uid}::{suffix}"
            masters[component_id] = parsed

        components = self._attach_overrides(masters, instances)

        logger.debug(
            "Parsed %d components (%d calendar entries, %d recurrence overrides)",
            len(components),
            total_components,
            len(instances),
        )
        return components

    def parse_events(self, ics_content: str) -> list[ParsedEvent]:
        """Parse ICS content and keep only VEVENT records."""
        return [c for c in self.parse_components(ics_content).values() if c.is_event]

    def _attach_overrides(
        self,
        masters: dict[str, ParsedEvent],
        instances: list[tuple[str, str, ParsedEvent]],
    ) -> dict[str, ParsedEvent]:
        """Fold RECURRENCE-ID instances into the overrides of their master.

        Instances whose master is missing from the feed are kept as standalone events.
        """
        overrides_by_uid: dict[str, dict[str, ParsedEvent]] = {}
        for uid, key, instance in instances:
            master = masters.get(uid)
            if master is None or not master.is_recurring:
                orphan_id = f"{uid}::{key}"
                logger.debug("RECURRENCE-ID %s of %s has no recurring master", key, uid)
                masters[orphan_id] = instance
                continue
            overrides_by_uid.setdefault(uid, {})[key] = instance

        for uid, overrides in overrides_by_uid.items():
            masters[uid] = masters[uid].model_copy(
                update={"overrides": {**masters[uid].overrides, **overrides}}
            )
        return masters

    def _parse_component(
        self, component: Any, calendar_tz: Optional[tzinfo], calendar_tzid: Optional[str]
    ) -> ParsedEvent:
        uid = str(component.get("UID", str(uuid.uuid4())))
        summary = str(component.get("SUMMARY", "No Title"))
        description = component.get("DESCRIPTION")
        location = component.get("LOCATION")

        start, start_tzid, floating = self._parse_start(component, calendar_tz, calendar_tzid)
        end = self._parse_end(component, start, calendar_tz)

        recurrence_rule = None
        exceptions: set[str] = set()
        if start is not None and component.get("RRULE") is not None:
            recurrence_rule = self._build_rule(component, start, start_tzid, floating, calendar_tz)
            exceptions = self._collect_exdates(component)

        return ParsedEvent(
            uid=uid,
            component_type=component.name,
            summary=summary,
            description=str(description) if description else None,
            location=str(location) if location else None,
            start=start,
            end=end,
            recurrence_rule=recurrence_rule,
            exceptions=exceptions,
        )

    def _parse_start(
        self, component: Any, calendar_tz: Optional[tzinfo], calendar_tzid: Optional[str]
    ) -> tuple[Optional[datetime], Optional[str], bool]:
        """Parse DTSTART and the zone a recurrence rule should be evaluated in.

        Returns:
            Tuple of (start, rule_tzid, floating); start is None when DTSTART is
            missing, floating is True when the value was pinned to the observer's zone
        """
        dtstart = component.get("DTSTART")
        if dtstart is None:
            if component.name == EVENT_COMPONENT_TYPE:
                logger.warning("Event %s missing DTSTART", component.get("UID"))
            return None, None, False

        tzid = dtstart.params.get("TZID") if hasattr(dtstart, "params") else None
        value = dtstart.dt

        if not isinstance(value, datetime):
            # All-day values float at midnight in the observer's zone
            return self._to_datetime(value, calendar_tz), None, True

        if value.tzinfo is not None:
            if tzid and self._lookup_zone(tzid) is None:
                tzid = None
            if not tzid:
                tzid = getattr(value.tzinfo, "key", None)
                if tzid in ("UTC", "Etc/UTC"):
                    tzid = None
            return value, tzid, False

        zone = self._lookup_zone(tzid) if tzid else None
        if zone is not None:
            return value.replace(tzinfo=zone), tzid, False
        if calendar_tz is not None:
            return value.replace(tzinfo=calendar_tz), calendar_tzid, False
        return value.replace(tzinfo=self.local_tz), None, True

    def _parse_end(
        self, component: Any, start: Optional[datetime], calendar_tz: Optional[tzinfo]
    ) -> Optional[datetime]:
        """Parse DTEND, falling back to DURATION, then one day for all-day values."""
        if start is None:
            return None

        dtend = component.get("DTEND")
        if dtend is None:
            dtend = component.get("DUE")
        if dtend is not None:
            value = dtend.dt
            if not isinstance(value, datetime):
                return self._to_datetime(value, calendar_tz)
            if value.tzinfo is None:
                tzid = dtend.params.get("TZID") if hasattr(dtend, "params") else None
                zone = (self._lookup_zone(tzid) if tzid else None) or start.tzinfo
                return value.replace(tzinfo=zone)
            return value

        duration = component.get("DURATION")
        if duration is not None and isinstance(duration.dt, timedelta):
            return start + duration.dt

        dtstart = component.get("DTSTART")
        if dtstart is not None and not isinstance(dtstart.dt, datetime):
            return start + timedelta(days=1)
        return start

    def _build_rule(
        self,
        component: Any,
        start: datetime,
        tzid: Optional[str],
        floating: bool,
        calendar_tz: Optional[tzinfo],
    ) -> Optional[DateutilRecurrenceRule]:
        rrule_prop = _as_list(component.get("RRULE"))[0]
        rrule_text = (
            rrule_prop.to_ical().decode("utf-8") if hasattr(rrule_prop, "to_ical") else str(rrule_prop)
        )

        rdates = tuple(
            self._to_datetime(value, calendar_tz, fallback_tz=start.tzinfo)
            for value in self._collect_date_values(component, "RDATE")
        )

        try:
            return DateutilRecurrenceRule(
                rrule_text=rrule_text,
                dtstart=start,
                tzid=tzid,
                floating=floating,
                rdates=rdates,
            )
        except RuleEvaluationError as e:
            logger.warning("Ignoring RRULE of %s: %s", component.get("UID"), e)
            return None

    def _collect_exdates(self, component: Any) -> set[str]:
        """Date keys of every EXDATE value, in each value's own calendar date."""
        return {date_key(value) for value in self._collect_date_values(component, "EXDATE")}

    def _collect_date_values(self, component: Any, prop_name: str) -> list[Any]:
        values = []
        for prop in _as_list(component.get(prop_name)):
            for entry in getattr(prop, "dts", []):
                value = entry.dt
                if isinstance(value, tuple):
                    # PERIOD values start at their first element
                    value = value[0]
                if isinstance(value, (date, datetime)):
                    values.append(value)
        return values

    def _to_datetime(
        self,
        value: Any,
        calendar_tz: Optional[tzinfo],
        fallback_tz: Optional[tzinfo] = None,
    ) -> datetime:
        """Convert a DATE or naive DATE-TIME to an aware datetime."""
        if isinstance(value, datetime):
            if value.tzinfo is None:
                return value.replace(tzinfo=fallback_tz or calendar_tz or self.local_tz)
            return value
        return datetime(value.year, value.month, value.day, tzinfo=self.local_tz)

    def _lookup_zone(self, name: str) -> Optional[tzinfo]:
        try:
            return self.detector.resolve_zone(str(name))
        except TimezoneResolutionError:
            logger.debug("Unknown TZID %r, treating value as floating", name)
            return None

    def _calendar_property(self, calendar: Calendar, prop_name: str) -> Optional[str]:
        value = calendar.get(prop_name)
        return str(value) if value else None


def parse_ics(ics_content: str, local_tz: tzinfo) -> list[ParsedEvent]:
    """Parse ICS text into VEVENT records (convenience function)."""
    return LiteICSComponentParser(local_tz).parse_events(ics_content)
