"""Day occurrence resolution for ics_agenda.

Given parsed calendar components and a target day, this module produces the
event instances that land on that day:

1. Seed matches - every event whose own start falls on the day
2. Override matches - per-date replacement instances moved onto the day
3. Rule matches - recurrence candidates inside the day window, minus
   exception dates, overridden dates and the series' seed, shifted by the
   timezone offset corrector

Ordering of the result is not significant; callers sort for display.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, Optional, Union

from .agenda_exceptions import MalformedComponentError, RuleEvaluationError
from .agenda_models import (
    DayResolution,
    DiagnosticKind,
    Occurrence,
    ParsedEvent,
    ResolutionDiagnostic,
)
from .datetime_utils import DayWindow, date_key, day_window, ensure_timezone_aware, falls_on_day
from .rrule_evaluator import RecurrenceRule
from .timezone_utils import get_local_timezone
from .tz_corrector import TimezoneOffsetCorrector

logger = logging.getLogger(__name__)

DEFAULT_RECURRENCE_MARKER = "(recurring)"

ComponentInput = Union[Iterable[ParsedEvent], Mapping[str, ParsedEvent]]


class OccurrenceResolver:
    """Resolves the occurrences of a single target day."""

    def __init__(
        self,
        local_tz: Optional[tzinfo] = None,
        corrector: Optional[TimezoneOffsetCorrector] = None,
        recurrence_marker: str = DEFAULT_RECURRENCE_MARKER,
    ):
        """Initialize resolver.

        Args:
            local_tz: Observer's zone; detected from the environment when omitted
            corrector: Offset corrector for rule-generated candidates
            recurrence_marker: Suffix appended to rule-generated summaries

        Raises:
            TimezoneResolutionError: If no local zone was given and none can be detected
        """
        self.local_tz = local_tz if local_tz is not None else get_local_timezone()
        self.corrector = corrector or TimezoneOffsetCorrector(self.local_tz)
        self.recurrence_marker = recurrence_marker

    def resolve(self, events: ComponentInput, day: Union[str, date]) -> DayResolution:
        """Resolve every occurrence on ``day``.

        Args:
            events: Parsed components, as a sequence or a mapping of component id to component
            day: Target day (date or YYYY-MM-DD)

        Returns:
            DayResolution with occurrences and per-component diagnostics
        """
        window = day_window(day, self.local_tz)
        resolution = DayResolution(day=window.day)

        components = self._usable_components(events, resolution)

        resolution.occurrences.extend(self._match_seeds(components, window))
        resolution.occurrences.extend(self._match_overrides(components, window, resolution))
        for component in components:
            if component.is_recurring:
                resolution.occurrences.extend(
                    self._match_rule(component, window, resolution)
                )

        logger.debug(
            "Resolved %d occurrences for %s from %d components (%d diagnostics)",
            len(resolution.occurrences),
            window.day.isoformat(),
            len(components),
            len(resolution.diagnostics),
        )
        return resolution

    def _usable_components(
        self, events: ComponentInput, resolution: DayResolution
    ) -> list[ParsedEvent]:
        """Keep well-formed VEVENT components, recording the malformed ones."""
        items: Iterable[Any] = events.values() if isinstance(events, Mapping) else events

        usable = []
        for component in items:
            if not component.is_event:
                logger.debug("Ignoring %s component %s", component.component_type, component.uid)
                continue
            try:
                self._check_component(component)
            except MalformedComponentError as e:
                self._add_diagnostic(resolution, e.uid or "", DiagnosticKind.MALFORMED_COMPONENT, str(e))
                continue
            usable.append(component)
        return usable

    def _check_component(self, component: ParsedEvent) -> None:
        problem = component.validation_error()
        if problem:
            raise MalformedComponentError(
                f"Skipping {component.summary!r}: {problem}", uid=component.uid
            )

    def _match_seeds(self, components: list[ParsedEvent], window: DayWindow) -> list[Occurrence]:
        """Events whose own start falls on the day, emitted unchanged.

        Unlike a literal reading of "every event starting on the day", the seed
        of a recurring series is withheld when its own date is excepted or
        overridden; the override (if any) is emitted by override matching.
        """
        matches = []
        for component in components:
            if not falls_on_day(component.start, window.day, self.local_tz):
                continue

            seed_key = date_key(component.start)
            if component.is_recurring and (
                seed_key in component.overrides or seed_key in component.exceptions
            ):
                # The seed instance itself was replaced or cancelled
                logger.debug("Seed of %r on %s is overridden or excepted", component.summary, seed_key)
                continue

            matches.append(self._occurrence_from(component))
        return matches

    def _match_overrides(
        self, components: list[ParsedEvent], window: DayWindow, resolution: DayResolution
    ) -> list[Occurrence]:
        """Override instances whose own start falls on the day.

        Matched by the override's start, independent of whether the series
        would naturally produce a candidate that day and of the exception dates.
        """
        matches = []
        for component in components:
            for key, override in component.overrides.items():
                try:
                    self._check_component(override)
                except MalformedComponentError as e:
                    self._add_diagnostic(
                        resolution,
                        component.uid,
                        DiagnosticKind.MALFORMED_COMPONENT,
                        f"Override {key}: {e}",
                    )
                    continue

                if falls_on_day(override.start, window.day, self.local_tz):
                    logger.debug("Override %s of %r lands on %s", key, component.summary, window.day)
                    matches.append(self._occurrence_from(override))
        return matches

    def _match_rule(
        self, component: ParsedEvent, window: DayWindow, resolution: DayResolution
    ) -> list[Occurrence]:
        """Rule-generated instances of one recurring component.

        A failing rule drops this component's rule-generated instances only.
        """
        try:
            candidates = self._evaluate_rule(component, window)
        except RuleEvaluationError as e:
            self._add_diagnostic(
                resolution, component.uid, DiagnosticKind.RULE_EVALUATION_FAILURE, str(e)
            )
            return []

        duration = component.duration
        matches = []
        for candidate in candidates:
            candidate = ensure_timezone_aware(candidate, self.local_tz)
            lookup_key = date_key(candidate)

            if lookup_key in component.exceptions:
                logger.debug("Skipping %r on %s: exception date", component.summary, lookup_key)
                continue

            if lookup_key in component.overrides:
                # Already emitted from the override itself
                continue

            if candidate == component.start:
                continue

            try:
                corrected_start = self.corrector.correct_instant(component, candidate)
            except RuleEvaluationError as e:
                self._add_diagnostic(
                    resolution, component.uid, DiagnosticKind.RULE_EVALUATION_FAILURE, str(e)
                )
                return []

            if corrected_start == component.start:
                continue

            corrected_end = self._shift(corrected_start, duration)
            if not window.overlaps(corrected_start, corrected_end):
                logger.debug(
                    "Discarding %r at %s: shifted outside %s",
                    component.summary,
                    corrected_start.isoformat(),
                    window.day,
                )
                continue

            matches.append(
                Occurrence(
                    summary=f"{component.summary} {self.recurrence_marker}",
                    description=component.description,
                    location=component.location,
                    start=corrected_start,
                    end=corrected_end,
                )
            )
        return matches

    def _evaluate_rule(self, component: ParsedEvent, window: DayWindow) -> list[datetime]:
        """Ask the rule evaluator for candidates inside the window, bounds included.

        Raises:
            RuleEvaluationError: If the evaluator fails or returns something other than instants
        """
        rule: RecurrenceRule = component.recurrence_rule
        try:
            candidates = rule.between(
                window.range_start, window.range_end, inclusive=True
            )
        except RuleEvaluationError as e:
            e.uid = e.uid or component.uid
            raise
        except Exception as e:
            raise RuleEvaluationError(
                f"Rule evaluation failed for {component.summary!r}: {e}", uid=component.uid
            ) from e

        if candidates is None or isinstance(candidates, (str, bytes)):
            raise RuleEvaluationError(
                f"Rule evaluator returned {type(candidates).__name__} for {component.summary!r}",
                uid=component.uid,
            )
        try:
            candidates = list(candidates)
        except TypeError as e:
            raise RuleEvaluationError(
                f"Rule evaluator returned a non-sequence for {component.summary!r}",
                uid=component.uid,
            ) from e
        if not all(isinstance(candidate, datetime) for candidate in candidates):
            raise RuleEvaluationError(
                f"Rule evaluator returned non-datetime candidates for {component.summary!r}",
                uid=component.uid,
            )
        return candidates

    def _shift(self, start: datetime, duration: timedelta) -> datetime:
        """Add elapsed time to an instant, independent of wall-clock transitions."""
        return (start.astimezone(timezone.utc) + duration).astimezone(self.local_tz)

    def _occurrence_from(self, event: ParsedEvent) -> Occurrence:
        return Occurrence(
            summary=event.summary,
            description=event.description,
            location=event.location,
            start=event.start,
            end=event.end,
        )

    def _add_diagnostic(
        self, resolution: DayResolution, uid: str, kind: DiagnosticKind, message: str
    ) -> None:
        logger.warning("%s (%s): %s", kind.value, uid or "<no-uid>", message)
        resolution.diagnostics.append(ResolutionDiagnostic(uid=uid, kind=kind, message=message))


def resolve_occurrences(
    events: ComponentInput,
    day: Union[str, date],
    local_tz: Optional[tzinfo] = None,
    recurrence_marker: str = DEFAULT_RECURRENCE_MARKER,
) -> list[Occurrence]:
    """Resolve the occurrences landing on ``day``.

    Args:
        events: Parsed components (sequence or mapping of component id to component)
        day: Target day
        local_tz: Observer's zone; detected from the environment when omitted
        recurrence_marker: Suffix appended to rule-generated summaries

    Returns:
        Occurrences in no particular order

    Raises:
        TimezoneResolutionError: If the local zone cannot be determined
    """
    resolver = OccurrenceResolver(local_tz=local_tz, recurrence_marker=recurrence_marker)
    return resolver.resolve(events, day).occurrences
