"""Recurrence rule evaluation for ics_agenda.

The resolver treats recurrence expansion as a capability: given a window,
return every candidate start instant inside it. ``DateutilRecurrenceRule``
provides that capability on top of dateutil's RFC 5545 implementation.
"""

# ruff: noqa: I001
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
import logging
from typing import Optional, Protocol, runtime_checkable

from dateutil.rrule import rruleset, rrulestr

from .agenda_exceptions import RuleEvaluationError, TimezoneResolutionError
from .timezone_utils import resolve_zone

logger = logging.getLogger(__name__)


@runtime_checkable
class RecurrenceRule(Protocol):
    """Opaque recurrence rule as seen by the resolver.

    A rule may also expose a boolean ``floating`` attribute; when true its
    candidates are taken as already correct in the observer's zone.
    """

    tzid: Optional[str]

    def between(self, start: datetime, end: datetime, inclusive: bool = True) -> list[datetime]:
        """Return every candidate start instant between ``start`` and ``end``."""
        ...


@dataclass
class DateutilRecurrenceRule:
    """RRULE evaluator backed by ``dateutil.rrule``.

    With a declared ``tzid`` the rule is evaluated as a wall-clock pattern of
    that zone and candidates are stamped in the zone of the requested window;
    the offset corrector then moves them onto the real timeline. A
    ``floating`` rule (floating or all-day DTSTART) is a wall-clock pattern
    of the observer's own zone: candidates are stamped in the window's zone
    and already sit on the real timeline. Otherwise the rule runs from the
    seed instant as given.

    Results are never truncated.
    """

    rrule_text: str
    dtstart: datetime
    tzid: Optional[str] = None
    floating: bool = False
    rdates: tuple[datetime, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.rrule_text or not self.rrule_text.strip():
            raise RuleEvaluationError("Empty RRULE string")

    def between(self, start: datetime, end: datetime, inclusive: bool = True) -> list[datetime]:
        """Expand the rule inside a window.

        Args:
            start: Window start (timezone-aware)
            end: Window end (timezone-aware)
            inclusive: Whether candidates equal to a bound are included

        Returns:
            Candidate start instants in ascending order

        Raises:
            RuleEvaluationError: If dateutil cannot evaluate the rule
        """
        try:
            rule_set = self._build_ruleset(self._seed_for(start.tzinfo))
            candidates = list(rule_set.between(start, end, inc=inclusive))
        except RuleEvaluationError:
            raise
        except (ValueError, TypeError, TimezoneResolutionError) as e:
            raise RuleEvaluationError(f"Failed to evaluate RRULE {self.rrule_text!r}: {e}") from e

        logger.debug(
            "RRULE %r produced %d candidates between %s and %s",
            self.rrule_text,
            len(candidates),
            start.isoformat(),
            end.isoformat(),
        )
        return candidates

    def _seed_for(self, window_tz: Optional[tzinfo]) -> datetime:
        """Seed instant for expansion.

        Declared-zone and floating rules run as a wall-clock in the window's zone.
        """
        if window_tz is None:
            return self.dtstart
        if self.floating and not self.tzid:
            return self.dtstart.replace(tzinfo=window_tz)
        if not self.tzid:
            return self.dtstart
        rule_zone = resolve_zone(self.tzid)
        wall_clock = self.dtstart.astimezone(rule_zone) if self.dtstart.tzinfo else self.dtstart
        return wall_clock.replace(tzinfo=window_tz)

    def _build_ruleset(self, seed: datetime) -> rruleset:
        try:
            parsed_rule = rrulestr(self.rrule_text, dtstart=seed, forceset=True)
        except (ValueError, TypeError) as e:
            raise RuleEvaluationError(f"Invalid RRULE {self.rrule_text!r}: {e}") from e

        for rdate in self.rdates:
            parsed_rule.rdate(self._restamp(rdate, seed))
        return parsed_rule

    def _restamp(self, value: datetime, seed: datetime) -> datetime:
        """Express an RDATE in the same representation as the seed."""
        if seed.tzinfo is None or value.tzinfo is None:
            return value
        if self.floating and not self.tzid:
            return value.replace(tzinfo=seed.tzinfo)
        if not self.tzid:
            return value
        return value.astimezone(resolve_zone(self.tzid)).replace(tzinfo=seed.tzinfo)
