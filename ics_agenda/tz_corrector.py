"""Timezone offset correction for recurrence candidates - ics_agenda.

Recurrence rules are evaluated as wall-clock patterns, so a raw candidate
instant drifts whenever the rule's zone and the observer's zone disagree,
and again whenever either crosses a daylight-saving transition. The delta is
recomputed for every candidate; offsets here are minutes east of UTC.
"""

import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional

from .agenda_exceptions import RuleEvaluationError, TimezoneResolutionError
from .agenda_models import ParsedEvent
from .datetime_utils import ensure_timezone_aware, utc_offset_minutes
from .timezone_utils import TimezoneDetector

logger = logging.getLogger(__name__)


class TimezoneOffsetCorrector:
    """Shifts rule-generated candidates into the observer's local zone."""

    def __init__(self, local_tz: tzinfo, detector: Optional[TimezoneDetector] = None):
        """Initialize corrector.

        Args:
            local_tz: Observer's local zone
            detector: Zone lookup used for rule-declared TZIDs
        """
        self.local_tz = local_tz
        self.detector = detector or TimezoneDetector()

    def correct_instant(self, base_event: ParsedEvent, candidate: datetime) -> datetime:
        """Compute the corrected local start for a rule-generated candidate.

        Args:
            base_event: Recurring master the candidate was generated from
            candidate: Raw instant returned by the rule evaluator

        Returns:
            Corrected start instant expressed in the local zone

        Raises:
            RuleEvaluationError: If the rule declares a zone that cannot be looked up
        """
        candidate = ensure_timezone_aware(candidate, self.local_tz)
        tzid = getattr(base_event.recurrence_rule, "tzid", None)

        if tzid:
            shift = self._declared_zone_shift(tzid, candidate)
        elif getattr(base_event.recurrence_rule, "floating", False):
            # Observer-zone wall-clock pattern; dateutil already applied local DST
            shift = timedelta(0)
        else:
            shift = self._seed_offset_shift(base_event, candidate)

        if shift:
            logger.debug(
                "Correcting %r candidate %s by %s (tzid=%s)",
                base_event.summary,
                candidate.isoformat(),
                shift,
                tzid,
            )

        # Absolute arithmetic; adding to a zoned value would shift wall-clock time
        corrected = candidate.astimezone(timezone.utc) + shift
        return corrected.astimezone(self.local_tz)

    def _declared_zone_shift(self, tzid: str, candidate: datetime) -> timedelta:
        """Delta between the local zone and the rule's zone at the candidate."""
        try:
            rule_zone = self.detector.resolve_zone(tzid)
        except TimezoneResolutionError as e:
            raise RuleEvaluationError(f"Recurrence rule declares unknown zone {tzid!r}") from e

        offset_minutes = utc_offset_minutes(candidate, self.local_tz) - utc_offset_minutes(
            candidate, rule_zone
        )
        return timedelta(minutes=offset_minutes)

    def _seed_offset_shift(self, base_event: ParsedEvent, candidate: datetime) -> timedelta:
        """Heuristic for rules without a zone: keep the seed's local wall-clock time.

        Compares the local offset at the series' original start with the local
        offset at the candidate and applies the difference in hours.
        """
        if base_event.start is None:
            return timedelta(0)

        seed_offset = utc_offset_minutes(base_event.start, self.local_tz)
        candidate_offset = utc_offset_minutes(candidate, self.local_tz)
        hour_delta = (candidate_offset - seed_offset) / 60
        return -timedelta(hours=hour_delta)
