"""
Unit tests for ics_agenda.rrule_evaluator.DateutilRecurrenceRule

Covers:
- window expansion with inclusive and exclusive bounds
- wall-clock evaluation for rules with a declared zone
- RDATE additions
- error wrapping for unusable rules
"""

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from ics_agenda.agenda_exceptions import RuleEvaluationError
from ics_agenda.rrule_evaluator import DateutilRecurrenceRule, RecurrenceRule

pytestmark = [pytest.mark.unit, pytest.mark.fast]

UTC = ZoneInfo("UTC")
NEW_YORK = ZoneInfo("America/New_York")


def test_rule_satisfies_recurrence_protocol() -> None:
    rule = DateutilRecurrenceRule(rrule_text="FREQ=DAILY", dtstart=datetime(2024, 1, 1, tzinfo=UTC))

    assert isinstance(rule, RecurrenceRule)


def test_between_returns_candidates_inside_window() -> None:
    rule = DateutilRecurrenceRule(
        rrule_text="FREQ=DAILY", dtstart=datetime(2024, 1, 1, 9, 0, tzinfo=UTC)
    )

    candidates = rule.between(
        datetime(2024, 1, 3, 0, 0, tzinfo=UTC), datetime(2024, 1, 5, 23, 59, tzinfo=UTC)
    )

    assert candidates == [
        datetime(2024, 1, 3, 9, 0, tzinfo=UTC),
        datetime(2024, 1, 4, 9, 0, tzinfo=UTC),
        datetime(2024, 1, 5, 9, 0, tzinfo=UTC),
    ]


def test_between_bounds_inclusive_by_default() -> None:
    rule = DateutilRecurrenceRule(
        rrule_text="FREQ=DAILY", dtstart=datetime(2024, 1, 1, 0, 0, tzinfo=UTC)
    )
    start = datetime(2024, 1, 2, 0, 0, tzinfo=UTC)
    end = datetime(2024, 1, 3, 0, 0, tzinfo=UTC)

    assert rule.between(start, end) == [start, end]
    assert rule.between(start, end, inclusive=False) == []


def test_count_limits_candidates() -> None:
    rule = DateutilRecurrenceRule(
        rrule_text="FREQ=WEEKLY;COUNT=2", dtstart=datetime(2024, 1, 1, 9, 0, tzinfo=UTC)
    )

    candidates = rule.between(
        datetime(2024, 1, 1, tzinfo=UTC), datetime(2024, 3, 1, tzinfo=UTC)
    )

    assert len(candidates) == 2


def test_large_windows_are_not_truncated() -> None:
    rule = DateutilRecurrenceRule(
        rrule_text="FREQ=DAILY", dtstart=datetime(2024, 1, 1, 9, 0, tzinfo=UTC)
    )

    candidates = rule.between(
        datetime(2024, 1, 1, tzinfo=UTC), datetime(2025, 12, 31, 23, 59, tzinfo=UTC)
    )

    assert len(candidates) == 731


def test_declared_zone_rule_is_stamped_in_window_zone() -> None:
    """09:00 New York wall-clock is reported as 09:00 of the window's zone."""
    rule = DateutilRecurrenceRule(
        rrule_text="FREQ=WEEKLY",
        dtstart=datetime(2024, 1, 1, 9, 0, tzinfo=NEW_YORK),
        tzid="America/New_York",
    )

    candidates = rule.between(
        datetime(2024, 1, 8, 0, 0, tzinfo=UTC), datetime(2024, 1, 8, 23, 59, tzinfo=UTC)
    )

    assert candidates == [datetime(2024, 1, 8, 9, 0, tzinfo=UTC)]


def test_declared_zone_rule_keeps_wall_clock_across_dst() -> None:
    rule = DateutilRecurrenceRule(
        rrule_text="FREQ=WEEKLY",
        dtstart=datetime(2024, 3, 4, 9, 0, tzinfo=NEW_YORK),
        tzid="America/New_York",
    )

    candidates = rule.between(
        datetime(2024, 3, 11, 0, 0, tzinfo=NEW_YORK), datetime(2024, 3, 11, 23, 59, tzinfo=NEW_YORK)
    )

    assert len(candidates) == 1
    assert (candidates[0].hour, candidates[0].minute) == (9, 0)
    assert candidates[0].utcoffset() is not None
    assert candidates[0].utcoffset().total_seconds() == -4 * 3600


def test_floating_rule_follows_window_zone_dst() -> None:
    """A floating winter 09:00 seed yields 09:00 EDT in summer."""
    rule = DateutilRecurrenceRule(
        rrule_text="FREQ=WEEKLY",
        dtstart=datetime(2024, 1, 1, 9, 0, tzinfo=NEW_YORK),
        floating=True,
    )

    candidates = rule.between(
        datetime(2024, 7, 1, 0, 0, tzinfo=NEW_YORK), datetime(2024, 7, 1, 23, 59, tzinfo=NEW_YORK)
    )

    assert candidates == [datetime(2024, 7, 1, 9, 0, tzinfo=NEW_YORK)]
    assert candidates[0].utcoffset().total_seconds() == -4 * 3600



def test_rdates_are_added() -> None:
    rule = DateutilRecurrenceRule(
        rrule_text="FREQ=WEEKLY;BYDAY=MO",
        dtstart=datetime(2024, 1, 1, 9, 0, tzinfo=UTC),
        rdates=(datetime(2024, 1, 10, 15, 0, tzinfo=UTC),),
    )

    candidates = rule.between(
        datetime(2024, 1, 9, tzinfo=UTC), datetime(2024, 1, 10, 23, 59, tzinfo=UTC)
    )

    assert candidates == [datetime(2024, 1, 10, 15, 0, tzinfo=UTC)]


def test_empty_rule_text_rejected() -> None:
    with pytest.raises(RuleEvaluationError):
        DateutilRecurrenceRule(rrule_text="  ", dtstart=datetime(2024, 1, 1, tzinfo=UTC))


def test_invalid_rule_raises_on_evaluation() -> None:
    rule = DateutilRecurrenceRule(
        rrule_text="FREQ=SOMETIMES", dtstart=datetime(2024, 1, 1, tzinfo=UTC)
    )

    with pytest.raises(RuleEvaluationError):
        rule.between(datetime(2024, 1, 1, tzinfo=UTC), datetime(2024, 1, 2, tzinfo=UTC))


def test_unknown_declared_zone_raises_on_evaluation() -> None:
    rule = DateutilRecurrenceRule(
        rrule_text="FREQ=DAILY",
        dtstart=datetime(2024, 1, 1, 9, 0, tzinfo=UTC),
        tzid="Nowhere/Special",
    )

    with pytest.raises(RuleEvaluationError):
        rule.between(datetime(2024, 1, 1, tzinfo=UTC), datetime(2024, 1, 2, tzinfo=UTC))
