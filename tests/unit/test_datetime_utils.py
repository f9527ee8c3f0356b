"""Unit tests for ics_agenda.datetime_utils."""

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from ics_agenda.datetime_utils import (
    DAY_WINDOW_SPAN,
    date_key,
    day_window,
    ensure_timezone_aware,
    event_duration,
    falls_on_day,
    parse_target_day,
    utc_offset_minutes,
)

pytestmark = [pytest.mark.unit, pytest.mark.fast]

UTC = ZoneInfo("UTC")
NEW_YORK = ZoneInfo("America/New_York")
TOKYO = ZoneInfo("Asia/Tokyo")


class TestDayWindow:
    def test_window_spans_midnight_to_last_minute(self) -> None:
        window = day_window(date(2024, 1, 8), NEW_YORK)

        assert window.range_start == datetime(2024, 1, 8, 0, 0, tzinfo=NEW_YORK)
        assert window.range_end == datetime(2024, 1, 8, 23, 59, tzinfo=NEW_YORK)
        assert DAY_WINDOW_SPAN == timedelta(minutes=1439)

    def test_window_accepts_string_day(self) -> None:
        assert day_window("2024-01-08", UTC).day == date(2024, 1, 8)

    def test_contains_is_closed(self) -> None:
        window = day_window(date(2024, 1, 8), UTC)

        assert window.contains(window.range_start)
        assert window.contains(window.range_end)
        assert not window.contains(datetime(2024, 1, 9, 0, 0, tzinfo=UTC))

    def test_overlaps_interval_touching_start(self) -> None:
        window = day_window(date(2024, 1, 8), UTC)

        assert window.overlaps(
            datetime(2024, 1, 7, 23, 0, tzinfo=UTC), datetime(2024, 1, 8, 0, 0, tzinfo=UTC)
        )
        assert not window.overlaps(
            datetime(2024, 1, 7, 22, 0, tzinfo=UTC), datetime(2024, 1, 7, 23, 59, tzinfo=UTC)
        )


class TestDateKey:
    def test_datetime_uses_its_own_date(self) -> None:
        """08:00 Tokyo on the 9th is still keyed as the 9th."""
        assert date_key(datetime(2024, 1, 9, 8, 0, tzinfo=TOKYO)) == "2024-01-09"

    def test_date_value(self) -> None:
        assert date_key(date(2024, 2, 29)) == "2024-02-29"


class TestParseTargetDay:
    def test_parses_iso_day(self) -> None:
        assert parse_target_day(" 2024-01-08 ") == date(2024, 1, 8)

    def test_datetime_is_truncated(self) -> None:
        assert parse_target_day(datetime(2024, 1, 8, 15, 30)) == date(2024, 1, 8)

    @pytest.mark.parametrize("value", ["2024-13-01", "08/01/2024", "tomorrow"])
    def test_invalid_day_raises_value_error(self, value: str) -> None:
        with pytest.raises(ValueError):
            parse_target_day(value)


def test_ensure_timezone_aware_only_touches_naive_values() -> None:
    naive = datetime(2024, 1, 8, 9, 0)
    aware = datetime(2024, 1, 8, 9, 0, tzinfo=TOKYO)

    assert ensure_timezone_aware(naive, UTC).tzinfo == UTC
    assert ensure_timezone_aware(aware, UTC) is aware


def test_event_duration() -> None:
    start = datetime(2024, 1, 8, 9, 0, tzinfo=UTC)

    assert event_duration(start, start + timedelta(minutes=45)) == timedelta(minutes=45)


def test_falls_on_day_converts_to_local_zone() -> None:
    instant = datetime(2024, 1, 9, 3, 0, tzinfo=UTC)

    assert falls_on_day(instant, date(2024, 1, 8), NEW_YORK)
    assert falls_on_day(instant, date(2024, 1, 9), UTC)


def test_utc_offset_minutes_follows_dst() -> None:
    assert utc_offset_minutes(datetime(2024, 1, 8, 12, 0, tzinfo=UTC), NEW_YORK) == -300
    assert utc_offset_minutes(datetime(2024, 7, 8, 12, 0, tzinfo=UTC), NEW_YORK) == -240
    assert utc_offset_minutes(datetime(2024, 7, 8, 12, 0, tzinfo=UTC), ZoneInfo("Asia/Kolkata")) == 330
