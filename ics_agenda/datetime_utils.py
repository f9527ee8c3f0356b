"""Date and duration helpers shared by the resolver and the offset corrector."""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Union

logger = logging.getLogger(__name__)

# A day is modelled as 1440 minutes with a closed interval, so the window
# ends on the last minute of the day rather than the following midnight.
MINUTES_PER_DAY = 1440
DAY_WINDOW_SPAN = timedelta(minutes=MINUTES_PER_DAY - 1)

DATE_KEY_FORMAT = "%Y-%m-%d"


@dataclass(frozen=True)
class DayWindow:
    """Closed interval covering one local calendar day at minute granularity."""

    day: date
    range_start: datetime
    range_end: datetime

    def contains(self, instant: datetime) -> bool:
        """Check if an instant lies inside the window, bounds included."""
        return self.range_start <= instant <= self.range_end

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Check if an interval touches the window."""
        return not (end < self.range_start or start > self.range_end)


def date_key(instant: Union[date, datetime]) -> str:
    """Truncate an instant to its YYYY-MM-DD date key.

    Uses the instant's own calendar date; the value is not re-localized.
    """
    if isinstance(instant, datetime):
        instant = instant.date()
    return instant.strftime(DATE_KEY_FORMAT)


def parse_target_day(value: Union[str, date]) -> date:
    """Parse a target day given as YYYY-MM-DD.

    Raises:
        ValueError: If the string is not a calendar date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(value.strip(), DATE_KEY_FORMAT).date()


def ensure_timezone_aware(dt: datetime, tz: tzinfo) -> datetime:
    """Attach ``tz`` to naive datetimes; aware values are returned unchanged."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt


def day_window(day: Union[str, date], tz: tzinfo) -> DayWindow:
    """Build the closed window for a local calendar day.

    Args:
        day: Target day
        tz: Observer's local zone

    Returns:
        Window from local midnight through 23:59 of that day
    """
    target = parse_target_day(day)
    range_start = datetime(target.year, target.month, target.day, tzinfo=tz)
    return DayWindow(day=target, range_start=range_start, range_end=range_start + DAY_WINDOW_SPAN)


def event_duration(start: datetime, end: datetime) -> timedelta:
    """Elapsed time between two instants."""
    return end - start


def falls_on_day(instant: datetime, day: date, tz: tzinfo) -> bool:
    """Check if an instant has the same local year/month/day as ``day``."""
    local = ensure_timezone_aware(instant, tz).astimezone(tz)
    return local.date() == day


def utc_offset_minutes(instant: datetime, tz: tzinfo) -> float:
    """UTC offset of ``tz`` at ``instant`` in minutes east of UTC."""
    offset = ensure_timezone_aware(instant, tz).astimezone(tz).utcoffset()
    if offset is None:
        return 0.0
    return offset.total_seconds() / 60
