"""Shared fixtures for ics_agenda tests."""

from collections.abc import Generator
from datetime import datetime, tzinfo
from typing import Any
from zoneinfo import ZoneInfo

import pytest

from ics_agenda.agenda_models import ParsedEvent
from ics_agenda.rrule_evaluator import DateutilRecurrenceRule

UTC = ZoneInfo("UTC")


def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
    config.addinivalue_line("markers", "fast: Tests that finish in milliseconds")
    config.addinivalue_line("markers", "integration: Parser-to-resolver tests")


@pytest.fixture(autouse=True)
def clean_agenda_environment(monkeypatch: Any) -> Generator[None, Any, None]:
    """Ensure ICS_AGENDA_* variables never leak into or out of tests."""
    for key in (
        "ICS_AGENDA_LOCAL_TIMEZONE",
        "ICS_AGENDA_RECURRENCE_MARKER",
        "ICS_AGENDA_CALENDARS",
        "ICS_AGENDA_LOG_LEVEL",
        "ICS_AGENDA_DEBUG",
    ):
        # setenv first so teardown also removes values a .env load sets later
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    yield


@pytest.fixture
def utc_tz() -> tzinfo:
    """Observer zone with no offset and no DST."""
    return UTC


@pytest.fixture
def new_york_tz() -> tzinfo:
    """Observer zone with a DST transition on 2024-03-10."""
    return ZoneInfo("America/New_York")


@pytest.fixture
def standup_series() -> ParsedEvent:
    """Weekly 09:00-09:30 UTC series starting Monday 2024-01-01."""
    start = datetime(2024, 1, 1, 9, 0, tzinfo=UTC)
    return ParsedEvent(
        uid="standup@example.com",
        summary="Standup",
        description="Daily sync",
        location="Room 4",
        start=start,
        end=datetime(2024, 1, 1, 9, 30, tzinfo=UTC),
        recurrence_rule=DateutilRecurrenceRule(rrule_text="FREQ=WEEKLY", dtstart=start),
    )


@pytest.fixture
def sample_ics_recurring() -> str:
    """
    Return an ICS feed with a weekly series, an override, an exception and a task.

    - "Standup" weekly from Monday 2024-01-01 09:00-09:30 UTC
    - 2024-01-08 instance moved to 10:00-10:15 via RECURRENCE-ID
    - 2024-01-15 instance cancelled via EXDATE
    - "Dentist" single event on 2024-01-08 14:00 UTC
    - A VTODO that must never reach the agenda
    """
    return """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//ics_agenda test//EN
CALSCALE:GREGORIAN
BEGIN:VEVENT
UID:standup@example.com
DTSTAMP:20231220T120000Z
DTSTART:20240101T090000Z
DTEND:20240101T093000Z
RRULE:FREQ=WEEKLY
EXDATE:20240115T090000Z
SUMMARY:Standup
LOCATION:Room 4
END:VEVENT
BEGIN:VEVENT
UID:standup@example.com
DTSTAMP:20231220T120000Z
RECURRENCE-ID:20240108T090000Z
DTSTART:20240108T100000Z
DTEND:20240108T101500Z
SUMMARY:Standup (moved)
END:VEVENT
BEGIN:VEVENT
UID:dentist@example.com
DTSTAMP:20231220T120000Z
DTSTART:20240108T140000Z
DTEND:20240108T150000Z
SUMMARY:Dentist
LOCATION:Main St
END:VEVENT
BEGIN:VTODO
UID:todo@example.com
DTSTAMP:20231220T120000Z
DTSTART:20240108T080000Z
SUMMARY:File taxes
END:VTODO
END:VCALENDAR
"""


@pytest.fixture
def sample_ics_tzid() -> str:
    """Return an ICS feed with a weekly Tuesday series declared in America/New_York."""
    return """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//ics_agenda test//EN
BEGIN:VEVENT
UID:review@example.com
DTSTAMP:20231220T120000Z
DTSTART;TZID=America/New_York:20240102T090000
DTEND;TZID=America/New_York:20240102T100000
RRULE:FREQ=WEEKLY;BYDAY=TU
SUMMARY:Review
END:VEVENT
END:VCALENDAR
"""
