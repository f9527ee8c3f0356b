"""Command-line entry for ics_agenda.

Prints the checklist of a day's events from one or more local ICS files.
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime

from .agenda_builder import build_day_agenda
from .agenda_exceptions import AgendaConfigError, TimezoneResolutionError
from .agenda_logging import configure_agenda_logging
from .config_manager import AgendaSettings, ConfigManager, parse_calendar_specs
from .datetime_utils import parse_target_day
from .timezone_utils import get_local_timezone


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for ics_agenda CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="ics_agenda",
        description="Print the events of one day from ICS calendar files as a checklist",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m ics_agenda --calendar Work=work.ics                   # Today's agenda
  python -m ics_agenda --day 2024-01-08 --calendar Work=work.ics  # A specific day
  ICS_AGENDA_CALENDARS="Work=work.ics;Home=home.ics" python -m ics_agenda
        """,
    )

    parser.add_argument(
        "--day",
        metavar="YYYY-MM-DD",
        help="Day to resolve (default: today in the local timezone)",
    )
    parser.add_argument(
        "--timezone",
        metavar="ZONE",
        help="Observer timezone (default: ICS_AGENDA_LOCAL_TIMEZONE, then the host zone)",
    )
    parser.add_argument(
        "--calendar",
        action="append",
        default=[],
        metavar="NAME=PATH",
        help="Calendar file to include; may be repeated (default: ICS_AGENDA_CALENDARS)",
    )
    parser.add_argument(
        "--marker",
        help="Suffix for recurring instances (default: ICS_AGENDA_RECURRENCE_MARKER or '(recurring)')",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the ics_agenda CLI.

    Returns:
        Process exit code
    """
    args = _create_parser().parse_args(argv)

    # .env may carry ICS_AGENDA_DEBUG / ICS_AGENDA_LOG_LEVEL
    config_manager = ConfigManager()
    config_manager.load_env_file()
    configure_agenda_logging(debug_mode=args.debug)

    try:
        settings = AgendaSettings(**config_manager.build_config_from_env())
        local_tz = get_local_timezone(args.timezone or settings.local_timezone)

        sources = parse_calendar_specs(";".join(args.calendar)) if args.calendar else settings.calendars
        if not sources:
            raise AgendaConfigError("No calendars configured; pass --calendar NAME=PATH")

        day = parse_target_day(args.day) if args.day else datetime.now(local_tz).date()
        marker = args.marker or settings.recurrence_marker
    except (AgendaConfigError, TimezoneResolutionError, ValueError) as e:
        print(f"ics_agenda: {e}", file=sys.stderr)
        return 1

    agenda = build_day_agenda(sources, day, local_tz, recurrence_marker=marker)
    if agenda:
        print(agenda)
    return 0


if __name__ == "__main__":
    sys.exit(main())
