"""Timezone detection and lookup utilities for ics_agenda."""

from __future__ import annotations

import datetime
import logging
import os
import zoneinfo
from typing import ClassVar, Optional

from dateutil import tz as dateutil_tz

from .agenda_exceptions import TimezoneResolutionError

logger = logging.getLogger(__name__)


class TimezoneDetector:
    """Resolves the observer's local zone and rule-declared zone names."""

    # Windows timezone names to IANA identifier mapping
    # Common Windows timezones used in ICS files from Outlook/Exchange
    WINDOWS_TZ_MAP: ClassVar[dict[str, str]] = {
        # US Timezones
        "Pacific Standard Time": "America/Los_Angeles",
        "Mountain Standard Time": "America/Denver",
        "Central Standard Time": "America/Chicago",
        "Eastern Standard Time": "America/New_York",
        "Alaskan Standard Time": "America/Anchorage",
        "Hawaiian Standard Time": "Pacific/Honolulu",
        "US Mountain Standard Time": "America/Phoenix",
        "Atlantic Standard Time": "America/Halifax",
        # Europe
        "GMT Standard Time": "Europe/London",
        "Central European Standard Time": "Europe/Warsaw",
        "W. Europe Standard Time": "Europe/Berlin",
        "Romance Standard Time": "Europe/Paris",
        "E. Europe Standard Time": "Europe/Chisinau",
        "FLE Standard Time": "Europe/Kiev",
        "Russian Standard Time": "Europe/Moscow",
        # Asia & Pacific
        "China Standard Time": "Asia/Shanghai",
        "Tokyo Standard Time": "Asia/Tokyo",
        "India Standard Time": "Asia/Kolkata",
        "Singapore Standard Time": "Asia/Singapore",
        "AUS Eastern Standard Time": "Australia/Sydney",
        "New Zealand Standard Time": "Pacific/Auckland",
        # Americas (South America)
        "E. South America Standard Time": "America/Sao_Paulo",
        "Argentina Standard Time": "America/Argentina/Buenos_Aires",
    }

    # Obsolete names still emitted by older calendar software
    TZ_ALIAS_MAP: ClassVar[dict[str, str]] = {
        "US/Pacific": "America/Los_Angeles",
        "US/Mountain": "America/Denver",
        "US/Central": "America/Chicago",
        "US/Eastern": "America/New_York",
        "GMT": "UTC",
        "Etc/UTC": "UTC",
        "Etc/GMT": "UTC",
        "Z": "UTC",
    }

    def resolve_zone(self, name: str) -> datetime.tzinfo:
        """Look up a zone by IANA, Windows or alias name.

        Args:
            name: Zone identifier as found in a TZID parameter or configuration

        Returns:
            tzinfo for the zone

        Raises:
            TimezoneResolutionError: If the name is empty or unknown
        """
        cleaned = (name or "").strip().strip('"')
        if not cleaned:
            raise TimezoneResolutionError("Empty timezone name")

        candidate = self.WINDOWS_TZ_MAP.get(cleaned) or self.TZ_ALIAS_MAP.get(cleaned) or cleaned
        try:
            return zoneinfo.ZoneInfo(candidate)
        except (zoneinfo.ZoneInfoNotFoundError, ValueError) as e:
            raise TimezoneResolutionError(f"Unknown timezone {name!r}") from e

    def get_local_timezone(self, configured: Optional[str] = None) -> datetime.tzinfo:
        """Get the observer's local zone.

        Resolution order: explicitly configured name, the TZ environment
        variable, then the host zone. There is no fallback zone: a host whose
        zone cannot be determined is a configuration error.

        Args:
            configured: Optional zone name from settings or the command line

        Returns:
            tzinfo for the observer's zone

        Raises:
            TimezoneResolutionError: If no zone can be determined
        """
        if configured:
            return self.resolve_zone(configured)

        tz_env = os.environ.get("TZ", "").strip().lstrip(":")
        if tz_env:
            try:
                return self.resolve_zone(tz_env)
            except TimezoneResolutionError:
                # POSIX TZ strings such as "EST5EDT,M3.2.0,M11.1.0" are not IANA names
                posix_zone = dateutil_tz.gettz(tz_env)
                if posix_zone is None:
                    raise
                logger.debug("Using POSIX TZ rule %r for local zone", tz_env)
                return posix_zone

        host_zone = dateutil_tz.gettz()
        if host_zone is None:
            raise TimezoneResolutionError("Could not determine the local timezone")
        return host_zone


# Singleton instance for global use
_detector = TimezoneDetector()


def get_local_timezone(configured: Optional[str] = None) -> datetime.tzinfo:
    """Get the observer's local zone (convenience function).

    Args:
        configured: Optional zone name overriding host detection

    Returns:
        tzinfo for the observer's zone
    """
    return _detector.get_local_timezone(configured)


def resolve_zone(name: str) -> datetime.tzinfo:
    """Look up a zone by name (convenience function)."""
    return _detector.resolve_zone(name)


def windows_tz_to_iana(windows_tz: str) -> str | None:
    """Convert Windows timezone name to IANA timezone identifier.

    Args:
        windows_tz: Windows timezone name (e.g., "Mountain Standard Time")

    Returns:
        IANA timezone identifier (e.g., "America/Denver") or None if not found
    """
    return _detector.WINDOWS_TZ_MAP.get(windows_tz)
