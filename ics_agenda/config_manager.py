"""Configuration management for ics_agenda."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

from .agenda_exceptions import AgendaConfigError
from .agenda_models import CalendarSource
from .occurrence_resolver import DEFAULT_RECURRENCE_MARKER

logger = logging.getLogger(__name__)


class AgendaSettings(BaseModel):
    """Typed settings for building a day agenda."""

    local_timezone: Optional[str] = Field(
        default=None, description="IANA zone of the observer; host zone when unset"
    )
    recurrence_marker: str = Field(
        default=DEFAULT_RECURRENCE_MARKER, description="Suffix for rule-generated summaries"
    )
    calendars: list[CalendarSource] = Field(default_factory=list)
    log_level: str = Field(default="INFO")


def parse_calendar_specs(raw: str) -> list[CalendarSource]:
    """Parse ``Name=path;Name=path`` into calendar sources.

    Raises:
        AgendaConfigError: If an entry has no ``=`` or an empty name or path
    """
    sources = []
    for entry in raw.split(";"):
        entry = entry.strip()
        if not entry:
            continue
        if "=" not in entry:
            raise AgendaConfigError(f"Calendar entry {entry!r} must look like NAME=PATH")
        name, path = (part.strip() for part in entry.split("=", 1))
        if not name or not path:
            raise AgendaConfigError(f"Calendar entry {entry!r} must look like NAME=PATH")
        sources.append(CalendarSource(name=name, path=path))
    return sources


class ConfigManager:
    """Manages agenda configuration from environment variables and .env files."""

    def __init__(self, env_file_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            env_file_path: Optional path to .env file (defaults to .env in current directory)
        """
        self.env_file_path = env_file_path or Path.cwd() / ".env"

    def load_env_file(self) -> list[str]:
        """Load .env file and set environment variables.

        Only sets variables that are not already in the environment.

        Returns:
            List of environment variable keys that were loaded from .env file
        """
        if not self.env_file_path.exists():
            logger.debug("No .env file found at %s", self.env_file_path)
            return []

        set_keys = []
        try:
            content = self.env_file_path.read_text(encoding="utf-8")
        except OSError:
            logger.debug("Failed to read .env file (continuing): %s", self.env_file_path, exc_info=True)
            return []

        for raw_line in content.splitlines():
            line = raw_line.strip()

            # Skip empty lines and comments
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, val = line.split("=", 1)
            key = key.strip()
            val = val.strip().strip('"').strip("'")

            if key and key not in os.environ:
                os.environ[key] = val
                set_keys.append(key)

        if set_keys:
            logger.debug("Loaded .env defaults for keys: %s", ", ".join(set_keys))
        return set_keys

    def build_config_from_env(self) -> dict[str, Any]:
        """Build configuration dictionary from environment variables.

        Recognizes:
        - ICS_AGENDA_LOCAL_TIMEZONE -> 'local_timezone'
        - ICS_AGENDA_RECURRENCE_MARKER -> 'recurrence_marker'
        - ICS_AGENDA_CALENDARS -> 'calendars' (NAME=PATH;NAME=PATH)
        - ICS_AGENDA_LOG_LEVEL -> 'log_level'

        Returns:
            Configuration dictionary
        """
        cfg: dict[str, Any] = {}

        local_tz = os.environ.get("ICS_AGENDA_LOCAL_TIMEZONE")
        if local_tz:
            cfg["local_timezone"] = local_tz

        marker = os.environ.get("ICS_AGENDA_RECURRENCE_MARKER")
        if marker:
            cfg["recurrence_marker"] = marker

        calendars = os.environ.get("ICS_AGENDA_CALENDARS")
        if calendars:
            cfg["calendars"] = parse_calendar_specs(calendars)

        log_level = os.environ.get("ICS_AGENDA_LOG_LEVEL", "").upper()
        if log_level:
            if log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
                cfg["log_level"] = log_level
            else:
                logger.warning("Invalid ICS_AGENDA_LOG_LEVEL=%r; ignoring", log_level)

        return cfg

    def load_settings(self) -> AgendaSettings:
        """Load .env file and build typed settings from the environment.

        This is the main entry point for loading configuration.
        """
        self.load_env_file()
        return AgendaSettings(**self.build_config_from_env())

