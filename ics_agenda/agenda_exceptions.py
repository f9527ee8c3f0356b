"""Custom exception hierarchy for ics_agenda.

Per-component errors (malformed components, failing recurrence rules) are
isolated by the resolver and reported as diagnostics. Environment errors
(an unresolvable local timezone) propagate to the caller.
"""


class AgendaError(Exception):
    """Base exception for all ics_agenda errors."""


class MalformedComponentError(AgendaError):
    """A calendar component cannot be resolved.

    Raised when:
    - The component has no usable start instant
    - The component ends before it starts

    The resolver skips the component and records a diagnostic instead of
    aborting the whole day.
    """

    def __init__(self, message: str, uid: str | None = None):
        super().__init__(message)
        self.uid = uid


class RuleEvaluationError(AgendaError):
    """The recurrence rule evaluator failed or returned an invalid result.

    Only the recurrence expansion of the offending component is skipped.
    """

    def __init__(self, message: str, uid: str | None = None):
        super().__init__(message)
        self.uid = uid


class TimezoneResolutionError(AgendaError):
    """A timezone could not be determined.

    Raised when:
    - The observer's local zone cannot be resolved
    - A configured or rule-declared zone name is unknown

    This indicates a broken execution environment or configuration, not bad
    feed data, and is never swallowed.
    """


class ICSParseError(AgendaError):
    """ICS feed text could not be parsed into calendar components."""


class AgendaConfigError(AgendaError):
    """Configuration values are missing or invalid."""
