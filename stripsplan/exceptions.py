# Error taxonomy shared by argument parsing, encoding and the planners

from typing import Any, Dict, Optional


class PlannerError(Exception):
    """
    Base class for every failure surfaced by stripsplan.

    Carries an optional context dict that is appended to the message, so a log
    line shows which file or flag was involved.
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} ({details})"


class ConfigurationError(PlannerError):
    """Malformed or incomplete planner arguments."""


class EncodingError(PlannerError):
    """The domain or problem could not be turned into an encoded problem."""


class FileError(EncodingError):
    """A domain or problem file is missing or unreadable."""
