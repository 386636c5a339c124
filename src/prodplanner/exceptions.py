"""Exceptions raised by the planner."""

from typing import Optional


class PlannerError(Exception):
    """Base class for planner errors."""

    pass


class DataSourceError(PlannerError):
    """Raised when planning inputs cannot be fetched.

    A run that hits this error produces no schedule; nothing is written.
    """

    def __init__(self, what: str, cause: Optional[Exception] = None):
        self.what = what
        self.cause = cause
        message = f"Failed to fetch {what}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class InputFormatError(DataSourceError):
    """Raised when exported planning data is malformed."""

    pass


class ScheduleWriteError(PlannerError):
    """Raised when the schedule writer cannot persist a plan."""

    pass
