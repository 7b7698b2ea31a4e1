"""Exceptions raised by the scheduling engine."""

from typing import Optional


class SchedulingError(Exception):
    """Base class for scheduling engine errors."""


class GenerativeAssistError(SchedulingError):
    """The generative assist could not produce a usable answer."""


class MalformedAssistOutput(GenerativeAssistError):
    """Model output is not JSON or violates the contract for its action."""


class UnparseableRequest(MalformedAssistOutput):
    """Every structured parse attempt failed validation."""

    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts


class AssistUnavailable(GenerativeAssistError):
    """The model call timed out or the transport failed."""


class StaleOrInvalidConfirmation(SchedulingError):
    """A confirmed proposal no longer holds a valid payload."""


class MaterializationFailure(SchedulingError):
    """The task writer rejected a confirmed task."""

    def __init__(self, title: str, reason: Optional[str] = None):
        self.title = title
        self.reason = reason or "unknown error"
        super().__init__(f"Failed to create task '{title}': {self.reason}")
