"""Domain errors raised by the survey services.

There are exactly three kinds. Anything else coming out of a service (for
example a ``DatabaseError``) is an internal failure and is left to propagate.
"""

from __future__ import annotations


class SurveyServiceError(Exception):
    pass


class NotFoundError(SurveyServiceError):
    """A referenced survey, question, link or response is missing or archived."""

    def __init__(self, resource: str, field: str, value) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(f"{resource} not found with {field}: '{value}'")


class ValidationError(SurveyServiceError):
    """Submitted data breaks a documented rule; the caller can fix the input."""


class ForbiddenError(SurveyServiceError):
    """The request is well formed but the survey's state does not allow it."""
