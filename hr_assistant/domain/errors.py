"""Domain layer: error taxonomy shared by the engine, sessions and transport."""
from typing import Optional


class HRAssistantError(Exception):
    """Base class for every error this service raises on purpose."""

    status_code: int = 500

    def __init__(self, message: str, *, detail: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}


class SlotValidationError(HRAssistantError):
    """A required slot is missing or has the wrong shape."""

    status_code = 400


class NotFoundError(HRAssistantError):
    """Unknown employee, team, session or command."""

    status_code = 404


class ConflictError(HRAssistantError):
    """Duplicate hire, double termination, outstanding pending command."""

    status_code = 409


class ExternalServiceError(HRAssistantError):
    """The slot extractor failed, timed out or answered with garbage."""

    status_code = 502


class InternalFault(HRAssistantError):
    """Unexpected failure while executing a command."""

    status_code = 500
