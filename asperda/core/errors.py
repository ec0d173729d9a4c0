from __future__ import annotations

from typing import Any


PERMISSION_DENIED_CODE = "42501"
UNDEFINED_TABLE_CODE = "42P01"
UNIQUE_VIOLATION_CODE = "23505"
INTEGRITY_VIOLATION_CODE = "23000"

_PERMISSION_DENIED_MESSAGE = "Access denied. Contact the system administrator."


class AsperdaError(Exception):
    """Base error for the ASPERDA core."""

    code = "ASPERDA_ERROR"
    default_message = "Request failed"

    def __init__(self, message: str | None = None, **details: Any) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class Unauthenticated(AsperdaError):
    """No valid session; the caller has to log in again."""

    code = "AUTH_UNAUTHENTICATED"
    default_message = "Session is missing or expired. Please log in again."


class InvalidCredentials(Unauthenticated):
    """Login rejected for the supplied email and password."""

    code = "AUTH_INVALID_CREDENTIALS"
    default_message = "Invalid email or password"


class AccessDenied(AsperdaError):
    """Authenticated, but the role or scope does not cover the resource."""

    code = "AUTH_FORBIDDEN"
    default_message = "Access denied"


class NotFound(AsperdaError):
    """Referenced entity is absent or outside the caller's scope."""

    code = "NOT_FOUND"
    default_message = "Record not found"


class ValidationError(AsperdaError):
    """Input rejected before reaching the persistence layer."""

    code = "VALIDATION_ERROR"
    default_message = "Invalid input"


class InvalidTransition(AsperdaError):
    """Attempted to leave a terminal state."""

    code = "INVALID_TRANSITION"
    default_message = "Record is already in a terminal state"


class ConflictError(AsperdaError):
    """Write rejected because of the current state of related rows."""

    code = "CONFLICT"
    default_message = "Request conflicts with current state"


class AlreadyProcessed(ConflictError):
    """Another reviewer finished the transition first."""

    code = "ALREADY_PROCESSED"
    default_message = "Record was already processed"


class UpstreamFailure(AsperdaError):
    """Persistence, auth or storage collaborator failure."""

    code = "UPSTREAM_FAILURE"
    default_message = "Upstream service failed. Please retry."

    def __init__(self, message: str | None = None, *, upstream_code: str | None = None, **details: Any) -> None:
        super().__init__(message, **details)
        self.upstream_code = upstream_code

    @property
    def is_permission_denied(self) -> bool:
        return self.upstream_code == PERMISSION_DENIED_CODE or "permission denied" in self.message.lower()

    @property
    def is_unique_violation(self) -> bool:
        return self.upstream_code == UNIQUE_VIOLATION_CODE

    @property
    def is_missing_table(self) -> bool:
        return self.upstream_code == UNDEFINED_TABLE_CODE


class PartialFailure(AsperdaError):
    """Approval wrote the global entry but could not mark the report approved."""

    code = "PARTIAL_FAILURE"
    default_message = "Global blacklist entry created but report status update failed"

    def __init__(self, *, report_id: str, global_entry_id: str, cause: str | None = None) -> None:
        super().__init__(
            None,
            report_id=report_id,
            global_entry_id=global_entry_id,
            global_entry_created=True,
            cause=cause,
        )
        self.report_id = report_id
        self.global_entry_id = global_entry_id


def user_message(exc: AsperdaError) -> str:
    # Permission-denied upstream codes read as an access problem, not a retryable outage.
    if isinstance(exc, UpstreamFailure) and exc.is_permission_denied:
        return _PERMISSION_DENIED_MESSAGE
    return exc.message
