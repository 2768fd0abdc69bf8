"""Approval workflow errors.

Raised inside orchestrator operations and converted to OperationResult at
the operation boundary; they never reach callers as exceptions.
"""

from enum import Enum


class ErrorKind(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    VALIDATION_ERROR = "validation_error"
    INVALID_STATE = "invalid_state"
    PARTIAL_UPDATE = "partial_update"
    UNEXPECTED = "unexpected"


class ApprovalError(Exception):
    """Base exception for approval workflow errors."""

    kind: ErrorKind = ErrorKind.UNEXPECTED

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthenticated(ApprovalError):
    """No session, or the session token is invalid/expired."""

    kind = ErrorKind.UNAUTHENTICATED


class Unauthorized(ApprovalError):
    """Authenticated actor lacks the required role or is inactive."""

    kind = ErrorKind.UNAUTHORIZED


class NotFound(ApprovalError):
    kind = ErrorKind.NOT_FOUND


class ValidationFailed(ApprovalError):
    """Input rejected (blank reason, missing consent, unknown decision)."""

    kind = ErrorKind.VALIDATION_ERROR


class InvalidState(ApprovalError):
    """Entity is not in a state that permits the transition (or lost a race)."""

    kind = ErrorKind.INVALID_STATE


class PartialUpdate(ApprovalError):
    """Mirror write failed; the whole transaction was rolled back."""

    kind = ErrorKind.PARTIAL_UPDATE


class UpstreamFailure(ApprovalError):
    """An external dependency (recommender, identity provider) failed."""

    kind = ErrorKind.UNEXPECTED
