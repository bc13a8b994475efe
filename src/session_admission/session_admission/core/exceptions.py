from __future__ import annotations

from typing import Optional

from .enums import AttendanceStatus


class DomainError(Exception):
    """Base exception for business rule violations."""

    retryable = False


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when a principal lacks permission for an owner-only action.

    The message is deliberately generic so it never reveals whether the
    target session exists.
    """


class NotFoundError(DomainError):
    """Raised when a session does not exist."""


class ExpiredOrInvalidTokenError(DomainError):
    """Raised when a presented scan token is unknown, rotated away or expired."""


class SessionInactiveError(ExpiredOrInvalidTokenError):
    """Raised when the token resolves to a session its owner switched off."""


class AlreadyRecordedError(DomainError):
    """Raised when the student already has an attendance row for the session."""

    def __init__(self, message: str, *, prior_status: Optional[AttendanceStatus] = None):
        super().__init__(message)
        self.prior_status = prior_status


class TransientStoreError(DomainError):
    """Raised when the store is unavailable or timed out. Safe for callers to retry."""

    retryable = True
