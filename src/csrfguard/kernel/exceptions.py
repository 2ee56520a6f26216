"""Unified exception hierarchy for csrfguard.

All library exceptions inherit from CsrfGuardException, enabling unified
error handling across modules.

Categories:
- SecurityException: Rejected CSRF tokens and rejected requests
- InfrastructureException: Token storage and entropy failures
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class CsrfGuardException(Exception):
    """Base exception for all csrfguard errors.

    Carries an optional error code and context dict for structured error data.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "CSRF_TOKEN_INVALID").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    default_code: str | None = None

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code if code is not None else self.default_code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Security Exceptions
# =============================================================================


class SecurityException(CsrfGuardException):
    """Request forgery protection errors."""


class InvalidCsrfTokenException(SecurityException):
    """The request carried no CSRF token, or the token did not validate.

    Raised by ``CsrfHandler.validate_request(throw=True)`` so that the caller
    decides how to respond.
    """

    default_code = "CSRF_TOKEN_INVALID"


class RequestRejectedException(SecurityException):
    """Terminal rejection of a request that failed CSRF validation.

    Raised by the handler's default reject action. The web layer renders it
    as a ``400 Bad Request`` and does not run any application logic.
    """

    default_code = "CSRF_REQUEST_REJECTED"
    status_code: int = 400


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(CsrfGuardException):
    """Infrastructure failures: storage medium, randomness source."""


class TokenStorageException(InfrastructureException):
    """The CSRF secret could not be persisted or loaded.

    Typical causes are writing a cookie after the response headers have been
    committed, or using session storage without an active session.
    """

    default_code = "CSRF_STORAGE_ERROR"


class EntropyException(InfrastructureException):
    """The random source could not provide cryptographically strong bytes."""

    default_code = "CSRF_ENTROPY_ERROR"
