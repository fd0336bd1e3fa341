"""
Custom exceptions and error kinds for the application.
"""
from enum import Enum


class EasyEnglishException(Exception):
    """Base exception for all EasyEnglish application exceptions."""
    pass


class ValidationError(EasyEnglishException):
    """Raised when validation fails."""
    pass


class NotFoundError(EasyEnglishException):
    """Raised when a requested resource is not found."""
    pass


class ConflictError(EasyEnglishException):
    """Raised when there's a conflict (e.g., duplicate entry)."""
    pass


class AuthenticationError(EasyEnglishException):
    """Raised when authentication fails."""
    pass


class AuthorizationError(EasyEnglishException):
    """Raised when authorization fails (e.g., inactive subscription)."""
    pass


class ServiceUnavailableError(EasyEnglishException):
    """Raised when a required external service is not configured."""
    pass


class ErrorKind(str, Enum):
    """
    Failure categories returned by external-service wrappers.

    Services never raise these; they are carried on result objects so callers
    branch on them explicitly.
    """
    NOT_CONFIGURED = "not_configured"
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    UPSTREAM = "upstream"
    NOT_FOUND = "not_found"
    EMPTY_RESPONSE = "empty_response"


# Kinds worth retrying with backoff; anything else fails fast
RETRYABLE_KINDS = frozenset({ErrorKind.RATE_LIMITED, ErrorKind.TIMEOUT})
