"""
Custom exceptions for the Reverso client library.
"""

from typing import Optional


class ReversoError(Exception):
    """Base exception for Reverso client errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ConfigurationError(ReversoError):
    """Raised when client configuration or credentials are invalid."""
    pass


ValidationError = ConfigurationError


class TransportError(ReversoError):
    """Raised when no HTTP response was received.

    Attributes:
        should_retry: True if the failure is transient (connection refused,
            DNS, TLS, timeout) and the request may be attempted again.
    """

    def __init__(self, message: str, should_retry: bool = True):
        super().__init__(message)
        self.should_retry = should_retry


class BadRequestError(ReversoError):
    """Raised on HTTP 400."""
    pass


class AuthorizationError(ReversoError):
    """Raised on HTTP 403, usually wrong username or password."""
    pass


class NotFoundError(ReversoError):
    """Raised on HTTP 404."""
    pass


class TooManyRequestsError(ReversoError):
    """Raised on HTTP 429 once retries are exhausted."""
    pass


class ServiceUnavailableError(ReversoError):
    """Raised on HTTP 503 once retries are exhausted."""
    pass


class UnknownStatusError(ReversoError):
    """Raised on any other non-success status code."""
    pass


class InvalidContentError(ReversoError):
    """Raised when a response body that must be JSON cannot be decoded."""
    pass


class RequestCancelledError(ReversoError):
    """Raised when a call is cancelled before or between attempts."""
    pass
