"""
Reverso API client library.

Signs every request with the Created/Username/Signature headers expected by
the Reverso translation API and retries transient failures with
exponential backoff.

Example usage:
    from reverso_client import ReversoClient

    with ReversoClient("https://api.example.com", "user", "password") as client:
        status, content = client.get("/v1/GetAllTranslationDirections")
"""

from .auth import (
    AppInfo,
    SignatureAuthenticator,
    SignedHeaders,
    construct_user_agent,
    format_created,
    sign
)
from .classifier import classify, message_suffix
from .client import ReversoClient
from .constants import (
    HEADER_CREATED,
    HEADER_USERNAME,
    HEADER_SIGNATURE,
    DEFAULT_CONFIG,
    VERSION
)
from .exceptions import (
    ReversoError,
    ConfigurationError,
    ValidationError,
    TransportError,
    BadRequestError,
    AuthorizationError,
    NotFoundError,
    TooManyRequestsError,
    ServiceUnavailableError,
    UnknownStatusError,
    InvalidContentError,
    RequestCancelledError
)
from .executor import RequestExecutor
from .retry import RetryPolicy

__version__ = VERSION
__all__ = [
    "ReversoClient",
    "RequestExecutor",
    "RetryPolicy",
    "SignatureAuthenticator",
    "SignedHeaders",
    "AppInfo",
    "construct_user_agent",
    "format_created",
    "sign",
    "classify",
    "message_suffix",
    "ReversoError",
    "ConfigurationError",
    "ValidationError",
    "TransportError",
    "BadRequestError",
    "AuthorizationError",
    "NotFoundError",
    "TooManyRequestsError",
    "ServiceUnavailableError",
    "UnknownStatusError",
    "InvalidContentError",
    "RequestCancelledError",
    "HEADER_CREATED",
    "HEADER_USERNAME",
    "HEADER_SIGNATURE",
    "DEFAULT_CONFIG",
    "VERSION"
]
