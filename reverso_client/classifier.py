"""
Mapping of completed HTTP responses onto the library's error taxonomy.

The classifier returns exception instances instead of raising them so the
request executor can decide whether to retry or surface the error.
"""

import json
from typing import Optional, Union

from .constants import (
    HTTP_BAD_REQUEST,
    HTTP_FORBIDDEN,
    HTTP_NOT_FOUND,
    HTTP_SERVICE_UNAVAILABLE,
    HTTP_TOO_MANY_REQUESTS,
)
from .exceptions import (
    AuthorizationError,
    BadRequestError,
    NotFoundError,
    ReversoError,
    ServiceUnavailableError,
    TooManyRequestsError,
    UnknownStatusError,
)

# status code -> (exception class, reason phrase)
_STATUS_MAP = {
    HTTP_FORBIDDEN: (AuthorizationError, "Authorization failure, check authentication key"),
    HTTP_NOT_FOUND: (NotFoundError, "Not found, check server_url"),
    HTTP_BAD_REQUEST: (BadRequestError, "Bad request"),
    HTTP_TOO_MANY_REQUESTS: (
        TooManyRequestsError,
        "Too many requests, Reverso servers are currently experiencing high load"
    ),
    HTTP_SERVICE_UNAVAILABLE: (ServiceUnavailableError, "Service unavailable"),
}


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 400


def _as_text(content: Union[bytes, str]) -> str:
    if isinstance(content, bytes):
        return content.decode('utf-8', errors='replace')
    return content


def message_suffix(content: Union[bytes, str]) -> str:
    """
    Build the diagnostic suffix for an error response body.

    Uses the JSON "message" and "detail" fields when the body is a JSON
    object, otherwise falls back to the raw body text.

    Args:
        content: Raw response body

    Returns:
        Suffix such as ", message: ..., detail: ..." or ", <raw body>"
    """
    text = _as_text(content)
    try:
        decoded = json.loads(text)
    except (ValueError, RecursionError):
        return f", {text}"

    if not isinstance(decoded, dict):
        return f", {text}"

    suffix = ''
    if decoded.get('message') is not None:
        suffix += f", message: {decoded['message']}"
    if decoded.get('detail') is not None:
        suffix += f", detail: {decoded['detail']}"
    return suffix


def classify(status_code: int, content: Union[bytes, str]) -> Optional[ReversoError]:
    """
    Classify a completed response.

    Args:
        status_code: HTTP status code
        content: Raw response body

    Returns:
        None for 2xx/3xx responses, otherwise an unraised ReversoError
        subclass instance carrying the status code
    """
    if is_success(status_code):
        return None

    suffix = message_suffix(content)
    entry = _STATUS_MAP.get(status_code)
    if entry is not None:
        error_class, reason = entry
        return error_class(f"{reason}{suffix}", status_code=status_code)

    return UnknownStatusError(
        f"Unexpected status code: {status_code}{suffix}",
        status_code=status_code
    )
