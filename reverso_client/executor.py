"""
Request execution with retries for the Reverso client library.

One call to RequestExecutor.execute is a logical call: it performs up to
max_retries + 1 physical HTTP attempts, sleeping between them as the retry
policy dictates, and either returns (status_code, content) or raises the
last classified error.
"""

import logging
import threading
import time
from typing import Any, Mapping, Optional, Tuple, Union

import requests

from .auth import SignedHeaders
from .classifier import classify
from .constants import DEFAULT_CONFIG
from .exceptions import RequestCancelledError, ReversoError, TransportError
from .retry import RetryPolicy

# No complete response was received; safe to attempt again
_TRANSIENT_ERRORS = (
    requests.ConnectionError,
    requests.Timeout,
    requests.exceptions.ChunkedEncodingError,
    requests.exceptions.ContentDecodingError,
)


class RequestExecutor:
    """
    Sends signed requests and retries transient failures.

    Holds no per-call state: the retry counter lives in each execute() call,
    so one executor can serve several threads at once.
    """

    def __init__(self, base_url: str, signed_headers: SignedHeaders,
                 timeout: float = DEFAULT_CONFIG['timeout'],
                 max_retries: int = DEFAULT_CONFIG['max_retries'],
                 retry_policy: Optional[RetryPolicy] = None,
                 logger: Optional[logging.Logger] = None,
                 proxy: Optional[Union[str, Mapping[str, str]]] = None,
                 session: Optional[requests.Session] = None):
        """
        Initialize the executor.

        Args:
            base_url: Server URL without trailing slash
            signed_headers: Authentication headers attached to every attempt
            timeout: Per-attempt timeout in seconds
            max_retries: Retries allowed after the first attempt
            retry_policy: Backoff policy (default RetryPolicy())
            logger: Logger for per-attempt records (default module logger)
            proxy: Proxy URL, or a requests-style proxies mapping
            session: Pre-built requests session; left open on close()
        """
        self.base_url = base_url
        self.signed_headers = signed_headers
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_policy = retry_policy or RetryPolicy()
        self.logger = logger or logging.getLogger(__name__)

        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()

        # Applied per request; session.proxies is never modified
        if isinstance(proxy, str):
            proxy = {'http': proxy, 'https': proxy}
        self.proxies = dict(proxy) if proxy else None

    def _build_url(self, path: str) -> str:
        if not path.startswith('/'):
            path = '/' + path
        return self.base_url + path

    def _log(self, level: int, msg: str, **fields: Any):
        try:
            self.logger.log(level, msg, extra=fields)
        except Exception:
            # Logging must never change the outcome of a request
            pass

    @staticmethod
    def _check_cancelled(cancel_event: Optional[threading.Event]):
        if cancel_event is not None and cancel_event.is_set():
            raise RequestCancelledError("Request cancelled")

    @staticmethod
    def _sleep(delay: float, cancel_event: Optional[threading.Event]):
        if cancel_event is None:
            time.sleep(delay)
        elif cancel_event.wait(delay):
            raise RequestCancelledError("Request cancelled while waiting to retry")

    def execute(self, method: str, path: str,
                params: Optional[Mapping[str, Any]] = None,
                data: Optional[bytes] = None,
                headers: Optional[Mapping[str, str]] = None,
                cancel_event: Optional[threading.Event] = None) -> Tuple[int, bytes]:
        """
        Perform one logical call.

        Args:
            method: HTTP method
            path: URL path relative to base_url
            params: Query options
            data: Request body
            headers: Per-call headers; cannot replace the signing headers
            cancel_event: Set to abort before the next attempt or during the
                wait between attempts

        Returns:
            Tuple of (status_code, content), content untouched

        Raises:
            TransportError: If no response was received and retries are
                exhausted, or the failure is not transient
            RequestCancelledError: If cancel_event was set
            ReversoError: The classified error of the final attempt
        """
        url = self._build_url(path)
        request_headers = self.signed_headers.as_dict(headers)
        attempts_made = 0

        while True:
            self._check_cancelled(cancel_event)
            attempt = attempts_made + 1
            cause = None
            error: ReversoError

            try:
                response = self.session.request(
                    method,
                    url,
                    params=params,
                    data=data,
                    headers=request_headers,
                    proxies=self.proxies,
                    timeout=self.timeout
                )
            except _TRANSIENT_ERRORS as e:
                status_code = None
                cause = e
                error = TransportError(f"Connection failed: {e}")
                self._log(
                    logging.WARNING, "Request attempt failed",
                    http_method=method, path=path, attempt=attempt, reason=str(e)
                )
            except requests.RequestException as e:
                self._log(
                    logging.ERROR, "Request could not be sent",
                    http_method=method, path=path, attempt=attempt, reason=str(e)
                )
                raise TransportError(f"HTTP request failed: {e}", should_retry=False) from e
            else:
                status_code = response.status_code
                content = response.content
                self._log(
                    logging.DEBUG, "Request attempt completed",
                    http_method=method, path=path, attempt=attempt, status_code=status_code
                )
                classified = classify(status_code, content)
                if classified is None:
                    return status_code, content
                error = classified

            if not self.retry_policy.should_retry(status_code, attempts_made, self.max_retries):
                raise error from cause

            delay = self.retry_policy.delay_before(attempts_made)
            self._log(
                logging.WARNING, "Retrying request",
                http_method=method, path=path, attempt=attempt,
                status_code=status_code, delay=delay
            )
            self._sleep(delay, cancel_event)
            attempts_made += 1

    def close(self):
        """Close the HTTP session if this executor created it."""
        if self._owns_session and self.session:
            self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
