"""
Reverso API client.

This module wires credentials, signing and the retrying request executor
into a single object that callers use to talk to the Reverso API.
"""

import json
import threading
from typing import Any, Mapping, Optional, Tuple

import requests

from .auth import AppInfo, SignatureAuthenticator, SignedHeaders
from .constants import DEFAULT_CONFIG
from .exceptions import ConfigurationError, InvalidContentError
from .executor import RequestExecutor
from .retry import RetryPolicy


class ReversoClient:
    """
    Client for making signed, retried requests to the Reverso API.

    Constructing a client validates the configuration and computes the
    signing headers; it does not connect to the server.
    """

    def __init__(self, base_url: str, username: str, password: str, **config):
        """
        Initialize the client.

        Args:
            base_url: Base URL of the API; a trailing slash is removed
            username: Authentication username
            password: Authentication password
            **config: Configuration options (timeout, max_retries,
                backoff_initial, backoff_multiplier, backoff_max,
                send_platform_info, app_info, headers, logger, proxy, session)

        Raises:
            ConfigurationError: If credentials or configuration are invalid
        """
        unknown = set(config) - set(DEFAULT_CONFIG)
        if unknown:
            raise ConfigurationError(f"Unknown configuration option(s): {', '.join(sorted(unknown))}")

        # Merge default config with user overrides
        self.config = {**DEFAULT_CONFIG, **config}

        if not base_url:
            raise ConfigurationError("base_url cannot be empty")
        self.base_url = base_url.rstrip('/')

        self._validate_config()

        self._authenticator = SignatureAuthenticator(
            username,
            password,
            send_platform_info=self.config['send_platform_info'],
            app_info=self.config['app_info'],
            headers=self.config['headers'],
        )

        retry_policy = RetryPolicy(
            initial_delay=self.config['backoff_initial'],
            multiplier=self.config['backoff_multiplier'],
            max_delay=self.config['backoff_max'],
        )
        self.executor = RequestExecutor(
            self.base_url,
            self._authenticator.signed_headers,
            timeout=self.config['timeout'],
            max_retries=self.config['max_retries'],
            retry_policy=retry_policy,
            logger=self.config['logger'],
            proxy=self.config['proxy'],
            session=self.config['session'],
        )

    def _validate_config(self):
        """Validate client configuration."""
        if self.config['timeout'] is None or self.config['timeout'] <= 0:
            raise ConfigurationError("timeout must be positive")

        max_retries = self.config['max_retries']
        if isinstance(max_retries, bool) or not isinstance(max_retries, int) or max_retries < 0:
            raise ConfigurationError("max_retries must be a non-negative integer")

        app_info = self.config['app_info']
        if app_info is not None and not isinstance(app_info, AppInfo):
            raise ConfigurationError("app_info must be an AppInfo instance")

        headers = self.config['headers']
        if headers is not None and not isinstance(headers, Mapping):
            raise ConfigurationError("headers must be a mapping")

    @property
    def signed_headers(self) -> SignedHeaders:
        """Authentication headers sent with every request."""
        return self._authenticator.signed_headers

    @property
    def session(self) -> requests.Session:
        return self.executor.session

    def _prepare_request_body(self, json_data=None, data=None) -> Optional[bytes]:
        """Prepare request body bytes."""
        if json_data is not None:
            return json.dumps(json_data, separators=(',', ':')).encode('utf-8')
        elif data is not None:
            if isinstance(data, str):
                return data.encode('utf-8')
            elif isinstance(data, bytes):
                return data
            else:
                return str(data).encode('utf-8')
        else:
            return None

    def request(self, method: str, path: str,
                params: Optional[Mapping[str, Any]] = None,
                data=None, json=None,
                headers: Optional[Mapping[str, str]] = None,
                cancel_event: Optional[threading.Event] = None) -> Tuple[int, bytes]:
        """
        Make a signed HTTP request, retrying transient failures.

        Args:
            method: HTTP method
            path: URL path (relative to base_url)
            params: Query options
            data: Raw body (str or bytes)
            json: JSON payload, sent with Content-Type application/json
            headers: Per-request headers
            cancel_event: Event that aborts the call when set

        Returns:
            Tuple of (status_code, content)

        Raises:
            ReversoError: On a terminal error
        """
        body = self._prepare_request_body(json, data)

        request_headers = dict(headers or {})
        if json is not None:
            request_headers['Content-Type'] = 'application/json'

        return self.executor.execute(
            method,
            path,
            params=params,
            data=body,
            headers=request_headers,
            cancel_event=cancel_event
        )

    @staticmethod
    def decode_json(content: bytes) -> Any:
        """
        Decode a successful response body.

        Raises:
            InvalidContentError: If the body is not valid JSON
        """
        try:
            return json.loads(content)
        except (ValueError, RecursionError) as e:
            raise InvalidContentError(f"Invalid JSON in response: {e}") from e

    def request_json(self, method: str, path: str, **kwargs) -> Any:
        """Make a request and decode the JSON response body."""
        _, content = self.request(method, path, **kwargs)
        return self.decode_json(content)

    def get(self, path: str, **kwargs) -> Tuple[int, bytes]:
        """Make signed GET request."""
        return self.request('GET', path, **kwargs)

    def post(self, path: str, json=None, data=None, **kwargs) -> Tuple[int, bytes]:
        """Make signed POST request."""
        return self.request('POST', path, json=json, data=data, **kwargs)

    def close(self):
        """Close HTTP session."""
        self.executor.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
