"""
Request signing for the Reverso API.

Every request carries three headers computed once when a client is built:

    Created:   local time, "YYYY-MM-DD HH:MM:SS"
    Username:  the account name
    Signature: hex(HMAC-SHA1(key=password, msg=username + created))

The Created value is not refreshed afterwards, so one client instance always
sends the same signature.
"""

import datetime
import hashlib
import hmac
import platform
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

import requests

from .constants import (
    CREATED_FORMAT,
    HEADER_CREATED,
    HEADER_SIGNATURE,
    HEADER_USER_AGENT,
    HEADER_USERNAME,
    USER_AGENT_PREFIX,
    VERSION,
)
from .exceptions import ConfigurationError


@dataclass(frozen=True)
class AppInfo:
    """Identifies the application using this library in the User-Agent."""

    app_name: str
    app_version: str


@dataclass(frozen=True)
class SignedHeaders:
    """Authentication headers shared by every request of one client."""

    created: str
    username: str
    signature: str
    user_agent: str
    extra_headers: Mapping[str, str] = field(default_factory=dict)

    def as_dict(self, overrides: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """
        Render the outgoing header mapping.

        Precedence, lowest first: User-Agent, extra headers, overrides,
        signing headers. Extra headers and overrides win over the computed
        User-Agent on collision; the Created, Username and Signature headers
        always win over both.

        Args:
            overrides: Per-request headers
        """
        headers = {HEADER_USER_AGENT: self.user_agent}
        headers.update(self.extra_headers)
        if overrides:
            headers.update(overrides)
        headers.update({
            HEADER_CREATED: self.created,
            HEADER_USERNAME: self.username,
            HEADER_SIGNATURE: self.signature,
        })
        return headers


def format_created(moment: Optional[datetime.datetime] = None) -> str:
    """Format a timestamp for the Created header (defaults to local now)."""
    if moment is None:
        moment = datetime.datetime.now()
    return moment.strftime(CREATED_FORMAT)


def sign(username: str, password: str, created: str) -> str:
    """
    Compute the request signature.

    Args:
        username: Account username
        password: Account password, used as the HMAC key
        created: Value of the Created header

    Returns:
        Lower-case hex HMAC-SHA1 of username + created
    """
    mac = hmac.new(
        password.encode('utf-8'),
        (username + created).encode('utf-8'),
        hashlib.sha1
    )
    return mac.hexdigest()


def construct_user_agent(send_platform_info: bool = True,
                         app_info: Optional[AppInfo] = None) -> str:
    """Build the User-Agent string sent with every request."""
    user_agent = f"{USER_AGENT_PREFIX}/{VERSION}"
    try:
        if send_platform_info:
            platform_str = platform.platform()
            python_version = platform.python_version()
            user_agent += f" ({platform_str}) python/{python_version}"
            user_agent += f" requests/{requests.__version__}"
        if app_info is not None:
            user_agent += f" {app_info.app_name}/{app_info.app_version}"
    except Exception:
        # Send an incomplete user agent rather than failing construction
        pass
    return user_agent


class SignatureAuthenticator:
    """
    Builds the signed header set for one client instance.

    Credentials are validated before anything else happens; no I/O is
    performed apart from reading the clock.
    """

    def __init__(self, username: str, password: str,
                 send_platform_info: bool = True,
                 app_info: Optional[AppInfo] = None,
                 headers: Optional[Mapping[str, str]] = None,
                 created: Optional[str] = None):
        """
        Initialize the authenticator.

        Args:
            username: Account username
            password: Account password
            send_platform_info: Include OS/Python details in the User-Agent
            app_info: Application name and version for the User-Agent
            headers: Additional headers sent with every request
            created: Fixed Created value; the current local time if omitted

        Raises:
            ConfigurationError: If username or password is empty
        """
        self._validate_credentials(username, password)

        if created is None:
            created = format_created()

        self._signed_headers = SignedHeaders(
            created=created,
            username=username,
            signature=sign(username, password, created),
            user_agent=construct_user_agent(send_platform_info, app_info),
            extra_headers=dict(headers or {}),
        )

    @staticmethod
    def _validate_credentials(username: str, password: str):
        fields = []
        if not username:
            fields.append('username')
        if not password:
            fields.append('password')
        if fields:
            raise ConfigurationError(
                f"{' and '.join(fields)} must be a non-empty string"
            )

    @property
    def signed_headers(self) -> SignedHeaders:
        return self._signed_headers
