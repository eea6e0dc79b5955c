"""
Constants for the Reverso client library.
Header names and defaults shared by the signing and request layers.
"""

# Signing headers expected by the Reverso API
HEADER_CREATED = "Created"
HEADER_USERNAME = "Username"
HEADER_SIGNATURE = "Signature"
HEADER_USER_AGENT = "User-Agent"

# Format of the Created header (local time)
CREATED_FORMAT = "%Y-%m-%d %H:%M:%S"

VERSION = "1.0.0"
USER_AGENT_PREFIX = "reverso-python"

# Default configuration values
DEFAULT_CONFIG = {
    'timeout': 10.0,            # per-attempt HTTP timeout in seconds
    'max_retries': 5,           # retries after the first attempt
    'backoff_initial': 1.0,     # delay before the first retry, seconds
    'backoff_multiplier': 1.6,
    'backoff_max': 120.0,       # cap on a single delay, seconds
    'send_platform_info': True,
    'app_info': None,
    'headers': None,
    'logger': None,
    'proxy': None,
    'session': None,
}

# Status codes
HTTP_BAD_REQUEST = 400
HTTP_FORBIDDEN = 403
HTTP_NOT_FOUND = 404
HTTP_TOO_MANY_REQUESTS = 429
HTTP_SERVICE_UNAVAILABLE = 503
