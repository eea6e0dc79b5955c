"""
Retry decisions and exponential backoff for the request executor.
"""

from typing import Optional

from .constants import DEFAULT_CONFIG, HTTP_TOO_MANY_REQUESTS
from .exceptions import ConfigurationError


class RetryPolicy:
    """
    Decides whether an attempt should be repeated and how long to wait.

    Transport failures, 429 and every 5xx status are transient. Delays grow
    as initial_delay * multiplier ** attempts_made and are capped at
    max_delay, so they never decrease between attempts.
    """

    def __init__(self,
                 initial_delay: float = DEFAULT_CONFIG['backoff_initial'],
                 multiplier: float = DEFAULT_CONFIG['backoff_multiplier'],
                 max_delay: float = DEFAULT_CONFIG['backoff_max']):
        if initial_delay < 0:
            raise ConfigurationError("backoff_initial must not be negative")
        if multiplier < 1:
            raise ConfigurationError("backoff_multiplier must be at least 1")
        if max_delay < initial_delay:
            raise ConfigurationError("backoff_max must not be below backoff_initial")

        self.initial_delay = initial_delay
        self.multiplier = multiplier
        self.max_delay = max_delay

    @staticmethod
    def is_retryable(status_code: Optional[int]) -> bool:
        """
        Check whether an outcome is transient.

        Args:
            status_code: HTTP status code, or None if no response was received

        Returns:
            True for transport failures, 429 and 5xx
        """
        if status_code is None:
            return True
        if status_code == HTTP_TOO_MANY_REQUESTS:
            return True
        return 500 <= status_code < 600

    def should_retry(self, status_code: Optional[int], attempts_made: int,
                     max_retries: int) -> bool:
        """Check whether another attempt is allowed for this outcome."""
        return attempts_made < max_retries and self.is_retryable(status_code)

    def delay_before(self, attempts_made: int) -> float:
        """
        Delay in seconds before the next attempt.

        Args:
            attempts_made: Number of retries already performed (0 before the
                first retry)
        """
        try:
            delay = self.initial_delay * (self.multiplier ** attempts_made)
        except OverflowError:
            return self.max_delay
        return min(delay, self.max_delay)
