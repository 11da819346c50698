"""Retry policy for backend rate-limit responses.

Only HTTP 429 is retried. The delay comes from the response's Retry-After
header, falling back to a fixed default when the header is absent or
unreadable.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

import httpx

from jobboard.app.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_RETRY_DELAY_MS = 5000


def parse_retry_after(
    value: Optional[str],
    default_ms: int = DEFAULT_RETRY_DELAY_MS,
    now: Optional[datetime] = None,
) -> int:
    """Convert a Retry-After header value to milliseconds.

    Args:
        value: Header value, either delay-seconds or an HTTP-date
        default_ms: Delay used when the header is missing or unreadable
        now: Reference time for HTTP-date values (tests pass a fixed one)

    Returns:
        Delay in milliseconds, never negative

    Example:
        >>> parse_retry_after("2")
        2000
        >>> parse_retry_after(None, default_ms=5000)
        5000
    """
    if value is None:
        return default_ms
    value = value.strip()
    if not value:
        return default_ms

    try:
        seconds = float(value)
    except ValueError:
        seconds = None

    if seconds is not None:
        ms = seconds * 1000
        # huge finite values overflow to inf once scaled
        if not math.isfinite(ms):
            return default_ms
        return max(int(ms), 0)

    try:
        retry_at = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        logger.debug(f"Unreadable Retry-After header {value!r}, using {default_ms}ms")
        return default_ms
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=timezone.utc)
    reference = now or datetime.now(timezone.utc)
    return max(int((retry_at - reference).total_seconds() * 1000), 0)


@dataclass
class RateLimitRetryPolicy:
    """Configuration for retrying rate-limited requests.

    Attributes:
        max_retries: Retries allowed per request after a 429 (default: 1)
        default_delay_ms: Delay when the response has no Retry-After header

    Example:
        >>> policy = RateLimitRetryPolicy()
        >>> policy.should_retry(429, attempt=0)
        True
        >>> policy.should_retry(429, attempt=1)
        False
    """

    max_retries: int = 1
    default_delay_ms: int = DEFAULT_RETRY_DELAY_MS

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must not be negative")
        if self.default_delay_ms < 0:
            raise ValueError("default_delay_ms must not be negative")

    def should_retry(self, status_code: int, attempt: int) -> bool:
        """Check if a response should be retried.

        Args:
            status_code: Response status
            attempt: Retries already made for this request (0-indexed)
        """
        return status_code == 429 and attempt < self.max_retries

    def delay_ms_for(self, response: httpx.Response) -> int:
        """Delay before retrying ``response``, in milliseconds."""
        return parse_retry_after(
            response.headers.get("retry-after"), default_ms=self.default_delay_ms
        )
