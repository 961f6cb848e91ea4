"""Retry policy and error classification for remote fetches."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

import httpx

from ....config.settings import SyncSettings
from ....core.exceptions import NETWORK_ERROR, TIMEOUT

logger = logging.getLogger(__name__)

T = TypeVar("T")

# 501 means the endpoint will never work, retrying cannot help
NON_RETRYABLE_SERVER_CODES = frozenset({"501"})


def classify_error(error: BaseException) -> Optional[str]:
    """Map an exception to an error code.

    Returns ``NETWORK_ERROR``, ``TIMEOUT``, an HTTP status as a string, or
    None for errors that carry no code (validation, programming errors).
    """
    code = getattr(error, "code", None)
    if isinstance(code, str) and code:
        return code

    if isinstance(error, httpx.TimeoutException):
        return TIMEOUT
    if isinstance(error, httpx.HTTPStatusError):
        return str(error.response.status_code)
    if isinstance(error, (httpx.TransportError, ConnectionError)):
        return NETWORK_ERROR
    if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
        return TIMEOUT

    return None


def is_retryable_error(error: BaseException) -> bool:
    """Network and timeout errors, and 5xx other than 501, are retryable."""
    override = getattr(error, "retryable", None)
    if isinstance(override, bool):
        return override

    code = classify_error(error)
    if code is None:
        return False

    if code in (NETWORK_ERROR, TIMEOUT):
        return True

    return code.isdigit() and code.startswith("5") and len(code) == 3 and code not in NON_RETRYABLE_SERVER_CODES


@dataclass
class RetryPolicy:
    """Linear backoff retry configuration.

    ``retry_attempts`` counts retries after the first call, so a fetcher runs
    at most ``retry_attempts + 1`` times. The wait before retry ``n`` is
    ``retry_delay * n`` seconds.
    """

    retry_attempts: int = 3
    retry_delay: float = 1.0

    def __post_init__(self):
        """Validate retry policy parameters."""
        if self.retry_attempts < 0:
            raise ValueError("retry_attempts must be non-negative")
        if self.retry_delay < 0:
            raise ValueError("retry_delay must be non-negative")

    def delay_for(self, attempt: int) -> float:
        """
        Calculate delay before a retry.

        Args:
            attempt: Retry number (1-based)

        Returns:
            Delay in seconds
        """
        if attempt <= 0:
            return 0.0
        return self.retry_delay * attempt

    def should_retry(self, error: BaseException, retries_so_far: int) -> bool:
        """
        Determine if a failed call should be retried.

        Args:
            error: Error raised by the last call
            retries_so_far: Retries already performed for this request

        Returns:
            True if should retry, False otherwise
        """
        if retries_so_far >= self.retry_attempts:
            return False
        return is_retryable_error(error)

    def with_overrides(
        self,
        retry_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
    ) -> "RetryPolicy":
        """Copy of this policy with per-call overrides applied."""
        if retry_attempts is None and retry_delay is None:
            return self
        return RetryPolicy(
            retry_attempts=self.retry_attempts if retry_attempts is None else retry_attempts,
            retry_delay=self.retry_delay if retry_delay is None else retry_delay,
        )

    @classmethod
    def from_settings(cls, settings: Optional[SyncSettings] = None) -> "RetryPolicy":
        settings = settings or SyncSettings()
        return cls(
            retry_attempts=settings.request_retry_attempts,
            retry_delay=settings.request_retry_delay_seconds,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RetryPolicy":
        """Create retry policy from dictionary."""
        return cls(
            retry_attempts=data.get("retry_attempts", 3),
            retry_delay=data.get("retry_delay", 1.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert retry policy to dictionary."""
        return {
            "retry_attempts": self.retry_attempts,
            "retry_delay": self.retry_delay,
        }


# Default retry policies
DEFAULT_RETRY_POLICIES = {
    "default": RetryPolicy(retry_attempts=3, retry_delay=1.0),
    # Background work: queued mutations and prefetches
    "background": RetryPolicy(retry_attempts=2, retry_delay=2.0),
    "no_retry": RetryPolicy(retry_attempts=0, retry_delay=0.0),
}


async def retry_call(
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    label: str = "operation",
) -> T:
    """Await fn(), retrying retryable failures under policy."""
    retries = 0
    while True:
        try:
            return await fn()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if not policy.should_retry(e, retries):
                raise
            retries += 1
            delay = policy.delay_for(retries)
            logger.info(f"{label} failed with {classify_error(e)}, retry {retries}/{policy.retry_attempts} in {delay}s")
            await sleep(delay)
