"""Infrastructure-specific exceptions for pharma-sync.

Cache, remote API, pagination and offline queue errors.
"""

from typing import Any, Dict, Optional

from .base import PharmaSyncError


# Cache Errors
class CacheError(PharmaSyncError):
    """Base class for cache-related errors."""
    pass


class CacheKeyError(CacheError):
    """Raised when cache key is invalid."""
    pass


class CacheSerializationError(CacheError):
    """Raised when cache value serialization/deserialization fails."""
    pass


# Remote API Errors
NETWORK_ERROR = "NETWORK_ERROR"
TIMEOUT = "TIMEOUT"
UNKNOWN_ERROR = "UNKNOWN_ERROR"


class ApiError(PharmaSyncError):
    """Error raised by a remote fetcher.

    ``code`` is ``NETWORK_ERROR``, ``TIMEOUT`` or the HTTP status as a
    string (``"404"``, ``"503"``). Retry decisions look at ``code`` only.
    """

    def __init__(
        self,
        message: str,
        code: str = UNKNOWN_ERROR,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        retryable: Optional[bool] = None,
    ):
        super().__init__(message, error_code=code, details=details)
        self.code = code
        self.status_code = status_code
        # Explicit override of the code-based retry decision
        self.retryable = retryable

    @classmethod
    def network(cls, message: str = "Network error. Please check your connection.") -> "ApiError":
        return cls(message, code=NETWORK_ERROR)

    @classmethod
    def timeout(cls, message: str = "The request timed out.") -> "ApiError":
        return cls(message, code=TIMEOUT)

    @classmethod
    def from_status(
        cls,
        status: int,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> "ApiError":
        """Build an error from an HTTP status code."""
        return cls(
            message or f"Server error ({status}).",
            code=str(status),
            status_code=status,
            details=details,
        )

    def __repr__(self) -> str:
        return f"ApiError(code={self.code!r}, message={self.message!r})"


class RequestCancelledError(PharmaSyncError):
    """Raised to a subscriber whose cancellation token fired."""

    def __init__(self, key: str):
        super().__init__(f"Request for '{key}' was cancelled", details={"key": key})
        self.key = key


# Validation Errors
class ValidationError(PharmaSyncError, ValueError):
    """Raised when input validation fails."""
    pass


class PaginationError(ValidationError):
    """Raised when a pagination parameter is out of range."""
    pass


# Offline Queue Errors
class QueueClosedError(PharmaSyncError):
    """Raised for operations still queued when the queue is cleared or destroyed."""
    pass
