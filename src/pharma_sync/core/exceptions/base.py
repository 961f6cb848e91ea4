"""Base exceptions for pharma-sync.

All exceptions inherit from PharmaSyncError and carry an error code and a
details mapping so callers (usually the UI layer) can render them uniformly.
"""

from typing import Any, Dict, Optional


class PharmaSyncError(Exception):
    """Base exception for all pharma-sync errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        *args,
        **kwargs
    ):
        super().__init__(message, *args, **kwargs)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}


def create_error_response(exception: PharmaSyncError) -> Dict[str, Any]:
    """Create standardized error response from exception.

    Args:
        exception: The pharma-sync exception

    Returns:
        Error response dictionary
    """
    return {
        "error": {
            "code": exception.error_code,
            "message": exception.message,
            "details": exception.details,
            "type": exception.__class__.__name__,
        }
    }
