"""Retry policy and error classification."""

from .retry_policy import (
    RetryPolicy,
    DEFAULT_RETRY_POLICIES,
    classify_error,
    is_retryable_error,
    retry_call,
)

__all__ = [
    "RetryPolicy",
    "DEFAULT_RETRY_POLICIES",
    "classify_error",
    "is_retryable_error",
    "retry_call",
]
