"""Retry policy and backoff utilities.

- RetryContext / RetryDecision / RetryPolicy models
- compute_backoff (exponential, full jitter) and parse_retry_after
- default_should_retry and DEFAULT_RETRY_POLICY
"""

from marble_sdk.core.retry.backoff import compute_backoff, parse_retry_after
from marble_sdk.core.retry.models import (
    RetryContext,
    RetryDecision,
    RetryPolicy,
    ShouldRetry,
)
from marble_sdk.core.retry.policy import (
    DEFAULT_BASE_DELAY_MS,
    DEFAULT_MAX_DELAY_MS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_POLICY,
    default_should_retry,
)

__all__ = [
    # Models
    "RetryContext",
    "RetryDecision",
    "RetryPolicy",
    "ShouldRetry",
    # Backoff
    "compute_backoff",
    "parse_retry_after",
    # Default policy
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_BASE_DELAY_MS",
    "DEFAULT_MAX_DELAY_MS",
    "DEFAULT_RETRY_POLICY",
    "default_should_retry",
]
