"""Retry data models and protocols.

Defines the core types used across the retry sub-package:
- RetryContext: immutable input to a retry decision
- RetryDecision: how long to wait before the next attempt
- RetryPolicy: per-client retry configuration plus the decision hook
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Optional

if TYPE_CHECKING:
    from marble_sdk.core.transport import TransportResponse


@dataclass(frozen=True)
class RetryContext:
    """Information handed to the retry policy after a failed attempt.

    Exactly one of ``error`` / ``response`` is set.

    Attributes:
        attempt: Attempt number, 1-based, counting the initial attempt
        error: Exception raised by the transport (no response received)
        response: Failed HTTP response (request reached the server)
    """

    attempt: int
    error: Optional[BaseException] = None
    response: Optional["TransportResponse"] = None

    def __post_init__(self) -> None:
        if self.attempt < 1:
            raise ValueError(f"attempt must be >= 1, got {self.attempt}")
        if (self.error is None) == (self.response is None):
            raise ValueError("RetryContext requires exactly one of error or response")


@dataclass(frozen=True)
class RetryDecision:
    """Outcome of a retry decision: wait ``delay_ms`` then try again."""

    delay_ms: int

    def __post_init__(self) -> None:
        if self.delay_ms < 0:
            raise ValueError(f"delay_ms must be non-negative, got {self.delay_ms}")


ShouldRetry = Callable[[RetryContext], Optional[RetryDecision]]


@dataclass(frozen=True)
class RetryPolicy:
    """Policy governing retry and backoff behavior.

    The executor calls ``decide()`` after every failed attempt, waits the
    returned ``delay_ms`` when a decision is returned, and stops once
    ``max_retries`` retries have been spent or ``decide()`` returns None.

    Attributes:
        max_retries: Maximum number of retries, not counting the first attempt
        base_delay_ms: Base delay for exponential backoff
        max_delay_ms: Backoff cap in milliseconds
        should_retry: Custom decision hook. When None the default policy
            (transport errors, 429 and 5xx) is applied using this policy's
            delays.
        rng: Injectable Random instance for the default policy's jitter.
    """

    max_retries: int = 3
    base_delay_ms: int = 250
    max_delay_ms: int = 8000
    should_retry: Optional[ShouldRetry] = None
    rng: Optional[random.Random] = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be non-negative, got {self.max_retries}")

    def decide(self, context: RetryContext) -> Optional[RetryDecision]:
        """Return the retry decision for *context*, or None to stop."""
        if self.should_retry is not None:
            return self.should_retry(context)

        from marble_sdk.core.retry.policy import default_should_retry

        return default_should_retry(
            context,
            base_delay_ms=self.base_delay_ms,
            max_delay_ms=self.max_delay_ms,
            rng=self.rng,
        )
