"""Default retry policy.

Retries any transport error, HTTP 429 (honoring ``Retry-After``) and any
5xx. Every other status is terminal. Callers override this entirely by
passing a ``RetryPolicy`` with their own ``should_retry`` hook.
"""

import random
from typing import Optional

from marble_sdk.core.retry.backoff import compute_backoff, parse_retry_after
from marble_sdk.core.retry.models import RetryContext, RetryDecision, RetryPolicy

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY_MS = 250
DEFAULT_MAX_DELAY_MS = 8000


def default_should_retry(
    context: RetryContext,
    *,
    base_delay_ms: float = DEFAULT_BASE_DELAY_MS,
    max_delay_ms: float = DEFAULT_MAX_DELAY_MS,
    rng: Optional[random.Random] = None,
) -> Optional[RetryDecision]:
    """Decide whether a failed attempt should be retried.

    Args:
        context: Failed-attempt context.
        base_delay_ms: Base backoff delay.
        max_delay_ms: Backoff cap.
        rng: Injectable Random instance for deterministic testing.

    Returns:
        RetryDecision for transport errors, 429 and 5xx; None otherwise.
    """
    if context.error is not None:
        return RetryDecision(
            delay_ms=compute_backoff(context.attempt, base_delay_ms, max_delay_ms, rng=rng)
        )

    response = context.response
    assert response is not None

    if response.status == 429:
        # Server hint bypasses jitter
        hinted = parse_retry_after(response.header("retry-after"))
        if hinted is not None:
            return RetryDecision(delay_ms=hinted)
        return RetryDecision(
            delay_ms=compute_backoff(context.attempt, base_delay_ms, max_delay_ms, rng=rng)
        )

    if 500 <= response.status <= 599:
        return RetryDecision(
            delay_ms=compute_backoff(context.attempt, base_delay_ms, max_delay_ms, rng=rng)
        )

    return None


DEFAULT_RETRY_POLICY = RetryPolicy(
    max_retries=DEFAULT_MAX_RETRIES,
    base_delay_ms=DEFAULT_BASE_DELAY_MS,
    max_delay_ms=DEFAULT_MAX_DELAY_MS,
)
