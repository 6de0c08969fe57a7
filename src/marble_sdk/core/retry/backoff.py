"""Exponential backoff with full jitter, and Retry-After parsing.

Pure functions; the random source and clock are injectable so tests can
be deterministic.
"""

import math
import random
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Callable, Optional


def compute_backoff(
    attempt: int,
    base_delay_ms: float,
    max_delay_ms: float,
    *,
    rng: Optional[random.Random] = None,
) -> int:
    """Compute a jittered backoff delay in milliseconds.

    The exponential value ``base * 2**(attempt - 1)`` is clamped to
    ``[base, cap]`` (the cap wins when ``base > cap``), then full jitter
    picks a uniform integer in ``[0, capped]`` inclusive.

    Args:
        attempt: 1-based attempt number that just failed.
        base_delay_ms: Base delay in milliseconds.
        max_delay_ms: Cap in milliseconds.
        rng: Injectable Random instance for deterministic testing.

    Returns:
        Delay in whole milliseconds.
    """
    _rng = rng or random.Random()
    exponent = max(0, attempt - 1)
    try:
        exp = base_delay_ms * (2**exponent)
    except OverflowError:
        exp = math.inf
    capped = min(max(base_delay_ms, exp), max_delay_ms)
    return _rng.randint(0, max(0, int(capped)))


def parse_retry_after(
    value: Optional[str],
    *,
    now: Optional[Callable[[], datetime]] = None,
) -> Optional[int]:
    """Parse a ``Retry-After`` header value into milliseconds.

    Interpreted first as a delta in seconds, then as an HTTP-date minus the
    current time. Both results are clamped to be non-negative.

    Args:
        value: Raw header value.
        now: Injectable clock returning an aware datetime.

    Returns:
        Delay in milliseconds, or ``None`` if the header is missing or
        unparseable.
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None

    try:
        seconds = float(value)
    except ValueError:
        seconds = None
    if seconds is not None:
        if not math.isfinite(seconds):
            return None
        return max(0, int(seconds * 1000))

    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when is None:
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)

    current = now() if now is not None else datetime.now(timezone.utc)
    delta_ms = (when - current).total_seconds() * 1000
    return max(0, int(delta_ms))
