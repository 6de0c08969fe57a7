"""Cancellation error class."""

from typing import Optional

from marble_sdk.core.errors.base import MarbleError


class Cancelled(MarbleError):
    """The operation was aborted through its cancellation token.

    Kept distinct from every failure type so callers can tell "the caller
    gave up" apart from "the request failed".

    Attributes:
        reason: Optional reason passed to ``CancellationToken.cancel()``
    """

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason
        message = "Operation cancelled"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
