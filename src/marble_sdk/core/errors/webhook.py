"""Webhook verification error classes.

Verification errors are terminal and reported synchronously; there is no
retry concept for an inbound delivery.
"""

from marble_sdk.core.errors.base import MarbleError


class WebhookVerificationError(MarbleError):
    """Base exception for webhook verification failures."""

    pass


class MissingTimestamp(WebhookVerificationError):
    """A timestamped signature was required but no timestamp was supplied."""

    def __init__(self, message: str = "Missing webhook timestamp"):
        super().__init__(message)


class TimestampOutOfRange(WebhookVerificationError):
    """Timestamp is unparseable or outside the tolerance window.

    Attributes:
        timestamp: Raw timestamp value from the delivery
        tolerance_seconds: Tolerance window that was applied
    """

    def __init__(
        self,
        message: str = "Webhook timestamp outside tolerance",
        timestamp: str = "",
        tolerance_seconds: float = 0,
    ):
        self.timestamp = timestamp
        self.tolerance_seconds = tolerance_seconds
        super().__init__(message)


class InvalidSignature(WebhookVerificationError):
    """Signature is missing, malformed or does not match the payload."""

    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(message)
