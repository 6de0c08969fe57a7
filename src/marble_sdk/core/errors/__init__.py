"""Unified error hierarchy for marble-sdk.

All custom exception classes are defined in domain-specific modules within
this package. This __init__.py re-exports everything for convenient access.

Usage:
    from marble_sdk.core.errors import HttpFailure, InvalidShape, Cancelled
"""

from marble_sdk.core.errors.base import MarbleError
from marble_sdk.core.errors.cancellation import Cancelled
from marble_sdk.core.errors.http import HttpFailure, InvalidShape
from marble_sdk.core.errors.webhook import (
    InvalidSignature,
    MissingTimestamp,
    TimestampOutOfRange,
    WebhookVerificationError,
)

__all__ = [
    "MarbleError",
    # HTTP / payload
    "HttpFailure",
    "InvalidShape",
    # Cancellation
    "Cancelled",
    # Webhooks
    "WebhookVerificationError",
    "MissingTimestamp",
    "TimestampOutOfRange",
    "InvalidSignature",
]
