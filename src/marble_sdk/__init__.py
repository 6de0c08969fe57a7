"""marble-sdk: async client for the Marble CMS API.

Example:
    from marble_sdk import MarbleClient, PostsListParams

    async with MarbleClient(base_url, api_key=key) as client:
        page = await client.list_posts(PostsListParams(limit=10))
"""

from marble_sdk.client import MarbleClient, PostsListParams
from marble_sdk.config import ClientConfig
from marble_sdk.core import (
    Attribution,
    Author,
    CancellationToken,
    Category,
    HttpxTransport,
    Page,
    Pagination,
    Post,
    Response,
    Tag,
    TransportRequest,
    VerifyOptions,
    WebhookEvent,
    parse_webhook_event,
    sign_payload,
    verify_signature,
)
from marble_sdk.core.errors import (
    Cancelled,
    HttpFailure,
    InvalidShape,
    InvalidSignature,
    MarbleError,
    MissingTimestamp,
    TimestampOutOfRange,
    WebhookVerificationError,
)
from marble_sdk.core.retry import DEFAULT_RETRY_POLICY, RetryContext, RetryDecision, RetryPolicy

__version__ = "0.1.0"

__all__ = [
    "MarbleClient",
    "PostsListParams",
    "ClientConfig",
    "CancellationToken",
    "HttpxTransport",
    "Response",
    "TransportRequest",
    # Models
    "Attribution",
    "Author",
    "Category",
    "Page",
    "Pagination",
    "Post",
    "Tag",
    "WebhookEvent",
    # Retry
    "DEFAULT_RETRY_POLICY",
    "RetryContext",
    "RetryDecision",
    "RetryPolicy",
    # Webhooks
    "VerifyOptions",
    "parse_webhook_event",
    "sign_payload",
    "verify_signature",
    # Errors
    "MarbleError",
    "HttpFailure",
    "InvalidShape",
    "Cancelled",
    "WebhookVerificationError",
    "MissingTimestamp",
    "TimestampOutOfRange",
    "InvalidSignature",
]
