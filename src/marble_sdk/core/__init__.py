"""Request execution core for marble-sdk.

Retry policy, cancellation, response normalization, pagination, the
transport boundary and webhook verification.
"""

from marble_sdk.core.cancellation import CancellationToken, delay
from marble_sdk.core.executor import RequestExecutor
from marble_sdk.core.models import (
    Attribution,
    Author,
    Category,
    Page,
    Pagination,
    Post,
    Tag,
    WebhookEvent,
)
from marble_sdk.core.pagination import ItemIterator, PageIterator
from marble_sdk.core.transport import (
    HttpxTransport,
    Response,
    Transport,
    TransportRequest,
    TransportResponse,
)
from marble_sdk.core.webhook import (
    VerifyOptions,
    parse_webhook_event,
    sign_payload,
    verify_signature,
)

__all__ = [
    # Cancellation
    "CancellationToken",
    "delay",
    # Execution
    "RequestExecutor",
    # Models
    "Attribution",
    "Author",
    "Category",
    "Page",
    "Pagination",
    "Post",
    "Tag",
    "WebhookEvent",
    # Pagination
    "ItemIterator",
    "PageIterator",
    # Transport
    "HttpxTransport",
    "Response",
    "Transport",
    "TransportRequest",
    "TransportResponse",
    # Webhooks
    "VerifyOptions",
    "parse_webhook_event",
    "sign_payload",
    "verify_signature",
]
