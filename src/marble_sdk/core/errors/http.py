"""HTTP and payload error classes."""

from typing import Any, Optional

from marble_sdk.core.errors.base import MarbleError


class HttpFailure(MarbleError):
    """Terminal non-2xx response.

    Raised when the server answered with a failure status and the retry
    policy either declined to retry or ran out of attempts.

    Attributes:
        status: HTTP status code
        status_text: HTTP reason phrase (may be empty)
        body: Decoded error body: parsed JSON, raw text, or None
        method: HTTP method of the failed request
        path: Request path (relative to the client base URL)
    """

    def __init__(
        self,
        status: int,
        status_text: str = "",
        body: Any = None,
        method: str = "GET",
        path: str = "",
    ):
        self.status = status
        self.status_text = status_text
        self.body = body
        self.method = method
        self.path = path
        super().__init__(f"{method} {path} failed: {status} {status_text}".rstrip())


class InvalidShape(MarbleError):
    """Response payload does not match the expected structure.

    Shape errors are contract mismatches; they are never retried.

    Attributes:
        message: Human-readable description
        details: Optional list of field-level problems (pydantic error dicts)
    """

    def __init__(self, message: str, details: Optional[list[dict[str, Any]]] = None):
        self.message = message
        self.details = details or []
        super().__init__(message)
