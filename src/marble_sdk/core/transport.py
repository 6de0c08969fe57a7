"""Transport boundary for the request execution core.

The core never talks to a networking stack directly. It calls a
``Transport``: an async callable taking a URL and a ``TransportRequest``
and returning a ``TransportResponse`` (or raising a transport failure).
Any callable with that shape is substitutable, which is how the test
suite drives the executor.

``HttpxTransport`` is the default implementation, built on
``httpx.AsyncClient``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Optional, Protocol

import httpx

from marble_sdk.core.cancellation import CancellationToken

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class TransportRequest:
    """Description of one outgoing request.

    Attributes:
        method: HTTP method (the core only issues GET)
        headers: Fully merged request headers
        cancel: Cancellation token the transport should honor
    """

    method: str = "GET"
    headers: Mapping[str, str] = field(default_factory=dict)
    cancel: Optional[CancellationToken] = None


class TransportResponse(Protocol):
    """Response descriptor returned by a transport."""

    @property
    def ok(self) -> bool: ...

    @property
    def status(self) -> int: ...

    @property
    def status_text(self) -> str: ...

    def header(self, name: str) -> Optional[str]: ...

    def json(self) -> Any: ...

    def text(self) -> str: ...


Transport = Callable[[str, TransportRequest], Awaitable[TransportResponse]]


@dataclass(frozen=True)
class Response:
    """Concrete, fully buffered ``TransportResponse``.

    Attributes:
        status: HTTP status code
        body: Raw response body
        headers: Response headers (looked up case-insensitively)
        status_text: HTTP reason phrase
    """

    status: int
    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)
    status_text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status <= 299

    def header(self, name: str) -> Optional[str]:
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    def text(self) -> str:
        return self.body.decode("utf-8")

    def json(self) -> Any:
        return json.loads(self.body)

    @classmethod
    def from_json(
        cls,
        data: Any,
        status: int = 200,
        headers: Optional[Mapping[str, str]] = None,
        status_text: str = "",
    ) -> "Response":
        """Build a JSON response (handy for fakes and tests)."""
        merged = {"content-type": "application/json", **(headers or {})}
        return cls(
            status=status,
            body=json.dumps(data).encode("utf-8"),
            headers=merged,
            status_text=status_text,
        )


class HttpxTransport:
    """Default transport backed by ``httpx.AsyncClient``.

    The transport owns the client it creates and closes it in ``aclose()``;
    a client passed in by the caller is left open. A client it creates
    follows redirects; a caller-supplied client keeps its own setting.

    Cancellation is honored by racing the request against the token, so a
    fired token aborts an in-flight request promptly with ``Cancelled``.

    Example:
        transport = HttpxTransport(timeout=10.0)
        response = await transport("https://api.example.com/posts", TransportRequest())
        await transport.aclose()
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def __call__(self, url: str, request: TransportRequest) -> TransportResponse:
        send = self._client.request(request.method, url, headers=dict(request.headers))
        if request.cancel is not None:
            raw = await request.cancel.guard(send)
        else:
            raw = await send

        return Response(
            status=raw.status_code,
            body=raw.content,
            headers=dict(raw.headers),
            status_text=raw.reason_phrase,
        )

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()
