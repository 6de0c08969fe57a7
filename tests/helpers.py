"""Test helpers: a scripted fake transport and wire-payload builders."""

from typing import Any, Callable, Union

from marble_sdk.core.transport import Response, TransportRequest

# ---------------------------------------------------------------------------
# Fake transport
# ---------------------------------------------------------------------------

Scripted = Union[Response, BaseException, Callable[[str, TransportRequest], Response]]


class FakeTransport:
    """Transport returning scripted responses in order and recording calls."""

    def __init__(self, *script: Scripted):
        self.script = list(script)
        self.calls: list[tuple[str, TransportRequest]] = []

    @property
    def urls(self) -> list[str]:
        return [url for url, _ in self.calls]

    async def __call__(self, url: str, request: TransportRequest) -> Response:
        self.calls.append((url, request))
        if not self.script:
            raise AssertionError(f"Unexpected request to {url}")
        step = self.script.pop(0)
        if isinstance(step, BaseException):
            raise step
        if callable(step):
            return step(url, request)
        return step


def json_response(data: Any, status: int = 200, **headers: str) -> Response:
    return Response.from_json(data, status=status, headers=headers)


def error_response(
    status: int, body: bytes = b"", status_text: str = "", **headers: str
) -> Response:
    return Response(status=status, body=body, headers=headers, status_text=status_text)


# ---------------------------------------------------------------------------
# Wire payload builders
# ---------------------------------------------------------------------------


def make_post(**overrides: Any) -> dict[str, Any]:
    post = {
        "id": "p1",
        "slug": "hello-world",
        "title": "Hello World",
        "content": "<p>Hi</p>",
        "description": "First post",
        "coverImage": "https://cdn.example.com/cover.png",
        "publishedAt": "2024-01-15T10:00:00.000Z",
        "updatedAt": "2024-01-16T12:30:00.000Z",
        "authors": [{"id": "a1", "name": "Ada", "image": "https://cdn.example.com/ada.png"}],
        "category": {"id": "c1", "name": "News", "slug": "news"},
        "tags": [{"id": "t1", "name": "Python", "slug": "python"}],
        "attribution": None,
    }
    post.update(overrides)
    return post


def make_pagination(
    current: int = 1,
    next_page: Any = None,
    total_pages: int = 1,
    limit: int = 10,
    total: int = 1,
) -> dict[str, Any]:
    return {
        "limit": limit,
        "currentPage": current,
        "nextPage": next_page,
        "previousPage": current - 1 if current > 1 else None,
        "totalItems": total,
        "totalPages": total_pages,
    }
