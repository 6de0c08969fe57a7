"""Marble API client.

``MarbleClient`` exposes the read-only resource operations of the Marble
CMS API (posts, tags, categories, authors) on top of the request
execution core. Each call builds a path, runs it through the
``RequestExecutor`` and normalizes the result.

Example:
    async with MarbleClient("https://api.marblecms.com/v1/ws_123", api_key=key) as client:
        page = await client.list_posts(PostsListParams(limit=10, tags=["python"]))
        async for post in client.paginate_posts(max_pages=3):
            print(post.slug)
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping, Optional, Sequence

from marble_sdk.core.cancellation import CancellationToken
from marble_sdk.core.executor import RequestExecutor
from marble_sdk.core.models import Author, Category, Page, Post, Tag
from marble_sdk.core.normalizer import (
    AUTHORS,
    CATEGORIES,
    POSTS,
    TAGS,
    EnvelopeSpec,
    list_shape,
    single_shape,
)
from marble_sdk.core.pagination import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_POSTS_PAGE_SIZE,
    DEFAULT_START_PAGE,
    ItemIterator,
    PageIterator,
)
from marble_sdk.core.retry import DEFAULT_RETRY_POLICY, RetryPolicy
from marble_sdk.core.shared import build_query, encode_path_segment
from marble_sdk.core.transport import DEFAULT_TIMEOUT, HttpxTransport, Transport

if TYPE_CHECKING:
    from marble_sdk.config import ClientConfig

logger = logging.getLogger(__name__)

SORT_OPTIONS = ("publishedAt", "-publishedAt", "updatedAt", "-updatedAt")


@dataclass(frozen=True)
class PostsListParams:
    """Query parameters for ``GET /posts``.

    Attributes:
        limit: Items per page
        page: Page number (1-based)
        search: Full-text search query
        tags: Tag slugs; sent as one comma-joined ``tags`` value
        category: Category slug
        author: Author id
        sort: One of ``publishedAt``, ``-publishedAt``, ``updatedAt``,
            ``-updatedAt``
    """

    limit: Optional[int] = None
    page: Optional[int] = None
    search: Optional[str] = None
    tags: Optional[Sequence[str]] = None
    category: Optional[str] = None
    author: Optional[str] = None
    sort: Optional[str] = None

    def __post_init__(self) -> None:
        if self.sort is not None and self.sort not in SORT_OPTIONS:
            raise ValueError(
                f"Invalid sort {self.sort!r}; expected one of {', '.join(SORT_OPTIONS)}"
            )
        if isinstance(self.tags, str):
            raise ValueError("tags must be a sequence of slugs, not a string")

    def to_query(self) -> dict[str, Any]:
        return {
            "limit": self.limit,
            "page": self.page,
            "search": self.search,
            "tags": list(self.tags) if self.tags is not None else None,
            "category": self.category,
            "author": self.author,
            "sort": self.sort,
        }


class MarbleClient:
    """Async client for the Marble CMS read API.

    Configuration is fixed at construction. The client owns the default
    ``HttpxTransport`` it creates and closes it in ``aclose()`` (or on
    leaving ``async with``); a caller-supplied transport is left alone.

    Args:
        base_url: Workspace API root (e.g. ``https://api.marblecms.com/v1/<workspace>``)
        api_key: Optional bearer token
        headers: Default headers for every request
        transport: Custom transport callable; defaults to ``HttpxTransport``
        retry_policy: Retry policy; None disables retries
        timeout: Request timeout in seconds for the default transport
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
        transport: Optional[Transport] = None,
        retry_policy: Optional[RetryPolicy] = DEFAULT_RETRY_POLICY,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        if not base_url:
            raise ValueError("base_url is required")

        self._owned_transport: Optional[HttpxTransport] = None
        if transport is None:
            self._owned_transport = HttpxTransport(timeout=timeout)
            transport = self._owned_transport

        self._executor = RequestExecutor(
            base_url,
            transport,
            api_key=api_key,
            headers=headers,
            retry_policy=retry_policy,
        )

    @classmethod
    def from_config(
        cls, config: ClientConfig, *, transport: Optional[Transport] = None
    ) -> MarbleClient:
        """Build a client from a loaded ``ClientConfig``.

        Raises:
            ValueError: ``config.base_url`` is not set.
        """
        if not config.base_url:
            raise ValueError(
                "base_url is not configured (set MARBLE_BASE_URL or [client].base_url)"
            )
        return cls(
            config.base_url,
            api_key=config.api_key,
            transport=transport,
            retry_policy=config.build_retry_policy(),
            timeout=config.timeout,
        )

    @property
    def base_url(self) -> str:
        return self._executor.base_url

    @property
    def executor(self) -> RequestExecutor:
        return self._executor

    async def aclose(self) -> None:
        """Release the default transport, if this client created it."""
        if self._owned_transport is not None:
            await self._owned_transport.aclose()

    async def __aenter__(self) -> MarbleClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Posts
    # ------------------------------------------------------------------

    async def list_posts(
        self,
        params: Optional[PostsListParams] = None,
        *,
        headers: Optional[Mapping[str, str]] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> Page[Post]:
        """List posts (``GET /posts``)."""
        params = params or PostsListParams()
        path = f"/posts{build_query(params.to_query())}"
        return await self._executor.execute(
            path, list_shape(POSTS, params.page), headers=headers, cancel=cancel
        )

    async def get_post(
        self,
        slug_or_id: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> Post:
        """Fetch one post by slug or id (``GET /posts/{slug_or_id}``)."""
        return await self._get_one(POSTS, slug_or_id, headers=headers, cancel=cancel)

    def iterate_post_pages(
        self,
        params: Optional[PostsListParams] = None,
        *,
        start_page: int = DEFAULT_START_PAGE,
        page_size: int = DEFAULT_POSTS_PAGE_SIZE,
        max_pages: Optional[int] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> PageIterator[Post]:
        """Iterate pages of posts; ``page``/``limit`` in *params* are ignored."""
        base = params or PostsListParams()

        async def fetch(page: int, size: int) -> Page[Post]:
            scoped = dataclasses.replace(base, page=page, limit=size)
            return await self.list_posts(scoped, cancel=cancel)

        return PageIterator(
            fetch,
            start_page=start_page,
            page_size=page_size,
            max_pages=max_pages,
            cancel=cancel,
        )

    def paginate_posts(
        self,
        params: Optional[PostsListParams] = None,
        *,
        start_page: int = DEFAULT_START_PAGE,
        page_size: int = DEFAULT_POSTS_PAGE_SIZE,
        max_pages: Optional[int] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> ItemIterator[Post]:
        """Iterate individual posts across pages."""
        return ItemIterator(
            self.iterate_post_pages(
                params,
                start_page=start_page,
                page_size=page_size,
                max_pages=max_pages,
                cancel=cancel,
            )
        )

    # ------------------------------------------------------------------
    # Tags, categories, authors
    # ------------------------------------------------------------------

    async def list_tags(
        self,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        *,
        headers: Optional[Mapping[str, str]] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> Page[Tag]:
        """List tags (``GET /tags``)."""
        return await self._list(TAGS, page, limit, headers=headers, cancel=cancel)

    async def get_tag(
        self,
        tag_id: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> Tag:
        return await self._get_one(TAGS, tag_id, headers=headers, cancel=cancel)

    def iterate_tag_pages(
        self,
        *,
        start_page: int = DEFAULT_START_PAGE,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: Optional[int] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> PageIterator[Tag]:
        return self._pages(TAGS, start_page, page_size, max_pages, cancel)

    def paginate_tags(
        self,
        *,
        start_page: int = DEFAULT_START_PAGE,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: Optional[int] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> ItemIterator[Tag]:
        return ItemIterator(self._pages(TAGS, start_page, page_size, max_pages, cancel))

    async def list_categories(
        self,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        *,
        headers: Optional[Mapping[str, str]] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> Page[Category]:
        """List categories (``GET /categories``)."""
        return await self._list(CATEGORIES, page, limit, headers=headers, cancel=cancel)

    async def get_category(
        self,
        category_id: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> Category:
        return await self._get_one(CATEGORIES, category_id, headers=headers, cancel=cancel)

    def iterate_category_pages(
        self,
        *,
        start_page: int = DEFAULT_START_PAGE,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: Optional[int] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> PageIterator[Category]:
        return self._pages(CATEGORIES, start_page, page_size, max_pages, cancel)

    def paginate_categories(
        self,
        *,
        start_page: int = DEFAULT_START_PAGE,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: Optional[int] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> ItemIterator[Category]:
        return ItemIterator(
            self._pages(CATEGORIES, start_page, page_size, max_pages, cancel)
        )

    async def list_authors(
        self,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        *,
        headers: Optional[Mapping[str, str]] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> Page[Author]:
        """List authors (``GET /authors``)."""
        return await self._list(AUTHORS, page, limit, headers=headers, cancel=cancel)

    async def get_author(
        self,
        author_id: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> Author:
        return await self._get_one(AUTHORS, author_id, headers=headers, cancel=cancel)

    def iterate_author_pages(
        self,
        *,
        start_page: int = DEFAULT_START_PAGE,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: Optional[int] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> PageIterator[Author]:
        return self._pages(AUTHORS, start_page, page_size, max_pages, cancel)

    def paginate_authors(
        self,
        *,
        start_page: int = DEFAULT_START_PAGE,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: Optional[int] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> ItemIterator[Author]:
        return ItemIterator(
            self._pages(AUTHORS, start_page, page_size, max_pages, cancel)
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _list(
        self,
        spec: EnvelopeSpec,
        page: Optional[int],
        limit: Optional[int],
        *,
        headers: Optional[Mapping[str, str]] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> Page:
        path = f"/{spec.collection_key}{build_query({'page': page, 'limit': limit})}"
        return await self._executor.execute(
            path, list_shape(spec, page), headers=headers, cancel=cancel
        )

    async def _get_one(
        self,
        spec: EnvelopeSpec,
        identifier: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> Any:
        if not identifier:
            raise ValueError(f"{spec.singular_key} identifier is required")
        path = f"/{spec.collection_key}/{encode_path_segment(identifier)}"
        return await self._executor.execute(
            path, single_shape(spec), headers=headers, cancel=cancel
        )

    def _pages(
        self,
        spec: EnvelopeSpec,
        start_page: int,
        page_size: int,
        max_pages: Optional[int],
        cancel: Optional[CancellationToken],
    ) -> PageIterator:
        async def fetch(page: int, size: int) -> Page:
            return await self._list(spec, page, size, cancel=cancel)

        return PageIterator(
            fetch,
            start_page=start_page,
            page_size=page_size,
            max_pages=max_pages,
            cancel=cancel,
        )
