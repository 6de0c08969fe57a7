"""Cancellable, forward-only pagination.

``PageIterator`` walks a list endpoint by following the server's
``next_page`` cursor. ``ItemIterator`` flattens one into individual items
and has no network logic of its own.

Example:
    pages = PageIterator(lambda page, size: client.list_tags(page, size), page_size=50)
    while pages.has_more:
        page = await pages.fetch_next()

    async for tag in ItemIterator(pages):
        ...
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Generic, Optional, TypeVar

from marble_sdk.core.cancellation import CancellationToken
from marble_sdk.core.models import Page

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_START_PAGE = 1
DEFAULT_POSTS_PAGE_SIZE = 20
DEFAULT_PAGE_SIZE = 50

# Fetch one page: (page, page_size) -> Page
PageFetcher = Callable[[int, int], Awaitable[Page[Any]]]


class PageIterator(Generic[T]):
    """Explicit cursor over the pages of a list endpoint.

    Pages are requested strictly in cursor order. Iteration stops after
    the page whose ``next_page`` is None, or after ``max_pages`` pages.

    Args:
        fetch: Coroutine function fetching one page
        start_page: First page number to request
        page_size: Items per page
        max_pages: Optional cap on the number of pages read
        cancel: Token checked before every page request
    """

    def __init__(
        self,
        fetch: PageFetcher,
        *,
        start_page: int = DEFAULT_START_PAGE,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: Optional[int] = None,
        cancel: Optional[CancellationToken] = None,
    ):
        if start_page < 1:
            raise ValueError(f"start_page must be >= 1, got {start_page}")
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")
        if max_pages is not None and max_pages < 0:
            raise ValueError(f"max_pages must be non-negative, got {max_pages}")

        self._fetch = fetch
        self._next_page: Optional[int] = start_page
        self.page_size = page_size
        self.max_pages = max_pages
        self.cancel = cancel
        self._pages_read = 0

    @property
    def pages_read(self) -> int:
        return self._pages_read

    @property
    def has_more(self) -> bool:
        """False once the terminal page or the page cap has been reached."""
        if self._next_page is None:
            return False
        return self.max_pages is None or self._pages_read < self.max_pages

    async def fetch_next(self) -> Page[T]:
        """Request the next page and advance the cursor.

        Raises:
            StopAsyncIteration: No pages remain.
            Cancelled: The token fired before the request.
        """
        if not self.has_more:
            raise StopAsyncIteration
        if self.cancel is not None:
            self.cancel.raise_if_cancelled()

        page_number = self._next_page
        assert page_number is not None
        page = await self._fetch(page_number, self.page_size)
        self._pages_read += 1
        self._next_page = page.pagination.next_page
        logger.debug(
            "Fetched page %d (%d items), next_page=%s",
            page_number,
            len(page.items),
            self._next_page,
        )
        return page

    def __aiter__(self) -> "PageIterator[T]":
        return self

    async def __anext__(self) -> Page[T]:
        return await self.fetch_next()


class ItemIterator(Generic[T]):
    """Flattens a ``PageIterator`` into its items.

    The page iterator's token is checked before each item is yielded.
    """

    def __init__(self, pages: PageIterator[T]):
        self.pages = pages

    def __aiter__(self) -> AsyncIterator[T]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[T]:
        cancel = self.pages.cancel
        async for page in self.pages:
            for item in page.items:
                if cancel is not None:
                    cancel.raise_if_cancelled()
                yield item
