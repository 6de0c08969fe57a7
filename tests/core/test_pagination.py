"""Tests for PageIterator and ItemIterator."""

import pytest

from marble_sdk.core.cancellation import CancellationToken
from marble_sdk.core.errors import Cancelled
from marble_sdk.core.models import Page, Pagination
from marble_sdk.core.pagination import ItemIterator, PageIterator


def make_page(page: int, next_page, items) -> Page:
    return Page(
        items=list(items),
        pagination=Pagination(
            limit=len(items),
            current_page=page,
            next_page=next_page,
            previous_page=page - 1 if page > 1 else None,
            total_items=99,
            total_pages=99,
        ),
    )


class ScriptedFetcher:
    """Serves pages 1..n, each with two items; the last page is terminal."""

    def __init__(self, total_pages: int):
        self.total_pages = total_pages
        self.requests: list[tuple[int, int]] = []

    async def __call__(self, page: int, size: int) -> Page:
        self.requests.append((page, size))
        next_page = page + 1 if page < self.total_pages else None
        return make_page(page, next_page, [f"p{page}-a", f"p{page}-b"])


class TestPageIterator:
    """Tests for cursor-following page iteration."""

    @pytest.mark.asyncio
    async def test_stops_after_terminal_page(self):
        fetch = ScriptedFetcher(total_pages=3)
        pages = [page async for page in PageIterator(fetch, page_size=2)]

        assert [p.pagination.current_page for p in pages] == [1, 2, 3]
        assert fetch.requests == [(1, 2), (2, 2), (3, 2)]

    @pytest.mark.asyncio
    async def test_terminal_page_ignores_total_pages(self):
        async def fetch(page, size):
            return make_page(page, None, ["only"])

        pages = [page async for page in PageIterator(fetch)]
        assert len(pages) == 1

    @pytest.mark.asyncio
    async def test_max_pages(self):
        fetch = ScriptedFetcher(total_pages=10)
        iterator = PageIterator(fetch, max_pages=2)
        pages = [page async for page in iterator]

        assert len(pages) == 2
        assert iterator.pages_read == 2
        assert iterator.has_more is False

    @pytest.mark.asyncio
    async def test_max_pages_zero_fetches_nothing(self):
        fetch = ScriptedFetcher(total_pages=3)
        pages = [page async for page in PageIterator(fetch, max_pages=0)]
        assert pages == []
        assert fetch.requests == []

    @pytest.mark.asyncio
    async def test_start_page(self):
        fetch = ScriptedFetcher(total_pages=4)
        pages = [page async for page in PageIterator(fetch, start_page=3, page_size=5)]
        assert fetch.requests == [(3, 5), (4, 5)]
        assert len(pages) == 2

    @pytest.mark.asyncio
    async def test_follows_server_cursor(self):
        cursors = {1: 5, 5: None}

        async def fetch(page, size):
            return make_page(page, cursors[page], ["x"])

        pages = [page async for page in PageIterator(fetch)]
        assert [p.pagination.current_page for p in pages] == [1, 5]

    @pytest.mark.asyncio
    async def test_fetch_next_manual(self):
        iterator = PageIterator(ScriptedFetcher(total_pages=2))
        assert iterator.has_more
        await iterator.fetch_next()
        await iterator.fetch_next()
        assert not iterator.has_more
        with pytest.raises(StopAsyncIteration):
            await iterator.fetch_next()

    @pytest.mark.asyncio
    async def test_cancelled_before_first_page(self):
        token = CancellationToken()
        token.cancel()
        fetch = ScriptedFetcher(total_pages=3)
        with pytest.raises(Cancelled):
            [page async for page in PageIterator(fetch, cancel=token)]
        assert fetch.requests == []

    @pytest.mark.asyncio
    async def test_cancelled_between_pages(self):
        token = CancellationToken()
        fetch = ScriptedFetcher(total_pages=5)
        seen = []
        with pytest.raises(Cancelled):
            async for page in PageIterator(fetch, cancel=token):
                seen.append(page)
                token.cancel()
        assert len(seen) == 1
        assert len(fetch.requests) == 1

    def test_invalid_arguments(self):
        fetch = ScriptedFetcher(total_pages=1)
        with pytest.raises(ValueError):
            PageIterator(fetch, start_page=0)
        with pytest.raises(ValueError):
            PageIterator(fetch, page_size=0)
        with pytest.raises(ValueError):
            PageIterator(fetch, max_pages=-1)


class TestItemIterator:
    """Tests for flattening pages into items."""

    @pytest.mark.asyncio
    async def test_flattens_in_order(self):
        items = [item async for item in ItemIterator(PageIterator(ScriptedFetcher(total_pages=2)))]
        assert items == ["p1-a", "p1-b", "p2-a", "p2-b"]

    @pytest.mark.asyncio
    async def test_checks_token_before_each_item(self):
        token = CancellationToken()
        fetch = ScriptedFetcher(total_pages=3)
        seen = []
        with pytest.raises(Cancelled):
            async for item in ItemIterator(PageIterator(fetch, cancel=token)):
                seen.append(item)
                token.cancel()
        assert seen == ["p1-a"]
        assert len(fetch.requests) == 1
