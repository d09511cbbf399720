"""Unit tests for cursor codec, in-memory paginate() and CursorPaginationWalker."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import pytest

from src.sf_common.errors import NetworkError
from src.sf_common.pagination import (
    CursorPaginationWalker,
    Page,
    cursor_decode,
    cursor_encode,
    paginate,
    pages,
)


@dataclass
class _Row:
    id: str
    created_at: datetime


def _sort_key(row: _Row) -> tuple[str, str]:
    return row.created_at.isoformat(), row.id


def _make_rows(n: int) -> list[_Row]:
    base = datetime(2024, 1, 1, tzinfo=UTC)
    return [_Row(id=f"r{i}", created_at=base + timedelta(minutes=i)) for i in range(n)]


class _ThreePageServer:
    def __init__(self) -> None:
        self.cursors: list[str | None] = []
        self.fail_next = False

    async def __call__(self, cursor: str | None) -> Page[int]:
        self.cursors.append(cursor)
        if self.fail_next:
            self.fail_next = False
            raise NetworkError("offline")
        if cursor is None:
            return Page(data=[1, 2], next_cursor="c2")
        if cursor == "c2":
            return Page(data=[3, 4], next_cursor="c3")
        return Page(data=[5], next_cursor=None)


class TestCursorCodec:
    def test_decode_encoded(self) -> None:
        cursor = cursor_encode(datetime(2024, 1, 1, tzinfo=UTC), "abc")
        assert cursor_decode(cursor) == ("2024-01-01T00:00:00+00:00", "abc")

    def test_decode_garbage(self) -> None:
        assert cursor_decode("not-a-cursor!!") == (None, None)

    def test_decode_none(self) -> None:
        assert cursor_decode(None) == (None, None)


class TestPaginate:
    def test_descending_pages_cover_all_rows_once(self) -> None:
        rows = _make_rows(5)
        seen: list[str] = []
        cursor = None
        while True:
            page = paginate(rows, _sort_key, cursor, limit=2)
            seen.extend(r.id for r in page.data)
            if page.next_cursor is None:
                break
            cursor = page.next_cursor
        assert seen == ["r4", "r3", "r2", "r1", "r0"]

    def test_ascending(self) -> None:
        page = paginate(_make_rows(3), _sort_key, None, limit=2, descending=False)
        assert [r.id for r in page.data] == ["r0", "r1"]
        assert page.next_cursor is not None

    def test_exact_fit_has_no_next_cursor(self) -> None:
        page = paginate(_make_rows(2), _sort_key, None, limit=2)
        assert page.next_cursor is None

    def test_empty(self) -> None:
        page = paginate([], _sort_key, None, limit=20)
        assert page.data == []
        assert page.is_last

    def test_ties_on_timestamp_broken_by_id(self) -> None:
        ts = datetime(2024, 1, 1, tzinfo=UTC)
        rows = [_Row(id=str(i), created_at=ts) for i in range(1, 4)]
        first = paginate(rows, _sort_key, None, limit=2)
        second = paginate(rows, _sort_key, first.next_cursor, limit=2)
        assert [r.id for r in first.data] == ["3", "2"]
        assert [r.id for r in second.data] == ["1"]


class TestWalker:
    @pytest.mark.asyncio
    async def test_three_pages_then_done(self) -> None:
        server = _ThreePageServer()
        walker = CursorPaginationWalker(server)

        collected = [page async for page in walker]

        assert [p.data for p in collected] == [[1, 2], [3, 4], [5]]
        assert walker.exhausted
        assert walker.pages_fetched == 3
        assert await walker.next_page() is None
        assert server.cursors == [None, "c2", "c3"]

    @pytest.mark.asyncio
    async def test_next_page_advances_one_page(self) -> None:
        walker = CursorPaginationWalker(_ThreePageServer())
        first = await walker.next_page()
        assert first is not None
        assert first.data == [1, 2]
        assert not walker.exhausted

    @pytest.mark.asyncio
    async def test_error_leaves_position_unchanged(self) -> None:
        server = _ThreePageServer()
        walker = CursorPaginationWalker(server)
        await walker.next_page()
        server.fail_next = True

        with pytest.raises(NetworkError):
            await walker.next_page()

        page = await walker.next_page()
        assert page is not None
        assert page.data == [3, 4]
        assert server.cursors == [None, "c2", "c2"]
        assert walker.pages_fetched == 2

    @pytest.mark.asyncio
    async def test_collect_items_appends_in_order(self) -> None:
        assert await pages(_ThreePageServer()).collect_items() == [1, 2, 3, 4, 5]

    @pytest.mark.asyncio
    async def test_restart_is_a_new_walker(self) -> None:
        server = _ThreePageServer()
        await pages(server).collect_items()
        await pages(server).next_page()
        assert server.cursors[-1] is None

    @pytest.mark.asyncio
    async def test_single_page(self) -> None:
        async def fetch(cursor: str | None) -> Page[str]:
            return Page(data=["only"], next_cursor=None)

        walker = pages(fetch)
        assert [p.data async for p in walker] == [["only"]]
