"""Cursor pagination: page container, cursor codec and the forward-only walker.

Wire format of a paginated response:
    {"data": [...], "meta": {"nextCursor": "<opaque>" | null}}

A null cursor marks the last page. Cursors are opaque to the client and
only ever passed back verbatim.

Cursor format issued by the local store (created_at + id, not sequential):
    {"ts": "<created_at ISO>", "id": "<entity id>"}  encoded as Base64 JSON.
"""

import base64
import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass
class Page(Generic[T]):
    data: list[T] = field(default_factory=list)
    next_cursor: str | None = None

    @property
    def is_last(self) -> bool:
        return self.next_cursor is None


# ---------------------------------------------------------------------------
# Cursor utilities
# ---------------------------------------------------------------------------


def cursor_encode(created_at: datetime | str, entity_id: str) -> str:
    """Encode composite cursor from the last entity in a page."""
    ts = created_at.isoformat() if isinstance(created_at, datetime) else created_at
    payload = {"ts": ts, "id": entity_id}
    return base64.urlsafe_b64encode(json.dumps(payload).encode()).decode()


def cursor_decode(cursor: str | None) -> tuple[str | None, str | None]:
    """Decode composite cursor -> (ts_iso, entity_id), or (None, None) on error."""
    if cursor is None:
        return None, None
    try:
        data = json.loads(base64.urlsafe_b64decode(cursor.encode()).decode())
        return data["ts"], data["id"]
    except Exception:
        return None, None


def paginate(
    items: list[T],
    sort_key: Callable[[T], tuple[str, str]],
    cursor: str | None,
    limit: int,
    descending: bool = True,
) -> Page[T]:
    """Cut one page out of an in-memory collection.

    ``sort_key`` returns (created_at ISO, id); the page starts strictly after
    the position the cursor encodes. An undecodable cursor restarts from
    the first page.
    """
    ordered = sorted(items, key=sort_key, reverse=descending)
    ts, entity_id = cursor_decode(cursor)
    if ts is not None and entity_id is not None:
        marker = (ts, entity_id)
        if descending:
            ordered = [item for item in ordered if sort_key(item) < marker]
        else:
            ordered = [item for item in ordered if sort_key(item) > marker]

    # Take limit+1 to detect a following page without counting
    window = ordered[: limit + 1]
    has_more = len(window) > limit
    page = window[:limit]
    next_cursor = cursor_encode(*sort_key(page[-1])) if has_more and page else None
    return Page(data=page, next_cursor=next_cursor)


# ---------------------------------------------------------------------------
# Walker
# ---------------------------------------------------------------------------

PageFetcher = Callable[[str | None], Awaitable[Page[T]]]


class CursorPaginationWalker(Generic[T]):
    """Lazy, finite, forward-only sequence of pages.

    ``next_page()`` advances by exactly one page using the cursor of the
    previous page; the first call fetches with no cursor. Once a page with
    no next cursor has been returned, further calls return None. A failed
    fetch propagates and leaves the position unchanged, so calling
    ``next_page()`` again retries the same page.

    Not safe for concurrent ``next_page()`` calls on one instance; restart
    by building a new walker.
    """

    def __init__(self, fetch_page: PageFetcher[T]) -> None:
        self._fetch_page = fetch_page
        self._cursor: str | None = None
        self._exhausted = False
        self._pages_fetched = 0

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    @property
    def pages_fetched(self) -> int:
        return self._pages_fetched

    async def next_page(self) -> Page[T] | None:
        if self._exhausted:
            return None
        page = await self._fetch_page(self._cursor)
        self._pages_fetched += 1
        self._cursor = page.next_cursor
        if page.next_cursor is None:
            self._exhausted = True
        logger.debug("Fetched page %d (last=%s)", self._pages_fetched, page.is_last)
        return page

    def __aiter__(self) -> AsyncIterator[Page[T]]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[Page[T]]:
        while True:
            page = await self.next_page()
            if page is None:
                return
            yield page

    async def collect_items(self) -> list[T]:
        """Walk the remaining pages and append their items in order."""
        items: list[T] = []
        async for page in self:
            items.extend(page.data)
        return items


def pages(fetch_page: PageFetcher[T]) -> CursorPaginationWalker[T]:
    """Start a fresh walk from the first page."""
    return CursorPaginationWalker(fetch_page)
