"""OrderReadModel — cached view of order state.

Staleness: order lists 30s (keyed by the full query), order detail 10s.
Orders are never edited by the client: the only local writes are the
optimistic seed after submission and poll-driven patches.
"""

import logging
from typing import Any

from src.sf_common.cache import CacheKey, QueryCache, query_key
from src.sf_common.enums import OrderStatus
from src.sf_common.pagination import CursorPaginationWalker, Page
from src.sf_order.application.schemas import OrderListParams
from src.sf_order.domain.models import Order
from src.sf_order.domain.repository import OrderSource

logger = logging.getLogger(__name__)

ORDERS_ROOT: CacheKey = ("orders",)
ORDER_LISTS: CacheKey = ("orders", "list")


def order_list_key(params: OrderListParams) -> CacheKey:
    return query_key(*ORDER_LISTS, params=params.to_query())


def order_detail_key(order_id: str) -> CacheKey:
    return ("orders", "detail", order_id)


class OrderReadModel:
    def __init__(
        self,
        source: OrderSource,
        cache: QueryCache,
        list_stale_after: float = 30.0,
        detail_stale_after: float = 10.0,
    ) -> None:
        self._source = source
        self._cache = cache
        self._list_stale_after = list_stale_after
        self._detail_stale_after = detail_stale_after

    async def get_list(self, params: OrderListParams | None = None) -> Page[Order]:
        params = params or OrderListParams()
        return await self._cache.fetch(
            order_list_key(params),
            lambda: self._source.list_orders(params),
            self._list_stale_after,
        )

    async def get_by_id(self, order_id: str) -> Order:
        return await self._cache.fetch(
            order_detail_key(order_id),
            lambda: self._source.get_order(order_id),
            self._detail_stale_after,
        )

    async def refresh(self, order_id: str) -> Order:
        """Refetch regardless of staleness; joins a fetch already in flight."""
        return await self._cache.fetch(
            order_detail_key(order_id),
            lambda: self._source.get_order(order_id),
            self._detail_stale_after,
            force=True,
        )

    def walk(self, limit: int = 20) -> CursorPaginationWalker[Order]:
        async def fetch_page(cursor: str | None) -> Page[Order]:
            return await self.get_list(OrderListParams(limit=limit, cursor=cursor))

        return CursorPaginationWalker(fetch_page)

    def peek(self, order_id: str) -> Order | None:
        return self._cache.peek(order_detail_key(order_id))

    def seed(self, order_id: str, status: OrderStatus) -> Order:
        """Optimistic detail entry from the 202 response; full fields arrive on the next fetch."""
        order = Order(id=order_id, status=status)
        self._cache.set(order_detail_key(order_id), order, self._detail_stale_after)
        return order

    def on_order_created(self, order_id: str, status: OrderStatus) -> None:
        self._cache.invalidate_prefix(ORDER_LISTS)
        self.seed(order_id, status)

    def patch(self, order_id: str, **fields: Any) -> Order | None:
        """Merge fields into the cached order; a terminal status is never reverted."""
        current = self.peek(order_id)
        if current is None:
            return None
        new_status = fields.get("status")
        if new_status is not None and current.is_terminal and OrderStatus(new_status) != current.status:
            logger.warning(
                "Ignoring status patch %s on terminal order %s (%s)",
                new_status,
                order_id,
                current.status.value,
            )
            fields = {k: v for k, v in fields.items() if k != "status"}
        if "status" in fields:
            fields["status"] = OrderStatus(fields["status"])
        return self._cache.patch(order_detail_key(order_id), **fields)

    def invalidate(self, order_id: str) -> None:
        self._cache.invalidate(order_detail_key(order_id))

    def invalidate_lists(self) -> None:
        self._cache.invalidate_prefix(ORDER_LISTS)

    def invalidate_all(self) -> None:
        self._cache.invalidate_prefix(ORDERS_ROOT)
