# src/sf_order/domain/repository.py
"""OrderSource Protocol — interface contract for the REST client and the local backend."""
from typing import Protocol

from src.sf_common.pagination import Page
from src.sf_order.application.schemas import (
    CreateOrderRequest,
    CreateOrderResponse,
    OrderListParams,
)
from src.sf_order.domain.models import Order


class OrderSource(Protocol):
    async def create_order(
        self, data: CreateOrderRequest, idempotency_key: str
    ) -> CreateOrderResponse: ...

    async def get_order(self, order_id: str) -> Order: ...

    async def list_orders(self, params: OrderListParams) -> Page[Order]: ...
