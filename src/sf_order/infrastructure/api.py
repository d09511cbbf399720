# src/sf_order/infrastructure/api.py
"""OrderApi — REST implementation of OrderSource.

Endpoints (prefix defaults to /api/order/api/v1):
  POST /orders          Idempotency-Key header, body {productId, quantity}
                        -> 202 {orderId, status}  (accepted, not completed)
  GET  /orders?limit=&cursor=  -> {data: Order[], meta: {nextCursor}}
  GET  /orders/{id}            -> Order
"""

from src.sf_common.http_client import ApiClient
from src.sf_common.pagination import Page
from src.sf_common.response import PaginatedResponse
from src.sf_order.application.schemas import (
    CreateOrderRequest,
    CreateOrderResponse,
    OrderListParams,
    OrderOut,
)
from src.sf_order.domain.models import Order

IDEMPOTENCY_HEADER = "Idempotency-Key"


class OrderApi:
    def __init__(self, client: ApiClient, prefix: str = "/api/order/api/v1") -> None:
        self._client = client
        self._prefix = prefix.rstrip("/")

    async def create_order(
        self, data: CreateOrderRequest, idempotency_key: str
    ) -> CreateOrderResponse:
        payload = await self._client.post(
            f"{self._prefix}/orders",
            json=data.to_wire(),
            headers={IDEMPOTENCY_HEADER: idempotency_key},
        )
        return CreateOrderResponse.model_validate(payload)

    async def get_order(self, order_id: str) -> Order:
        payload = await self._client.get(f"{self._prefix}/orders/{order_id}")
        return OrderOut.model_validate(payload).to_domain()

    async def list_orders(self, params: OrderListParams) -> Page[Order]:
        payload = await self._client.get(f"{self._prefix}/orders", params=params.to_query())
        response = PaginatedResponse[OrderOut].model_validate(payload)
        return response.to_page(OrderOut.to_domain)
