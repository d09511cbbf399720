# src/sf_order/infrastructure/local_backend.py
"""LocalOrderBackend — in-process OrderSource over the client key-value store.

Mirrors the REST contract for local mode:
  - creation is idempotent per Idempotency-Key: the same key with the same
    payload returns the original order, a different payload is a conflict
  - new orders start 'pending'; advance() moves them forward, never back
  - listing is newest first with the composite (created_at, id) cursor

Storage layout:
  {namespace}:orders      JSON list of orders (wire format)
  {namespace}:order-keys  {idempotency_key: {orderId, productId, quantity}}
"""
import asyncio
import logging
import uuid
from dataclasses import replace
from typing import Any

from src.sf_catalog.domain.repository import ProductSource
from src.sf_common.datetime_utils import utc_now
from src.sf_common.enums import OrderStatus
from src.sf_common.errors import (
    IdempotencyConflictError,
    NotFoundError,
    ValidationError,
)
from src.sf_common.pagination import Page, paginate
from src.sf_common.storage import KeyValueStorage, namespaced
from src.sf_idempotency.domain.models import is_valid_key
from src.sf_order.application.schemas import (
    CreateOrderRequest,
    CreateOrderResponse,
    OrderListParams,
    OrderOut,
)
from src.sf_order.domain.models import Order, can_transition

logger = logging.getLogger(__name__)


def _sort_key(order: Order) -> tuple[str, str]:
    created = order.created_at.isoformat() if order.created_at else ""
    return created, order.id


class LocalOrderBackend:
    """Concrete implementation of OrderSource for local mode and tests."""

    def __init__(self, storage: KeyValueStorage, namespace: str, products: ProductSource) -> None:
        self._storage = storage
        self._orders_key = namespaced(namespace, "orders")
        self._keys_key = namespaced(namespace, "order-keys")
        self._products = products
        # Check-then-insert on the key table must not interleave
        self._lock = asyncio.Lock()

    async def _load_orders(self) -> list[Order]:
        raw = await self._storage.get(self._orders_key) or []
        return [OrderOut.model_validate(item).to_domain() for item in raw]

    async def _save_orders(self, orders: list[Order]) -> None:
        await self._storage.set(
            self._orders_key, [OrderOut.from_domain(o).to_wire() for o in orders]
        )

    async def create_order(
        self, data: CreateOrderRequest, idempotency_key: str
    ) -> CreateOrderResponse:
        if not is_valid_key(idempotency_key):
            raise ValidationError(
                "Idempotency-Key must be 8-128 characters", {"field": "Idempotency-Key"}
            )
        async with self._lock:
            keys: dict[str, dict[str, Any]] = await self._storage.get(self._keys_key) or {}
            existing = keys.get(idempotency_key)
            if existing is not None:
                if (
                    existing["productId"] != data.product_id
                    or existing["quantity"] != data.quantity
                ):
                    raise IdempotencyConflictError(
                        f"Idempotency-Key {idempotency_key} was used with a different payload"
                    )
                order = await self.get_order(existing["orderId"])
                logger.info("Replayed order %s for key %s", order.id, idempotency_key)
                return CreateOrderResponse(order_id=order.id, status=order.status)

            try:
                product = await self._products.get_product(data.product_id)
            except NotFoundError as exc:
                raise ValidationError(
                    f"Unknown product: {data.product_id}", {"field": "productId"}
                ) from exc
            if not product.available:
                raise ValidationError(
                    f"Product is not available: {product.name}", {"field": "productId"}
                )

            now = utc_now()
            order = Order(
                id=str(uuid.uuid4()),
                status=OrderStatus.PENDING,
                product_id=product.id,
                quantity=data.quantity,
                unit_price=product.price,
                created_at=now,
                updated_at=now,
            )
            orders = await self._load_orders()
            orders.append(order)
            await self._save_orders(orders)
            keys[idempotency_key] = {
                "orderId": order.id,
                "productId": data.product_id,
                "quantity": data.quantity,
            }
            await self._storage.set(self._keys_key, keys)
            logger.info("Accepted order %s (product=%s qty=%d)", order.id, product.id, data.quantity)
            return CreateOrderResponse(order_id=order.id, status=order.status)

    async def get_order(self, order_id: str) -> Order:
        for order in await self._load_orders():
            if order.id == order_id:
                return order
        raise NotFoundError(f"Order not found: {order_id}")

    async def list_orders(self, params: OrderListParams) -> Page[Order]:
        orders = await self._load_orders()
        return paginate(orders, _sort_key, params.cursor, params.limit, descending=True)

    async def advance(self, order_id: str, status: OrderStatus) -> Order:
        """Move an order forward in its lifecycle (the local stand-in for the processor)."""
        async with self._lock:
            orders = await self._load_orders()
            for index, order in enumerate(orders):
                if order.id != order_id:
                    continue
                if not can_transition(order.status, status):
                    raise ValidationError(
                        f"Order {order_id} cannot move from {order.status.value} to {status.value}"
                    )
                updated = replace(order, status=status, updated_at=utc_now())
                orders[index] = updated
                await self._save_orders(orders)
                return updated
        raise NotFoundError(f"Order not found: {order_id}")
