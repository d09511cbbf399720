# src/sf_order/application/schemas.py
from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from src.sf_common.enums import OrderStatus
from src.sf_common.money import format_money
from src.sf_common.response import CamelModel
from src.sf_order.domain.models import Order


class CreateOrderRequest(CamelModel):
    product_id: str = Field(min_length=1)
    quantity: int = Field(ge=1)

    @field_validator("product_id")
    @classmethod
    def no_blank_product(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("product_id must not be blank")
        return v


class CreateOrderResponse(CamelModel):
    order_id: str
    status: OrderStatus


class OrderOut(CamelModel):
    id: str
    product_id: str | None = None
    quantity: int | None = None
    unit_price: str | None = None
    status: OrderStatus
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("unit_price", mode="before")
    @classmethod
    def normalize_price(cls, v: Any) -> str | None:
        return None if v is None else format_money(v)

    def to_domain(self) -> Order:
        return Order(
            id=self.id,
            status=self.status,
            product_id=self.product_id,
            quantity=self.quantity,
            unit_price=self.unit_price,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_domain(cls, order: Order) -> "OrderOut":
        return cls(
            id=order.id,
            product_id=order.product_id,
            quantity=order.quantity,
            unit_price=order.unit_price,
            status=order.status,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class OrderListParams(CamelModel):
    limit: int = Field(default=20, ge=1, le=100)
    cursor: str | None = None

    def to_query(self) -> dict[str, Any]:
        return {"limit": self.limit, "cursor": self.cursor}
