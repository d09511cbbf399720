"""Domain models for sf_cart — pure dataclasses, no business logic."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from src.sf_common.money import format_money, parse_money


@dataclass
class CartItem:
    product_id: str
    name: str
    unit_price: str  # money string captured when the item was added
    quantity: int

    @property
    def subtotal(self) -> Decimal:
        return parse_money(self.unit_price) * self.quantity

    def to_dict(self) -> dict[str, Any]:
        return {
            "productId": self.product_id,
            "name": self.name,
            "unitPrice": self.unit_price,
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "CartItem":
        return cls(
            product_id=str(raw["productId"]),
            name=str(raw.get("name", "")),
            unit_price=format_money(raw["unitPrice"]),
            quantity=int(raw["quantity"]),
        )


@dataclass
class Cart:
    items: list[CartItem] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return sum((item.subtotal for item in self.items), Decimal("0.00"))

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def find(self, product_id: str) -> CartItem | None:
        for item in self.items:
            if item.product_id == product_id:
                return item
        return None
