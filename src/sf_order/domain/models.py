"""Order domain model — pure dataclasses, no HTTP or storage dependency."""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from src.sf_common.enums import PENDING_ORDER_STATUSES, OrderStatus
from src.sf_common.errors import AppError
from src.sf_common.money import parse_money


@dataclass
class Order:
    id: str
    status: OrderStatus
    # Absent on an optimistic entry seeded from the 202 response
    product_id: str | None = None
    quantity: int | None = None
    unit_price: str | None = None  # money string, "25.90"
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def is_pending(self) -> bool:
        return self.status in PENDING_ORDER_STATUSES

    def total(self) -> Decimal | None:
        if self.unit_price is None or self.quantity is None:
            return None
        return parse_money(self.unit_price) * self.quantity


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    """Statuses only move forward: pending -> processing -> completed/failed."""
    if current == new:
        return True
    if current.is_terminal:
        return False
    if current == OrderStatus.PROCESSING and new == OrderStatus.PENDING:
        return False
    return True


@dataclass(frozen=True)
class CartLine:
    product_id: str
    quantity: int


@dataclass(frozen=True)
class CreatedOrder:
    order_id: str
    status: OrderStatus
    idempotency_key: str


@dataclass
class LineError:
    line: int  # 0-based index into the submitted lines
    product_id: str
    error: AppError


@dataclass
class SubmissionResult:
    order_ids: list[str] = field(default_factory=list)
    errors: list[LineError] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.errors

    @property
    def is_partial(self) -> bool:
        return bool(self.order_ids) and bool(self.errors)
