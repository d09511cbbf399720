"""
Order Submission Flow
Turns cart lines into single-product order creations, one idempotency key per line.

    validate line ──▶ store key ──▶ POST /orders (Idempotency-Key) ──▶ bind key→order
                                                                    └─▶ invalidate lists, seed detail

Lines are independent: they run concurrently and a failing line never rolls
back the others. Transient transport failures are retried below this layer
with the same key, so the server sees one logical creation per line.
"""

import asyncio
import logging

from src.sf_common.errors import (
    AppError,
    IdempotencyConflictError,
    ValidationError,
)
from src.sf_idempotency.service import IdempotencyKeyManager
from src.sf_order.application.read_model import OrderReadModel
from src.sf_order.application.schemas import CreateOrderRequest
from src.sf_order.domain.models import CartLine, CreatedOrder, LineError, SubmissionResult
from src.sf_order.domain.repository import OrderSource

logger = logging.getLogger(__name__)


def validate_line(line: CartLine) -> None:
    if not isinstance(line.product_id, str) or not line.product_id.strip():
        raise ValidationError("Product id is required", {"field": "product_id"})
    if not isinstance(line.quantity, int) or line.quantity < 1:
        raise ValidationError(
            f"Quantity must be at least 1, got {line.quantity!r}", {"field": "quantity"}
        )


class OrderSubmissionFlow:
    def __init__(
        self,
        source: OrderSource,
        keys: IdempotencyKeyManager,
        read_model: OrderReadModel | None = None,
    ) -> None:
        self._source = source
        self._keys = keys
        self._read_model = read_model

    async def submit(
        self,
        lines: list[CartLine],
        idempotency_keys: list[str] | None = None,
    ) -> SubmissionResult:
        """Create one order per line; returns successes and per-line errors."""
        if idempotency_keys is not None and len(idempotency_keys) != len(lines):
            raise ValidationError(
                "One idempotency key per line is required",
                {"lines": len(lines), "keys": len(idempotency_keys)},
            )
        keys: list[str | None] = list(idempotency_keys) if idempotency_keys else [None] * len(lines)

        outcomes = await asyncio.gather(
            *(self._submit_captured(line, key) for line, key in zip(lines, keys))
        )

        result = SubmissionResult()
        for index, (line, outcome) in enumerate(zip(lines, outcomes)):
            if isinstance(outcome, AppError):
                result.errors.append(LineError(line=index, product_id=line.product_id, error=outcome))
            else:
                result.order_ids.append(outcome.order_id)

        if result.errors:
            logger.warning(
                "Order submission: %d created, %d failed",
                len(result.order_ids),
                len(result.errors),
            )
        else:
            logger.info("Order submission: %d created", len(result.order_ids))
        return result

    async def submit_one(self, line: CartLine, idempotency_key: str | None = None) -> CreatedOrder:
        """Submit a single line; raises AppError on failure."""
        validate_line(line)
        key = idempotency_key or self._keys.generate()
        if not self._keys.is_valid_key(key):
            raise ValidationError(
                "Idempotency key must be 8-128 characters", {"field": "idempotency_key"}
            )

        await self._keys.store(key)
        request = CreateOrderRequest(product_id=line.product_id, quantity=line.quantity)
        try:
            response = await self._source.create_order(request, key)
        except IdempotencyConflictError:
            logger.warning(
                "Idempotency conflict for key %s (product=%s qty=%d)",
                key,
                line.product_id,
                line.quantity,
            )
            raise

        await self._keys.store(key, response.order_id)
        if self._read_model is not None:
            self._read_model.on_order_created(response.order_id, response.status)
        logger.info("Order %s accepted as %s", response.order_id, response.status.value)
        return CreatedOrder(
            order_id=response.order_id,
            status=response.status,
            idempotency_key=key,
        )

    async def _submit_captured(self, line: CartLine, key: str | None) -> CreatedOrder | AppError:
        try:
            return await self.submit_one(line, key)
        except AppError as exc:
            return exc
        except Exception as exc:
            logger.exception("Unexpected error submitting product %s", line.product_id)
            return AppError.from_exception(exc)
