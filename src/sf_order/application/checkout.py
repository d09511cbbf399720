# src/sf_order/application/checkout.py
"""CheckoutService — cart → orders → status tracking.

Lines that fail stay in the cart so the customer can retry them; lines that
succeed are removed. Every created order is handed to the polling engine.
"""
import logging

from src.sf_cart.application.service import CartService
from src.sf_common.errors import AppError, ValidationError
from src.sf_order.application.polling import OrderPollingEngine
from src.sf_order.application.submission import OrderSubmissionFlow
from src.sf_order.domain.models import SubmissionResult

logger = logging.getLogger(__name__)


class CheckoutService:
    def __init__(
        self,
        cart: CartService,
        submission: OrderSubmissionFlow,
        polling: OrderPollingEngine,
    ) -> None:
        self._cart = cart
        self._submission = submission
        self._polling = polling

    async def checkout(self) -> SubmissionResult:
        lines = await self._cart.to_lines()
        if not lines:
            raise ValidationError("Cart is empty")

        result = await self._submission.submit(lines)

        failed = {error.line for error in result.errors}
        ordered = [line.product_id for index, line in enumerate(lines) if index not in failed]
        if ordered:
            await self._cart.remove_products(ordered)

        for order_id in result.order_ids:
            try:
                await self._polling.watch(order_id)
            except AppError as exc:
                # Order exists server-side; the status view can pick it up later
                logger.warning("Could not start tracking order %s: %s", order_id, exc.message)

        logger.info(
            "Checkout finished: %d orders created, %d lines left in cart",
            len(result.order_ids),
            len(result.errors),
        )
        return result
