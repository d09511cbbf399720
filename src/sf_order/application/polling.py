"""OrderPollingEngine — re-fetches non-terminal orders until they settle.

Per watched order:

    IDLE ──watch()──▶ POLLING ──terminal status──▶ TERMINAL
      ▲                  │
      └──polling off─────┘

While the last known status is pending/processing and polling is enabled,
the next fetch is scheduled a fixed interval (5s) later. A terminal status
stops polling for good. There is never more than one timer per order id.

A tick that fails is logged and treated as if the fetch had returned the
last known status, so polling continues. unwatch() only cancels the pending
timer; a tick already in flight completes but does not schedule again.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from src.sf_common.enums import OrderStatus
from src.sf_common.scheduler import ScheduledHandle, Scheduler
from src.sf_order.application.read_model import OrderReadModel
from src.sf_order.domain.models import Order

logger = logging.getLogger(__name__)


class WatchState(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    TERMINAL = "terminal"


@dataclass
class _Watch:
    order_id: str
    polling: bool
    state: WatchState = WatchState.IDLE
    handle: ScheduledHandle | None = None
    last_status: OrderStatus | None = None

    def cancel_timer(self) -> None:
        if self.handle is not None:
            self.handle.cancel()
            self.handle = None


class OrderPollingEngine:
    def __init__(
        self,
        read_model: OrderReadModel,
        scheduler: Scheduler,
        interval: float = 5.0,
        on_update: Callable[[Order], None] | None = None,
    ) -> None:
        self._read_model = read_model
        self._scheduler = scheduler
        self._interval = interval
        self._on_update = on_update
        self._watches: dict[str, _Watch] = {}

    async def watch(self, order_id: str, polling: bool = True) -> Order:
        """Start tracking an order; fetches now (or reuses a fresh cache entry).

        Errors from this first fetch propagate and leave the order unwatched.
        """
        watch = self._watches.get(order_id)
        created = watch is None
        if watch is None:
            watch = _Watch(order_id=order_id, polling=polling)
            self._watches[order_id] = watch
        else:
            watch.polling = polling
            if not polling:
                watch.cancel_timer()

        try:
            order = await self._read_model.get_by_id(order_id)
        except Exception:
            if created and self._watches.get(order_id) is watch and watch.handle is None:
                del self._watches[order_id]
            raise

        if self._watches.get(order_id) is watch:
            self._notify(order)
            self._apply(watch, order)
        return order

    def unwatch(self, order_id: str) -> None:
        watch = self._watches.pop(order_id, None)
        if watch is not None:
            watch.cancel_timer()
            logger.debug("Stopped watching order %s", order_id)

    def state(self, order_id: str) -> WatchState:
        watch = self._watches.get(order_id)
        return watch.state if watch is not None else WatchState.IDLE

    def watched_ids(self) -> list[str]:
        return list(self._watches)

    async def close(self) -> None:
        for order_id in list(self._watches):
            self.unwatch(order_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _apply(self, watch: _Watch, order: Order) -> None:
        watch.last_status = order.status
        if order.is_terminal:
            watch.cancel_timer()
            if watch.state != WatchState.TERMINAL:
                logger.info("Order %s reached %s, polling stopped", order.id, order.status.value)
            watch.state = WatchState.TERMINAL
            return
        if watch.state == WatchState.TERMINAL:
            return
        if not watch.polling:
            watch.state = WatchState.IDLE
            return
        watch.state = WatchState.POLLING
        self._schedule(watch)

    def _schedule(self, watch: _Watch) -> None:
        if watch.handle is not None:
            return
        order_id = watch.order_id
        watch.handle = self._scheduler.call_later(self._interval, lambda: self._tick(order_id))

    async def _tick(self, order_id: str) -> None:
        watch = self._watches.get(order_id)
        if watch is None:
            return
        watch.handle = None
        logger.debug("Polling order %s", order_id)
        try:
            order = await self._read_model.refresh(order_id)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Poll of order %s failed, keeping last status: %s", order_id, exc)
            if self._watches.get(order_id) is watch and watch.state == WatchState.POLLING:
                if watch.polling:
                    self._schedule(watch)
            return

        if self._watches.get(order_id) is not watch:
            return
        self._notify(order)
        self._apply(watch, order)

    def _notify(self, order: Order) -> None:
        if self._on_update is not None:
            self._on_update(order)
