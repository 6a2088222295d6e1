"""Event handlers for Orders domain events.

Handlers run after the order's transaction has committed, so nothing
they do can roll an order back.
"""

from __future__ import annotations

import structlog

from modules.carts.tasks import clear_customer_cart
from modules.orders.events import OrderCancelled, OrderPlaced, OrderStatusChanged
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class ClearCartOnOrderPlaced(IEventHandler[OrderPlaced]):
    """Best-effort cart clear once an order has been placed."""

    def handle(self, event: OrderPlaced) -> None:
        log = logger.bind(
            order_id=str(event.aggregate_id),
            customer_id=str(event.customer_id),
        )
        try:
            clear_customer_cart.delay(str(event.customer_id))
        except Exception as exc:
            log.warning("cart.clear_failed", stage="enqueue", error=str(exc))
            return
        log.info("cart.clear_enqueued")


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        logger.info(
            "order.event.status_changed",
            order_id=str(event.aggregate_id),
            old_status=event.old_status,
            new_status=event.new_status,
        )


class OrderCancelledHandler(IEventHandler[OrderCancelled]):
    def handle(self, event: OrderCancelled) -> None:
        logger.info(
            "order.event.cancelled",
            order_id=str(event.aggregate_id),
            restocked=event.restocked,
        )


clear_cart_on_order_placed = ClearCartOnOrderPlaced()
order_status_changed_handler = OrderStatusChangedHandler()
order_cancelled_handler = OrderCancelledHandler()
