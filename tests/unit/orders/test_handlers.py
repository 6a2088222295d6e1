"""Unit tests for Orders event handlers."""

from __future__ import annotations

import logging
from unittest import mock
from uuid import uuid4

import pytest

from modules.orders.events import OrderCancelled, OrderPlaced, OrderStatusChanged
from modules.orders.handlers import (
    ClearCartOnOrderPlaced,
    OrderCancelledHandler,
    OrderStatusChangedHandler,
)

pytestmark = pytest.mark.unit


def test_order_placed_enqueues_cart_clear():
    customer_id = uuid4()
    with mock.patch("modules.orders.handlers.clear_customer_cart") as task:
        ClearCartOnOrderPlaced().handle(
            OrderPlaced(aggregate_id=uuid4(), customer_id=customer_id)
        )

    task.delay.assert_called_once_with(str(customer_id))


def test_enqueue_failure_is_logged_not_raised(caplog):
    with mock.patch("modules.orders.handlers.clear_customer_cart") as task:
        task.delay.side_effect = RuntimeError("broker unavailable")
        with caplog.at_level(logging.WARNING, logger="modules.orders.handlers"):
            ClearCartOnOrderPlaced().handle(
                OrderPlaced(aggregate_id=uuid4(), customer_id=uuid4())
            )

    assert any("cart.clear_failed" in r.getMessage() for r in caplog.records)


def test_status_changed_handler_logs(caplog):
    event = OrderStatusChanged(aggregate_id=uuid4(), old_status="PENDING", new_status="SHIPPED")

    with caplog.at_level(logging.INFO, logger="modules.orders.handlers"):
        OrderStatusChangedHandler().handle(event)

    assert any("order.event.status_changed" in r.getMessage() for r in caplog.records)


def test_cancelled_handler_logs(caplog):
    event = OrderCancelled(aggregate_id=uuid4(), reason="duplicate", restocked=True)

    with caplog.at_level(logging.INFO, logger="modules.orders.handlers"):
        OrderCancelledHandler().handle(event)

    assert any("order.event.cancelled" in r.getMessage() for r in caplog.records)
