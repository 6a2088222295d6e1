"""Asynchronous cart maintenance tasks."""

from __future__ import annotations

import structlog
from celery import shared_task

from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.core.exceptions import StorageFailure

logger = structlog.get_logger(__name__)


@shared_task(name="carts.clear_customer_cart", ignore_result=True)
def clear_customer_cart(customer_id: str) -> int:
    """Empty a customer's cart after their order was committed.

    Best effort: a storage failure is logged and reported as zero removed
    lines; the order that triggered the task is never affected.
    """
    try:
        return CartDjangoRepository().clear_for_customer(customer_id)
    except StorageFailure:
        logger.warning("cart.clear_failed", customer_id=customer_id, stage="task")
        return 0
