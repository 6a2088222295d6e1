from __future__ import annotations

import structlog

from modules.carts.models import CartItem
from modules.carts.repositories.interfaces import ICartRepository
from modules.core.repositories.interfaces import storage_guard

logger = structlog.get_logger(__name__)


class CartDjangoRepository(ICartRepository):
    """Concrete Cart repository backed by Django ORM."""

    @storage_guard
    def clear_for_customer(self, customer_id: str) -> int:
        removed, _ = CartItem.objects.filter(customer_id=customer_id).delete()
        logger.info("cart.cleared", customer_id=str(customer_id), removed=removed)
        return removed
