"""Django ORM implementation of the Product/Stock Store.

Stock changes are single ``UPDATE`` statements built with ``F()``
expressions, so the check and the write happen in one indivisible store
operation and never touch fields other than ``in_stock``/``updated_at``.
"""

from __future__ import annotations

from typing import Optional

import structlog
from django.core.exceptions import ValidationError
from django.db.models import F
from django.utils import timezone

from modules.catalog.models import Product
from modules.catalog.repositories.interfaces import IProductRepository
from modules.core.repositories.interfaces import storage_guard

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    @storage_guard
    def get_by_id(self, id: str) -> Optional[Product]:
        """Returns ``None`` for non-existent or invalid IDs."""
        try:
            return Product.objects.select_related("seller").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    @storage_guard
    def get_active(self, id: str) -> Optional[Product]:
        try:
            return (
                Product.objects.select_related("seller")
                .filter(id=id, is_active=True)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    @storage_guard
    def save(self, entity: Product) -> Product:
        entity.save()
        logger.info("product.saved", product_id=str(entity.id))
        return entity

    @storage_guard
    def conditional_decrement_stock(self, id: str, quantity: int) -> bool:
        updated = Product.objects.filter(
            id=id,
            is_active=True,
            in_stock__gte=quantity,
        ).update(in_stock=F("in_stock") - quantity, updated_at=timezone.now())
        if not updated:
            logger.warning(
                "product.stock_decrement_rejected",
                product_id=str(id),
                quantity=quantity,
            )
        return bool(updated)

    @storage_guard
    def restock(self, id: str, quantity: int) -> bool:
        updated = Product.objects.filter(id=id).update(
            in_stock=F("in_stock") + quantity,
            updated_at=timezone.now(),
        )
        return bool(updated)
