"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.  The unit of
work belongs to the Service Layer: these methods run inside whatever
``transaction.atomic()`` block the caller opened.

Concurrency control on status updates uses ``select_for_update()``
to prevent race conditions (no ``version`` field exists on the model).
Every method converts driver errors into ``StorageFailure``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Mapping, Optional
from uuid import UUID

import structlog
from django.db.models import Count, Prefetch, QuerySet, Sum

from modules.core.exceptions import InvalidInput
from modules.core.pagination import PageResult, paginate_queryset
from modules.core.repositories.interfaces import storage_guard
from modules.orders.dtos import OrderAnalyticsDTO
from modules.orders.filters import OrderFilter
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.pricing import to_money
from modules.orders.repositories.interfaces import IOrderRepository
from shared.infrastructure.bus import publish_on_commit

logger = structlog.get_logger(__name__)

LISTING_ORDER = ("-created_at", "-id")


def _items_prefetch(seller_id: Optional[UUID] = None) -> Prefetch:
    items = OrderItem.objects.select_related("product", "seller")
    if seller_id is not None:
        items = items.filter(seller_id=seller_id)
    return Prefetch("items", queryset=items)


def _base_queryset(seller_id: Optional[UUID] = None) -> QuerySet[Order]:
    return Order.objects.select_related("customer").prefetch_related(
        _items_prefetch(seller_id)
    )


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @storage_guard
    def create(self, data: Dict[str, Any]) -> Order:
        fields = dict(data)
        items = fields.pop("items")
        order = Order(**fields)
        order.save()

        for position, item_data in enumerate(items):
            OrderItem(
                order=order,
                product_id=item_data["product_id"],
                seller_id=item_data["seller_id"],
                position=position,
                quantity=item_data["quantity"],
                unit_price=item_data["unit_price"],
            ).save()

        logger.debug("order.persisted", order_id=str(order.id), item_count=len(items))
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    @storage_guard
    def get_by_id(self, id: UUID) -> Optional[Order]:
        """Retrieve an order with eager-loaded customer, items and item relations."""
        return _base_queryset().filter(id=id).first()

    @storage_guard
    def get_for_update(self, id: UUID) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE).

        Items are prefetched so the caller can restock them while the
        row is locked.  ``of=("self",)`` keeps the lock off joined rows.
        """
        return (
            Order.objects.select_for_update(of=("self",))
            .select_related("customer")
            .prefetch_related(_items_prefetch())
            .filter(id=id)
            .first()
        )

    @storage_guard
    def get_seller_view(self, id: UUID, seller_id: UUID) -> Optional[Order]:
        return _base_queryset(seller_id).filter(id=id).first()

    # ------------------------------------------------------------------
    # Save (IRepository contract)
    # ------------------------------------------------------------------

    @storage_guard
    def save(self, entity: Order) -> Order:
        """Persist an order and hand its recorded events to the bus on commit."""
        entity.save()

        events = entity.domain_events
        publish_on_commit(events)
        entity.clear_domain_events()

        logger.debug("order.saved", order_id=str(entity.id), event_count=len(events))
        return entity

    @storage_guard
    def add_history(
        self,
        order_id: UUID,
        new_status: str,
        old_status: Optional[str] = None,
        changed_by_id: Optional[UUID] = None,
        notes: str = "",
    ) -> OrderStatusHistory:
        history = OrderStatusHistory(
            order_id=order_id,
            old_status=old_status,
            new_status=new_status,
            changed_by_id=changed_by_id,
            notes=notes,
        )
        history.save()

        logger.debug(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=new_status,
        )
        return history

    # ------------------------------------------------------------------
    # Scoped listings
    # ------------------------------------------------------------------

    @storage_guard
    def list_for_customer(
        self, customer_id: UUID, page: int, limit: int, status: Optional[str] = None
    ) -> PageResult[Order]:
        queryset = _base_queryset().filter(customer_id=customer_id)
        return self._paginate(queryset, page, limit, status)

    @storage_guard
    def list_for_seller(
        self, seller_id: UUID, page: int, limit: int, status: Optional[str] = None
    ) -> PageResult[Order]:
        queryset = _base_queryset(seller_id).filter(
            id__in=OrderItem.objects.filter(seller_id=seller_id).values("order_id")
        )
        return self._paginate(queryset, page, limit, status)

    @storage_guard
    def list_all(
        self,
        page: int,
        limit: int,
        status: Optional[str] = None,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> PageResult[Order]:
        queryset = _base_queryset()
        if filters:
            filterset = OrderFilter(data=filters, queryset=queryset)
            if not filterset.is_valid():
                raise InvalidInput(_first_filter_error(filterset.errors))
            queryset = filterset.qs
        return self._paginate(queryset, page, limit, status)

    @staticmethod
    def _paginate(
        queryset: QuerySet[Order], page: int, limit: int, status: Optional[str]
    ) -> PageResult[Order]:
        if status:
            queryset = queryset.filter(status=status)
        return paginate_queryset(queryset.order_by(*LISTING_ORDER), page, limit)

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    @storage_guard
    def analytics(self, seller_id: Optional[UUID] = None) -> OrderAnalyticsDTO:
        """Roll up ``final_amount`` and ``status``.

        With *seller_id*, only orders holding at least one of the seller's
        items are counted, and ``seller_revenue`` adds the seller's own
        line subtotal across those orders.
        """
        queryset = Order.objects.order_by()
        seller_revenue: Optional[Decimal] = None
        if seller_id is not None:
            seller_items = OrderItem.objects.filter(seller_id=seller_id)
            queryset = queryset.filter(id__in=seller_items.values("order_id"))
            seller_revenue = to_money(
                seller_items.aggregate(total=Sum("line_total"))["total"] or 0
            )

        totals = queryset.aggregate(
            total_orders=Count("id"),
            total_revenue=Sum("final_amount"),
        )
        total_orders = totals["total_orders"] or 0
        total_revenue = to_money(totals["total_revenue"] or 0)
        avg_order_value = (
            to_money(total_revenue / total_orders) if total_orders else to_money(0)
        )
        breakdown = {
            row["status"]: row["count"]
            for row in queryset.values("status").annotate(count=Count("id"))
        }

        return OrderAnalyticsDTO(
            total_orders=total_orders,
            total_revenue=total_revenue,
            avg_order_value=avg_order_value,
            status_breakdown=breakdown,
            seller_id=seller_id,
            seller_revenue=seller_revenue,
        )


def _first_filter_error(errors: Mapping[str, Any]) -> str:
    for field, messages in errors.items():
        return f"{field}: {messages[0]}"
    return "Invalid filter."
