"""Order service layer (Use Cases).

Orchestrates order placement, status management, cancellation, scoped
listings and analytics.  All write operations are atomic: the service
defines the unit-of-work boundary and every authorization decision is
delegated to ``OrderPolicy``.

Business rules enforced:
- Only customers place orders; items are validated and reserved in input
  order, each with a conditional stock decrement.
- A failure on any item rolls back every earlier reservation.
- Prices and sellers are snapshotted onto the line items; totals are
  always computed here, never taken from the client.
- Status changes pass the role table and the transition table.
- Cancelling returns reserved stock when ``ORDER_RESTOCK_ON_CANCEL`` is on.
- Every status change is recorded in the history trail.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Optional
from uuid import UUID

import structlog
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from modules.core.exceptions import Forbidden, InvalidInput
from modules.orders.constants import (
    ALL_STATUSES,
    STATUS_TIMESTAMP_FIELDS,
    OrderStatus,
)
from modules.orders.events import OrderCancelled, OrderPlaced, OrderStatusChanged
from modules.orders.exceptions import InsufficientStock, OrderNotFound, ProductNotFound
from modules.orders.policies import OrderAction, OrderPolicy, order_policy
from modules.orders.pricing import compute_totals, estimated_delivery_from, line_total

if TYPE_CHECKING:
    from modules.accounts.principal import Principal
    from modules.catalog.repositories.interfaces import IProductRepository
    from modules.core.pagination import PageResult
    from modules.orders.dtos import CreateOrderDTO, OrderAnalyticsDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


def parse_order_id(order_id: Any) -> UUID:
    """Coerce *order_id* to a UUID; malformed ids are ``InvalidInput``."""
    if isinstance(order_id, UUID):
        return order_id
    try:
        return UUID(str(order_id))
    except ValueError as exc:
        raise InvalidInput("Invalid order ID format.") from exc


def normalize_status(value: Optional[str]) -> Optional[str]:
    """Upper-case a status filter/target and reject unknown values."""
    if value is None or value == "":
        return None
    normalized = str(value).strip().upper()
    if normalized not in ALL_STATUSES:
        raise InvalidInput(
            f"Invalid status '{value}'. Must be one of: "
            f"{', '.join(OrderStatus.values)}."
        )
    return normalized


class OrderService:
    """Application service for Order use-cases.

    Receives repositories and the authorization policy via constructor
    injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
        policy: OrderPolicy = order_policy,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository
        self._policy = policy

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def place_order(self, principal: Principal, dto: CreateOrderDTO) -> Order:
        """Create a new order with atomic stock reservation.

        Steps:
        1. Check the caller may place orders.
        2. For each item, in input order:
           - Read the active product (snapshot price and seller).
           - Compare stock with the requested quantity.
           - Conditionally decrement stock in one UPDATE.
        3. Compute totals, persist order + items, record initial history.
        4. Record ``OrderPlaced``; the cart is cleared after commit.

        Raises:
            Forbidden: the caller is not a customer.
            ProductNotFound: a product does not exist or is inactive.
            InsufficientStock: not enough stock for an item.
        """
        self._policy.authorize(principal, OrderAction.PLACE)

        log = logger.bind(customer_id=str(principal.user_id))
        log.info("order.creation_started", item_count=len(dto.items))

        with transaction.atomic():
            lines = [self._reserve_line(item, log) for item in dto.items]
            totals = compute_totals(
                line_total(line["unit_price"], line["quantity"]) for line in lines
            )
            address = dto.shipping_address

            order = self._order_repo.create(
                {
                    "customer_id": principal.user_id,
                    "items": lines,
                    "payment_method": dto.payment_method,
                    "order_notes": dto.order_notes,
                    "shipping_street": address.street,
                    "shipping_city": address.city,
                    "shipping_state": address.state,
                    "shipping_zip_code": address.zip_code,
                    "shipping_country": address.country
                    or settings.DEFAULT_SHIPPING_COUNTRY,
                    "estimated_delivery": estimated_delivery_from(timezone.now()),
                    **totals.as_fields(),
                }
            )
            self._order_repo.add_history(
                order_id=order.id,
                new_status=OrderStatus.PENDING,
                changed_by_id=principal.user_id,
                notes="Order placed",
            )

            order.add_domain_event(
                OrderPlaced(aggregate_id=order.id, customer_id=principal.user_id)
            )
            self._order_repo.save(order)

        log.info(
            "order.created",
            order_id=str(order.id),
            final_amount=str(totals.final_amount),
        )
        return self._order_repo.get_by_id(order.id) or order

    def update_status(
        self,
        principal: Principal,
        order_id: Any,
        new_status: str,
        notes: str = "",
        tracking_number: str = "",
    ) -> Order:
        """Transition an order to *new_status*.

        Acquires a row-level lock (``SELECT FOR UPDATE``) on the order
        before validating the transition.  Reaching ``DELIVERED`` or
        ``CANCELLED`` stamps the matching timestamp; reaching
        ``CANCELLED`` also returns stock when restocking is enabled.

        Raises:
            InvalidInput: malformed id or unknown status.
            OrderNotFound: order does not exist.
            Forbidden: role or ownership check failed.
            InvalidTransition: the state machine rejects the change.
        """
        order_uuid = parse_order_id(order_id)
        target = normalize_status(new_status)
        if target is None:
            raise InvalidInput("Status is required.")
        self._policy.authorize(principal, OrderAction.UPDATE_STATUS)

        with transaction.atomic():
            order = self._locked_order(order_uuid)
            self._policy.authorize(principal, OrderAction.UPDATE_STATUS, order)
            self._policy.authorize_transition(principal, order, target)

            log = logger.bind(
                order_id=str(order.id),
                current_status=order.status,
                new_status=target,
                changed_by=str(principal.user_id),
            )

            old_status = order.status
            now = timezone.now()
            order.status = target
            timestamp_field = STATUS_TIMESTAMP_FIELDS.get(target)
            if timestamp_field:
                setattr(order, timestamp_field, now)
            if tracking_number:
                order.tracking_number = tracking_number

            order.add_domain_event(
                OrderStatusChanged(
                    aggregate_id=order.id, old_status=old_status, new_status=target
                )
            )
            if target == OrderStatus.CANCELLED:
                restocked = self._release_stock(order, log)
                order.add_domain_event(
                    OrderCancelled(aggregate_id=order.id, reason=notes, restocked=restocked)
                )
            self._order_repo.save(order)

            self._order_repo.add_history(
                order_id=order.id,
                new_status=target,
                old_status=old_status,
                changed_by_id=principal.user_id,
                notes=notes,
            )

        log.info("order.status_updated")
        return self._view_for(principal, order.id)

    def cancel_order(
        self, principal: Principal, order_id: Any, cancel_reason: str
    ) -> Order:
        """Cancel an order, store the reason and release reserved stock.

        Acquires a row-level lock on the order **first** to prevent
        concurrent cancellations from releasing stock twice.

        Raises:
            InvalidInput: malformed id or missing reason.
            OrderNotFound: order does not exist.
            Forbidden: ownership check failed.
            InvalidTransition: the order is already delivered or cancelled.
        """
        order_uuid = parse_order_id(order_id)
        reason = (cancel_reason or "").strip()
        if not reason:
            raise InvalidInput("Cancel reason is required.")
        self._policy.authorize(principal, OrderAction.CANCEL)

        with transaction.atomic():
            order = self._locked_order(order_uuid)
            self._policy.authorize_cancel(principal, order)

            log = logger.bind(
                order_id=str(order.id),
                current_status=order.status,
                cancelled_by=str(principal.user_id),
            )

            old_status = order.status
            order.status = OrderStatus.CANCELLED
            order.cancelled_at = timezone.now()
            order.cancel_reason = reason
            restocked = self._release_stock(order, log)

            order.add_domain_event(
                OrderCancelled(aggregate_id=order.id, reason=reason, restocked=restocked)
            )
            self._order_repo.save(order)

            self._order_repo.add_history(
                order_id=order.id,
                new_status=OrderStatus.CANCELLED,
                old_status=old_status,
                changed_by_id=principal.user_id,
                notes=reason,
            )

        log.info("order.cancelled", restocked=restocked)
        return self._view_for(principal, order.id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, principal: Principal, order_id: Any) -> Order:
        """Retrieve a single order visible to *principal*.

        Raises:
            InvalidInput: malformed id.
            OrderNotFound: the order does not exist.
            Forbidden: the order exists but is outside the caller's scope.
        """
        order_uuid = parse_order_id(order_id)
        self._policy.authorize(principal, OrderAction.VIEW)

        order = self._order_repo.get_by_id(order_uuid)
        if order is None:
            raise OrderNotFound()
        self._policy.authorize(principal, OrderAction.VIEW, order)

        if principal.is_seller:
            return self._view_for(principal, order.id)
        return order

    def list_customer_orders(
        self,
        principal: Principal,
        page: int = 1,
        limit: int = 10,
        status: Optional[str] = None,
    ) -> PageResult[Order]:
        self._policy.authorize(principal, OrderAction.LIST_OWN)
        return self._order_repo.list_for_customer(
            principal.user_id, page, limit, normalize_status(status)
        )

    def list_seller_orders(
        self,
        principal: Principal,
        page: int = 1,
        limit: int = 10,
        status: Optional[str] = None,
    ) -> PageResult[Order]:
        """Orders with the seller's items; each order lists only those items."""
        self._policy.authorize(principal, OrderAction.LIST_SELLER)
        return self._order_repo.list_for_seller(
            principal.user_id, page, limit, normalize_status(status)
        )

    def list_all_orders(
        self,
        principal: Principal,
        page: int = 1,
        limit: int = 10,
        status: Optional[str] = None,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> PageResult[Order]:
        self._policy.authorize(principal, OrderAction.LIST_ALL)
        return self._order_repo.list_all(
            page, limit, normalize_status(status), filters
        )

    def get_analytics(
        self, principal: Principal, seller_id: Optional[UUID] = None
    ) -> OrderAnalyticsDTO:
        """Analytics over all orders (admin) or the caller's own sales (seller).

        A seller is always scoped to themselves; asking for another
        seller's figures is ``Forbidden``.
        """
        self._policy.authorize(principal, OrderAction.ANALYTICS)
        if principal.is_seller:
            if seller_id is not None and seller_id != principal.user_id:
                raise Forbidden("Sellers can only view their own analytics.")
            seller_id = principal.user_id
        return self._order_repo.analytics(seller_id)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _reserve_line(self, item: Any, log: Any) -> dict[str, Any]:
        product = self._product_repo.get_active(str(item.product_id))
        if product is None:
            raise ProductNotFound(f"Product {item.product_id} not found or inactive.")
        if product.in_stock < item.quantity:
            log.info(
                "order.insufficient_stock",
                product_id=str(product.id),
                requested=item.quantity,
                available=product.in_stock,
            )
            raise InsufficientStock(product.name, item.quantity, product.in_stock)

        if not self._product_repo.conditional_decrement_stock(
            str(product.id), item.quantity
        ):
            # Stock moved between the read and the update.
            current = self._product_repo.get_active(str(product.id))
            available = current.in_stock if current is not None else 0
            raise InsufficientStock(product.name, item.quantity, available)

        log.info(
            "order.stock_reserved",
            product_id=str(product.id),
            quantity=item.quantity,
            remaining=product.in_stock - item.quantity,
        )
        return {
            "product_id": product.id,
            "seller_id": product.seller_id,
            "quantity": item.quantity,
            "unit_price": product.price,
        }

    def _locked_order(self, order_id: UUID) -> Order:
        order = self._order_repo.get_for_update(order_id)
        if order is None:
            raise OrderNotFound()
        return order

    def _release_stock(self, order: Order, log: Any) -> bool:
        """Return each line's quantity to its product; sorted to avoid deadlocks."""
        if not settings.ORDER_RESTOCK_ON_CANCEL:
            return False
        for item in sorted(order.items.all(), key=lambda i: str(i.product_id)):
            self._product_repo.restock(str(item.product_id), item.quantity)
            log.info(
                "order.stock_released",
                product_id=str(item.product_id),
                quantity=item.quantity,
            )
        return True

    def _view_for(self, principal: Principal, order_id: UUID) -> Order:
        if principal.is_seller:
            order = self._order_repo.get_seller_view(order_id, principal.user_id)
        else:
            order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise OrderNotFound()
        return order
