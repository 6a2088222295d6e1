"""Order repository interface.

Extends ``IRepository[Order]`` with the queries the Order Lifecycle
Engine needs: atomic creation with items, row-locked reads for status
changes, status history, scoped paginated listings, and the analytics
rollup.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.core.pagination import PageResult
    from modules.orders.dtos import OrderAnalyticsDTO
    from modules.orders.models import Order, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes OrderItem children and
    OrderStatusHistory records.  Mutations must be atomic.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items.

        ``data`` must include ``customer_id`` and ``items`` (list of dicts
        with ``product_id``, ``seller_id``, ``quantity``, ``unit_price``);
        every other key is copied onto the order as a field value.
        """

    @abstractmethod
    def get_for_update(self, id: UUID) -> Optional[Order]:
        """Retrieve an order holding a row-level lock until commit."""

    @abstractmethod
    def get_seller_view(self, id: UUID, seller_id: UUID) -> Optional[Order]:
        """Retrieve an order whose ``items`` are reduced to *seller_id*'s lines."""

    @abstractmethod
    def add_history(
        self,
        order_id: UUID,
        new_status: str,
        old_status: Optional[str] = None,
        changed_by_id: Optional[UUID] = None,
        notes: str = "",
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""

    @abstractmethod
    def list_for_customer(
        self, customer_id: UUID, page: int, limit: int, status: Optional[str] = None
    ) -> PageResult[Order]:
        """Orders placed by *customer_id*, newest first."""

    @abstractmethod
    def list_for_seller(
        self, seller_id: UUID, page: int, limit: int, status: Optional[str] = None
    ) -> PageResult[Order]:
        """Orders holding at least one of *seller_id*'s items, items filtered."""

    @abstractmethod
    def list_all(
        self,
        page: int,
        limit: int,
        status: Optional[str] = None,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> PageResult[Order]:
        """Every order, optionally narrowed by ``OrderFilter`` fields."""

    @abstractmethod
    def analytics(self, seller_id: Optional[UUID] = None) -> OrderAnalyticsDTO:
        """Counts and revenue over ``final_amount`` grouped by ``status``."""
