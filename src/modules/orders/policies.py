"""Authorization policy for order operations.

Every allow/deny decision about orders is made here, from three tables:

- ``ROLE_ACTIONS``: which operations a role may invoke at all.
- ``ROLE_STATUS_TARGETS`` (constants): which statuses a role may request.
- ``STATUS_TRANSITIONS`` (constants): which statuses are reachable from
  the current one.

plus one ownership rule: a customer reaches only orders they placed, a
seller only orders holding at least one of their items, an admin all.
The DRF permission class and the service layer both consult the same
``OrderPolicy`` instance.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

import structlog

from modules.accounts.models import Role
from modules.core.exceptions import Forbidden
from modules.orders.constants import (
    ROLE_STATUS_TARGETS,
    STATUS_TRANSITIONS,
    TERMINAL_STATES,
    OrderStatus,
)
from modules.orders.exceptions import InvalidTransition

if TYPE_CHECKING:
    from modules.accounts.principal import Principal
    from modules.orders.models import Order

logger = structlog.get_logger(__name__)


class OrderAction(str, Enum):
    PLACE = "place"
    VIEW = "view"
    LIST_OWN = "list_own"
    LIST_SELLER = "list_seller"
    LIST_ALL = "list_all"
    ANALYTICS = "analytics"
    UPDATE_STATUS = "update_status"
    CANCEL = "cancel"


_SINGLE_ORDER_ACTIONS = frozenset(
    {OrderAction.VIEW, OrderAction.UPDATE_STATUS, OrderAction.CANCEL}
)

ROLE_ACTIONS: dict[str, frozenset[OrderAction]] = {
    Role.CUSTOMER: frozenset({OrderAction.PLACE, OrderAction.LIST_OWN})
    | _SINGLE_ORDER_ACTIONS,
    Role.SELLER: frozenset({OrderAction.LIST_SELLER, OrderAction.ANALYTICS})
    | _SINGLE_ORDER_ACTIONS,
    Role.ADMIN: frozenset({OrderAction.LIST_ALL, OrderAction.ANALYTICS})
    | _SINGLE_ORDER_ACTIONS,
}

ACTION_DENIED_MESSAGES: dict[OrderAction, str] = {
    OrderAction.PLACE: "Only customers can place orders.",
    OrderAction.LIST_OWN: "Only customers can access this endpoint.",
    OrderAction.LIST_SELLER: "Only sellers can access this endpoint.",
    OrderAction.LIST_ALL: "Only admins can access this endpoint.",
    OrderAction.ANALYTICS: "Access denied. Seller or Admin privileges required.",
}

OWNERSHIP_DENIED_MESSAGES: dict[tuple[str, OrderAction], str] = {
    (Role.CUSTOMER, OrderAction.VIEW): "You can only view your own orders.",
    (Role.CUSTOMER, OrderAction.UPDATE_STATUS): "You can only update your own orders.",
    (Role.CUSTOMER, OrderAction.CANCEL): "You can only cancel your own orders.",
    (Role.SELLER, OrderAction.VIEW): "You can only view orders containing your products.",
    (Role.SELLER, OrderAction.UPDATE_STATUS): "You can only update orders containing your products.",
    (Role.SELLER, OrderAction.CANCEL): "You can only cancel orders containing your products.",
}


class OrderPolicy:
    """Evaluates ``(role, action, ownership)`` and the status state machine."""

    def allows(self, principal: Principal, action: OrderAction) -> bool:
        return action in ROLE_ACTIONS.get(principal.role, frozenset())

    def can_access(self, principal: Principal, order: Order) -> bool:
        if principal.role == Role.ADMIN:
            return True
        if principal.role == Role.CUSTOMER:
            return order.customer_id == principal.user_id
        if principal.role == Role.SELLER:
            return order.has_items_from(principal.user_id)
        return False

    def authorize(
        self,
        principal: Principal,
        action: OrderAction,
        order: Order | None = None,
    ) -> None:
        """Raise ``Forbidden`` unless *principal* may perform *action* (on *order*)."""
        if not self.allows(principal, action):
            self._deny(principal, action, ACTION_DENIED_MESSAGES.get(action))
        if order is not None and not self.can_access(principal, order):
            self._deny(
                principal,
                action,
                OWNERSHIP_DENIED_MESSAGES.get((principal.role, action)),
                order_id=str(order.id),
            )

    def authorize_transition(
        self, principal: Principal, order: Order, target: str
    ) -> None:
        """Check role gating for *target*, then the state-machine guard.

        Raises:
            Forbidden: the role may not request *target*.
            InvalidTransition: *target* is unreachable from the current status.
        """
        if target not in ROLE_STATUS_TARGETS.get(principal.role, frozenset()):
            self._deny(
                principal,
                OrderAction.UPDATE_STATUS,
                "Customers can only cancel orders.",
                order_id=str(order.id),
            )
        if target not in STATUS_TRANSITIONS.get(order.status, frozenset()):
            logger.warning(
                "order.invalid_transition",
                order_id=str(order.id),
                current_status=order.status,
                new_status=target,
            )
            raise InvalidTransition(self._transition_message(order.status, target))

    def authorize_cancel(self, principal: Principal, order: Order) -> None:
        self.authorize(principal, OrderAction.CANCEL, order)
        if order.status in TERMINAL_STATES:
            logger.warning(
                "order.cancel_not_allowed",
                order_id=str(order.id),
                current_status=order.status,
            )
            raise InvalidTransition(
                f"Cannot cancel an order that is already {order.get_status_display().lower()}."
            )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _transition_message(current: str, target: str) -> str:
        if current == OrderStatus.DELIVERED and target == OrderStatus.CANCELLED:
            return "Cannot cancel delivered orders."
        if current in TERMINAL_STATES:
            return (
                f"Order is {OrderStatus(current).label.lower()}; "
                "its status can no longer change."
            )
        return f"Order is already {OrderStatus(current).label.lower()}."

    @staticmethod
    def _deny(
        principal: Principal,
        action: OrderAction,
        message: str | None,
        **context: str,
    ) -> None:
        logger.info(
            "order.access_denied",
            user_id=str(principal.user_id),
            role=principal.role,
            action=action.value,
            **context,
        )
        raise Forbidden(message)


order_policy = OrderPolicy()
