"""DRF permission backed by ``OrderPolicy``.

Role-level checks run before the request body is parsed; ownership is
checked by the service once the order has been loaded.
"""

from __future__ import annotations

from typing import Any

from rest_framework.permissions import BasePermission
from rest_framework.request import Request

from modules.accounts.principal import Principal
from modules.orders.policies import OrderAction, order_policy


class OrderActionPermission(BasePermission):
    """Maps ``view.action`` to an ``OrderAction`` through ``view.order_actions``.

    Denials raise ``Forbidden`` so the response carries the policy's
    message rather than DRF's generic one.
    """

    def has_permission(self, request: Request, view: Any) -> bool:
        action: OrderAction | None = getattr(view, "order_actions", {}).get(view.action)
        if action is None:
            return True
        order_policy.authorize(Principal.from_user(request.user), action)
        return True
