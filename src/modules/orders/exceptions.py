"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.  Each one
is a ``DomainError``, so the API exception handler renders it with a
stable code and status without per-view translation.
"""

from __future__ import annotations

from rest_framework import status

from modules.core.exceptions import DomainError, ResourceNotFound


class OrderNotFound(ResourceNotFound):
    code = "order_not_found"
    default_detail = "Order not found."


class ProductNotFound(ResourceNotFound):
    """A referenced product does not exist or is inactive."""

    code = "product_not_found"
    default_detail = "Product not found."


class InsufficientStock(DomainError):
    """Not enough stock to fulfil a line item."""

    code = "insufficient_stock"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, product_name: str, requested: int, available: int) -> None:
        self.product_name = product_name
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product '{product_name}': "
            f"requested {requested}, available {available}."
        )


class InvalidTransition(DomainError):
    """The state machine rejected the requested status change."""

    code = "invalid_transition"
    default_detail = "This status change is not allowed."
