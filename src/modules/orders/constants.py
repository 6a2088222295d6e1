"""Order domain constants.

Defines the status/payment enumerations and the order state machine as
data: ``STATUS_TRANSITIONS`` says which target statuses are reachable
from each current status, ``ROLE_STATUS_TARGETS`` which targets each role
may request at all.  New states or roles are additions to these tables.
"""

from django.db import models

from modules.accounts.models import Role


class OrderStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    CONFIRMED = "CONFIRMED", "Confirmed"
    PROCESSING = "PROCESSING", "Processing"
    SHIPPED = "SHIPPED", "Shipped"
    DELIVERED = "DELIVERED", "Delivered"
    CANCELLED = "CANCELLED", "Cancelled"


class PaymentMethod(models.TextChoices):
    CREDIT_CARD = "CREDIT_CARD", "Credit Card"
    DEBIT_CARD = "DEBIT_CARD", "Debit Card"
    PAYPAL = "PAYPAL", "PayPal"
    CASH_ON_DELIVERY = "CASH_ON_DELIVERY", "Cash on Delivery"
    UPI = "UPI", "UPI"


class PaymentStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PAID = "PAID", "Paid"
    FAILED = "FAILED", "Failed"
    REFUNDED = "REFUNDED", "Refunded"


ALL_STATUSES: frozenset[str] = frozenset(OrderStatus.values)

TERMINAL_STATES: frozenset[str] = frozenset(
    {OrderStatus.DELIVERED, OrderStatus.CANCELLED}
)

# No forward-only sequencing: a live order may jump to any other status.
STATUS_TRANSITIONS: dict[str, frozenset[str]] = {
    status: (
        frozenset()
        if status in TERMINAL_STATES
        else ALL_STATUSES - {status}
    )
    for status in OrderStatus.values
}

ROLE_STATUS_TARGETS: dict[str, frozenset[str]] = {
    Role.ADMIN: ALL_STATUSES,
    Role.SELLER: ALL_STATUSES,
    Role.CUSTOMER: frozenset({OrderStatus.CANCELLED}),
}

# Fields stamped with the transition time when a status is reached.
STATUS_TIMESTAMP_FIELDS: dict[str, str] = {
    OrderStatus.DELIVERED: "delivered_at",
    OrderStatus.CANCELLED: "cancelled_at",
}
