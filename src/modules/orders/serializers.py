"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from typing import Any

from django.conf import settings
from rest_framework import serializers

from modules.orders.constants import OrderStatus, PaymentMethod
from modules.orders.models import Order, OrderItem, OrderStatusHistory


class UpperCaseChoiceField(serializers.ChoiceField):
    """Choice field that accepts any letter case (``"shipped"`` -> ``"SHIPPED"``)."""

    def to_internal_value(self, data: Any) -> Any:
        if isinstance(data, str):
            data = data.strip().upper()
        return super().to_internal_value(data)


# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateOrderItemSerializer(serializers.Serializer):
    """Validates a single item in an order creation request."""

    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


class ShippingAddressSerializer(serializers.Serializer):
    street = serializers.CharField(max_length=255)
    city = serializers.CharField(max_length=120)
    state = serializers.CharField(max_length=120)
    zip_code = serializers.CharField(max_length=20)
    country = serializers.CharField(max_length=120, required=False, allow_blank=True)


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload.

    Money fields are deliberately absent: totals are computed server-side.
    """

    items = CreateOrderItemSerializer(many=True, allow_empty=False)
    shipping_address = ShippingAddressSerializer()
    payment_method = UpperCaseChoiceField(
        choices=PaymentMethod.choices,
        required=False,
        default=PaymentMethod.CASH_ON_DELIVERY,
    )
    order_notes = serializers.CharField(required=False, default="", allow_blank=True)


class UpdateStatusSerializer(serializers.Serializer):
    status = UpperCaseChoiceField(choices=OrderStatus.choices)
    notes = serializers.CharField(required=False, default="", allow_blank=True)
    tracking_number = serializers.CharField(
        required=False, default="", allow_blank=True, max_length=100
    )


class CancelOrderSerializer(serializers.Serializer):
    cancel_reason = serializers.CharField()


class OrderListQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(required=False, default=1, min_value=1)
    limit = serializers.IntegerField(required=False, min_value=1)
    status = UpperCaseChoiceField(choices=OrderStatus.choices, required=False)

    def validate_limit(self, value: int) -> int:
        return min(value, settings.ORDER_MAX_PAGE_SIZE)


class AdminOrderListQuerySerializer(OrderListQuerySerializer):
    """Admin listing query: pagination plus the ``OrderFilter`` fields."""

    customer = serializers.UUIDField(required=False)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    min_total = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    max_total = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)

    FILTER_FIELDS = ("customer", "start_date", "end_date", "min_total", "max_total")

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        start, end = attrs.get("start_date"), attrs.get("end_date")
        if start and end and start > end:
            raise serializers.ValidationError(
                {"end_date": "end_date must not be before start_date."}
            )
        return attrs

    def filters(self) -> dict[str, str]:
        return {
            name: str(self.validated_data[name])
            for name in self.FILTER_FIELDS
            if name in self.validated_data
        }


class AnalyticsQuerySerializer(serializers.Serializer):
    seller_id = serializers.UUIDField(required=False)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class UserSummarySerializer(serializers.Serializer):
    id = serializers.UUIDField(read_only=True)
    username = serializers.CharField(read_only=True)
    name = serializers.CharField(source="display_name", read_only=True)
    email = serializers.EmailField(read_only=True)


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for order items with product and seller snapshot."""

    product_id = serializers.UUIDField(read_only=True)
    product_name = serializers.CharField(source="product.name", read_only=True)
    seller = UserSummarySerializer(read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_name",
            "seller",
            "quantity",
            "unit_price",
            "line_total",
        ]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    """Read serializer for order status history records."""

    class Meta:
        model = OrderStatusHistory
        fields = [
            "id",
            "old_status",
            "new_status",
            "changed_by_id",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items and customer."""

    customer = UserSummarySerializer(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    shipping_address = serializers.DictField(child=serializers.CharField(), read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "customer",
            "status",
            "payment_method",
            "payment_status",
            "items",
            "shipping_address",
            "total_amount",
            "tax_amount",
            "shipping_cost",
            "final_amount",
            "order_notes",
            "tracking_number",
            "estimated_delivery",
            "delivered_at",
            "cancelled_at",
            "cancel_reason",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OrderDetailSerializer(OrderSerializer):
    """Single-order view: adds the status history trail."""

    status_history = StatusHistorySerializer(many=True, read_only=True)

    class Meta(OrderSerializer.Meta):
        fields = [*OrderSerializer.Meta.fields, "status_history"]
        read_only_fields = fields


class OrderAnalyticsSerializer(serializers.Serializer):
    total_orders = serializers.IntegerField()
    total_revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    avg_order_value = serializers.DecimalField(max_digits=14, decimal_places=2)
    status_breakdown = serializers.DictField(child=serializers.IntegerField())
    seller_id = serializers.UUIDField(allow_null=True)
    seller_revenue = serializers.DecimalField(
        max_digits=14, decimal_places=2, allow_null=True
    )
