from django.contrib import admin

from modules.orders.models import Order, OrderItem, OrderStatusHistory


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    raw_id_fields = ("product", "seller")
    readonly_fields = ("line_total",)


class OrderStatusHistoryInline(admin.TabularInline):
    model = OrderStatusHistory
    extra = 0
    can_delete = False
    readonly_fields = ("old_status", "new_status", "changed_by", "notes", "created_at")


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "customer", "status", "payment_status", "final_amount", "created_at")
    list_filter = ("status", "payment_method", "payment_status")
    search_fields = ("id", "customer__username", "tracking_number")
    raw_id_fields = ("customer",)
    readonly_fields = ("total_amount", "tax_amount", "shipping_cost", "final_amount")
    inlines = [OrderItemInline, OrderStatusHistoryInline]

    def has_delete_permission(self, request, obj=None) -> bool:
        return False
