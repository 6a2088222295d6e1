from django.contrib import admin

from modules.carts.models import CartItem


@admin.register(CartItem)
class CartItemAdmin(admin.ModelAdmin):
    list_display = ("customer", "product", "quantity", "updated_at")
    raw_id_fields = ("customer", "product")
