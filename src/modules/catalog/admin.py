from django.contrib import admin

from modules.catalog.models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "seller", "price", "in_stock", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "seller__username")
    raw_id_fields = ("seller",)
