from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from modules.accounts.models import User


@admin.register(User)
class MarketplaceUserAdmin(UserAdmin):
    list_display = ("username", "email", "role", "is_active")
    list_filter = ("role", "is_active", "is_staff")
    fieldsets = UserAdmin.fieldsets + (("Marketplace", {"fields": ("role",)}),)
    add_fieldsets = UserAdmin.add_fieldsets + (("Marketplace", {"fields": ("role",)}),)
