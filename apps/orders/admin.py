from django.contrib import admin

from .models import Order


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "status", "client_user_id", "pro", "category", "pricing_mode", "currency", "created_at")
    list_filter = ("status", "pricing_mode", "currency")
    search_fields = ("client_user_id", "title", "category")
    ordering = ("-id",)
    # Status changes go through the force-status endpoint so they are audited.
    readonly_fields = ("status", "version", "total_amount_cents")
