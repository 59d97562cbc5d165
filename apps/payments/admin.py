from django.contrib import admin

from .models import Payment, PaymentEvent


class PaymentEventInline(admin.TabularInline):
    model = PaymentEvent
    extra = 0
    can_delete = False
    readonly_fields = ("provider_event_id", "event_type", "status", "payload", "created_at")


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "order",
        "provider",
        "status",
        "amount_estimated",
        "amount_authorized",
        "amount_captured",
        "currency",
        "created_at",
    )
    list_filter = ("provider", "status", "currency")
    search_fields = ("provider_reference", "idempotency_key")
    ordering = ("-id",)
    readonly_fields = ("status", "amount_authorized", "amount_captured", "provider_reference", "version")
    inlines = [PaymentEventInline]
