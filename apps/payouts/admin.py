from django.contrib import admin

from .models import Earning, Payout, PayoutEvent


class EarningInline(admin.TabularInline):
    model = Earning
    extra = 0
    can_delete = False
    fields = ("order", "gross_amount_cents", "platform_fee_cents", "net_amount_cents", "status")
    readonly_fields = fields


class PayoutEventInline(admin.TabularInline):
    model = PayoutEvent
    extra = 0
    can_delete = False
    readonly_fields = ("provider_event_id", "status", "payload", "created_at")


@admin.register(Payout)
class PayoutAdmin(admin.ModelAdmin):
    list_display = ("id", "pro", "provider", "status", "amount_cents", "currency", "attempts", "created_at")
    list_filter = ("provider", "status", "currency")
    search_fields = ("provider_reference",)
    ordering = ("-id",)
    readonly_fields = ("status", "amount_cents", "provider_reference", "attempts", "version")
    inlines = [EarningInline, PayoutEventInline]


@admin.register(Earning)
class EarningAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "order",
        "pro",
        "gross_amount_cents",
        "platform_fee_cents",
        "net_amount_cents",
        "status",
        "available_at",
    )
    list_filter = ("status", "currency")
    ordering = ("-id",)
    readonly_fields = ("status", "payout")
