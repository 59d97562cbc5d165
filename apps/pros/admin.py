from django.contrib import admin

from .models import ProProfile


@admin.register(ProProfile)
class ProProfileAdmin(admin.ModelAdmin):
    list_display = ("id", "display_name", "user_id", "status", "hourly_rate_cents", "currency", "created_at")
    list_filter = ("status", "currency")
    search_fields = ("display_name", "user_id")
    ordering = ("-id",)
    readonly_fields = ("status", "approved_at", "suspended_at")
