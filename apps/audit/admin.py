from django.contrib import admin

from .models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ("id", "event_type", "resource_type", "resource_id", "actor_id", "actor_role", "created_at")
    list_filter = ("event_type", "resource_type", "actor_role")
    search_fields = ("resource_id", "actor_id", "action")
    ordering = ("-created_at",)

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
