"""
Audit trail.

Rows are append-only: once written they are never updated or deleted, so the
history of forced transitions and admin actions survives partial failures.
"""

from __future__ import annotations

from django.db import models

from apps.audit.domain.events import AUDIT_EVENT_CHOICES


class AuditLogQuerySet(models.QuerySet):
    def update(self, **kwargs):
        raise TypeError("Audit log rows are append-only.")

    def delete(self):
        raise TypeError("Audit log rows are append-only.")

    def for_resource(self, resource_type: str, resource_id) -> "AuditLogQuerySet":
        return self.filter(resource_type=resource_type, resource_id=str(resource_id))


class AuditLog(models.Model):
    event_type = models.CharField(max_length=40, choices=AUDIT_EVENT_CHOICES)
    actor_id = models.CharField(max_length=64)
    actor_role = models.CharField(max_length=16)
    resource_type = models.CharField(max_length=32)
    resource_id = models.CharField(max_length=64)
    action = models.CharField(max_length=64)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = AuditLogQuerySet.as_manager()

    class Meta:
        ordering = ("created_at", "id")
        indexes = [
            models.Index(fields=["resource_type", "resource_id", "created_at"], name="audit_resource_time_idx"),
            models.Index(fields=["event_type", "created_at"], name="audit_event_time_idx"),
            models.Index(fields=["actor_id", "created_at"], name="audit_actor_time_idx"),
        ]

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise TypeError("Audit log rows are append-only.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise TypeError("Audit log rows are append-only.")

    def __str__(self) -> str:
        return f"AuditLog({self.event_type}, {self.resource_type}={self.resource_id})"
