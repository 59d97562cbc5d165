from __future__ import annotations

from django.test import TestCase

from apps.audit.domain.events import AuditEventType
from apps.audit.models import AuditLog
from apps.audit.services.audit_service import AuditService
from apps.core.testing import admin_actor


class AuditServiceTests(TestCase):
    def _record(self, resource_id=7, **metadata) -> AuditLog:
        return AuditService.record(
            event_type=AuditEventType.ORDER_STATUS_FORCED,
            actor=admin_actor(),
            resource_type="order",
            resource_id=resource_id,
            action="force_status",
            metadata=metadata,
        )

    def test_record_stores_actor_and_resource(self):
        entry = self._record(previousStatus="disputed", newStatus="completed")

        self.assertEqual(entry.event_type, "ORDER_STATUS_FORCED")
        self.assertEqual(entry.actor_id, "admin-1")
        self.assertEqual(entry.actor_role, "admin")
        self.assertEqual(entry.resource_id, "7")
        self.assertEqual(entry.metadata, {"previousStatus": "disputed", "newStatus": "completed"})

    def test_rows_are_append_only(self):
        entry = self._record()

        entry.action = "edited"
        with self.assertRaises(TypeError):
            entry.save()
        with self.assertRaises(TypeError):
            entry.delete()
        with self.assertRaises(TypeError):
            AuditLog.objects.filter(id=entry.id).update(action="edited")
        with self.assertRaises(TypeError):
            AuditLog.objects.all().delete()
        self.assertEqual(AuditLog.objects.get(id=entry.id).action, "force_status")

    def test_for_resource_is_ordered_and_scoped(self):
        first = self._record()
        second = self._record()
        self._record(resource_id=8)

        entries = AuditService.for_resource(resource_type="order", resource_id=7)

        self.assertEqual([entry.id for entry in entries], [first.id, second.id])
