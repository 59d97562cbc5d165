from __future__ import annotations

from django.test import TestCase
from rest_framework.test import APIClient

from apps.audit.domain.events import AuditEventType
from apps.audit.models import AuditLog
from apps.core.domain.errors import PermissionDeniedError
from apps.core.testing import actor_headers, admin_actor, client_actor, create_pro
from apps.pros.application.use_cases.moderate_pro import ModerateProCommand, ModerateProUseCase
from apps.pros.domain.errors import ProNotFoundError, ProStatusTransitionError
from apps.pros.models import ProProfile


class ModerateProTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.pro = create_pro(status=ProProfile.STATUS_PENDING, approved_at=None)

    def _moderate(self, action: str, actor=None, **kwargs) -> ProProfile:
        return ModerateProUseCase.execute(
            ModerateProCommand(actor=actor or admin_actor(), pro_profile_id=self.pro.id, action=action, **kwargs)
        )

    def test_approve_then_suspend_then_unsuspend(self):
        approved = self._moderate("approve")
        self.assertTrue(approved.is_active)
        self.assertIsNotNone(approved.approved_at)

        suspended = self._moderate("suspend", reason="complaints")
        self.assertFalse(suspended.is_active)
        self.assertIsNotNone(suspended.suspended_at)

        restored = self._moderate("unsuspend")
        self.assertEqual(restored.status, ProProfile.STATUS_APPROVED)
        self.assertEqual(restored.approved_at, approved.approved_at)

        self.assertEqual(
            list(AuditLog.objects.for_resource("pro_profile", self.pro.id).values_list("event_type", flat=True)),
            [AuditEventType.PRO_APPROVED, AuditEventType.PRO_SUSPENDED, AuditEventType.PRO_UNSUSPENDED],
        )

    def test_invalid_moderation_step_is_rejected(self):
        with self.assertRaises(ProStatusTransitionError):
            self._moderate("unsuspend")
        self.assertFalse(AuditLog.objects.exists())

    def test_only_admins_moderate(self):
        with self.assertRaises(PermissionDeniedError):
            self._moderate("approve", actor=client_actor())

    def test_missing_pro(self):
        with self.assertRaises(ProNotFoundError):
            ModerateProUseCase.execute(ModerateProCommand(actor=admin_actor(), pro_profile_id=999_999, action="approve"))

    def test_payout_profile_completeness(self):
        self.assertTrue(self.pro.payout_profile_complete)
        self.pro.payout_bank_name = "  "
        self.assertFalse(self.pro.payout_profile_complete)


class ModerateProApiTests(TestCase):
    def test_suspend_endpoint(self):
        pro = create_pro()
        api = APIClient()

        response = api.post(
            f"/api/admin/pros/{pro.id}/suspend/", {"reason": "no-shows"}, format="json", **actor_headers(admin_actor())
        )
        again = api.post(f"/api/admin/pros/{pro.id}/suspend/", {}, format="json", **actor_headers(admin_actor()))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["status"], "suspended")
        self.assertEqual(again.status_code, 409)
