from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.conf import settings
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from apps.audit.domain.events import AuditEventType
from apps.audit.models import AuditLog
from apps.chat.application.use_cases.is_chat_open import IsChatOpenCommand, IsChatOpenUseCase
from apps.core.domain.errors import PermanentProviderError, PermissionDeniedError, RetryableProviderError
from apps.core.testing import (
    actor_headers,
    admin_actor,
    client_actor,
    create_order,
    create_payment,
    create_pro,
    signed_webhook,
)
from apps.orders.domain.state_machine import OrderStatus
from apps.orders.models import Order
from apps.payments.application.use_cases.capture_order import CaptureOrderCommand, CaptureOrderUseCase
from apps.payments.application.use_cases.create_preauth import CreatePreauthCommand, CreatePreauthUseCase
from apps.payments.application.use_cases.refund_payment import RefundPaymentCommand, RefundPaymentUseCase
from apps.payments.application.use_cases.sync_payment_status import (
    SyncPaymentStatusCommand,
    SyncPaymentStatusUseCase,
)
from apps.payments.domain.errors import PaymentStateError
from apps.payments.domain.ports import ProviderEvent
from apps.payments.domain.state_machine import PaymentStatus, can_apply, parse_payment_status
from apps.payments.infrastructure.gateways.dummy_gateway import DummyGateway
from apps.payments.models import Payment, PaymentEvent
from apps.payments.tasks import reconcile_pending_payments_task
from apps.payouts.domain.state_machine import EarningStatus
from apps.payouts.models import Earning


class PaymentStatusRulesTests(TestCase):
    def test_retired_and_refunded_payments_never_move(self):
        for current in (PaymentStatus.FAILED, PaymentStatus.CANCELLED, PaymentStatus.REFUNDED):
            for new in PaymentStatus:
                self.assertEqual(can_apply(current, new), current == new)

    def test_captured_only_moves_to_refunded(self):
        self.assertTrue(can_apply(PaymentStatus.CAPTURED, PaymentStatus.REFUNDED))
        self.assertFalse(can_apply(PaymentStatus.CAPTURED, PaymentStatus.AUTHORIZED))
        self.assertFalse(can_apply(PaymentStatus.CAPTURED, PaymentStatus.FAILED))
        self.assertFalse(can_apply(PaymentStatus.CAPTURED, PaymentStatus.CANCELLED))

    def test_hold_progression(self):
        self.assertTrue(can_apply(PaymentStatus.CREATED, PaymentStatus.REQUIRES_ACTION))
        self.assertTrue(can_apply(PaymentStatus.REQUIRES_ACTION, PaymentStatus.AUTHORIZED))
        self.assertTrue(can_apply(PaymentStatus.AUTHORIZED, PaymentStatus.CAPTURED))
        self.assertFalse(can_apply(PaymentStatus.AUTHORIZED, PaymentStatus.REQUIRES_ACTION))
        self.assertFalse(can_apply(PaymentStatus.CREATED, PaymentStatus.CAPTURED))

    def test_parse_payment_status(self):
        self.assertEqual(parse_payment_status(" AUTHORIZED "), PaymentStatus.AUTHORIZED)
        with self.assertRaises(ValueError):
            parse_payment_status("settled")


class CreatePreauthTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.pro = create_pro()
        self.order = create_order(pro=self.pro, status=OrderStatus.ACCEPTED)

    def test_authorized_hold_confirms_the_order(self):
        result = CreatePreauthUseCase.execute(CreatePreauthCommand(order_id=self.order.id, actor=client_actor()))

        payment = Payment.objects.get(id=result.payment_id)
        self.assertEqual(payment.status, PaymentStatus.AUTHORIZED)
        self.assertEqual(payment.amount_estimated, 200_000)
        self.assertEqual(payment.amount_authorized, 200_000)
        self.assertTrue(payment.provider_reference.startswith("DUMMY-"))
        self.assertIsNone(result.checkout_url)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.CONFIRMED)
        chat = IsChatOpenUseCase.execute(IsChatOpenCommand(order_id=self.order.id, actor=client_actor()))
        self.assertTrue(chat.is_open)

    def test_quoted_amount_is_held_instead_of_the_estimate(self):
        Order.objects.filter(id=self.order.id).update(quoted_amount_cents=90_000)

        result = CreatePreauthUseCase.execute(CreatePreauthCommand(order_id=self.order.id, actor=client_actor()))

        self.assertEqual(Payment.objects.get(id=result.payment_id).amount_estimated, 90_000)

    def test_repeated_preauth_reuses_the_active_payment(self):
        first = CreatePreauthUseCase.execute(CreatePreauthCommand(order_id=self.order.id, actor=client_actor()))
        second = CreatePreauthUseCase.execute(CreatePreauthCommand(order_id=self.order.id, actor=client_actor()))

        self.assertEqual(first.payment_id, second.payment_id)
        self.assertEqual(Payment.objects.filter(order=self.order).count(), 1)

    def test_preauth_requires_an_accepted_order(self):
        draft = create_order(pro=self.pro, status=OrderStatus.DRAFT)

        with self.assertRaises(PaymentStateError):
            CreatePreauthUseCase.execute(CreatePreauthCommand(order_id=draft.id, actor=client_actor()))
        self.assertFalse(Payment.objects.filter(order=draft).exists())

    def test_permanent_provider_failure_marks_payment_failed_once(self):
        with mock.patch.object(
            DummyGateway, "create_hold", side_effect=PermanentProviderError("card declined", provider="dummy")
        ):
            with self.assertRaises(PermanentProviderError):
                CreatePreauthUseCase.execute(CreatePreauthCommand(order_id=self.order.id, actor=client_actor()))

        payment = Payment.objects.get(order=self.order)
        self.assertEqual(payment.status, PaymentStatus.FAILED)
        self.assertEqual(payment.failure_reason, "card declined")
        self.assertEqual(AuditLog.objects.filter(event_type=AuditEventType.PAYMENT_FAILED).count(), 1)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.ACCEPTED)

        retry = CreatePreauthUseCase.execute(CreatePreauthCommand(order_id=self.order.id, actor=client_actor()))
        self.assertNotEqual(retry.payment_id, payment.id)
        self.assertEqual(retry.status, PaymentStatus.AUTHORIZED)

    def test_retryable_provider_failure_keeps_payment_created(self):
        with mock.patch.object(
            DummyGateway, "create_hold", side_effect=RetryableProviderError("timeout", provider="dummy")
        ):
            with self.assertRaises(RetryableProviderError):
                CreatePreauthUseCase.execute(CreatePreauthCommand(order_id=self.order.id, actor=client_actor()))

        pending = Payment.objects.get(order=self.order)
        self.assertEqual(pending.status, PaymentStatus.CREATED)
        self.assertFalse(AuditLog.objects.exists())

        result = CreatePreauthUseCase.execute(CreatePreauthCommand(order_id=self.order.id, actor=client_actor()))
        self.assertEqual(result.payment_id, pending.id)
        self.assertEqual(result.status, PaymentStatus.AUTHORIZED)

    @override_settings(PAYMENT_PROVIDER="sandbox")
    def test_redirect_flow_waits_for_the_provider_webhook(self):
        result = CreatePreauthUseCase.execute(CreatePreauthCommand(order_id=self.order.id, actor=client_actor()))

        self.assertEqual(result.status, PaymentStatus.REQUIRES_ACTION)
        self.assertIn("provider=sandbox", result.checkout_url)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.ACCEPTED)

        payment = Payment.objects.get(id=result.payment_id)
        body, headers = signed_webhook(
            {
                "event_id": "evt-auth-1",
                "payment_reference": payment.provider_reference,
                "status": "authorized",
                "authorized_amount": 200_000,
            },
            settings.PAYMENT_WEBHOOK_SECRETS["sandbox"],
        )
        response = APIClient().post(
            "/api/webhooks/payments/sandbox/", data=body, content_type="application/json", **headers
        )

        self.assertEqual(response.status_code, 200)
        payment.refresh_from_db()
        self.assertEqual(payment.status, PaymentStatus.AUTHORIZED)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.CONFIRMED)


class CaptureOrderTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.pro = create_pro()
        self.order = create_order(pro=self.pro, status=OrderStatus.ACCEPTED)
        result = CreatePreauthUseCase.execute(CreatePreauthCommand(order_id=self.order.id, actor=client_actor()))
        self.payment = Payment.objects.get(id=result.payment_id)

    def _complete(self, hours: str) -> None:
        Order.objects.filter(id=self.order.id).update(
            status=OrderStatus.COMPLETED.value, approved_hours=Decimal(hours)
        )

    def test_capture_is_capped_at_the_authorized_amount(self):
        self._complete("3.00")

        payment = CaptureOrderUseCase.execute(CaptureOrderCommand(order_id=self.order.id))

        self.assertEqual(payment.status, PaymentStatus.CAPTURED)
        self.assertEqual(payment.amount_captured, 200_000)
        self.assertEqual(payment.metadata["uncapturedOverageCents"], 100_000)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.PAID)
        self.assertEqual(self.order.total_amount_cents, 200_000)

    def test_second_capture_does_not_charge_again(self):
        self._complete("1.00")
        CaptureOrderUseCase.execute(CaptureOrderCommand(order_id=self.order.id))

        with mock.patch.object(DummyGateway, "capture") as capture:
            payment = CaptureOrderUseCase.execute(CaptureOrderCommand(order_id=self.order.id))

        capture.assert_not_called()
        self.assertEqual(payment.amount_captured, 100_000)
        self.assertEqual(Earning.objects.filter(order=self.order).count(), 1)

    def test_capture_requires_a_completed_order(self):
        with self.assertRaises(PaymentStateError):
            CaptureOrderUseCase.execute(CaptureOrderCommand(order_id=self.order.id))
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, PaymentStatus.AUTHORIZED)

    def test_clients_cannot_capture(self):
        self._complete("1.00")
        with self.assertRaises(PermissionDeniedError):
            CaptureOrderUseCase.execute(CaptureOrderCommand(order_id=self.order.id, actor=client_actor()))

    def test_refund_reverses_the_unclaimed_earning(self):
        self._complete("1.50")
        CaptureOrderUseCase.execute(CaptureOrderCommand(order_id=self.order.id))

        payment = RefundPaymentUseCase.execute(
            RefundPaymentCommand(payment_id=self.payment.id, actor=admin_actor(), reason="no-show")
        )

        self.assertEqual(payment.status, PaymentStatus.REFUNDED)
        self.assertEqual(Earning.objects.get(order=self.order).status, EarningStatus.REVERSED)
        entry = AuditLog.objects.get(event_type=AuditEventType.PAYMENT_REFUNDED)
        self.assertEqual(entry.metadata["reason"], "no-show")

    def test_refund_requires_a_captured_payment(self):
        with self.assertRaises(PaymentStateError):
            RefundPaymentUseCase.execute(RefundPaymentCommand(payment_id=self.payment.id, actor=admin_actor()))


class SyncPaymentStatusTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.pro = create_pro()
        self.order = create_order(pro=self.pro, status=OrderStatus.ACCEPTED)
        self.payment = create_payment(order=self.order, status=PaymentStatus.CREATED)

    def _sync(self, event_id: str, status: PaymentStatus, **amounts) -> Payment:
        event = ProviderEvent(
            event_id=event_id,
            event_type="payment",
            provider_reference=self.payment.provider_reference,
            status=status,
            **amounts,
        )
        return SyncPaymentStatusUseCase.execute(SyncPaymentStatusCommand(payment_id=self.payment.id, event=event))

    def test_authorized_amount_is_clamped_to_the_estimate(self):
        payment = self._sync("evt-1", PaymentStatus.AUTHORIZED, authorized_amount=250_000)

        self.assertEqual(payment.status, PaymentStatus.AUTHORIZED)
        self.assertEqual(payment.amount_authorized, 200_000)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.CONFIRMED)

    def test_replayed_event_changes_nothing(self):
        first = self._sync("evt-1", PaymentStatus.AUTHORIZED)
        second = self._sync("evt-1", PaymentStatus.AUTHORIZED)

        self.assertEqual(second.version, first.version)
        self.assertEqual(PaymentEvent.objects.filter(payment=self.payment).count(), 1)

    def test_stale_event_is_recorded_but_ignored(self):
        Payment.objects.filter(id=self.payment.id).update(
            status=PaymentStatus.CAPTURED.value, amount_authorized=200_000, amount_captured=150_000
        )

        payment = self._sync("evt-late", PaymentStatus.AUTHORIZED)

        self.assertEqual(payment.status, PaymentStatus.CAPTURED)
        self.assertEqual(PaymentEvent.objects.filter(payment=self.payment).count(), 1)

    def test_event_authorizing_less_than_captured_is_ignored(self):
        Payment.objects.filter(id=self.payment.id).update(
            status=PaymentStatus.CAPTURED.value, amount_authorized=200_000, amount_captured=200_000
        )

        with self.assertLogs("arreglatodo.payments", "WARNING") as logs:
            payment = self._sync("evt-refund", PaymentStatus.REFUNDED, authorized_amount=50_000)

        self.assertIn("payment_event_ignored", logs.output[0])
        self.assertEqual(payment.status, PaymentStatus.CAPTURED)
        self.assertEqual(payment.amount_authorized, 200_000)
        self.assertEqual(payment.amount_captured, 200_000)
        self.assertEqual(PaymentEvent.objects.filter(payment=self.payment).count(), 1)

    def test_refund_event_keeps_captured_within_authorized(self):
        Payment.objects.filter(id=self.payment.id).update(
            status=PaymentStatus.CAPTURED.value, amount_authorized=200_000, amount_captured=150_000
        )

        payment = self._sync("evt-refund", PaymentStatus.REFUNDED, authorized_amount=180_000)

        self.assertEqual(payment.status, PaymentStatus.REFUNDED)
        self.assertEqual(payment.amount_authorized, 180_000)
        self.assertLessEqual(payment.amount_captured, payment.amount_authorized)

    def test_failed_event_writes_one_audit_row(self):
        payment = self._sync("evt-fail", PaymentStatus.FAILED)

        self.assertEqual(payment.status, PaymentStatus.FAILED)
        self.assertEqual(AuditLog.objects.filter(event_type=AuditEventType.PAYMENT_FAILED).count(), 1)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.ACCEPTED)


class PaymentApiTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.api = APIClient()
        self.pro = create_pro()
        self.order = create_order(pro=self.pro, status=OrderStatus.ACCEPTED)

    def test_providers_are_listed(self):
        response = self.api.get("/api/payments/providers/")

        self.assertEqual(response.status_code, 200)
        codes = {item["code"] for item in response.json()["data"]["items"]}
        self.assertEqual(codes, {"dummy", "sandbox"})

    def test_preauth_endpoint(self):
        response = self.api.post(f"/api/orders/{self.order.id}/preauth/", **actor_headers(client_actor()))

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["data"]["status"], "authorized")

    def test_webhook_with_bad_signature_is_rejected(self):
        payment = create_payment(order=self.order, status=PaymentStatus.CREATED)
        body, _ = signed_webhook(
            {"event_id": "evt-1", "payment_reference": payment.provider_reference, "status": "authorized"},
            "dummy-secret",
        )

        response = self.api.post(
            "/api/webhooks/payments/dummy/",
            data=body,
            content_type="application/json",
            HTTP_X_SIGNATURE="not-a-signature",
        )

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["error"]["code"], "invalid_signature")
        payment.refresh_from_db()
        self.assertEqual(payment.status, PaymentStatus.CREATED)

    def test_webhook_with_negative_amount_is_a_validation_error(self):
        payment = create_payment(order=self.order, status=PaymentStatus.CREATED)
        body, headers = signed_webhook(
            {
                "event_id": "evt-neg",
                "payment_reference": payment.provider_reference,
                "status": "authorized",
                "authorized_amount": -5,
            },
            settings.PAYMENT_WEBHOOK_SECRETS["dummy"],
        )

        response = self.api.post("/api/webhooks/payments/dummy/", data=body, content_type="application/json", **headers)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["code"], "validation_error")
        payment.refresh_from_db()
        self.assertEqual(payment.status, PaymentStatus.CREATED)
        self.assertFalse(PaymentEvent.objects.filter(payment=payment).exists())

    def test_webhook_replay_is_acknowledged_once(self):
        payment = create_payment(order=self.order, status=PaymentStatus.CREATED)
        body, headers = signed_webhook(
            {"event_id": "evt-9", "payment_reference": payment.provider_reference, "status": "authorized"},
            settings.PAYMENT_WEBHOOK_SECRETS["dummy"],
        )

        for _ in range(2):
            response = self.api.post(
                "/api/webhooks/payments/dummy/", data=body, content_type="application/json", **headers
            )
            self.assertEqual(response.status_code, 200)

        self.assertEqual(PaymentEvent.objects.filter(payment=payment).count(), 1)
        self.assertEqual(
            AuditLog.objects.for_resource("order", self.order.id).filter(
                event_type=AuditEventType.ORDER_STATUS_CHANGED
            ).count(),
            1,
        )

    def test_admin_sync_is_audited(self):
        CreatePreauthUseCase.execute(CreatePreauthCommand(order_id=self.order.id, actor=client_actor()))
        payment = Payment.objects.get(order=self.order)

        denied = self.api.post(f"/api/admin/payments/{payment.id}/sync/", **actor_headers(client_actor()))
        response = self.api.post(f"/api/admin/payments/{payment.id}/sync/", **actor_headers(admin_actor()))

        self.assertEqual(denied.status_code, 403)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["status"], "authorized")
        self.assertEqual(AuditLog.objects.filter(event_type=AuditEventType.PAYMENT_SYNCED).count(), 1)


class ReconcileTaskTests(TestCase):
    def test_stale_pending_holds_are_queued_for_a_provider_pull(self):
        pro = create_pro()
        stale = create_payment(
            order=create_order(pro=pro, status=OrderStatus.ACCEPTED), status=PaymentStatus.REQUIRES_ACTION
        )
        create_payment(order=create_order(pro=pro, status=OrderStatus.ACCEPTED), status=PaymentStatus.REQUIRES_ACTION)
        Payment.objects.filter(id=stale.id).update(updated_at=timezone.now() - timedelta(hours=1))

        with mock.patch("apps.payments.tasks.reconcile_payment_task.delay") as delay:
            queued = reconcile_pending_payments_task(older_than_minutes=15)

        self.assertEqual(queued, 1)
        delay.assert_called_once_with(stale.id)
