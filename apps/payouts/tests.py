from __future__ import annotations

from datetime import timedelta
from unittest import mock

from django.conf import settings
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from apps.audit.domain.events import AuditEventType
from apps.audit.models import AuditLog
from apps.core.domain.errors import PermanentProviderError, PermissionDeniedError, RetryableProviderError
from apps.core.testing import (
    actor_headers,
    admin_actor,
    create_order,
    create_payment,
    create_pro,
    pro_actor,
    signed_webhook,
)
from apps.orders.domain.state_machine import OrderStatus
from apps.payments.domain.state_machine import PaymentStatus
from apps.payouts.application.use_cases.create_payout import CreatePayoutCommand, CreatePayoutUseCase
from apps.payouts.application.use_cases.list_payables import ListPayablesUseCase
from apps.payouts.application.use_cases.mark_earnings_payable import (
    MarkEarningsPayableCommand,
    MarkEarningsPayableUseCase,
)
from apps.payouts.application.use_cases.record_earning import (
    RecordEarningCommand,
    RecordEarningUseCase,
    ReverseEarningCommand,
    ReverseEarningUseCase,
)
from apps.payouts.application.use_cases.send_payout import SendPayoutCommand, SendPayoutUseCase
from apps.payouts.application.use_cases.sync_payout_status import (
    RefreshPayoutStatusCommand,
    RefreshPayoutStatusUseCase,
)
from apps.payouts.domain.errors import NoPayableEarningsError, PayoutProfileIncompleteError, PayoutStateError
from apps.payouts.domain.fees import platform_fee_cents, split_earning
from apps.payouts.domain.ports import TransferResult
from apps.payouts.domain.state_machine import EarningStatus, PayoutStatus, can_apply_payout
from apps.payouts.infrastructure.gateways.manual_transfer import ManualTransferGateway
from apps.payouts.models import Earning, Payout, PayoutEvent
from apps.payouts.tasks import mark_earnings_payable_task


class FeeTests(TestCase):
    def test_fee_rounds_half_up_to_the_cent(self):
        self.assertEqual(platform_fee_cents(15_005, 0.10), 1_501)
        self.assertEqual(platform_fee_cents(15_004, 0.10), 1_500)
        self.assertEqual(platform_fee_cents(5, 0.5), 3)

    def test_split_always_adds_up_to_gross(self):
        for gross in (0, 1, 99, 150_000, 123_457):
            fee, net = split_earning(gross, 0.10)
            self.assertEqual(fee + net, gross)
            self.assertGreaterEqual(net, 0)

    def test_payout_edges(self):
        self.assertTrue(can_apply_payout(PayoutStatus.FAILED, PayoutStatus.SENT))
        self.assertTrue(can_apply_payout(PayoutStatus.SENT, PayoutStatus.SETTLED))
        self.assertFalse(can_apply_payout(PayoutStatus.SETTLED, PayoutStatus.FAILED))
        self.assertFalse(can_apply_payout(PayoutStatus.CREATED, PayoutStatus.SETTLED))


class PayoutTestMixin:
    def _captured_earning(self, pro, gross: int, *, due: bool = True) -> Earning:
        order = create_order(pro=pro, status=OrderStatus.PAID, total_amount_cents=gross)
        payment = create_payment(
            order=order, status=PaymentStatus.CAPTURED, amount_authorized=max(gross, 200_000), amount_captured=gross
        )
        earning = RecordEarningUseCase.execute(RecordEarningCommand(order_id=order.id, payment_id=payment.id))
        if due:
            Earning.objects.filter(id=earning.id).update(available_at=timezone.now() - timedelta(minutes=1))
            earning.refresh_from_db()
        return earning


class EarningTests(PayoutTestMixin, TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.pro = create_pro()

    def test_earning_withholds_the_platform_fee(self):
        earning = self._captured_earning(self.pro, 150_000)

        self.assertEqual(earning.gross_amount_cents, 150_000)
        self.assertEqual(earning.platform_fee_cents, 15_000)
        self.assertEqual(earning.net_amount_cents, 135_000)

    @override_settings(EARNING_COOLING_OFF_HOURS=48)
    def test_new_earning_waits_out_the_cooling_off_window(self):
        before = timezone.now()

        earning = self._captured_earning(self.pro, 150_000, due=False)

        self.assertEqual(earning.status, EarningStatus.PENDING)
        self.assertGreaterEqual(earning.available_at, before + timedelta(hours=48))
        self.assertLessEqual(earning.available_at, timezone.now() + timedelta(hours=48))

    def test_due_earnings_are_marked_payable(self):
        due = self._captured_earning(self.pro, 100_000)
        waiting = self._captured_earning(self.pro, 80_000, due=False)

        promoted = MarkEarningsPayableUseCase.execute(MarkEarningsPayableCommand())

        self.assertEqual(promoted, 1)
        due.refresh_from_db()
        waiting.refresh_from_db()
        self.assertEqual(due.status, EarningStatus.PAYABLE)
        self.assertEqual(waiting.status, EarningStatus.PENDING)
        self.assertEqual(mark_earnings_payable_task(), 0)

    def test_pending_earnings_are_reversed_on_refund(self):
        earning = self._captured_earning(self.pro, 100_000, due=False)

        result = ReverseEarningUseCase.execute(ReverseEarningCommand(order_id=earning.order_id))

        self.assertEqual(result.status, EarningStatus.REVERSED)

    def test_recording_twice_returns_the_same_earning(self):
        earning = self._captured_earning(self.pro, 100_000)

        again = RecordEarningUseCase.execute(
            RecordEarningCommand(order_id=earning.order_id, payment_id=earning.payment_id)
        )

        self.assertEqual(again.id, earning.id)
        self.assertEqual(Earning.objects.count(), 1)

    def test_claimed_earnings_are_not_reversed(self):
        earning = self._captured_earning(self.pro, 100_000)
        CreatePayoutUseCase.execute(CreatePayoutCommand(pro_profile_id=self.pro.id, actor=admin_actor()))

        result = ReverseEarningUseCase.execute(ReverseEarningCommand(order_id=earning.order_id))

        self.assertEqual(result.status, EarningStatus.CLAIMED)


class CreatePayoutTests(PayoutTestMixin, TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.pro = create_pro()

    def test_payout_claims_every_payable_earning(self):
        first = self._captured_earning(self.pro, 150_000)
        second = self._captured_earning(self.pro, 80_005)
        other_pro = create_pro(user_id="pro-2")
        self._captured_earning(other_pro, 50_000)

        payout = CreatePayoutUseCase.execute(CreatePayoutCommand(pro_profile_id=self.pro.id, actor=admin_actor()))

        claimed = list(payout.earnings.all())
        self.assertEqual({earning.id for earning in claimed}, {first.id, second.id})
        self.assertTrue(all(earning.status == EarningStatus.CLAIMED for earning in claimed))
        self.assertEqual(payout.amount_cents, sum(earning.net_amount_cents for earning in claimed))
        self.assertEqual(payout.status, PayoutStatus.CREATED)
        self.assertEqual(payout.destination["account_number"], "001-234567")
        self.assertEqual(AuditLog.objects.filter(event_type=AuditEventType.PAYOUT_CREATED).count(), 1)

    def test_second_payout_finds_nothing_to_pay(self):
        self._captured_earning(self.pro, 150_000)
        CreatePayoutUseCase.execute(CreatePayoutCommand(pro_profile_id=self.pro.id, actor=admin_actor()))

        with self.assertRaises(NoPayableEarningsError):
            CreatePayoutUseCase.execute(CreatePayoutCommand(pro_profile_id=self.pro.id, actor=admin_actor()))
        self.assertEqual(Payout.objects.filter(pro=self.pro).count(), 1)

    def test_reversed_earnings_are_not_paid_out(self):
        earning = self._captured_earning(self.pro, 150_000)
        ReverseEarningUseCase.execute(ReverseEarningCommand(order_id=earning.order_id))

        with self.assertRaises(NoPayableEarningsError):
            CreatePayoutUseCase.execute(CreatePayoutCommand(pro_profile_id=self.pro.id, actor=admin_actor()))

    def test_earnings_inside_the_cooling_off_window_are_not_paid_out(self):
        due = self._captured_earning(self.pro, 150_000)
        waiting = self._captured_earning(self.pro, 80_000, due=False)

        payout = CreatePayoutUseCase.execute(CreatePayoutCommand(pro_profile_id=self.pro.id, actor=admin_actor()))

        self.assertEqual([earning.id for earning in payout.earnings.all()], [due.id])
        self.assertEqual(payout.amount_cents, due.net_amount_cents)
        waiting.refresh_from_db()
        self.assertEqual(waiting.status, EarningStatus.PENDING)
        self.assertIsNone(waiting.payout_id)

    def test_only_cooling_off_earnings_means_nothing_to_pay(self):
        self._captured_earning(self.pro, 150_000, due=False)

        with self.assertRaises(NoPayableEarningsError):
            CreatePayoutUseCase.execute(CreatePayoutCommand(pro_profile_id=self.pro.id, actor=admin_actor()))
        self.assertFalse(Payout.objects.exists())

    def test_earning_claimed_concurrently_is_not_claimed_twice(self):
        first = self._captured_earning(self.pro, 150_000)
        second = self._captured_earning(self.pro, 80_000)
        create_payout_row = Payout.objects.create

        def create_after_a_rival_claims(**kwargs):
            rival = create_payout_row(**{**kwargs, "amount_cents": first.net_amount_cents})
            Earning.objects.filter(id=first.id).update(payout=rival, status=EarningStatus.CLAIMED.value)
            return create_payout_row(**kwargs)

        with mock.patch.object(Payout.objects, "create", side_effect=create_after_a_rival_claims):
            payout = CreatePayoutUseCase.execute(
                CreatePayoutCommand(pro_profile_id=self.pro.id, actor=admin_actor())
            )

        self.assertEqual([earning.id for earning in payout.earnings.all()], [second.id])
        self.assertEqual(payout.amount_cents, second.net_amount_cents)
        first.refresh_from_db()
        self.assertNotEqual(first.payout_id, payout.id)

    def test_incomplete_payout_profile_is_rejected(self):
        pro = create_pro(user_id="pro-3", payout_account_number="")
        self._captured_earning(pro, 150_000)

        with self.assertRaises(PayoutProfileIncompleteError):
            CreatePayoutUseCase.execute(CreatePayoutCommand(pro_profile_id=pro.id, actor=admin_actor()))
        self.assertEqual(Earning.objects.get(pro=pro).status, EarningStatus.PENDING)
        self.assertIsNone(Earning.objects.get(pro=pro).payout_id)

    def test_only_admins_create_payouts(self):
        self._captured_earning(self.pro, 150_000)
        with self.assertRaises(PermissionDeniedError):
            CreatePayoutUseCase.execute(CreatePayoutCommand(pro_profile_id=self.pro.id, actor=pro_actor(self.pro)))
        self.assertFalse(Payout.objects.exists())

    def test_payables_summarise_unclaimed_balances(self):
        self._captured_earning(self.pro, 100_000)
        self._captured_earning(self.pro, 100_000)
        other_pro = create_pro(user_id="pro-2")
        self._captured_earning(other_pro, 300_000)

        summaries = ListPayablesUseCase.execute(admin_actor())

        self.assertEqual([summary.pro_profile_id for summary in summaries], [other_pro.id, self.pro.id])
        self.assertEqual(summaries[1].earning_count, 2)
        self.assertEqual(summaries[1].amount_cents, 180_000)


class SendPayoutTests(PayoutTestMixin, TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.pro = create_pro()
        self._captured_earning(self.pro, 150_000)
        self.payout = CreatePayoutUseCase.execute(
            CreatePayoutCommand(pro_profile_id=self.pro.id, actor=admin_actor())
        )

    def test_send_moves_payout_to_sent(self):
        payout = SendPayoutUseCase.execute(SendPayoutCommand(payout_id=self.payout.id, actor=admin_actor()))

        self.assertEqual(payout.status, PayoutStatus.SENT)
        self.assertEqual(payout.attempts, 1)
        self.assertTrue(payout.provider_reference.startswith("MANUAL-"))
        self.assertIsNotNone(payout.sent_at)
        self.assertEqual(AuditLog.objects.filter(event_type=AuditEventType.PAYOUT_SENT).count(), 1)

    def test_failed_send_can_be_resent_with_the_same_earnings(self):
        with mock.patch.object(
            ManualTransferGateway,
            "send_transfer",
            autospec=True,
            side_effect=PermanentProviderError("account closed", provider="manual"),
        ) as send_transfer:
            with self.assertRaises(PermanentProviderError):
                SendPayoutUseCase.execute(SendPayoutCommand(payout_id=self.payout.id, actor=admin_actor()))

        self.assertEqual(send_transfer.call_args.kwargs["idempotency_key"], f"payout-{self.payout.id}-attempt-1")
        failed = Payout.objects.get(id=self.payout.id)
        self.assertEqual(failed.status, PayoutStatus.FAILED)
        self.assertEqual(failed.attempts, 1)
        self.assertEqual(failed.failure_reason, "account closed")

        with self.assertRaises(PayoutStateError):
            SendPayoutUseCase.execute(SendPayoutCommand(payout_id=self.payout.id, actor=admin_actor()))

        payout = SendPayoutUseCase.execute(
            SendPayoutCommand(payout_id=self.payout.id, actor=admin_actor(), resend=True)
        )

        self.assertEqual(payout.status, PayoutStatus.SENT)
        self.assertEqual(payout.attempts, 2)
        self.assertEqual(payout.failure_reason, "")
        self.assertEqual(Payout.objects.count(), 1)
        self.assertEqual(Earning.objects.filter(payout=payout, status=EarningStatus.CLAIMED).count(), 1)
        self.assertEqual(
            list(
                AuditLog.objects.for_resource("payout", payout.id).values_list("event_type", flat=True)
            ),
            ["PAYOUT_CREATED", "PAYOUT_FAILED", "PAYOUT_RESENT"],
        )

    def test_deferred_send_keeps_the_attempt_key(self):
        with mock.patch.object(
            ManualTransferGateway,
            "send_transfer",
            autospec=True,
            side_effect=RetryableProviderError("bank api timeout", provider="manual"),
        ):
            with self.assertRaises(RetryableProviderError):
                SendPayoutUseCase.execute(SendPayoutCommand(payout_id=self.payout.id, actor=admin_actor()))

        deferred = Payout.objects.get(id=self.payout.id)
        self.assertEqual(deferred.status, PayoutStatus.CREATED)
        self.assertEqual(deferred.attempts, 0)
        self.assertEqual(AuditLog.objects.filter(event_type=AuditEventType.PAYOUT_SEND_DEFERRED).count(), 1)

        with mock.patch.object(
            ManualTransferGateway,
            "send_transfer",
            autospec=True,
            return_value=TransferResult(provider_reference="MANUAL-abc", status=PayoutStatus.SENT),
        ) as send_transfer:
            SendPayoutUseCase.execute(SendPayoutCommand(payout_id=self.payout.id, actor=admin_actor()))

        self.assertEqual(send_transfer.call_args.kwargs["idempotency_key"], f"payout-{self.payout.id}-attempt-1")

    def test_settlement_webhook_marks_earnings_paid_once(self):
        payout = SendPayoutUseCase.execute(SendPayoutCommand(payout_id=self.payout.id, actor=admin_actor()))
        body, headers = signed_webhook(
            {"event_id": "evt-settle-1", "payout_reference": payout.provider_reference, "status": "settled"},
            settings.PAYOUT_WEBHOOK_SECRETS["manual"],
        )
        api = APIClient()

        for _ in range(2):
            response = api.post("/api/webhooks/payouts/manual/", data=body, content_type="application/json", **headers)
            self.assertEqual(response.status_code, 200)
            self.assertEqual(response.json()["data"]["status"], "settled")

        payout.refresh_from_db()
        self.assertEqual(payout.status, PayoutStatus.SETTLED)
        self.assertIsNotNone(payout.settled_at)
        earning = Earning.objects.get(payout=payout)
        self.assertEqual(earning.status, EarningStatus.PAID)
        self.assertIsNotNone(earning.paid_at)
        self.assertEqual(PayoutEvent.objects.filter(payout=payout).count(), 1)
        self.assertEqual(AuditLog.objects.filter(event_type=AuditEventType.PAYOUT_SETTLED).count(), 1)

    def test_failure_webhook_keeps_earnings_claimed_for_resend(self):
        payout = SendPayoutUseCase.execute(SendPayoutCommand(payout_id=self.payout.id, actor=admin_actor()))
        body, headers = signed_webhook(
            {
                "event_id": "evt-fail-1",
                "payout_reference": payout.provider_reference,
                "status": "failed",
                "failure_reason": "rejected by bank",
            },
            settings.PAYOUT_WEBHOOK_SECRETS["manual"],
        )

        response = APIClient().post(
            "/api/webhooks/payouts/manual/", data=body, content_type="application/json", **headers
        )

        self.assertEqual(response.status_code, 200)
        payout.refresh_from_db()
        self.assertEqual(payout.status, PayoutStatus.FAILED)
        self.assertEqual(payout.failure_reason, "rejected by bank")
        self.assertEqual(Earning.objects.get(payout=payout).status, EarningStatus.CLAIMED)

    def test_pull_sync_without_provider_change_keeps_payout_sent(self):
        payout = SendPayoutUseCase.execute(SendPayoutCommand(payout_id=self.payout.id, actor=admin_actor()))

        unchanged = RefreshPayoutStatusUseCase.execute(
            RefreshPayoutStatusCommand(payout_id=payout.id, actor=admin_actor())
        )

        self.assertEqual(unchanged.status, PayoutStatus.SENT)
        self.assertFalse(AuditLog.objects.filter(event_type=AuditEventType.PAYOUT_SETTLED).exists())

    def test_bad_signature_is_rejected(self):
        payout = SendPayoutUseCase.execute(SendPayoutCommand(payout_id=self.payout.id, actor=admin_actor()))
        body, _ = signed_webhook(
            {"event_id": "evt-1", "payout_reference": payout.provider_reference, "status": "settled"}, "wrong-secret"
        )

        response = APIClient().post(
            "/api/webhooks/payouts/manual/",
            data=body,
            content_type="application/json",
            HTTP_X_SIGNATURE="deadbeef",
        )

        self.assertEqual(response.status_code, 403)
        payout.refresh_from_db()
        self.assertEqual(payout.status, PayoutStatus.SENT)


class PayoutApiTests(PayoutTestMixin, TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.api = APIClient()
        self.pro = create_pro()
        self._captured_earning(self.pro, 150_000)

    def test_admin_payout_flow(self):
        payables = self.api.get("/api/admin/payouts/payables/", **actor_headers(admin_actor()))
        created = self.api.post(f"/api/admin/pros/{self.pro.id}/payouts/", **actor_headers(admin_actor()))
        payout_id = created.json()["data"]["id"]
        sent = self.api.post(f"/api/admin/payouts/{payout_id}/send/", **actor_headers(admin_actor()))
        detail = self.api.get(f"/api/admin/payouts/{payout_id}/", **actor_headers(admin_actor()))

        self.assertEqual(payables.status_code, 200)
        self.assertEqual(payables.json()["data"]["items"][0]["amount_cents"], 135_000)
        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.json()["data"]["amount_cents"], 135_000)
        self.assertEqual(sent.status_code, 200)
        self.assertEqual(sent.json()["data"]["status"], "sent")
        self.assertEqual(len(detail.json()["data"]["earnings"]), 1)

    def test_nothing_to_pay_returns_409(self):
        self.api.post(f"/api/admin/pros/{self.pro.id}/payouts/", **actor_headers(admin_actor()))
        response = self.api.post(f"/api/admin/pros/{self.pro.id}/payouts/", **actor_headers(admin_actor()))

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["error"]["code"], "nothing_to_pay")

    def test_deferred_send_is_queued_for_retry(self):
        created = self.api.post(f"/api/admin/pros/{self.pro.id}/payouts/", **actor_headers(admin_actor()))
        payout_id = created.json()["data"]["id"]

        with mock.patch.object(
            ManualTransferGateway,
            "send_transfer",
            autospec=True,
            side_effect=RetryableProviderError("bank api timeout", provider="manual"),
        ):
            with mock.patch("apps.payouts.interfaces.api.views.send_payout_task.delay") as delay:
                response = self.api.post(f"/api/admin/payouts/{payout_id}/send/", **actor_headers(admin_actor()))

        self.assertEqual(response.status_code, 503)
        self.assertTrue(response.json()["error"]["retryable"])
        delay.assert_called_once_with(payout_id, resend=False)

    @override_settings(PLATFORM_FEE_RATE=0.15)
    def test_fee_rate_comes_from_settings(self):
        order = create_order(pro=self.pro, status=OrderStatus.PAID)
        payment = create_payment(order=order, status=PaymentStatus.CAPTURED, amount_captured=100_000)

        earning = RecordEarningUseCase.execute(RecordEarningCommand(order_id=order.id, payment_id=payment.id))

        self.assertEqual(earning.platform_fee_cents, 15_000)
