from __future__ import annotations

from decimal import Decimal
from unittest import mock

from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from apps.audit.domain.events import AuditEventType
from apps.audit.models import AuditLog
from apps.core.domain.actors import ActorContext, ActorRole
from apps.core.domain.errors import PermissionDeniedError, RetryableProviderError
from apps.core.testing import (
    actor_headers,
    admin_actor,
    client_actor,
    create_order,
    create_payment,
    create_pro,
    pro_actor,
)
from apps.orders.application.use_cases.approve_hours import ApproveHoursCommand, ApproveHoursUseCase
from apps.orders.application.use_cases.cancel_order import CancelOrderCommand, CancelOrderUseCase
from apps.orders.application.use_cases.create_order import CreateOrderCommand, CreateOrderUseCase
from apps.orders.application.use_cases.force_order_status import (
    ForceOrderStatusCommand,
    ForceOrderStatusUseCase,
)
from apps.orders.application.use_cases.order_actions import (
    AcceptOrderUseCase,
    DisputeOrderCommand,
    DisputeOrderUseCase,
    MarkArrivedUseCase,
    OrderActionCommand,
    StartOrderUseCase,
    SubmitHoursCommand,
    SubmitHoursUseCase,
    SubmitOrderUseCase,
)
from apps.orders.application.use_cases.transition_order import TransitionOrderCommand, TransitionOrderUseCase
from apps.orders.domain.errors import (
    InvalidOrderTransitionError,
    OrderActionForbiddenError,
    OrderStatusConflictError,
    OrderValidationError,
)
from apps.orders.domain.pricing import estimate_amount_cents, final_amount_cents, labor_amount_cents
from apps.orders.domain.state_machine import OrderStateMachine, OrderStatus, parse_status
from apps.orders.models import Order
from apps.payments.application.use_cases.create_preauth import CreatePreauthCommand, CreatePreauthUseCase
from apps.payments.domain.state_machine import PaymentStatus
from apps.payments.infrastructure.gateways.dummy_gateway import DummyGateway
from apps.payments.models import Payment
from apps.payouts.models import Earning
from apps.pros.domain.errors import ProNotActiveError
from apps.pros.models import ProProfile


class OrderStateMachineTests(TestCase):
    def test_client_can_cancel_only_before_work_starts(self):
        for status in (
            OrderStatus.DRAFT,
            OrderStatus.PENDING_PRO_CONFIRMATION,
            OrderStatus.ACCEPTED,
            OrderStatus.CONFIRMED,
        ):
            self.assertTrue(OrderStateMachine.can_transition(status, OrderStatus.CANCELED, ActorRole.CLIENT))
        for status in (
            OrderStatus.IN_PROGRESS,
            OrderStatus.AWAITING_CLIENT_APPROVAL,
            OrderStatus.COMPLETED,
            OrderStatus.DISPUTED,
        ):
            self.assertFalse(OrderStateMachine.can_transition(status, OrderStatus.CANCELED, ActorRole.CLIENT))

    def test_confirmation_and_payment_edges_belong_to_the_system(self):
        self.assertTrue(
            OrderStateMachine.can_transition(OrderStatus.ACCEPTED, OrderStatus.CONFIRMED, ActorRole.SYSTEM)
        )
        self.assertFalse(
            OrderStateMachine.can_transition(OrderStatus.ACCEPTED, OrderStatus.CONFIRMED, ActorRole.CLIENT)
        )
        self.assertFalse(OrderStateMachine.can_transition(OrderStatus.COMPLETED, OrderStatus.PAID, ActorRole.PRO))

    def test_dispute_resolution_is_admin_only(self):
        self.assertTrue(
            OrderStateMachine.can_transition(OrderStatus.DISPUTED, OrderStatus.COMPLETED, ActorRole.ADMIN)
        )
        self.assertFalse(
            OrderStateMachine.can_transition(OrderStatus.DISPUTED, OrderStatus.COMPLETED, ActorRole.CLIENT)
        )

    def test_admin_stays_on_the_graph(self):
        self.assertFalse(OrderStateMachine.can_transition(OrderStatus.PAID, OrderStatus.DRAFT, ActorRole.ADMIN))
        self.assertFalse(OrderStateMachine.can_transition(OrderStatus.DRAFT, OrderStatus.PAID, ActorRole.ADMIN))

    def test_terminal_statuses_have_no_outgoing_edges(self):
        for status in (OrderStatus.CANCELED, OrderStatus.REJECTED, OrderStatus.PAID):
            self.assertTrue(OrderStateMachine.is_terminal(status))
            for role in ActorRole:
                self.assertEqual(OrderStateMachine.allowed_targets(status, role), [])

    def test_allowed_targets_for_pro_on_pending_order(self):
        targets = OrderStateMachine.allowed_targets(OrderStatus.PENDING_PRO_CONFIRMATION, ActorRole.PRO)
        self.assertEqual(
            set(targets), {OrderStatus.ACCEPTED, OrderStatus.REJECTED, OrderStatus.CANCELED}
        )

    def test_parse_status_rejects_values_outside_the_enum(self):
        self.assertEqual(parse_status("IN_PROGRESS"), OrderStatus.IN_PROGRESS)
        with self.assertRaises(OrderValidationError) as ctx:
            parse_status("ARCHIVED", field="target_status")
        self.assertEqual(ctx.exception.field, "target_status")
        with self.assertRaises(OrderValidationError):
            parse_status(None)


class PricingTests(TestCase):
    def test_hourly_labor_rounds_up_to_the_cent(self):
        self.assertEqual(labor_amount_cents(33_333, Decimal("1.50")), 50_000)
        self.assertEqual(labor_amount_cents(10_001, Decimal("0.33")), 3_301)

    def test_quoted_amount_wins_over_hourly_estimate(self):
        amount = estimate_amount_cents(
            pricing_mode="hourly", hourly_rate_cents=100_000, estimated_hours=Decimal("3"), quoted_amount_cents=90_000
        )
        self.assertEqual(amount, 90_000)

    def test_fixed_price_requires_a_quote(self):
        with self.assertRaises(OrderValidationError):
            estimate_amount_cents(
                pricing_mode="fixed", hourly_rate_cents=100_000, estimated_hours=Decimal("1"), quoted_amount_cents=None
            )

    def test_final_amount_needs_approved_hours_for_hourly_orders(self):
        with self.assertRaises(OrderValidationError):
            final_amount_cents(
                pricing_mode="hourly", hourly_rate_cents=100_000, approved_hours=None, quoted_amount_cents=None
            )
        self.assertEqual(
            final_amount_cents(
                pricing_mode="hourly",
                hourly_rate_cents=100_000,
                approved_hours=Decimal("1.25"),
                quoted_amount_cents=None,
            ),
            125_000,
        )


class TransitionOrderTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.pro = create_pro()

    def test_transition_persists_status_timestamp_version_and_audit_row(self):
        order = create_order(pro=self.pro, status=OrderStatus.DRAFT)

        updated = TransitionOrderUseCase.execute(
            TransitionOrderCommand(
                order_id=order.id,
                target_status="pending_pro_confirmation",
                actor=client_actor(),
                expected_status="draft",
            )
        )

        self.assertEqual(updated.status, OrderStatus.PENDING_PRO_CONFIRMATION)
        self.assertIsNotNone(updated.submitted_at)
        self.assertEqual(updated.version, order.version + 1)
        entries = list(AuditLog.objects.for_resource("order", order.id))
        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0].event_type, AuditEventType.ORDER_STATUS_CHANGED)
        self.assertEqual(entries[0].metadata, {"previousStatus": "draft", "newStatus": "pending_pro_confirmation"})
        self.assertEqual(entries[0].actor_role, "client")

    def test_stale_expected_status_returns_conflict(self):
        order = create_order(pro=self.pro, status=OrderStatus.ACCEPTED)

        with self.assertRaises(OrderStatusConflictError) as ctx:
            TransitionOrderUseCase.execute(
                TransitionOrderCommand(
                    order_id=order.id,
                    target_status=OrderStatus.CANCELED,
                    actor=client_actor(),
                    expected_status=OrderStatus.PENDING_PRO_CONFIRMATION,
                )
            )
        self.assertEqual(ctx.exception.current_status, "accepted")
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.ACCEPTED)

    def test_client_cannot_cancel_work_in_progress(self):
        order = create_order(pro=self.pro, status=OrderStatus.IN_PROGRESS)

        with self.assertRaises(InvalidOrderTransitionError):
            TransitionOrderUseCase.execute(
                TransitionOrderCommand(
                    order_id=order.id,
                    target_status=OrderStatus.CANCELED,
                    actor=client_actor(),
                    expected_status=OrderStatus.IN_PROGRESS,
                )
            )
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.IN_PROGRESS)
        self.assertFalse(AuditLog.objects.for_resource("order", order.id).exists())

    def test_cancelling_a_canceled_order_is_a_no_op(self):
        order = create_order(pro=self.pro, status=OrderStatus.CANCELED)

        result = TransitionOrderUseCase.execute(
            TransitionOrderCommand(
                order_id=order.id,
                target_status=OrderStatus.CANCELED,
                actor=client_actor(),
                expected_status=OrderStatus.ACCEPTED,
            )
        )
        self.assertEqual(result.status, OrderStatus.CANCELED)
        self.assertEqual(result.version, order.version)
        self.assertFalse(AuditLog.objects.for_resource("order", order.id).exists())


class ForceOrderStatusTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.pro = create_pro()
        self.order = create_order(pro=self.pro, status=OrderStatus.DISPUTED)

    def test_force_writes_exactly_one_forced_audit_row(self):
        order = ForceOrderStatusUseCase.execute(
            ForceOrderStatusCommand(
                order_id=self.order.id, target_status="completed", actor=admin_actor(), reason="resolved by phone"
            )
        )

        self.assertEqual(order.status, OrderStatus.COMPLETED)
        entries = list(AuditLog.objects.for_resource("order", self.order.id))
        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0].event_type, AuditEventType.ORDER_STATUS_FORCED)
        self.assertEqual(entries[0].metadata["previousStatus"], "disputed")
        self.assertEqual(entries[0].metadata["newStatus"], "completed")
        self.assertEqual(entries[0].metadata["reason"], "resolved by phone")

    def test_force_bypasses_the_graph(self):
        order = ForceOrderStatusUseCase.execute(
            ForceOrderStatusCommand(order_id=self.order.id, target_status=OrderStatus.DRAFT, actor=admin_actor())
        )
        self.assertEqual(order.status, OrderStatus.DRAFT)

    def test_repeating_the_same_force_is_a_no_op(self):
        command = ForceOrderStatusCommand(order_id=self.order.id, target_status="completed", actor=admin_actor())
        first = ForceOrderStatusUseCase.execute(command)
        second = ForceOrderStatusUseCase.execute(command)

        self.assertEqual(second.status, OrderStatus.COMPLETED)
        self.assertEqual(second.version, first.version)
        self.assertEqual(
            AuditLog.objects.filter(event_type=AuditEventType.ORDER_STATUS_FORCED).count(),
            1,
        )

    def test_only_admins_can_force(self):
        with self.assertRaises(PermissionDeniedError):
            ForceOrderStatusUseCase.execute(
                ForceOrderStatusCommand(order_id=self.order.id, target_status="completed", actor=client_actor())
            )
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.DISPUTED)

    def test_force_rejects_unknown_status(self):
        with self.assertRaises(OrderValidationError):
            ForceOrderStatusUseCase.execute(
                ForceOrderStatusCommand(order_id=self.order.id, target_status="archived", actor=admin_actor())
            )
        self.assertFalse(AuditLog.objects.exists())

    def test_failing_notifier_keeps_transition_and_audit_row(self):
        with mock.patch(
            "apps.orders.infrastructure.notifier.LoggingOrderNotifier.order_status_changed",
            side_effect=RuntimeError("push gateway down"),
        ):
            with self.assertLogs("arreglatodo.orders", level="ERROR") as logs:
                with self.captureOnCommitCallbacks(execute=True):
                    ForceOrderStatusUseCase.execute(
                        ForceOrderStatusCommand(
                            order_id=self.order.id, target_status="canceled", actor=admin_actor()
                        )
                    )

        self.assertTrue(any("order_notification_failed" in line for line in logs.output))
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.CANCELED)
        self.assertEqual(AuditLog.objects.filter(event_type=AuditEventType.ORDER_STATUS_FORCED).count(), 1)

    @override_settings(FORCE_STATUS_MAX_ATTEMPTS=2)
    def test_force_gives_up_after_bounded_lost_races(self):
        with mock.patch("django.db.models.query.QuerySet.update", return_value=0) as update:
            with self.assertRaises(OrderStatusConflictError):
                ForceOrderStatusUseCase.execute(
                    ForceOrderStatusCommand(order_id=self.order.id, target_status="completed", actor=admin_actor())
                )
        self.assertEqual(update.call_count, 2)
        self.assertFalse(AuditLog.objects.exists())


class OrderLifecycleTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.pro = create_pro()

    def _create_order(self, **overrides) -> Order:
        values = {
            "actor": client_actor(),
            "pro_profile_id": self.pro.id,
            "category": "plumbing",
            "scheduled_window_start_at": timezone.now(),
            "estimated_hours": Decimal("2.00"),
        }
        values.update(overrides)
        return CreateOrderUseCase.execute(CreateOrderCommand(**values))

    def test_create_order_snapshots_the_pro_rate(self):
        order = self._create_order()
        ProProfile.objects.filter(id=self.pro.id).update(hourly_rate_cents=999_999)

        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.DRAFT)
        self.assertEqual(order.hourly_rate_cents, 100_000)
        self.assertEqual(order.client_user_id, "client-1")

    def test_create_order_rejects_non_positive_hours_and_suspended_pros(self):
        with self.assertRaises(OrderValidationError):
            self._create_order(estimated_hours=Decimal("0"))
        ProProfile.objects.filter(id=self.pro.id).update(status=ProProfile.STATUS_SUSPENDED)
        with self.assertRaises(ProNotActiveError):
            self._create_order()

    def test_only_the_assigned_active_pro_can_accept(self):
        order = create_order(pro=self.pro, status=OrderStatus.PENDING_PRO_CONFIRMATION)
        other = create_pro(user_id="pro-2")

        with self.assertRaises(OrderActionForbiddenError):
            AcceptOrderUseCase.execute(OrderActionCommand(order_id=order.id, actor=pro_actor(other)))

        ProProfile.objects.filter(id=self.pro.id).update(status=ProProfile.STATUS_SUSPENDED)
        with self.assertRaises(ProNotActiveError):
            AcceptOrderUseCase.execute(OrderActionCommand(order_id=order.id, actor=pro_actor(self.pro)))
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.PENDING_PRO_CONFIRMATION)

    def test_clients_act_only_on_their_own_orders(self):
        order = create_order(pro=self.pro, status=OrderStatus.DRAFT)
        with self.assertRaises(OrderActionForbiddenError):
            SubmitOrderUseCase.execute(OrderActionCommand(order_id=order.id, actor=client_actor("client-2")))

    def test_full_hourly_flow_ends_paid_with_an_earning(self):
        order = self._create_order()
        SubmitOrderUseCase.execute(OrderActionCommand(order_id=order.id, actor=client_actor()))
        AcceptOrderUseCase.execute(OrderActionCommand(order_id=order.id, actor=pro_actor(self.pro)))
        preauth = CreatePreauthUseCase.execute(CreatePreauthCommand(order_id=order.id, actor=client_actor()))
        self.assertEqual(preauth.status, PaymentStatus.AUTHORIZED)

        StartOrderUseCase.execute(OrderActionCommand(order_id=order.id, actor=pro_actor(self.pro)))
        MarkArrivedUseCase.execute(OrderActionCommand(order_id=order.id, actor=pro_actor(self.pro)))
        SubmitHoursUseCase.execute(
            SubmitHoursCommand(order_id=order.id, actor=pro_actor(self.pro), final_hours=Decimal("1.50"))
        )
        result = ApproveHoursUseCase.execute(ApproveHoursCommand(order_id=order.id, actor=client_actor()))

        self.assertIsNone(result.capture_error)
        self.assertEqual(result.order.status, OrderStatus.PAID)
        self.assertEqual(result.order.approved_hours, Decimal("1.50"))
        self.assertEqual(result.order.total_amount_cents, 150_000)
        self.assertIsNotNone(result.order.arrived_at)

        payment = Payment.objects.get(id=preauth.payment_id)
        self.assertEqual(payment.status, PaymentStatus.CAPTURED)
        self.assertEqual(payment.amount_authorized, 200_000)
        self.assertEqual(payment.amount_captured, 150_000)

        earning = Earning.objects.get(order=order)
        self.assertEqual(
            (earning.gross_amount_cents, earning.platform_fee_cents, earning.net_amount_cents),
            (150_000, 15_000, 135_000),
        )

        transitions = [
            (entry.metadata["previousStatus"], entry.metadata["newStatus"])
            for entry in AuditLog.objects.for_resource("order", order.id)
            if entry.event_type == AuditEventType.ORDER_STATUS_CHANGED
        ]
        self.assertEqual(transitions[0][0], "draft")
        self.assertEqual(transitions[-1][1], "paid")
        for (previous, new), (next_previous, _) in zip(transitions, transitions[1:]):
            self.assertEqual(new, next_previous)
        for previous, new in transitions:
            self.assertTrue(OrderStateMachine.is_edge(OrderStatus(previous), OrderStatus(new)))

    def test_approve_hours_keeps_order_completed_when_capture_fails(self):
        order = create_order(
            pro=self.pro, status=OrderStatus.AWAITING_CLIENT_APPROVAL, final_hours_submitted=Decimal("1.00")
        )
        create_payment(order=order)

        with mock.patch.object(DummyGateway, "capture", side_effect=RetryableProviderError("timeout", provider="dummy")):
            result = ApproveHoursUseCase.execute(ApproveHoursCommand(order_id=order.id, actor=client_actor()))

        self.assertTrue(result.capture_error.retryable)
        self.assertEqual(result.order.status, OrderStatus.COMPLETED)
        self.assertEqual(Payment.objects.get(order=order).status, PaymentStatus.AUTHORIZED)

    def test_cancel_releases_the_authorized_hold_and_is_idempotent(self):
        order = create_order(pro=self.pro, status=OrderStatus.ACCEPTED)
        preauth = CreatePreauthUseCase.execute(CreatePreauthCommand(order_id=order.id, actor=client_actor()))

        canceled = CancelOrderUseCase.execute(
            CancelOrderCommand(order_id=order.id, actor=client_actor(), reason="found someone else")
        )
        again = CancelOrderUseCase.execute(CancelOrderCommand(order_id=order.id, actor=client_actor()))

        self.assertEqual(canceled.status, OrderStatus.CANCELED)
        self.assertEqual(canceled.cancel_reason, "found someone else")
        self.assertEqual(again.version, canceled.version)
        self.assertEqual(Payment.objects.get(id=preauth.payment_id).status, PaymentStatus.CANCELLED)
        self.assertEqual(AuditLog.objects.filter(event_type=AuditEventType.PAYMENT_HOLD_RELEASED).count(), 1)

    def test_dispute_requires_a_reason(self):
        order = create_order(pro=self.pro, status=OrderStatus.AWAITING_CLIENT_APPROVAL)
        with self.assertRaises(OrderValidationError):
            DisputeOrderUseCase.execute(DisputeOrderCommand(order_id=order.id, actor=client_actor(), reason="  "))

        disputed = DisputeOrderUseCase.execute(
            DisputeOrderCommand(order_id=order.id, actor=client_actor(), reason="left before finishing")
        )
        self.assertEqual(disputed.status, OrderStatus.DISPUTED)
        self.assertEqual(disputed.dispute_opened_by, "client-1")
        self.assertIsNotNone(disputed.disputed_at)

    def test_submit_hours_must_be_positive(self):
        order = create_order(pro=self.pro, status=OrderStatus.IN_PROGRESS)
        with self.assertRaises(OrderValidationError):
            SubmitHoursUseCase.execute(
                SubmitHoursCommand(order_id=order.id, actor=pro_actor(self.pro), final_hours=Decimal("0"))
            )


class OrderApiTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.api = APIClient()
        self.pro = create_pro()

    def test_transition_conflict_returns_409_with_current_status(self):
        order = create_order(pro=self.pro, status=OrderStatus.ACCEPTED)

        response = self.api.post(
            f"/api/orders/{order.id}/transition/",
            {"target_status": "canceled", "expected_status": "pending_pro_confirmation"},
            format="json",
            **actor_headers(client_actor()),
        )

        self.assertEqual(response.status_code, 409)
        body = response.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["error"]["code"], "conflict")
        self.assertEqual(body["error"]["current_status"], "accepted")

    def test_invalid_transition_returns_409(self):
        order = create_order(pro=self.pro, status=OrderStatus.IN_PROGRESS)

        response = self.api.post(
            f"/api/orders/{order.id}/transition/",
            {"target_status": "canceled", "expected_status": "in_progress"},
            format="json",
            **actor_headers(client_actor()),
        )

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["error"]["code"], "invalid_transition")

    def test_unknown_status_from_a_dropdown_is_rejected(self):
        order = create_order(pro=self.pro, status=OrderStatus.DRAFT)

        response = self.api.post(
            f"/api/orders/{order.id}/transition/",
            {"target_status": "ON_HOLD", "expected_status": "draft"},
            format="json",
            **actor_headers(client_actor()),
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["field"], "target_status")

    def test_cancel_requires_the_status_the_caller_saw(self):
        order = create_order(pro=self.pro, status=OrderStatus.ACCEPTED)

        response = self.api.post(
            f"/api/orders/{order.id}/cancel/", {"reason": "changed plans"}, format="json", **actor_headers(client_actor())
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["field"], "expected_status")
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.ACCEPTED)

    def test_cancel_with_a_stale_view_returns_409(self):
        order = create_order(pro=self.pro, status=OrderStatus.IN_PROGRESS)

        response = self.api.post(
            f"/api/orders/{order.id}/cancel/",
            {"expected_status": "confirmed"},
            format="json",
            **actor_headers(client_actor()),
        )

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["error"]["code"], "conflict")
        self.assertEqual(response.json()["error"]["current_status"], "in_progress")

    def test_missing_actor_headers_are_forbidden(self):
        order = create_order(pro=self.pro, status=OrderStatus.DRAFT)
        response = self.api.get(f"/api/orders/{order.id}/")
        self.assertEqual(response.status_code, 403)

    def test_detail_lists_allowed_targets_for_the_caller(self):
        order = create_order(pro=self.pro, status=OrderStatus.PENDING_PRO_CONFIRMATION)

        response = self.api.get(f"/api/orders/{order.id}/", **actor_headers(pro_actor(self.pro)))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            set(response.json()["data"]["allowed_targets"]), {"accepted", "rejected", "canceled"}
        )

    def test_create_order_endpoint(self):
        response = self.api.post(
            "/api/orders/",
            {
                "pro_profile_id": self.pro.id,
                "category": "electricity",
                "scheduled_window_start_at": timezone.now().isoformat(),
                "estimated_hours": "3.00",
                "pricing_mode": "fixed",
                "quoted_amount_cents": 250000,
            },
            format="json",
            **actor_headers(client_actor()),
        )

        self.assertEqual(response.status_code, 201)
        data = response.json()["data"]
        self.assertEqual(data["status"], "draft")
        self.assertEqual(data["quoted_amount_cents"], 250000)

    def test_force_status_endpoint_is_admin_only(self):
        order = create_order(pro=self.pro, status=OrderStatus.DISPUTED)

        denied = self.api.post(
            f"/api/admin/orders/{order.id}/force-status/",
            {"target_status": "completed"},
            format="json",
            **actor_headers(client_actor()),
        )
        allowed = self.api.post(
            f"/api/admin/orders/{order.id}/force-status/",
            {"target_status": "completed", "reason": "mediation"},
            format="json",
            **actor_headers(admin_actor()),
        )
        audit = self.api.get(f"/api/admin/orders/{order.id}/audit/", **actor_headers(admin_actor()))

        self.assertEqual(denied.status_code, 403)
        self.assertEqual(allowed.status_code, 200)
        self.assertEqual(allowed.json()["data"]["status"], "completed")
        items = audit.json()["data"]["items"]
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0]["event_type"], "ORDER_STATUS_FORCED")

    def test_system_role_cannot_be_claimed_through_headers(self):
        order = create_order(pro=self.pro, status=OrderStatus.ACCEPTED)
        system = ActorContext.system()

        response = self.api.post(
            f"/api/orders/{order.id}/transition/",
            {"target_status": "confirmed", "expected_status": "accepted"},
            format="json",
            **actor_headers(system),
        )

        self.assertEqual(response.status_code, 403)
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.ACCEPTED)
