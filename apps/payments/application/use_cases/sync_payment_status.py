from __future__ import annotations

import logging
from dataclasses import dataclass, field

from django.db import transaction

from apps.audit.domain.events import AuditEventType
from apps.audit.services.audit_service import AuditService
from apps.core.domain.actors import ActorContext
from apps.payments.application.services.order_sync import confirm_order_for_payment, settle_captured_order
from apps.payments.application.services.payment_state import PaymentStateService
from apps.payments.domain.errors import PaymentNotFoundError
from apps.payments.domain.ports import ProviderEvent
from apps.payments.domain.state_machine import PaymentStatus, can_apply
from apps.payments.models import Payment, PaymentEvent
from apps.payouts.application.use_cases.record_earning import ReverseEarningCommand, ReverseEarningUseCase

logger = logging.getLogger("arreglatodo.payments")


@dataclass(frozen=True)
class SyncPaymentStatusCommand:
    payment_id: int
    event: ProviderEvent
    actor: ActorContext = field(default_factory=ActorContext.system)


class SyncPaymentStatusUseCase:
    """
    Merge a provider event into the local payment.

    The provider event id is the idempotency key: an event already applied to
    the payment is ignored. Amounts are clamped so that
    captured <= authorized <= estimated always holds.
    """

    @staticmethod
    @transaction.atomic
    def execute(cmd: SyncPaymentStatusCommand) -> Payment:
        payment = Payment.objects.select_for_update().filter(id=cmd.payment_id).first()
        if payment is None:
            raise PaymentNotFoundError(f"Payment not found: {cmd.payment_id}")

        event = cmd.event
        if PaymentEvent.objects.filter(payment=payment, provider_event_id=event.event_id).exists():
            logger.info("payment_event_replayed", extra={"payment_id": payment.id, "event_id": event.event_id})
            return payment

        PaymentEvent.objects.create(
            payment=payment,
            provider_event_id=event.event_id,
            event_type=event.event_type,
            status=event.status.value,
            payload=event.raw,
        )

        previous = payment.payment_status
        if not can_apply(previous, event.status):
            logger.warning(
                "payment_event_ignored",
                extra={
                    "payment_id": payment.id,
                    "event_id": event.event_id,
                    "current_status": previous.value,
                    "event_status": event.status.value,
                },
            )
            return payment

        changes = SyncPaymentStatusUseCase._merged_amounts(payment, event)
        if changes is None:
            logger.warning(
                "payment_event_ignored",
                extra={
                    "payment_id": payment.id,
                    "event_id": event.event_id,
                    "reason": "authorized_below_captured",
                    "amount_captured": payment.amount_captured,
                    "event_authorized_amount": event.authorized_amount,
                },
            )
            return payment
        if event.status == PaymentStatus.FAILED and previous != PaymentStatus.FAILED:
            return PaymentStateService.mark_failed(
                payment, reason=f"provider event {event.event_id}", actor=cmd.actor
            )
        payment = PaymentStateService.apply(payment, event.status, changes=changes)

        if payment.payment_status == PaymentStatus.AUTHORIZED:
            confirm_order_for_payment(payment)
        elif payment.payment_status == PaymentStatus.CAPTURED:
            settle_captured_order(payment)
        elif payment.payment_status == PaymentStatus.REFUNDED and previous != PaymentStatus.REFUNDED:
            ReverseEarningUseCase.execute(ReverseEarningCommand(order_id=payment.order_id))
            AuditService.record(
                event_type=AuditEventType.PAYMENT_REFUNDED,
                actor=cmd.actor,
                resource_type="payment",
                resource_id=payment.id,
                action="payment_refunded",
                metadata={"orderId": payment.order_id, "providerEventId": event.event_id},
            )

        logger.info(
            "payment_synced",
            extra={
                "payment_id": payment.id,
                "event_id": event.event_id,
                "previous_status": previous.value,
                "new_status": payment.status,
            },
        )
        return payment

    @staticmethod
    def _merged_amounts(payment: Payment, event: ProviderEvent) -> dict | None:
        """Amount columns after the event, or None when it would authorize less than was already captured."""
        authorized = payment.amount_authorized
        if event.authorized_amount is not None:
            authorized = min(event.authorized_amount, payment.amount_estimated)
            if payment.amount_captured is not None and authorized < payment.amount_captured:
                return None
        if authorized is None and event.status in (PaymentStatus.AUTHORIZED, PaymentStatus.CAPTURED):
            authorized = payment.amount_estimated

        captured = payment.amount_captured
        if event.captured_amount is not None:
            captured = min(event.captured_amount, authorized if authorized is not None else payment.amount_estimated)
        elif event.status == PaymentStatus.CAPTURED and captured is None:
            captured = authorized
        if captured is not None and authorized is not None and captured > authorized:
            return None
        return {"amount_authorized": authorized, "amount_captured": captured}
