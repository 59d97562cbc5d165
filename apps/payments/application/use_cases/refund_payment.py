from __future__ import annotations

import logging
from dataclasses import dataclass

from django.db import transaction

from apps.audit.domain.events import AuditEventType
from apps.audit.services.audit_service import AuditService
from apps.core.domain.actors import ActorContext
from apps.payments.application.facade import PaymentGatewayFacade
from apps.payments.application.services.payment_state import PaymentStateService
from apps.payments.domain.errors import PaymentNotFoundError, PaymentStateError
from apps.payments.domain.state_machine import PaymentStatus
from apps.payments.models import Payment
from apps.payouts.application.use_cases.record_earning import ReverseEarningCommand, ReverseEarningUseCase

logger = logging.getLogger("arreglatodo.payments")


@dataclass(frozen=True)
class RefundPaymentCommand:
    payment_id: int
    actor: ActorContext
    reason: str = ""


class RefundPaymentUseCase:
    @staticmethod
    def execute(cmd: RefundPaymentCommand) -> Payment:
        cmd.actor.require_admin("refund payments")
        payment = Payment.objects.filter(id=cmd.payment_id).first()
        if payment is None:
            raise PaymentNotFoundError(f"Payment not found: {cmd.payment_id}")
        if payment.payment_status != PaymentStatus.CAPTURED:
            raise PaymentStateError(payment.status, PaymentStatus.REFUNDED.value)

        # Provider errors propagate; the payment stays CAPTURED until the refund goes through.
        PaymentGatewayFacade.get(payment.provider).refund(
            provider_reference=payment.provider_reference,
            amount_cents=int(payment.amount_captured or 0),
            idempotency_key=f"refund-{payment.id}",
        )

        with transaction.atomic():
            payment = PaymentStateService.apply(payment, PaymentStatus.REFUNDED)
            earning = ReverseEarningUseCase.execute(ReverseEarningCommand(order_id=payment.order_id))
            AuditService.record(
                event_type=AuditEventType.PAYMENT_REFUNDED,
                actor=cmd.actor,
                resource_type="payment",
                resource_id=payment.id,
                action="refund",
                metadata={
                    "orderId": payment.order_id,
                    "amountCents": payment.amount_captured,
                    "earningStatus": earning.status if earning else None,
                    "reason": cmd.reason,
                },
            )
        logger.info("payment_refunded", extra={"payment_id": payment.id, "order_id": payment.order_id})
        return payment
