from __future__ import annotations

import logging
from dataclasses import dataclass, field

from django.db import transaction

from apps.audit.domain.events import AuditEventType
from apps.audit.services.audit_service import AuditService
from apps.core.domain.actors import ActorContext
from apps.core.domain.errors import PermanentProviderError
from apps.payments.application.facade import PaymentGatewayFacade
from apps.payments.application.services.payment_state import PaymentStateService
from apps.payments.domain.state_machine import HOLD_STATUSES, PaymentStatus
from apps.payments.models import Payment

logger = logging.getLogger("arreglatodo.payments")


@dataclass(frozen=True)
class ReleasePaymentHoldCommand:
    order_id: int
    actor: ActorContext = field(default_factory=ActorContext.system)
    reason: str = ""


class ReleasePaymentHoldUseCase:
    """Cancel the open hold of a canceled order. Returns None when nothing is held."""

    @staticmethod
    def execute(cmd: ReleasePaymentHoldCommand) -> Payment | None:
        payment = Payment.objects.active_for_order(cmd.order_id)
        if payment is None or payment.payment_status not in HOLD_STATUSES:
            return None

        if payment.provider_reference:
            gateway = PaymentGatewayFacade.get(payment.provider)
            try:
                gateway.release_hold(provider_reference=payment.provider_reference)
            except PermanentProviderError as exc:
                return PaymentStateService.mark_failed(payment, reason=str(exc), actor=cmd.actor)

        previous = payment.status
        with transaction.atomic():
            payment = PaymentStateService.apply(payment, PaymentStatus.CANCELLED)
            AuditService.record(
                event_type=AuditEventType.PAYMENT_HOLD_RELEASED,
                actor=cmd.actor,
                resource_type="payment",
                resource_id=payment.id,
                action="release_hold",
                metadata={"orderId": payment.order_id, "previousStatus": previous, "reason": cmd.reason},
            )
        logger.info("payment_hold_released", extra={"payment_id": payment.id, "order_id": payment.order_id})
        return payment
