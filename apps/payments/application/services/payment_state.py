from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from apps.audit.domain.events import AuditEventType
from apps.audit.services.audit_service import AuditService
from apps.core.domain.actors import ActorContext
from apps.payments.domain.errors import PaymentConflictError, PaymentStateError
from apps.payments.domain.state_machine import PaymentStatus, can_apply
from apps.payments.models import Payment

logger = logging.getLogger("arreglatodo.payments")

_STATUS_TIMESTAMP_FIELDS = {
    PaymentStatus.AUTHORIZED: "authorized_at",
    PaymentStatus.CAPTURED: "captured_at",
    PaymentStatus.FAILED: "failed_at",
    PaymentStatus.CANCELLED: "cancelled_at",
    PaymentStatus.REFUNDED: "refunded_at",
}


class PaymentStateService:
    """Versioned writes for payments; every status change goes through `apply`."""

    @staticmethod
    def apply(payment: Payment, new_status: PaymentStatus, *, changes: dict | None = None) -> Payment:
        current = payment.payment_status
        if not can_apply(current, new_status):
            raise PaymentStateError(current.value, new_status.value)

        now = timezone.now()
        values = {**(changes or {}), "status": new_status.value, "version": F("version") + 1, "updated_at": now}
        timestamp_field = _STATUS_TIMESTAMP_FIELDS.get(new_status)
        if timestamp_field and new_status != current:
            values[timestamp_field] = now

        updated = Payment.objects.filter(id=payment.id, version=payment.version).update(**values)
        if updated == 0:
            persisted = Payment.objects.filter(id=payment.id).values_list("status", flat=True).first()
            raise PaymentConflictError(
                f"Payment {payment.id} changed concurrently. Refetch and retry.",
                current_status=persisted,
            )
        payment.refresh_from_db()
        logger.info(
            "payment_status_applied",
            extra={"payment_id": payment.id, "previous_status": current.value, "new_status": new_status.value},
        )
        return payment

    @staticmethod
    def mark_failed(payment: Payment, *, reason: str, actor: ActorContext) -> Payment:
        """Terminal failure: FAILED plus exactly one PAYMENT_FAILED audit row."""
        previous = payment.status
        with transaction.atomic():
            payment = PaymentStateService.apply(payment, PaymentStatus.FAILED, changes={"failure_reason": reason})
            AuditService.record(
                event_type=AuditEventType.PAYMENT_FAILED,
                actor=actor,
                resource_type="payment",
                resource_id=payment.id,
                action="payment_failed",
                metadata={
                    "orderId": payment.order_id,
                    "previousStatus": previous,
                    "newStatus": payment.status,
                    "reason": reason,
                },
            )
        logger.error(
            "payment_failed",
            extra={"payment_id": payment.id, "order_id": payment.order_id, "reason": reason},
        )
        return payment
