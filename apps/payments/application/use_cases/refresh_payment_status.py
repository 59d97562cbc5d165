from __future__ import annotations

from dataclasses import dataclass

from django.db import transaction

from apps.audit.domain.events import AuditEventType
from apps.audit.services.audit_service import AuditService
from apps.core.domain.actors import ActorContext, ActorRole
from apps.core.domain.errors import PermissionDeniedError
from apps.payments.application.facade import PaymentGatewayFacade
from apps.payments.application.use_cases.sync_payment_status import (
    SyncPaymentStatusCommand,
    SyncPaymentStatusUseCase,
)
from apps.payments.domain.errors import PaymentNotFoundError, PaymentStateError
from apps.payments.domain.ports import ProviderEvent
from apps.payments.domain.state_machine import PaymentStatus
from apps.payments.models import Payment


@dataclass(frozen=True)
class RefreshPaymentStatusCommand:
    payment_id: int
    actor: ActorContext


class RefreshPaymentStatusUseCase:
    """
    Pull the provider's view of a payment and merge it.

    The synthetic event id is derived from the polled state, so polling an
    unchanged payment is a replay and changes nothing.
    """

    @staticmethod
    def execute(cmd: RefreshPaymentStatusCommand) -> Payment:
        if cmd.actor.role not in (ActorRole.ADMIN, ActorRole.SYSTEM):
            raise PermissionDeniedError("Only admins can sync payments.")

        payment = Payment.objects.filter(id=cmd.payment_id).first()
        if payment is None:
            raise PaymentNotFoundError(f"Payment not found: {cmd.payment_id}")
        if not payment.provider_reference:
            raise PaymentStateError(payment.status, payment.status, message="Payment was never sent to the provider.")

        remote = PaymentGatewayFacade.get(payment.provider).fetch_status(provider_reference=payment.provider_reference)
        event = ProviderEvent(
            event_id=f"poll:{remote.status}:{remote.authorized_amount}:{remote.captured_amount}",
            event_type="payment.polled",
            provider_reference=payment.provider_reference,
            status=remote.status,
            authorized_amount=remote.authorized_amount,
            captured_amount=remote.captured_amount,
        )
        previous = payment.status
        with transaction.atomic():
            payment = SyncPaymentStatusUseCase.execute(
                SyncPaymentStatusCommand(payment_id=payment.id, event=event, actor=cmd.actor)
            )
            # FAILED and REFUNDED transitions already wrote their own audit row.
            audited = payment.status != previous and payment.payment_status in (
                PaymentStatus.FAILED,
                PaymentStatus.REFUNDED,
            )
            if cmd.actor.is_admin and not audited:
                AuditService.record(
                    event_type=AuditEventType.PAYMENT_SYNCED,
                    actor=cmd.actor,
                    resource_type="payment",
                    resource_id=payment.id,
                    action="sync_status",
                    metadata={"previousStatus": previous, "newStatus": payment.status, "providerStatus": remote.status},
                )
        return payment
