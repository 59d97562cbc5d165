from __future__ import annotations

import logging
from dataclasses import dataclass

from django.db import transaction

from apps.audit.domain.events import AuditEventType
from apps.audit.services.audit_service import AuditService
from apps.core.domain.actors import ActorContext, ActorRole
from apps.core.domain.errors import PermanentProviderError, PermissionDeniedError, RetryableProviderError
from apps.payouts.application.facade import PayoutGatewayFacade
from apps.payouts.application.services.payout_state import apply_payout_status
from apps.payouts.domain.errors import PayoutNotFoundError, PayoutStateError
from apps.payouts.domain.ports import PayoutDestination
from apps.payouts.domain.state_machine import PayoutStatus
from apps.payouts.models import Payout

logger = logging.getLogger("arreglatodo.payouts")


@dataclass(frozen=True)
class SendPayoutCommand:
    payout_id: int
    actor: ActorContext
    resend: bool = False


class SendPayoutUseCase:
    """
    Hand a payout to the payout provider.

    `send` takes CREATED payouts and `resend` takes FAILED ones; both reuse the
    payout and the earnings it already claimed. The provider idempotency key
    changes only once an attempt has a definitive outcome, so retrying a
    deferred attempt can never transfer twice. Each call appends exactly one
    audit row describing its outcome.
    """

    @staticmethod
    def execute(cmd: SendPayoutCommand) -> Payout:
        if cmd.actor.role not in (ActorRole.ADMIN, ActorRole.SYSTEM):
            raise PermissionDeniedError("Only admins can send payouts.")

        payout = Payout.objects.select_related("pro").filter(id=cmd.payout_id).first()
        if payout is None:
            raise PayoutNotFoundError(f"Payout not found: {cmd.payout_id}")

        source = PayoutStatus.FAILED if cmd.resend else PayoutStatus.CREATED
        if payout.payout_status != source:
            raise PayoutStateError(payout.status, PayoutStatus.SENT.value)

        attempt = payout.attempts + 1
        destination = PayoutDestination(
            full_name=payout.destination.get("full_name", ""),
            document_id=payout.destination.get("document_id", ""),
            bank_name=payout.destination.get("bank_name", ""),
            account_number=payout.destination.get("account_number", ""),
        )
        gateway = PayoutGatewayFacade.get(payout.provider)
        try:
            result = gateway.send_transfer(
                payout_id=payout.id,
                amount_cents=payout.amount_cents,
                currency=payout.currency,
                destination=destination,
                idempotency_key=f"payout-{payout.id}-attempt-{attempt}",
            )
        except RetryableProviderError as exc:
            SendPayoutUseCase._audit(cmd, payout, AuditEventType.PAYOUT_SEND_DEFERRED, attempt, reason=str(exc))
            logger.warning("payout_send_deferred", extra={"payout_id": payout.id, "attempt": attempt, "reason": str(exc)})
            raise
        except PermanentProviderError as exc:
            with transaction.atomic():
                payout = apply_payout_status(
                    payout, PayoutStatus.FAILED, changes={"attempts": attempt, "failure_reason": str(exc)}
                )
                SendPayoutUseCase._audit(cmd, payout, AuditEventType.PAYOUT_FAILED, attempt, reason=str(exc))
            logger.error("payout_send_failed", extra={"payout_id": payout.id, "attempt": attempt, "reason": str(exc)})
            raise

        event_type = AuditEventType.PAYOUT_RESENT if cmd.resend else AuditEventType.PAYOUT_SENT
        with transaction.atomic():
            payout = apply_payout_status(
                payout,
                PayoutStatus.SENT,
                changes={"attempts": attempt, "provider_reference": result.provider_reference, "failure_reason": ""},
            )
            SendPayoutUseCase._audit(cmd, payout, event_type, attempt)
        logger.info(
            "payout_sent",
            extra={"payout_id": payout.id, "attempt": attempt, "reference": payout.provider_reference},
        )
        return payout

    @staticmethod
    def _audit(cmd: SendPayoutCommand, payout: Payout, event_type: AuditEventType, attempt: int, reason: str = "") -> None:
        AuditService.record(
            event_type=event_type,
            actor=cmd.actor,
            resource_type="payout",
            resource_id=payout.id,
            action="resend" if cmd.resend else "send",
            metadata={"attempt": attempt, "status": payout.status, "amountCents": payout.amount_cents, "reason": reason},
        )
