from __future__ import annotations

import logging
from dataclasses import dataclass, field

from django.db import transaction
from django.utils import timezone

from apps.audit.domain.events import AuditEventType
from apps.audit.services.audit_service import AuditService
from apps.core.domain.actors import ActorContext, ActorRole
from apps.core.domain.errors import PermissionDeniedError
from apps.payouts.application.facade import PayoutGatewayFacade
from apps.payouts.application.services.payout_state import apply_payout_status
from apps.payouts.domain.errors import PayoutNotFoundError, PayoutStateError
from apps.payouts.domain.ports import PayoutProviderEvent
from apps.payouts.domain.state_machine import EarningStatus, PayoutStatus
from apps.payouts.models import Earning, Payout, PayoutEvent

logger = logging.getLogger("arreglatodo.payouts")


@dataclass(frozen=True)
class SyncPayoutStatusCommand:
    payout_id: int
    event: PayoutProviderEvent
    actor: ActorContext = field(default_factory=ActorContext.system)


class SyncPayoutStatusUseCase:
    """
    Apply a provider confirmation to a sent payout.

    SENT -> SETTLED marks the claimed earnings PAID; SENT -> FAILED keeps them
    on the payout for a resend. Replayed event ids are ignored.
    """

    @staticmethod
    @transaction.atomic
    def execute(cmd: SyncPayoutStatusCommand) -> Payout:
        payout = Payout.objects.select_for_update().filter(id=cmd.payout_id).first()
        if payout is None:
            raise PayoutNotFoundError(f"Payout not found: {cmd.payout_id}")

        event = cmd.event
        if PayoutEvent.objects.filter(payout=payout, provider_event_id=event.event_id).exists():
            logger.info("payout_event_replayed", extra={"payout_id": payout.id, "event_id": event.event_id})
            return payout
        PayoutEvent.objects.create(
            payout=payout, provider_event_id=event.event_id, status=event.status.value, payload=event.raw
        )

        previous = payout.payout_status
        if previous != PayoutStatus.SENT or event.status not in (PayoutStatus.SETTLED, PayoutStatus.FAILED):
            logger.warning(
                "payout_event_ignored",
                extra={
                    "payout_id": payout.id,
                    "event_id": event.event_id,
                    "current_status": previous.value,
                    "event_status": event.status.value,
                },
            )
            return payout

        if event.status == PayoutStatus.SETTLED:
            payout = apply_payout_status(payout, PayoutStatus.SETTLED)
            paid = Earning.objects.filter(payout=payout, status=EarningStatus.CLAIMED.value).update(
                status=EarningStatus.PAID.value, paid_at=timezone.now(), updated_at=timezone.now()
            )
            audit_type = AuditEventType.PAYOUT_SETTLED
            logger.info("payout_settled", extra={"payout_id": payout.id, "earnings": paid})
        else:
            payout = apply_payout_status(
                payout, PayoutStatus.FAILED, changes={"failure_reason": event.failure_reason or "provider_failed"}
            )
            audit_type = AuditEventType.PAYOUT_FAILED
            logger.error("payout_failed", extra={"payout_id": payout.id, "reason": payout.failure_reason})

        AuditService.record(
            event_type=audit_type,
            actor=cmd.actor,
            resource_type="payout",
            resource_id=payout.id,
            action="sync_status",
            metadata={
                "previousStatus": previous.value,
                "newStatus": payout.status,
                "providerEventId": event.event_id,
                "reason": event.failure_reason,
            },
        )
        return payout


@dataclass(frozen=True)
class RefreshPayoutStatusCommand:
    payout_id: int
    actor: ActorContext


class RefreshPayoutStatusUseCase:
    """Admin pull-sync: polls the provider and merges the result as a synthetic event."""

    @staticmethod
    def execute(cmd: RefreshPayoutStatusCommand) -> Payout:
        if cmd.actor.role not in (ActorRole.ADMIN, ActorRole.SYSTEM):
            raise PermissionDeniedError("Only admins can sync payouts.")
        payout = Payout.objects.filter(id=cmd.payout_id).first()
        if payout is None:
            raise PayoutNotFoundError(f"Payout not found: {cmd.payout_id}")
        if not payout.provider_reference:
            raise PayoutStateError(payout.status, PayoutStatus.SETTLED.value)

        remote = PayoutGatewayFacade.get(payout.provider).fetch_status(provider_reference=payout.provider_reference)
        event = PayoutProviderEvent(
            event_id=f"poll:{payout.attempts}:{remote.value}",
            provider_reference=payout.provider_reference,
            status=remote,
        )
        return SyncPayoutStatusUseCase.execute(
            SyncPayoutStatusCommand(payout_id=payout.id, event=event, actor=cmd.actor)
        )


@dataclass(frozen=True)
class HandlePayoutWebhookCommand:
    provider_code: str
    headers: dict
    body: bytes


class HandlePayoutWebhookUseCase:
    @staticmethod
    def execute(cmd: HandlePayoutWebhookCommand) -> Payout:
        gateway = PayoutGatewayFacade.get(cmd.provider_code)
        event = gateway.verify_event(body=cmd.body, headers=cmd.headers)
        payout = (
            Payout.objects.filter(provider=gateway.code, provider_reference=event.provider_reference)
            .order_by("-id")
            .first()
        )
        if payout is None:
            logger.warning(
                "payout_webhook_unmatched",
                extra={"provider": gateway.code, "event_id": event.event_id, "reference": event.provider_reference},
            )
            raise PayoutNotFoundError(f"No payout for reference {event.provider_reference}.")
        return SyncPayoutStatusUseCase.execute(SyncPayoutStatusCommand(payout_id=payout.id, event=event))
