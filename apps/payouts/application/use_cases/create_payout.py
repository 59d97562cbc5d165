from __future__ import annotations

import logging
from dataclasses import dataclass

from django.conf import settings
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from apps.audit.domain.events import AuditEventType
from apps.audit.services.audit_service import AuditService
from apps.core.domain.actors import ActorContext
from apps.payments.domain.state_machine import PaymentStatus
from apps.payouts.application.use_cases.mark_earnings_payable import (
    MarkEarningsPayableCommand,
    MarkEarningsPayableUseCase,
)
from apps.payouts.domain.errors import NoPayableEarningsError, PayoutProfileIncompleteError
from apps.payouts.domain.state_machine import EarningStatus, PayoutStatus
from apps.payouts.models import Earning, Payout
from apps.pros.domain.errors import ProNotFoundError
from apps.pros.models import ProProfile

logger = logging.getLogger("arreglatodo.payouts")


@dataclass(frozen=True)
class CreatePayoutCommand:
    pro_profile_id: int
    actor: ActorContext


class CreatePayoutUseCase:
    """
    Batch a pro's payable earnings into one payout.

    Only earnings past their cooling-off window are claimed; due PENDING rows
    are promoted first. Earnings are claimed with a single conditional UPDATE,
    so two concurrent calls for the same pro can never claim the same earning.
    The platform fee is already withheld in each earning, so the payout amount
    is the sum of the claimed net amounts.
    """

    @staticmethod
    def execute(cmd: CreatePayoutCommand) -> Payout:
        cmd.actor.require_admin("create payouts")
        pro = ProProfile.objects.filter(id=cmd.pro_profile_id).first()
        if pro is None:
            raise ProNotFoundError(cmd.pro_profile_id)
        if not pro.payout_profile_complete:
            raise PayoutProfileIncompleteError(pro.id)

        with transaction.atomic():
            MarkEarningsPayableUseCase.execute(MarkEarningsPayableCommand(pro_profile_id=pro.id))
            payout = Payout.objects.create(
                pro=pro,
                provider=settings.PAYOUT_PROVIDER,
                status=PayoutStatus.CREATED.value,
                amount_cents=0,
                currency=pro.currency,
                destination={
                    "full_name": pro.payout_full_name,
                    "document_id": pro.payout_document_id,
                    "bank_name": pro.payout_bank_name,
                    "account_number": pro.payout_account_number,
                },
            )
            claimed = Earning.objects.filter(
                pro=pro,
                status=EarningStatus.PAYABLE.value,
                payout__isnull=True,
                payment__status=PaymentStatus.CAPTURED.value,
                currency=pro.currency,
            ).update(payout=payout, status=EarningStatus.CLAIMED.value, updated_at=timezone.now())
            if claimed == 0:
                # Rolls back the empty payout row as well.
                raise NoPayableEarningsError(f"Pro profile {pro.id} has no payable earnings.")

            total = Earning.objects.filter(payout=payout).aggregate(total=Sum("net_amount_cents"))["total"] or 0
            Payout.objects.filter(id=payout.id).update(amount_cents=total)
            payout.refresh_from_db()

            AuditService.record(
                event_type=AuditEventType.PAYOUT_CREATED,
                actor=cmd.actor,
                resource_type="payout",
                resource_id=payout.id,
                action="create_payout",
                metadata={"proProfileId": pro.id, "earningCount": claimed, "amountCents": total},
            )

        logger.info(
            "payout_created",
            extra={"payout_id": payout.id, "pro_id": pro.id, "earnings": claimed, "amount": total},
        )
        return payout
