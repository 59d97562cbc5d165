from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from django.utils import timezone

from apps.payouts.domain.state_machine import EarningStatus
from apps.payouts.models import Earning

logger = logging.getLogger("arreglatodo.payouts")


@dataclass(frozen=True)
class MarkEarningsPayableCommand:
    now: datetime | None = None
    pro_profile_id: int | None = None


class MarkEarningsPayableUseCase:
    """Promote PENDING earnings whose cooling-off window has passed to PAYABLE."""

    @staticmethod
    def execute(cmd: MarkEarningsPayableCommand) -> int:
        now = cmd.now or timezone.now()
        earnings = Earning.objects.pending_due(now)
        if cmd.pro_profile_id is not None:
            earnings = earnings.filter(pro_id=cmd.pro_profile_id)
        promoted = earnings.update(status=EarningStatus.PAYABLE.value, updated_at=now)
        if promoted:
            logger.info(
                "earnings_marked_payable",
                extra={"count": promoted, "pro_id": cmd.pro_profile_id, "as_of": now.isoformat()},
            )
        return promoted
