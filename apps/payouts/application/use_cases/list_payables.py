from __future__ import annotations

from dataclasses import dataclass

from django.db.models import Count, Sum

from apps.core.domain.actors import ActorContext
from apps.payments.domain.state_machine import PaymentStatus
from apps.payouts.models import Earning
from apps.pros.models import ProProfile


@dataclass(frozen=True)
class PayableSummary:
    pro_profile_id: int
    display_name: str
    currency: str
    earning_count: int
    amount_cents: int
    payout_profile_complete: bool


class ListPayablesUseCase:
    """Pros with captured earnings past cooling-off and not yet claimed, largest balance first."""

    @staticmethod
    def execute(actor: ActorContext) -> list[PayableSummary]:
        actor.require_admin("list payables")
        rows = (
            Earning.objects.due()
            .filter(payment__status=PaymentStatus.CAPTURED.value)
            .values("pro_id", "currency")
            .annotate(earning_count=Count("id"), amount_cents=Sum("net_amount_cents"))
            .order_by("-amount_cents", "pro_id")
        )
        pros = ProProfile.objects.in_bulk([row["pro_id"] for row in rows])
        return [
            PayableSummary(
                pro_profile_id=row["pro_id"],
                display_name=pros[row["pro_id"]].display_name,
                currency=row["currency"],
                earning_count=row["earning_count"],
                amount_cents=row["amount_cents"] or 0,
                payout_profile_complete=pros[row["pro_id"]].payout_profile_complete,
            )
            for row in rows
        ]
