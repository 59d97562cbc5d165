from __future__ import annotations

from django.db.models import F
from django.utils import timezone

from apps.payouts.domain.errors import PayoutConflictError, PayoutStateError
from apps.payouts.domain.state_machine import PayoutStatus, can_apply_payout
from apps.payouts.models import Payout

_STATUS_TIMESTAMP_FIELDS = {
    PayoutStatus.SENT: "sent_at",
    PayoutStatus.SETTLED: "settled_at",
    PayoutStatus.FAILED: "failed_at",
}


def apply_payout_status(payout: Payout, new_status: PayoutStatus, *, changes: dict | None = None) -> Payout:
    """Compare-and-swap on the payout version."""
    current = payout.payout_status
    if not can_apply_payout(current, new_status):
        raise PayoutStateError(current.value, new_status.value)

    now = timezone.now()
    values = {**(changes or {}), "status": new_status.value, "version": F("version") + 1, "updated_at": now}
    timestamp_field = _STATUS_TIMESTAMP_FIELDS.get(new_status)
    if timestamp_field:
        values[timestamp_field] = now

    updated = Payout.objects.filter(id=payout.id, version=payout.version).update(**values)
    if updated == 0:
        persisted = Payout.objects.filter(id=payout.id).values_list("status", flat=True).first()
        raise PayoutConflictError(f"Payout {payout.id} changed concurrently. Refetch and retry.", current_status=persisted)
    payout.refresh_from_db()
    return payout
