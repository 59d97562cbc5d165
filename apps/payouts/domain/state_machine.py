from __future__ import annotations

from enum import StrEnum


class PayoutStatus(StrEnum):
    CREATED = "created"
    SENT = "sent"
    SETTLED = "settled"
    FAILED = "failed"


class EarningStatus(StrEnum):
    PENDING = "pending"
    PAYABLE = "payable"
    CLAIMED = "claimed"
    PAID = "paid"
    REVERSED = "reversed"


# FAILED -> SENT is the resend path; it reuses the payout and its claimed earnings.
_PAYOUT_EDGES: frozenset[tuple[PayoutStatus, PayoutStatus]] = frozenset(
    {
        (PayoutStatus.CREATED, PayoutStatus.SENT),
        (PayoutStatus.CREATED, PayoutStatus.FAILED),
        (PayoutStatus.FAILED, PayoutStatus.SENT),
        (PayoutStatus.SENT, PayoutStatus.SETTLED),
        (PayoutStatus.SENT, PayoutStatus.FAILED),
    }
)


def can_apply_payout(current: PayoutStatus, new: PayoutStatus) -> bool:
    return current == new or (current, new) in _PAYOUT_EDGES
