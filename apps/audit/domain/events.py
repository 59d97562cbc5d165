from __future__ import annotations

from enum import StrEnum


class AuditEventType(StrEnum):
    ORDER_STATUS_CHANGED = "ORDER_STATUS_CHANGED"
    ORDER_STATUS_FORCED = "ORDER_STATUS_FORCED"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    PAYMENT_SYNCED = "PAYMENT_SYNCED"
    PAYMENT_REFUNDED = "PAYMENT_REFUNDED"
    PAYMENT_HOLD_RELEASED = "PAYMENT_HOLD_RELEASED"
    PAYOUT_CREATED = "PAYOUT_CREATED"
    PAYOUT_SENT = "PAYOUT_SENT"
    PAYOUT_RESENT = "PAYOUT_RESENT"
    PAYOUT_SEND_DEFERRED = "PAYOUT_SEND_DEFERRED"
    PAYOUT_FAILED = "PAYOUT_FAILED"
    PAYOUT_SETTLED = "PAYOUT_SETTLED"
    PRO_APPROVED = "PRO_APPROVED"
    PRO_SUSPENDED = "PRO_SUSPENDED"
    PRO_UNSUSPENDED = "PRO_UNSUSPENDED"


AUDIT_EVENT_CHOICES = [(event.value, event.value.replace("_", " ").title()) for event in AuditEventType]
