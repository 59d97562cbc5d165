from __future__ import annotations

from enum import StrEnum

from apps.payments.domain.errors import PaymentValidationError


class PaymentStatus(StrEnum):
    CREATED = "created"
    REQUIRES_ACTION = "requires_action"
    AUTHORIZED = "authorized"
    CAPTURED = "captured"
    FAILED = "failed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


# A payment in one of these statuses no longer blocks a new payment for its order.
RETIRED_STATUSES: frozenset[PaymentStatus] = frozenset({PaymentStatus.FAILED, PaymentStatus.CANCELLED})

# Statuses holding (or about to hold) client funds that a cancellation must release.
HOLD_STATUSES: frozenset[PaymentStatus] = frozenset(
    {PaymentStatus.CREATED, PaymentStatus.REQUIRES_ACTION, PaymentStatus.AUTHORIZED}
)


def parse_payment_status(raw) -> PaymentStatus:
    try:
        return PaymentStatus(str(raw or "").strip().lower())
    except ValueError as exc:
        raise PaymentValidationError(f"Unknown payment status: {raw!r}.", field="status") from exc


def can_apply(current: PaymentStatus, new: PaymentStatus) -> bool:
    """Whether a provider-reported status may replace the local one."""
    if current == new:
        return True
    if current in (PaymentStatus.FAILED, PaymentStatus.CANCELLED, PaymentStatus.REFUNDED):
        return False
    if new == PaymentStatus.REFUNDED:
        return current == PaymentStatus.CAPTURED
    if new in (PaymentStatus.FAILED, PaymentStatus.CANCELLED):
        return current != PaymentStatus.CAPTURED
    if new == PaymentStatus.REQUIRES_ACTION:
        return current == PaymentStatus.CREATED
    if new == PaymentStatus.AUTHORIZED:
        return current in (PaymentStatus.CREATED, PaymentStatus.REQUIRES_ACTION)
    if new == PaymentStatus.CAPTURED:
        return current == PaymentStatus.AUTHORIZED
    return False
