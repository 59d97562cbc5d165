from __future__ import annotations

from decimal import ROUND_CEILING, Decimal
from enum import StrEnum

from apps.orders.domain.errors import OrderValidationError


class PricingMode(StrEnum):
    HOURLY = "hourly"
    FIXED = "fixed"


def labor_amount_cents(hourly_rate_cents: int, hours) -> int:
    """Hourly labor in minor units, rounded up to the next cent."""
    amount = Decimal(hourly_rate_cents) * Decimal(str(hours))
    return int(amount.to_integral_value(rounding=ROUND_CEILING))


def estimate_amount_cents(
    *,
    pricing_mode: str,
    hourly_rate_cents: int,
    estimated_hours,
    quoted_amount_cents: int | None,
) -> int:
    # A quoted price wins over the hourly estimate whenever both are present.
    if quoted_amount_cents is not None:
        if quoted_amount_cents <= 0:
            raise OrderValidationError("Quoted amount must be positive.", field="quoted_amount_cents")
        return int(quoted_amount_cents)
    if pricing_mode == PricingMode.FIXED:
        raise OrderValidationError("Fixed-price orders need a quoted amount.", field="quoted_amount_cents")
    if not hourly_rate_cents or not estimated_hours or Decimal(str(estimated_hours)) <= 0:
        raise OrderValidationError("Hourly orders need a rate and estimated hours.", field="estimated_hours")
    return labor_amount_cents(hourly_rate_cents, estimated_hours)


def final_amount_cents(
    *,
    pricing_mode: str,
    hourly_rate_cents: int,
    approved_hours,
    quoted_amount_cents: int | None,
) -> int:
    if quoted_amount_cents is not None:
        return int(quoted_amount_cents)
    if pricing_mode == PricingMode.FIXED:
        raise OrderValidationError("Fixed-price orders need a quoted amount.", field="quoted_amount_cents")
    if approved_hours is None or Decimal(str(approved_hours)) <= 0:
        raise OrderValidationError("Approved hours are required before capture.", field="approved_hours")
    return labor_amount_cents(hourly_rate_cents, approved_hours)
