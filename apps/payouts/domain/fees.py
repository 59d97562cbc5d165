from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def platform_fee_cents(gross_cents: int, fee_rate) -> int:
    fee = (Decimal(gross_cents) * Decimal(str(fee_rate))).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return min(int(fee), gross_cents)


def split_earning(gross_cents: int, fee_rate) -> tuple[int, int]:
    """Return (platform_fee_cents, net_amount_cents) for one captured order."""
    fee = platform_fee_cents(gross_cents, fee_rate)
    return fee, gross_cents - fee
