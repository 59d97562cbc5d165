from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from apps.payments.domain.state_machine import PaymentStatus


@dataclass(frozen=True)
class HoldResult:
    provider_reference: str
    checkout_url: str | None
    status: PaymentStatus
    authorized_amount: int | None = None


@dataclass(frozen=True)
class ProviderPaymentStatus:
    status: PaymentStatus
    authorized_amount: int | None = None
    captured_amount: int | None = None


@dataclass(frozen=True)
class ProviderEvent:
    """Provider notification normalised by a gateway; `event_id` is the replay key."""

    event_id: str
    event_type: str
    provider_reference: str
    status: PaymentStatus
    authorized_amount: int | None = None
    captured_amount: int | None = None
    raw: dict = field(default_factory=dict)


class PaymentGatewayPort(Protocol):
    """
    Card-hold provider contract.

    Implementations raise `RetryableProviderError` for transient or ambiguous
    failures and `PermanentProviderError` when the provider rejects the call.
    """

    code: str
    name: str

    def create_hold(
        self, *, order_id: int, amount_cents: int, currency: str, idempotency_key: str, return_url: str
    ) -> HoldResult:
        ...

    def capture(self, *, provider_reference: str, amount_cents: int, idempotency_key: str) -> int:
        ...

    def release_hold(self, *, provider_reference: str) -> None:
        ...

    def refund(self, *, provider_reference: str, amount_cents: int, idempotency_key: str) -> None:
        ...

    def fetch_status(self, *, provider_reference: str) -> ProviderPaymentStatus:
        ...

    def verify_event(self, *, body: bytes, headers) -> ProviderEvent:
        ...
