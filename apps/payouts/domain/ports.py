from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from apps.payouts.domain.state_machine import PayoutStatus


@dataclass(frozen=True)
class PayoutDestination:
    full_name: str
    document_id: str
    bank_name: str
    account_number: str


@dataclass(frozen=True)
class TransferResult:
    provider_reference: str
    status: PayoutStatus


@dataclass(frozen=True)
class PayoutProviderEvent:
    event_id: str
    provider_reference: str
    status: PayoutStatus
    failure_reason: str = ""
    raw: dict = field(default_factory=dict)


class PayoutGatewayPort(Protocol):
    code: str
    name: str

    def send_transfer(
        self,
        *,
        payout_id: int,
        amount_cents: int,
        currency: str,
        destination: PayoutDestination,
        idempotency_key: str,
    ) -> TransferResult:
        ...

    def fetch_status(self, *, provider_reference: str) -> PayoutStatus:
        ...

    def verify_event(self, *, body: bytes, headers) -> PayoutProviderEvent:
        ...
