from __future__ import annotations

import json
from uuid import uuid4

from django.conf import settings

from apps.core.domain.errors import PermanentProviderError
from apps.core.infrastructure.signatures import SIGNATURE_HEADER, signature_matches
from apps.payouts.domain.errors import PayoutWebhookPayloadError, PayoutWebhookSignatureError
from apps.payouts.domain.ports import PayoutDestination, PayoutProviderEvent, TransferResult
from apps.payouts.domain.state_machine import PayoutStatus


class ManualTransferGateway:
    """
    Bank transfers executed by operations staff.

    Sending registers the transfer and returns SENT; settlement or failure is
    reported later through a signed webhook from the back-office tool.
    """

    code = "manual"
    name = "Manual bank transfer"

    def __init__(self):
        self._transfers: dict[str, PayoutStatus] = {}
        self._references_by_key: dict[str, str] = {}

    def send_transfer(
        self,
        *,
        payout_id: int,
        amount_cents: int,
        currency: str,
        destination: PayoutDestination,
        idempotency_key: str,
    ) -> TransferResult:
        if amount_cents <= 0:
            raise PermanentProviderError("Transfer amount must be positive.", provider=self.code)
        if not destination.account_number:
            raise PermanentProviderError("Destination account is missing.", provider=self.code)
        reference = self._references_by_key.get(idempotency_key)
        if reference is None:
            reference = f"MANUAL-{uuid4().hex[:12]}"
            self._references_by_key[idempotency_key] = reference
            self._transfers[reference] = PayoutStatus.SENT
        return TransferResult(provider_reference=reference, status=self._transfers[reference])

    def fetch_status(self, *, provider_reference: str) -> PayoutStatus:
        status = self._transfers.get(provider_reference)
        if status is None:
            raise PermanentProviderError(f"Unknown transfer reference: {provider_reference}", provider=self.code)
        return status

    def verify_event(self, *, body: bytes, headers) -> PayoutProviderEvent:
        secret = settings.PAYOUT_WEBHOOK_SECRETS.get(self.code, "")
        if not signature_matches(secret, body, headers.get(SIGNATURE_HEADER)):
            raise PayoutWebhookSignatureError("Invalid signature.")
        try:
            payload = json.loads(body or b"{}")
        except ValueError as exc:
            raise PayoutWebhookPayloadError("Invalid payload.") from exc
        if not isinstance(payload, dict):
            raise PayoutWebhookPayloadError("Invalid payload.")

        event_id = str(payload.get("event_id") or "")
        reference = str(payload.get("payout_reference") or "")
        try:
            status = PayoutStatus(str(payload.get("status") or "").lower())
        except ValueError as exc:
            raise PayoutWebhookPayloadError(f"Unknown payout status: {payload.get('status')!r}.") from exc
        if not event_id or not reference:
            raise PayoutWebhookPayloadError("Invalid payload.")
        if reference in self._transfers:
            self._transfers[reference] = status
        return PayoutProviderEvent(
            event_id=event_id,
            provider_reference=reference,
            status=status,
            failure_reason=str(payload.get("failure_reason") or ""),
            raw=payload,
        )
