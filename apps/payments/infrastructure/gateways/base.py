from __future__ import annotations

import json
from uuid import uuid4

from django.conf import settings

from apps.core.domain.errors import PermanentProviderError
from apps.core.infrastructure.signatures import SIGNATURE_HEADER, signature_matches
from apps.payments.domain.errors import WebhookPayloadError, WebhookSignatureError
from apps.payments.domain.ports import HoldResult, ProviderEvent, ProviderPaymentStatus
from apps.payments.domain.state_machine import PaymentStatus, parse_payment_status


def _optional_int(value) -> int | None:
    if value is None or value == "":
        return None
    try:
        amount = int(value)
    except (TypeError, ValueError) as exc:
        raise WebhookPayloadError(f"Invalid amount: {value!r}.") from exc
    if amount < 0:
        raise WebhookPayloadError(f"Invalid amount: {value!r}.")
    return amount


class InMemoryHoldGateway:
    """
    Provider simulator keeping hold state in process memory.

    Webhooks are JSON bodies signed with HMAC-SHA256 using the secret from
    `PAYMENT_WEBHOOK_SECRETS[code]`.
    """

    code = ""
    name = ""
    reference_prefix = ""
    initial_status = PaymentStatus.AUTHORIZED

    def __init__(self):
        self._payments: dict[str, ProviderPaymentStatus] = {}
        self._references_by_key: dict[str, str] = {}

    def _checkout_url(self, *, reference: str, return_url: str) -> str | None:
        return None

    def _state(self, provider_reference: str) -> ProviderPaymentStatus:
        state = self._payments.get(provider_reference)
        if state is None:
            raise PermanentProviderError(f"Unknown payment reference: {provider_reference}", provider=self.code)
        return state

    def create_hold(
        self, *, order_id: int, amount_cents: int, currency: str, idempotency_key: str, return_url: str
    ) -> HoldResult:
        if amount_cents <= 0:
            raise PermanentProviderError("Hold amount must be positive.", provider=self.code)
        reference = self._references_by_key.get(idempotency_key)
        if reference is None:
            reference = f"{self.reference_prefix}-{uuid4().hex[:12]}"
            authorized = amount_cents if self.initial_status == PaymentStatus.AUTHORIZED else None
            self._payments[reference] = ProviderPaymentStatus(status=self.initial_status, authorized_amount=authorized)
            self._references_by_key[idempotency_key] = reference
        state = self._payments[reference]
        return HoldResult(
            provider_reference=reference,
            checkout_url=self._checkout_url(reference=reference, return_url=return_url),
            status=state.status,
            authorized_amount=state.authorized_amount,
        )

    def capture(self, *, provider_reference: str, amount_cents: int, idempotency_key: str) -> int:
        state = self._state(provider_reference)
        if state.status == PaymentStatus.CAPTURED:
            return state.captured_amount or 0
        if state.status in (PaymentStatus.CANCELLED, PaymentStatus.FAILED, PaymentStatus.REFUNDED):
            raise PermanentProviderError(f"Hold is {state.status}.", provider=self.code)
        if state.authorized_amount is not None and amount_cents > state.authorized_amount:
            raise PermanentProviderError("Capture exceeds the authorized amount.", provider=self.code)
        self._payments[provider_reference] = ProviderPaymentStatus(
            status=PaymentStatus.CAPTURED,
            authorized_amount=state.authorized_amount or amount_cents,
            captured_amount=amount_cents,
        )
        return amount_cents

    def release_hold(self, *, provider_reference: str) -> None:
        state = self._state(provider_reference)
        if state.status == PaymentStatus.CAPTURED:
            raise PermanentProviderError("Captured payments cannot be released.", provider=self.code)
        self._payments[provider_reference] = ProviderPaymentStatus(
            status=PaymentStatus.CANCELLED, authorized_amount=state.authorized_amount
        )

    def refund(self, *, provider_reference: str, amount_cents: int, idempotency_key: str) -> None:
        state = self._state(provider_reference)
        if state.status == PaymentStatus.REFUNDED:
            return
        if state.status != PaymentStatus.CAPTURED:
            raise PermanentProviderError("Only captured payments can be refunded.", provider=self.code)
        self._payments[provider_reference] = ProviderPaymentStatus(
            status=PaymentStatus.REFUNDED,
            authorized_amount=state.authorized_amount,
            captured_amount=state.captured_amount,
        )

    def fetch_status(self, *, provider_reference: str) -> ProviderPaymentStatus:
        return self._state(provider_reference)

    def verify_event(self, *, body: bytes, headers) -> ProviderEvent:
        secret = settings.PAYMENT_WEBHOOK_SECRETS.get(self.code, "")
        if not signature_matches(secret, body, headers.get(SIGNATURE_HEADER)):
            raise WebhookSignatureError("Invalid signature.")
        try:
            payload = json.loads(body or b"{}")
        except ValueError as exc:
            raise WebhookPayloadError("Invalid payload.") from exc
        if not isinstance(payload, dict):
            raise WebhookPayloadError("Invalid payload.")

        event_id = str(payload.get("event_id") or "")
        reference = str(payload.get("payment_reference") or "")
        if not event_id or not reference:
            raise WebhookPayloadError("Invalid payload.")
        return ProviderEvent(
            event_id=event_id,
            event_type=str(payload.get("event_type") or "payment"),
            provider_reference=reference,
            status=parse_payment_status(payload.get("status")),
            authorized_amount=_optional_int(payload.get("authorized_amount")),
            captured_amount=_optional_int(payload.get("captured_amount")),
            raw=payload,
        )
