from __future__ import annotations

import logging
from dataclasses import dataclass

from apps.payments.application.facade import PaymentGatewayFacade
from apps.payments.application.use_cases.sync_payment_status import (
    SyncPaymentStatusCommand,
    SyncPaymentStatusUseCase,
)
from apps.payments.domain.errors import PaymentNotFoundError
from apps.payments.models import Payment

logger = logging.getLogger("arreglatodo.payments")


@dataclass(frozen=True)
class HandleWebhookEventCommand:
    provider_code: str
    headers: dict
    body: bytes


class HandleWebhookEventUseCase:
    @staticmethod
    def execute(cmd: HandleWebhookEventCommand) -> Payment:
        gateway = PaymentGatewayFacade.get(cmd.provider_code)
        event = gateway.verify_event(body=cmd.body, headers=cmd.headers)

        payment = (
            Payment.objects.filter(provider=gateway.code, provider_reference=event.provider_reference)
            .order_by("-id")
            .first()
        )
        if payment is None:
            logger.warning(
                "payment_webhook_unmatched",
                extra={"provider": gateway.code, "event_id": event.event_id, "reference": event.provider_reference},
            )
            raise PaymentNotFoundError(f"No payment for reference {event.provider_reference}.")

        return SyncPaymentStatusUseCase.execute(SyncPaymentStatusCommand(payment_id=payment.id, event=event))
