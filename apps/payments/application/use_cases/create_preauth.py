from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import uuid4

from django.conf import settings
from django.db import IntegrityError, transaction

from apps.core.domain.actors import ActorContext
from apps.core.domain.errors import PermanentProviderError, RetryableProviderError
from apps.orders.application.services.order_access import OrderAccess
from apps.orders.domain.pricing import estimate_amount_cents
from apps.orders.domain.state_machine import OrderStatus
from apps.payments.application.facade import PaymentGatewayFacade
from apps.payments.application.services.order_sync import confirm_order_for_payment
from apps.payments.application.services.payment_state import PaymentStateService
from apps.payments.domain.errors import PaymentStateError
from apps.payments.domain.state_machine import PaymentStatus
from apps.payments.models import Payment

logger = logging.getLogger("arreglatodo.payments")


@dataclass(frozen=True)
class CreatePreauthCommand:
    order_id: int
    actor: ActorContext


@dataclass(frozen=True)
class PreauthResult:
    payment_id: int
    checkout_url: str | None
    status: str


class CreatePreauthUseCase:
    """
    Open (or resume) the card hold for an accepted order.

    The order only advances to CONFIRMED once the provider reports the hold as
    AUTHORIZED; a REQUIRES_ACTION hold waits for the checkout redirect and the
    provider webhook.
    """

    @staticmethod
    def execute(cmd: CreatePreauthCommand) -> PreauthResult:
        order = OrderAccess.get_order(cmd.order_id)
        OrderAccess.ensure_client(cmd.actor, order, "create a preauthorization")

        payment = Payment.objects.active_for_order(order.id)
        if payment is not None and payment.payment_status not in (
            PaymentStatus.CREATED,
            PaymentStatus.REQUIRES_ACTION,
            PaymentStatus.AUTHORIZED,
        ):
            raise PaymentStateError(payment.status, PaymentStatus.AUTHORIZED.value)

        if payment is not None and payment.payment_status != PaymentStatus.CREATED:
            if payment.payment_status == PaymentStatus.AUTHORIZED:
                confirm_order_for_payment(payment)
            return PreauthResult(
                payment_id=payment.id, checkout_url=payment.checkout_url or None, status=payment.status
            )

        if order.order_status != OrderStatus.ACCEPTED:
            raise PaymentStateError(
                order.status,
                OrderStatus.CONFIRMED.value,
                message=f"Preauthorization requires an accepted order; order {order.id} is {order.status}.",
            )

        if payment is None:
            payment = CreatePreauthUseCase._open_payment(order)

        gateway = PaymentGatewayFacade.get(payment.provider)
        try:
            hold = gateway.create_hold(
                order_id=order.id,
                amount_cents=payment.amount_estimated,
                currency=payment.currency,
                idempotency_key=payment.idempotency_key,
                return_url=settings.PAYMENT_RETURN_URL,
            )
        except RetryableProviderError as exc:
            logger.warning(
                "payment_preauth_deferred",
                extra={"order_id": order.id, "payment_id": payment.id, "reason": str(exc)},
            )
            raise
        except PermanentProviderError as exc:
            PaymentStateService.mark_failed(payment, reason=str(exc), actor=cmd.actor)
            raise

        changes = {"provider_reference": hold.provider_reference, "checkout_url": hold.checkout_url or ""}
        if hold.status == PaymentStatus.AUTHORIZED:
            authorized = hold.authorized_amount if hold.authorized_amount is not None else payment.amount_estimated
            changes["amount_authorized"] = min(authorized, payment.amount_estimated)

        with transaction.atomic():
            payment = PaymentStateService.apply(payment, hold.status, changes=changes)
            if payment.payment_status == PaymentStatus.AUTHORIZED:
                confirm_order_for_payment(payment)

        logger.info(
            "payment_preauth_created",
            extra={"order_id": order.id, "payment_id": payment.id, "status": payment.status},
        )
        return PreauthResult(payment_id=payment.id, checkout_url=payment.checkout_url or None, status=payment.status)

    @staticmethod
    def _open_payment(order) -> Payment:
        amount = estimate_amount_cents(
            pricing_mode=order.pricing_mode,
            hourly_rate_cents=order.hourly_rate_cents,
            estimated_hours=order.estimated_hours,
            quoted_amount_cents=order.quoted_amount_cents,
        )
        try:
            with transaction.atomic():
                return Payment.objects.create(
                    order=order,
                    provider=PaymentGatewayFacade.configured().code,
                    status=PaymentStatus.CREATED.value,
                    currency=order.currency,
                    amount_estimated=amount,
                    idempotency_key=f"preauth-{order.id}-{uuid4().hex[:12]}",
                )
        except IntegrityError:
            # A concurrent preauth opened the payment first.
            existing = Payment.objects.active_for_order(order.id)
            if existing is None:
                raise
            return existing
