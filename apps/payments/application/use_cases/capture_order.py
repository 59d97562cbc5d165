from __future__ import annotations

import logging
from dataclasses import dataclass, field

from django.db import transaction

from apps.core.domain.actors import ActorContext, ActorRole
from apps.core.domain.errors import PermanentProviderError, PermissionDeniedError, RetryableProviderError
from apps.orders.application.services.order_access import OrderAccess
from apps.orders.domain.pricing import final_amount_cents
from apps.orders.domain.state_machine import OrderStatus
from apps.payments.application.facade import PaymentGatewayFacade
from apps.payments.application.services.order_sync import settle_captured_order
from apps.payments.application.services.payment_state import PaymentStateService
from apps.payments.domain.errors import PaymentNotFoundError, PaymentStateError
from apps.payments.domain.state_machine import PaymentStatus
from apps.payments.models import Payment

logger = logging.getLogger("arreglatodo.payments")


@dataclass(frozen=True)
class CaptureOrderCommand:
    order_id: int
    actor: ActorContext = field(default_factory=ActorContext.system)


class CaptureOrderUseCase:
    """
    Charge the authorized hold of a completed order.

    The charge never exceeds `amount_authorized`; any difference with the final
    amount is recorded on the payment metadata. A payment that is already
    CAPTURED is returned as is, so retries never charge twice.
    """

    @staticmethod
    def execute(cmd: CaptureOrderCommand) -> Payment:
        if cmd.actor.role not in (ActorRole.ADMIN, ActorRole.SYSTEM):
            raise PermissionDeniedError("Only admins can capture payments.")

        order = OrderAccess.get_order(cmd.order_id)
        payment = (
            Payment.objects.filter(order_id=order.id, status=PaymentStatus.CAPTURED.value).first()
            or Payment.objects.active_for_order(order.id)
        )
        if payment is None:
            raise PaymentNotFoundError(f"Order {order.id} has no active payment.")

        if payment.payment_status == PaymentStatus.CAPTURED:
            with transaction.atomic():
                settle_captured_order(payment)
            return payment
        if payment.payment_status != PaymentStatus.AUTHORIZED:
            raise PaymentStateError(payment.status, PaymentStatus.CAPTURED.value)
        if order.order_status not in (OrderStatus.COMPLETED, OrderStatus.PAID):
            raise PaymentStateError(
                order.status,
                OrderStatus.PAID.value,
                message=f"Capture requires a completed order; order {order.id} is {order.status}.",
            )

        final_amount = final_amount_cents(
            pricing_mode=order.pricing_mode,
            hourly_rate_cents=order.hourly_rate_cents,
            approved_hours=order.approved_hours,
            quoted_amount_cents=order.quoted_amount_cents,
        )
        authorized = int(payment.amount_authorized or 0)
        amount = min(final_amount, authorized)
        metadata = dict(payment.metadata or {})
        if final_amount > authorized:
            metadata["uncapturedOverageCents"] = final_amount - authorized
            logger.warning(
                "payment_capture_capped",
                extra={"payment_id": payment.id, "final_amount": final_amount, "authorized": authorized},
            )

        gateway = PaymentGatewayFacade.get(payment.provider)
        try:
            captured = gateway.capture(
                provider_reference=payment.provider_reference,
                amount_cents=amount,
                idempotency_key=f"capture-{payment.id}",
            )
        except RetryableProviderError as exc:
            logger.warning(
                "payment_capture_deferred",
                extra={"payment_id": payment.id, "order_id": order.id, "reason": str(exc)},
            )
            raise
        except PermanentProviderError as exc:
            PaymentStateService.mark_failed(payment, reason=str(exc), actor=cmd.actor)
            raise

        with transaction.atomic():
            payment = PaymentStateService.apply(
                payment,
                PaymentStatus.CAPTURED,
                changes={"amount_captured": min(int(captured), amount), "metadata": metadata},
            )
            settle_captured_order(payment)

        logger.info(
            "payment_captured",
            extra={"payment_id": payment.id, "order_id": order.id, "amount": payment.amount_captured},
        )
        return payment
