from __future__ import annotations

import logging
from dataclasses import dataclass

from apps.core.domain.actors import ActorContext
from apps.core.domain.errors import ProviderError
from apps.orders.application.services.order_access import OrderAccess
from apps.orders.application.use_cases.transition_order import TransitionOrderCommand, TransitionOrderUseCase
from apps.orders.domain.state_machine import OrderStatus
from apps.orders.models import Order
from apps.payments.application.use_cases.release_payment_hold import (
    ReleasePaymentHoldCommand,
    ReleasePaymentHoldUseCase,
)

logger = logging.getLogger("arreglatodo.orders")


@dataclass(frozen=True)
class CancelOrderCommand:
    order_id: int
    actor: ActorContext
    reason: str = ""
    expected_status: str | None = None


class CancelOrderUseCase:
    """
    Cancel before work starts and release any card hold.

    Cancelling an already canceled order returns it unchanged.
    """

    @staticmethod
    def execute(cmd: CancelOrderCommand) -> Order:
        order = OrderAccess.get_order(cmd.order_id)
        OrderAccess.ensure_party(cmd.actor, order, "cancel the order")

        changes = {"cancel_reason": cmd.reason} if cmd.reason else {}
        order = TransitionOrderUseCase.execute(
            TransitionOrderCommand(
                order_id=order.id,
                target_status=OrderStatus.CANCELED,
                actor=cmd.actor,
                expected_status=cmd.expected_status or order.status,
                changes=changes,
            )
        )

        try:
            ReleasePaymentHoldUseCase.execute(
                ReleasePaymentHoldCommand(order_id=order.id, actor=ActorContext.system(), reason="order_canceled")
            )
        except ProviderError as exc:
            logger.error(
                "order_hold_release_failed",
                extra={"order_id": order.id, "retryable": exc.retryable, "reason": str(exc)},
            )
        return order
