"""
Order side effects of payment state.

Payment code never writes order status directly; it goes through the order
transition use case as the system actor, reading the persisted order first.
"""

from __future__ import annotations

import logging

from apps.core.domain.actors import ActorContext
from apps.core.domain.errors import ConflictError, InvalidTransitionError
from apps.orders.application.use_cases.transition_order import TransitionOrderCommand, TransitionOrderUseCase
from apps.orders.domain.state_machine import OrderStatus
from apps.orders.models import Order
from apps.payments.models import Payment
from apps.payouts.application.use_cases.record_earning import RecordEarningCommand, RecordEarningUseCase

logger = logging.getLogger("arreglatodo.payments")


def confirm_order_for_payment(payment: Payment) -> Order | None:
    """ACCEPTED -> CONFIRMED once the hold is authorized."""
    order = Order.objects.filter(id=payment.order_id).first()
    if order is None or order.order_status != OrderStatus.ACCEPTED:
        return order
    try:
        return TransitionOrderUseCase.execute(
            TransitionOrderCommand(
                order_id=order.id,
                target_status=OrderStatus.CONFIRMED,
                actor=ActorContext.system(),
                expected_status=OrderStatus.ACCEPTED,
            )
        )
    except (ConflictError, InvalidTransitionError) as exc:
        logger.warning(
            "order_confirm_skipped",
            extra={"order_id": order.id, "payment_id": payment.id, "reason": str(exc)},
        )
        return Order.objects.filter(id=order.id).first()


def settle_captured_order(payment: Payment) -> Order | None:
    """COMPLETED -> PAID after capture, then record the pro's earning."""
    order = Order.objects.filter(id=payment.order_id).first()
    if order is None:
        return None
    if order.order_status == OrderStatus.COMPLETED:
        try:
            order = TransitionOrderUseCase.execute(
                TransitionOrderCommand(
                    order_id=order.id,
                    target_status=OrderStatus.PAID,
                    actor=ActorContext.system(),
                    expected_status=OrderStatus.COMPLETED,
                    changes={"total_amount_cents": payment.amount_captured},
                )
            )
        except (ConflictError, InvalidTransitionError) as exc:
            logger.warning(
                "order_settle_skipped",
                extra={"order_id": order.id, "payment_id": payment.id, "reason": str(exc)},
            )
            order = Order.objects.filter(id=order.id).first()
    if order.order_status == OrderStatus.PAID:
        RecordEarningUseCase.execute(RecordEarningCommand(order_id=order.id, payment_id=payment.id))
    return order
