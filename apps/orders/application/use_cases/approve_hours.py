from __future__ import annotations

import logging
from dataclasses import dataclass

from django.db import transaction

from apps.core.domain.actors import ActorContext
from apps.core.domain.errors import NotFoundError, ProviderError
from apps.orders.application.services.order_access import OrderAccess
from apps.orders.application.use_cases.transition_order import TransitionOrderCommand, TransitionOrderUseCase
from apps.orders.domain.errors import OrderValidationError
from apps.orders.domain.pricing import PricingMode
from apps.orders.domain.state_machine import OrderStatus
from apps.orders.models import Order
from apps.payments.application.use_cases.capture_order import CaptureOrderCommand, CaptureOrderUseCase
from apps.payments.tasks import capture_order_task

logger = logging.getLogger("arreglatodo.orders")


@dataclass(frozen=True)
class ApproveHoursCommand:
    order_id: int
    actor: ActorContext
    expected_status: str | None = None


@dataclass(frozen=True)
class ApproveHoursResult:
    order: Order
    capture_error: ProviderError | None = None


class ApproveHoursUseCase:
    """
    Client approval of the submitted hours: AWAITING_CLIENT_APPROVAL -> COMPLETED,
    then capture. A failed capture leaves the order COMPLETED; retryable
    failures are picked up again by `capture_order_task`.
    """

    @staticmethod
    def execute(cmd: ApproveHoursCommand) -> ApproveHoursResult:
        order = OrderAccess.get_order(cmd.order_id)
        OrderAccess.ensure_client(cmd.actor, order, "approve hours")
        if order.pricing_mode == PricingMode.HOURLY and order.quoted_amount_cents is None:
            if order.final_hours_submitted is None:
                raise OrderValidationError("The pro has not submitted final hours yet.", field="final_hours")

        order = TransitionOrderUseCase.execute(
            TransitionOrderCommand(
                order_id=order.id,
                target_status=OrderStatus.COMPLETED,
                actor=cmd.actor,
                expected_status=cmd.expected_status or OrderStatus.AWAITING_CLIENT_APPROVAL,
                changes={"approved_hours": order.final_hours_submitted},
            )
        )

        try:
            CaptureOrderUseCase.execute(CaptureOrderCommand(order_id=order.id))
        except ProviderError as exc:
            logger.warning(
                "order_capture_failed",
                extra={"order_id": order.id, "retryable": exc.retryable, "reason": str(exc)},
            )
            if exc.retryable:
                order_id = order.id
                transaction.on_commit(lambda: capture_order_task.delay(order_id))
            order.refresh_from_db()
            return ApproveHoursResult(order=order, capture_error=exc)
        except NotFoundError as exc:
            logger.error("order_capture_skipped", extra={"order_id": order.id, "reason": str(exc)})

        order.refresh_from_db()
        return ApproveHoursResult(order=order)
