from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from apps.core.domain.actors import ActorContext
from apps.orders.application.services.order_access import OrderAccess
from apps.orders.application.use_cases.approve_hours import ApproveHoursCommand, ApproveHoursUseCase
from apps.orders.application.use_cases.cancel_order import CancelOrderCommand, CancelOrderUseCase
from apps.orders.application.use_cases.order_actions import (
    AcceptOrderUseCase,
    DisputeOrderCommand,
    DisputeOrderUseCase,
    OrderActionCommand,
    RejectOrderUseCase,
    StartOrderUseCase,
    SubmitHoursCommand,
    SubmitHoursUseCase,
    SubmitOrderUseCase,
)
from apps.orders.application.use_cases.transition_order import TransitionOrderCommand, TransitionOrderUseCase
from apps.orders.domain.state_machine import OrderStatus, parse_status
from apps.orders.models import Order

_SIMPLE_ACTIONS = {
    OrderStatus.PENDING_PRO_CONFIRMATION: SubmitOrderUseCase,
    OrderStatus.ACCEPTED: AcceptOrderUseCase,
    OrderStatus.REJECTED: RejectOrderUseCase,
    OrderStatus.IN_PROGRESS: StartOrderUseCase,
}


@dataclass(frozen=True)
class ApplyOrderTransitionCommand:
    order_id: int
    target_status: str
    actor: ActorContext
    expected_status: str
    reason: str = ""
    final_hours: Decimal | None = None


class ApplyOrderTransitionUseCase:
    """
    Entry point for `transitionOrder` requests coming from the API.

    Every target with its own guard or side effect is routed to the matching
    action, so the generic endpoint cannot skip them (COMPLETED captures,
    CANCELED releases the hold, DISPUTED records the reason).
    """

    @staticmethod
    def execute(cmd: ApplyOrderTransitionCommand) -> Order:
        target = parse_status(cmd.target_status, field="target_status")
        expected = parse_status(cmd.expected_status, field="expected_status")

        if target in _SIMPLE_ACTIONS:
            return _SIMPLE_ACTIONS[target].execute(
                OrderActionCommand(order_id=cmd.order_id, actor=cmd.actor, expected_status=expected)
            )
        if target == OrderStatus.AWAITING_CLIENT_APPROVAL:
            return SubmitHoursUseCase.execute(
                SubmitHoursCommand(
                    order_id=cmd.order_id, actor=cmd.actor, final_hours=cmd.final_hours, expected_status=expected
                )
            )
        if target == OrderStatus.COMPLETED:
            return ApproveHoursUseCase.execute(
                ApproveHoursCommand(order_id=cmd.order_id, actor=cmd.actor, expected_status=expected)
            ).order
        if target == OrderStatus.CANCELED:
            return CancelOrderUseCase.execute(
                CancelOrderCommand(order_id=cmd.order_id, actor=cmd.actor, reason=cmd.reason, expected_status=expected)
            )
        if target == OrderStatus.DISPUTED:
            return DisputeOrderUseCase.execute(
                DisputeOrderCommand(order_id=cmd.order_id, actor=cmd.actor, reason=cmd.reason, expected_status=expected)
            )

        # CONFIRMED and PAID are only reached through payment events.
        order = OrderAccess.get_order(cmd.order_id)
        OrderAccess.ensure_party(cmd.actor, order, f"move the order to {target.value}")
        return TransitionOrderUseCase.execute(
            TransitionOrderCommand(order_id=order.id, target_status=target, actor=cmd.actor, expected_status=expected)
        )
