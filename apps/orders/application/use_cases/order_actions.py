"""
Client and pro actions on an order.

Each action checks ownership, then delegates the status change to
`TransitionOrderUseCase`. `expected_status` is the status the caller last
saw; when omitted, the action's natural source status is used.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.utils import timezone

from apps.core.domain.actors import ActorContext
from apps.orders.application.services.order_access import OrderAccess
from apps.orders.application.use_cases.transition_order import TransitionOrderCommand, TransitionOrderUseCase
from apps.orders.domain.errors import InvalidOrderTransitionError, OrderValidationError
from apps.orders.domain.state_machine import OrderStatus
from apps.orders.models import Order

logger = logging.getLogger("arreglatodo.orders")


@dataclass(frozen=True)
class OrderActionCommand:
    order_id: int
    actor: ActorContext
    expected_status: str | None = None


def _transition(cmd: OrderActionCommand, target: OrderStatus, default_expected: OrderStatus, **changes) -> Order:
    return TransitionOrderUseCase.execute(
        TransitionOrderCommand(
            order_id=cmd.order_id,
            target_status=target,
            actor=cmd.actor,
            expected_status=cmd.expected_status or default_expected,
            changes=changes,
        )
    )


class SubmitOrderUseCase:
    @staticmethod
    def execute(cmd: OrderActionCommand) -> Order:
        order = OrderAccess.get_order(cmd.order_id)
        OrderAccess.ensure_client(cmd.actor, order, "submit the order")
        if order.pro_id is None:
            raise OrderValidationError("The order has no professional assigned.", field="pro_profile_id")
        return _transition(cmd, OrderStatus.PENDING_PRO_CONFIRMATION, OrderStatus.DRAFT)


class AcceptOrderUseCase:
    @staticmethod
    def execute(cmd: OrderActionCommand) -> Order:
        order = OrderAccess.get_order(cmd.order_id)
        OrderAccess.ensure_assigned_pro(cmd.actor, order, "accept the order", require_active=True)
        return _transition(cmd, OrderStatus.ACCEPTED, OrderStatus.PENDING_PRO_CONFIRMATION)


class RejectOrderUseCase:
    @staticmethod
    def execute(cmd: OrderActionCommand) -> Order:
        order = OrderAccess.get_order(cmd.order_id)
        OrderAccess.ensure_assigned_pro(cmd.actor, order, "reject the order")
        return _transition(cmd, OrderStatus.REJECTED, OrderStatus.PENDING_PRO_CONFIRMATION)


class StartOrderUseCase:
    @staticmethod
    def execute(cmd: OrderActionCommand) -> Order:
        order = OrderAccess.get_order(cmd.order_id)
        OrderAccess.ensure_assigned_pro(cmd.actor, order, "start the work", require_active=True)
        return _transition(cmd, OrderStatus.IN_PROGRESS, OrderStatus.CONFIRMED)


class MarkArrivedUseCase:
    """Stamps the arrival time; the status does not change."""

    @staticmethod
    def execute(cmd: OrderActionCommand) -> Order:
        order = OrderAccess.get_order(cmd.order_id)
        OrderAccess.ensure_assigned_pro(cmd.actor, order, "mark arrival")
        updated = Order.objects.filter(
            id=order.id, status=OrderStatus.IN_PROGRESS.value, arrived_at__isnull=True
        ).update(arrived_at=timezone.now(), updated_at=timezone.now())
        order.refresh_from_db()
        if not updated and order.order_status != OrderStatus.IN_PROGRESS:
            raise InvalidOrderTransitionError(order.status, OrderStatus.IN_PROGRESS.value)
        return order


@dataclass(frozen=True)
class SubmitHoursCommand:
    order_id: int
    actor: ActorContext
    final_hours: Decimal
    expected_status: str | None = None


class SubmitHoursUseCase:
    @staticmethod
    def execute(cmd: SubmitHoursCommand) -> Order:
        if cmd.final_hours is None or Decimal(str(cmd.final_hours)) <= 0:
            raise OrderValidationError("Final hours must be positive.", field="final_hours")
        order = OrderAccess.get_order(cmd.order_id)
        OrderAccess.ensure_assigned_pro(cmd.actor, order, "submit hours")
        return _transition(
            OrderActionCommand(order_id=cmd.order_id, actor=cmd.actor, expected_status=cmd.expected_status),
            OrderStatus.AWAITING_CLIENT_APPROVAL,
            OrderStatus.IN_PROGRESS,
            final_hours_submitted=cmd.final_hours,
        )


@dataclass(frozen=True)
class DisputeOrderCommand:
    order_id: int
    actor: ActorContext
    reason: str
    expected_status: str | None = None


class DisputeOrderUseCase:
    @staticmethod
    def execute(cmd: DisputeOrderCommand) -> Order:
        reason = (cmd.reason or "").strip()
        if not reason:
            raise OrderValidationError("A dispute needs a reason.", field="reason")
        order = OrderAccess.get_order(cmd.order_id)
        OrderAccess.ensure_client(cmd.actor, order, "open a dispute")
        order = _transition(
            OrderActionCommand(order_id=cmd.order_id, actor=cmd.actor, expected_status=cmd.expected_status),
            OrderStatus.DISPUTED,
            order.order_status,
            dispute_reason=reason,
            dispute_opened_by=cmd.actor.actor_id,
        )
        logger.warning("order_disputed", extra={"order_id": order.id, "opened_by": cmd.actor.actor_id})
        return order
