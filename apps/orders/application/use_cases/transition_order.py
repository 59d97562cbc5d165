from __future__ import annotations

import logging
from dataclasses import dataclass, field

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from apps.audit.domain.events import AuditEventType
from apps.audit.services.audit_service import AuditService
from apps.core.domain.actors import ActorContext
from apps.orders.domain.errors import OrderNotFoundError, OrderStatusConflictError
from apps.orders.domain.state_machine import (
    STATUS_TIMESTAMP_FIELDS,
    OrderStateMachine,
    OrderStatus,
    parse_status,
)
from apps.orders.infrastructure.notifier import notify_status_changed
from apps.orders.models import Order

logger = logging.getLogger("arreglatodo.orders")


@dataclass(frozen=True)
class TransitionOrderCommand:
    order_id: int
    target_status: str
    actor: ActorContext
    expected_status: str
    # Extra columns written in the same conditional UPDATE as the status.
    changes: dict = field(default_factory=dict)


class TransitionOrderUseCase:
    """
    Move an order along one edge of the graph.

    The write is a single `UPDATE ... WHERE status = expected`; losing a race
    to another writer surfaces as a conflict carrying the persisted status.
    """

    @staticmethod
    def execute(cmd: TransitionOrderCommand) -> Order:
        target = parse_status(cmd.target_status, field="target_status")
        expected = parse_status(cmd.expected_status, field="expected_status")

        order = Order.objects.filter(id=cmd.order_id).first()
        if order is None:
            raise OrderNotFoundError(cmd.order_id)

        current = order.order_status
        if target == OrderStatus.CANCELED and current == OrderStatus.CANCELED:
            return order
        if current != expected:
            raise OrderStatusConflictError(order.id, expected_status=expected.value, current_status=current.value)
        OrderStateMachine.ensure_transition(expected, target, cmd.actor.role)

        now = timezone.now()
        values = {
            **cmd.changes,
            "status": target.value,
            "version": F("version") + 1,
            "updated_at": now,
        }
        timestamp_field = STATUS_TIMESTAMP_FIELDS.get(target)
        if timestamp_field:
            values[timestamp_field] = now

        with transaction.atomic():
            updated = Order.objects.filter(id=order.id, status=expected.value).update(**values)
            if updated == 0:
                persisted = Order.objects.filter(id=order.id).values_list("status", flat=True).first()
                if target == OrderStatus.CANCELED and persisted == OrderStatus.CANCELED:
                    order.refresh_from_db()
                    return order
                raise OrderStatusConflictError(
                    order.id, expected_status=expected.value, current_status=persisted or current.value
                )

            AuditService.record(
                event_type=AuditEventType.ORDER_STATUS_CHANGED,
                actor=cmd.actor,
                resource_type="order",
                resource_id=order.id,
                action=f"transition_to_{target.value}",
                metadata={"previousStatus": expected.value, "newStatus": target.value},
            )
            notify_status_changed(
                order_id=order.id,
                previous_status=expected.value,
                new_status=target.value,
                actor=cmd.actor,
            )

        order.refresh_from_db()
        logger.info(
            "order_transitioned",
            extra={
                "order_id": order.id,
                "previous_status": expected.value,
                "new_status": target.value,
                "actor_role": cmd.actor.role.value,
            },
        )
        return order
