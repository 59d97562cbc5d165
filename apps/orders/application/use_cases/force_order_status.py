from __future__ import annotations

import logging
from dataclasses import dataclass

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from apps.audit.domain.events import AuditEventType
from apps.audit.services.audit_service import AuditService
from apps.core.domain.actors import ActorContext
from apps.orders.domain.errors import OrderNotFoundError, OrderStatusConflictError
from apps.orders.domain.state_machine import STATUS_TIMESTAMP_FIELDS, OrderStatus, parse_status
from apps.orders.infrastructure.notifier import notify_status_changed
from apps.orders.models import Order

logger = logging.getLogger("arreglatodo.orders")


@dataclass(frozen=True)
class ForceOrderStatusCommand:
    order_id: int
    target_status: str
    actor: ActorContext
    reason: str = ""


class ForceOrderStatusUseCase:
    """
    Admin override that bypasses the transition graph.

    The target must still be a known status. The write is compare-and-swap on
    the status the admin action read, retried a bounded number of times; the
    audit row commits together with the status change.
    """

    @staticmethod
    def execute(cmd: ForceOrderStatusCommand) -> Order:
        cmd.actor.require_admin("force order status")
        target = parse_status(cmd.target_status, field="target_status")
        attempts = max(1, int(settings.FORCE_STATUS_MAX_ATTEMPTS))

        last_seen = None
        for attempt in range(1, attempts + 1):
            order = Order.objects.filter(id=cmd.order_id).first()
            if order is None:
                raise OrderNotFoundError(cmd.order_id)

            previous = order.order_status
            if previous == target:
                return order
            last_seen = previous

            now = timezone.now()
            values = {"status": target.value, "version": F("version") + 1, "updated_at": now}
            timestamp_field = STATUS_TIMESTAMP_FIELDS.get(target)
            if timestamp_field:
                values[timestamp_field] = now
            if target == OrderStatus.CANCELED and cmd.reason:
                values["cancel_reason"] = cmd.reason

            with transaction.atomic():
                updated = Order.objects.filter(id=order.id, status=previous.value).update(**values)
                if updated == 0:
                    logger.warning(
                        "order_force_status_race",
                        extra={"order_id": order.id, "attempt": attempt, "target_status": target.value},
                    )
                    continue
                AuditService.record(
                    event_type=AuditEventType.ORDER_STATUS_FORCED,
                    actor=cmd.actor,
                    resource_type="order",
                    resource_id=order.id,
                    action="force_status",
                    metadata={
                        "previousStatus": previous.value,
                        "newStatus": target.value,
                        "reason": cmd.reason,
                    },
                )
                notify_status_changed(
                    order_id=order.id,
                    previous_status=previous.value,
                    new_status=target.value,
                    actor=cmd.actor,
                    forced=True,
                )

            order.refresh_from_db()
            logger.info(
                "order_status_forced",
                extra={
                    "order_id": order.id,
                    "previous_status": previous.value,
                    "new_status": target.value,
                    "actor_id": cmd.actor.actor_id,
                },
            )
            return order

        raise OrderStatusConflictError(
            cmd.order_id,
            expected_status=last_seen.value if last_seen else "",
            current_status=Order.objects.filter(id=cmd.order_id).values_list("status", flat=True).first() or "",
        )
