from __future__ import annotations

import logging
from typing import Protocol

from django.conf import settings
from django.db import transaction
from django.utils.module_loading import import_string

from apps.core.domain.actors import ActorContext

logger = logging.getLogger("arreglatodo.orders")


class OrderNotifier(Protocol):
    def order_status_changed(
        self, *, order_id: int, previous_status: str, new_status: str, actor: ActorContext, forced: bool
    ) -> None:
        ...


class LoggingOrderNotifier:
    """Default adapter; delivery channels plug in through ORDER_NOTIFIER."""

    def order_status_changed(
        self, *, order_id: int, previous_status: str, new_status: str, actor: ActorContext, forced: bool
    ) -> None:
        logger.info(
            "order_status_notification",
            extra={
                "order_id": order_id,
                "previous_status": previous_status,
                "new_status": new_status,
                "actor_role": actor.role.value,
                "forced": forced,
            },
        )


def get_order_notifier() -> OrderNotifier:
    return import_string(settings.ORDER_NOTIFIER)()


def notify_status_changed(
    *, order_id: int, previous_status: str, new_status: str, actor: ActorContext, forced: bool = False
) -> None:
    """Dispatch after commit. A failing notifier never undoes the transition or its audit row."""

    def _send() -> None:
        try:
            get_order_notifier().order_status_changed(
                order_id=order_id,
                previous_status=previous_status,
                new_status=new_status,
                actor=actor,
                forced=forced,
            )
        except Exception:
            logger.exception(
                "order_notification_failed",
                extra={"order_id": order_id, "new_status": new_status},
            )

    transaction.on_commit(_send)
