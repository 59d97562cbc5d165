from __future__ import annotations

from apps.orders.domain.state_machine import OrderStatus

# Chat is closed before acceptance, during disputes and after completion.
CHAT_OPEN_STATUSES: frozenset[OrderStatus] = frozenset(
    {
        OrderStatus.ACCEPTED,
        OrderStatus.CONFIRMED,
        OrderStatus.IN_PROGRESS,
        OrderStatus.AWAITING_CLIENT_APPROVAL,
    }
)


def is_chat_open(status) -> bool:
    try:
        return OrderStatus(status) in CHAT_OPEN_STATUSES
    except ValueError:
        return False
