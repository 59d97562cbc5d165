from __future__ import annotations

from enum import StrEnum

from apps.core.domain.actors import ActorRole
from apps.orders.domain.errors import InvalidOrderTransitionError, OrderValidationError


class OrderStatus(StrEnum):
    DRAFT = "draft"
    PENDING_PRO_CONFIRMATION = "pending_pro_confirmation"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    AWAITING_CLIENT_APPROVAL = "awaiting_client_approval"
    COMPLETED = "completed"
    DISPUTED = "disputed"
    PAID = "paid"
    CANCELED = "canceled"


TERMINAL_STATUSES: frozenset[OrderStatus] = frozenset(
    {OrderStatus.CANCELED, OrderStatus.REJECTED, OrderStatus.PAID}
)

# Cancellation is a normal edge only before work starts.
PRE_WORK_STATUSES: frozenset[OrderStatus] = frozenset(
    {
        OrderStatus.DRAFT,
        OrderStatus.PENDING_PRO_CONFIRMATION,
        OrderStatus.ACCEPTED,
        OrderStatus.CONFIRMED,
    }
)

_CLIENT = frozenset({ActorRole.CLIENT})
_PRO = frozenset({ActorRole.PRO})
_SYSTEM = frozenset({ActorRole.SYSTEM})
_PARTIES = frozenset({ActorRole.CLIENT, ActorRole.PRO})

# (from, to) -> roles allowed to take the edge on the normal path.
_EDGES: dict[tuple[OrderStatus, OrderStatus], frozenset[ActorRole]] = {
    (OrderStatus.DRAFT, OrderStatus.PENDING_PRO_CONFIRMATION): _CLIENT,
    (OrderStatus.DRAFT, OrderStatus.CANCELED): _CLIENT,
    (OrderStatus.PENDING_PRO_CONFIRMATION, OrderStatus.ACCEPTED): _PRO,
    (OrderStatus.PENDING_PRO_CONFIRMATION, OrderStatus.REJECTED): _PRO,
    (OrderStatus.PENDING_PRO_CONFIRMATION, OrderStatus.CANCELED): _PARTIES,
    (OrderStatus.ACCEPTED, OrderStatus.CONFIRMED): _SYSTEM,
    (OrderStatus.ACCEPTED, OrderStatus.CANCELED): _PARTIES,
    (OrderStatus.CONFIRMED, OrderStatus.IN_PROGRESS): _PRO,
    (OrderStatus.CONFIRMED, OrderStatus.CANCELED): _PARTIES,
    (OrderStatus.IN_PROGRESS, OrderStatus.AWAITING_CLIENT_APPROVAL): _PRO,
    (OrderStatus.AWAITING_CLIENT_APPROVAL, OrderStatus.COMPLETED): frozenset({ActorRole.CLIENT, ActorRole.SYSTEM}),
    (OrderStatus.AWAITING_CLIENT_APPROVAL, OrderStatus.DISPUTED): _CLIENT,
    (OrderStatus.COMPLETED, OrderStatus.PAID): _SYSTEM,
    (OrderStatus.COMPLETED, OrderStatus.DISPUTED): _CLIENT,
    (OrderStatus.DISPUTED, OrderStatus.COMPLETED): frozenset(),
    (OrderStatus.DISPUTED, OrderStatus.CANCELED): frozenset(),
}

# Column stamped when an order enters each status.
STATUS_TIMESTAMP_FIELDS: dict[OrderStatus, str] = {
    OrderStatus.PENDING_PRO_CONFIRMATION: "submitted_at",
    OrderStatus.ACCEPTED: "accepted_at",
    OrderStatus.REJECTED: "rejected_at",
    OrderStatus.CONFIRMED: "confirmed_at",
    OrderStatus.IN_PROGRESS: "started_at",
    OrderStatus.AWAITING_CLIENT_APPROVAL: "work_submitted_at",
    OrderStatus.COMPLETED: "completed_at",
    OrderStatus.DISPUTED: "disputed_at",
    OrderStatus.PAID: "paid_at",
    OrderStatus.CANCELED: "canceled_at",
}


def parse_status(raw, *, field: str = "status") -> OrderStatus:
    """Accept only members of the closed status enum, whatever the UI sent."""
    if isinstance(raw, OrderStatus):
        return raw
    value = (raw or "").strip().lower() if isinstance(raw, str) else ""
    try:
        return OrderStatus(value)
    except ValueError as exc:
        raise OrderValidationError(f"Unknown order status: {raw!r}.", field=field) from exc


class OrderStateMachine:
    """
    Role-scoped transition graph for orders.

    Admins may take every edge of the graph on the normal path; bypassing the
    graph is a separate admin operation (force-status), never this class.
    """

    @staticmethod
    def roles_for(current: OrderStatus, target: OrderStatus) -> frozenset[ActorRole]:
        roles = _EDGES.get((current, target))
        if roles is None:
            return frozenset()
        return roles | {ActorRole.ADMIN}

    @staticmethod
    def can_transition(current: OrderStatus, target: OrderStatus, role: ActorRole) -> bool:
        return role in OrderStateMachine.roles_for(current, target)

    @staticmethod
    def ensure_transition(current: OrderStatus, target: OrderStatus, role: ActorRole) -> None:
        if not OrderStateMachine.can_transition(current, target, role):
            raise InvalidOrderTransitionError(current.value, target.value, role=role.value)

    @staticmethod
    def allowed_targets(current: OrderStatus, role: ActorRole) -> list[OrderStatus]:
        return [
            target
            for (source, target) in _EDGES
            if source == current and OrderStateMachine.can_transition(source, target, role)
        ]

    @staticmethod
    def is_edge(current: OrderStatus, target: OrderStatus) -> bool:
        return (current, target) in _EDGES

    @staticmethod
    def is_terminal(status: OrderStatus) -> bool:
        return status in TERMINAL_STATUSES
