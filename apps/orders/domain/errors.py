from __future__ import annotations

from apps.core.domain.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id):
        super().__init__(f"Order not found: {order_id}")
        self.order_id = order_id


class OrderValidationError(ValidationError):
    pass


class OrderStatusConflictError(ConflictError):
    def __init__(self, order_id, *, expected_status: str, current_status: str):
        super().__init__(
            f"Order {order_id} is {current_status}, expected {expected_status}. Refetch and retry.",
            current_status=current_status,
        )
        self.order_id = order_id
        self.expected_status = expected_status


class InvalidOrderTransitionError(InvalidTransitionError):
    def __init__(self, current_status: str, target_status: str, *, role: str | None = None):
        message = f"Cannot transition order from {current_status} to {target_status}"
        message += f" as {role}." if role else "."
        super().__init__(current_status, target_status, message=message)
        self.role = role


class OrderActionForbiddenError(PermissionDeniedError):
    def __init__(self, action: str, reason: str):
        super().__init__(f"Not allowed to {action}: {reason}")
        self.action = action
