from __future__ import annotations

from dataclasses import dataclass

from apps.chat.domain.policies import is_chat_open
from apps.core.domain.actors import ActorContext
from apps.orders.application.services.order_access import OrderAccess


@dataclass(frozen=True)
class IsChatOpenCommand:
    order_id: int
    actor: ActorContext | None = None


@dataclass(frozen=True)
class ChatAvailability:
    order_id: int
    status: str
    is_open: bool


class IsChatOpenUseCase:
    """Reads the persisted order on every call; the answer is never cached."""

    @staticmethod
    def execute(cmd: IsChatOpenCommand) -> ChatAvailability:
        order = OrderAccess.get_order(cmd.order_id)
        if cmd.actor is not None:
            OrderAccess.ensure_party(cmd.actor, order, "use the order chat")
        return ChatAvailability(order_id=order.id, status=order.status, is_open=is_chat_open(order.status))
