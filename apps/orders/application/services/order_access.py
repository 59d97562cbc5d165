from __future__ import annotations

from apps.core.domain.actors import ActorContext, ActorRole
from apps.orders.domain.errors import OrderActionForbiddenError, OrderNotFoundError
from apps.orders.models import Order
from apps.pros.domain.errors import ProNotActiveError
from apps.pros.models import ProProfile


class OrderAccess:
    """Ownership checks shared by the order lifecycle use cases."""

    @staticmethod
    def get_order(order_id) -> Order:
        order = Order.objects.select_related("pro").filter(id=order_id).first()
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    @staticmethod
    def ensure_client(actor: ActorContext, order: Order, action: str) -> None:
        if actor.role in (ActorRole.ADMIN, ActorRole.SYSTEM):
            return
        if actor.role != ActorRole.CLIENT:
            raise OrderActionForbiddenError(action, "only clients can perform this action")
        if order.client_user_id != actor.actor_id:
            raise OrderActionForbiddenError(action, "order does not belong to this client")

    @staticmethod
    def ensure_assigned_pro(actor: ActorContext, order: Order, action: str, *, require_active: bool = False) -> None:
        if actor.role in (ActorRole.ADMIN, ActorRole.SYSTEM):
            return
        if actor.role != ActorRole.PRO:
            raise OrderActionForbiddenError(action, "only pros can perform this action")
        pro = ProProfile.objects.filter(user_id=actor.actor_id).first()
        if pro is None:
            raise OrderActionForbiddenError(action, "pro profile not found")
        if order.pro_id != pro.id:
            raise OrderActionForbiddenError(action, "order is not assigned to this pro")
        if require_active and not pro.is_active:
            raise ProNotActiveError(f"Pro profile {pro.id} is {pro.status}.")

    @staticmethod
    def ensure_party(actor: ActorContext, order: Order, action: str) -> None:
        if actor.role == ActorRole.PRO:
            OrderAccess.ensure_assigned_pro(actor, order, action)
            return
        OrderAccess.ensure_client(actor, order, action)
