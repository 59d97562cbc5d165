from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from apps.core.domain.actors import ActorContext, ActorRole
from apps.orders.domain.errors import OrderActionForbiddenError, OrderValidationError
from apps.orders.domain.pricing import PricingMode, estimate_amount_cents
from apps.orders.domain.state_machine import OrderStatus
from apps.orders.models import Order
from apps.pros.domain.errors import ProNotActiveError, ProNotFoundError
from apps.pros.models import ProProfile

logger = logging.getLogger("arreglatodo.orders")


@dataclass(frozen=True)
class CreateOrderCommand:
    actor: ActorContext
    pro_profile_id: int
    category: str
    scheduled_window_start_at: datetime
    estimated_hours: Decimal
    pricing_mode: str = PricingMode.HOURLY
    quoted_amount_cents: int | None = None
    title: str = ""
    description: str = ""
    address_text: str = ""
    scheduled_window_end_at: datetime | None = None


class CreateOrderUseCase:
    @staticmethod
    def execute(cmd: CreateOrderCommand) -> Order:
        if cmd.actor.role != ActorRole.CLIENT:
            raise OrderActionForbiddenError("create an order", "only clients can create orders")
        try:
            pricing_mode = PricingMode(cmd.pricing_mode)
        except ValueError as exc:
            raise OrderValidationError(f"Unknown pricing mode: {cmd.pricing_mode!r}.", field="pricing_mode") from exc
        if cmd.estimated_hours is None or Decimal(str(cmd.estimated_hours)) <= 0:
            raise OrderValidationError("Estimated hours must be positive.", field="estimated_hours")
        if cmd.scheduled_window_end_at and cmd.scheduled_window_end_at <= cmd.scheduled_window_start_at:
            raise OrderValidationError("The scheduling window ends before it starts.", field="scheduled_window_end_at")

        pro = ProProfile.objects.filter(id=cmd.pro_profile_id).first()
        if pro is None:
            raise ProNotFoundError(cmd.pro_profile_id)
        if not pro.is_active:
            raise ProNotActiveError(f"Pro profile {pro.id} is {pro.status}.")

        # Validates the pricing inputs; the amount itself is computed again at preauth time.
        estimate_amount_cents(
            pricing_mode=pricing_mode,
            hourly_rate_cents=pro.hourly_rate_cents,
            estimated_hours=cmd.estimated_hours,
            quoted_amount_cents=cmd.quoted_amount_cents,
        )

        order = Order.objects.create(
            client_user_id=cmd.actor.actor_id,
            pro=pro,
            category=cmd.category,
            title=cmd.title,
            description=cmd.description,
            address_text=cmd.address_text,
            scheduled_window_start_at=cmd.scheduled_window_start_at,
            scheduled_window_end_at=cmd.scheduled_window_end_at,
            status=OrderStatus.DRAFT.value,
            pricing_mode=pricing_mode.value,
            hourly_rate_cents=pro.hourly_rate_cents,
            quoted_amount_cents=cmd.quoted_amount_cents,
            estimated_hours=cmd.estimated_hours,
            currency=pro.currency,
        )
        logger.info(
            "order_created",
            extra={"order_id": order.id, "client_user_id": order.client_user_id, "pro_id": pro.id},
        )
        return order
