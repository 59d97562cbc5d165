"""Model builders shared by the app test suites."""

from __future__ import annotations

import json
from datetime import timedelta
from decimal import Decimal

from django.utils import timezone

from apps.core.domain.actors import ActorContext, ActorRole
from apps.core.infrastructure.signatures import sign_payload
from apps.orders.domain.state_machine import OrderStatus
from apps.orders.models import Order
from apps.payments.domain.state_machine import PaymentStatus
from apps.payments.models import Payment
from apps.pros.models import ProProfile

CLIENT_ID = "client-1"
ADMIN_ID = "admin-1"


def create_pro(user_id: str = "pro-1", **overrides) -> ProProfile:
    values = {
        "user_id": user_id,
        "display_name": f"Pro {user_id}",
        "hourly_rate_cents": 100_000,
        "currency": "UYU",
        "status": ProProfile.STATUS_APPROVED,
        "approved_at": timezone.now(),
        "payout_full_name": "Ana Pérez",
        "payout_document_id": "12345678",
        "payout_bank_name": "BROU",
        "payout_account_number": "001-234567",
    }
    values.update(overrides)
    return ProProfile.objects.create(**values)


def create_order(*, pro: ProProfile, status: OrderStatus = OrderStatus.DRAFT, **overrides) -> Order:
    values = {
        "client_user_id": CLIENT_ID,
        "pro": pro,
        "category": "plumbing",
        "title": "Fix the kitchen sink",
        "scheduled_window_start_at": timezone.now() + timedelta(days=1),
        "status": status.value,
        "pricing_mode": "hourly",
        "hourly_rate_cents": pro.hourly_rate_cents,
        "estimated_hours": Decimal("2.00"),
        "currency": pro.currency,
    }
    values.update(overrides)
    return Order.objects.create(**values)


def create_payment(*, order: Order, status: PaymentStatus = PaymentStatus.AUTHORIZED, **overrides) -> Payment:
    values = {
        "order": order,
        "provider": "dummy",
        "status": status.value,
        "currency": order.currency,
        "amount_estimated": 200_000,
        "amount_authorized": 200_000 if status != PaymentStatus.CREATED else None,
        "provider_reference": f"TEST-{order.id}",
        "idempotency_key": f"test-preauth-{order.id}",
    }
    values.update(overrides)
    return Payment.objects.create(**values)


def client_actor(user_id: str = CLIENT_ID) -> ActorContext:
    return ActorContext(actor_id=user_id, role=ActorRole.CLIENT)


def pro_actor(pro: ProProfile) -> ActorContext:
    return ActorContext(actor_id=pro.user_id, role=ActorRole.PRO)


def admin_actor(user_id: str = ADMIN_ID) -> ActorContext:
    return ActorContext(actor_id=user_id, role=ActorRole.ADMIN)


def actor_headers(actor: ActorContext) -> dict:
    return {"HTTP_X_ACTOR_ID": actor.actor_id, "HTTP_X_ACTOR_ROLE": actor.role.value}


def signed_webhook(payload: dict, secret: str) -> tuple[bytes, dict]:
    body = json.dumps(payload).encode("utf-8")
    return body, {"HTTP_X_SIGNATURE": sign_payload(secret, body)}
