from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.orders.domain.errors import OrderNotFoundError
from apps.orders.models import Order
from apps.payments.domain.errors import PaymentNotFoundError, PaymentStateError
from apps.payments.domain.state_machine import PaymentStatus
from apps.payments.models import Payment
from apps.payouts.domain.fees import split_earning
from apps.payouts.domain.state_machine import EarningStatus
from apps.payouts.models import Earning

logger = logging.getLogger("arreglatodo.payouts")


@dataclass(frozen=True)
class RecordEarningCommand:
    order_id: int
    payment_id: int


class RecordEarningUseCase:
    """
    One earning per captured order; calling again returns the existing row.

    New earnings are PENDING until `EARNING_COOLING_OFF_HOURS` after capture.
    """

    @staticmethod
    def execute(cmd: RecordEarningCommand) -> Earning:
        existing = Earning.objects.filter(order_id=cmd.order_id).first()
        if existing:
            return existing

        order = Order.objects.filter(id=cmd.order_id).first()
        if order is None:
            raise OrderNotFoundError(cmd.order_id)
        payment = Payment.objects.filter(id=cmd.payment_id, order_id=order.id).first()
        if payment is None:
            raise PaymentNotFoundError(f"Payment not found: {cmd.payment_id}")
        if payment.payment_status != PaymentStatus.CAPTURED:
            raise PaymentStateError(payment.status, PaymentStatus.CAPTURED.value)

        gross = int(payment.amount_captured or 0)
        fee, net = split_earning(gross, settings.PLATFORM_FEE_RATE)
        available_at = timezone.now() + timedelta(hours=settings.EARNING_COOLING_OFF_HOURS)
        try:
            with transaction.atomic():
                earning = Earning.objects.create(
                    order=order,
                    payment=payment,
                    pro_id=order.pro_id,
                    gross_amount_cents=gross,
                    platform_fee_cents=fee,
                    net_amount_cents=net,
                    currency=payment.currency,
                    status=EarningStatus.PENDING.value,
                    available_at=available_at,
                )
        except IntegrityError:
            return Earning.objects.get(order_id=order.id)

        logger.info(
            "earning_recorded",
            extra={
                "order_id": order.id,
                "pro_id": order.pro_id,
                "gross": gross,
                "fee": fee,
                "net": net,
                "available_at": available_at.isoformat(),
            },
        )
        return earning


@dataclass(frozen=True)
class ReverseEarningCommand:
    order_id: int


class ReverseEarningUseCase:
    """
    Refunded orders: an unclaimed earning (pending or payable) is reversed.

    Claimed earnings are left for admin follow-up.
    """

    @staticmethod
    def execute(cmd: ReverseEarningCommand) -> Earning | None:
        updated = Earning.objects.unclaimed().filter(order_id=cmd.order_id).update(
            status=EarningStatus.REVERSED.value,
            reversed_at=timezone.now(),
            updated_at=timezone.now(),
        )
        earning = Earning.objects.filter(order_id=cmd.order_id).first()
        if earning is None:
            return None
        if updated:
            logger.info("earning_reversed", extra={"order_id": cmd.order_id, "earning_id": earning.id})
        elif earning.status != EarningStatus.REVERSED:
            logger.warning(
                "earning_reverse_skipped",
                extra={"order_id": cmd.order_id, "earning_id": earning.id, "status": earning.status},
            )
        return earning
