from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.utils import timezone

from apps.core.domain.actors import ActorContext
from apps.core.domain.errors import RetryableProviderError
from apps.payments.application.use_cases.capture_order import CaptureOrderCommand, CaptureOrderUseCase
from apps.payments.application.use_cases.refresh_payment_status import (
    RefreshPaymentStatusCommand,
    RefreshPaymentStatusUseCase,
)
from apps.payments.domain.state_machine import PaymentStatus
from apps.payments.models import Payment

logger = logging.getLogger("arreglatodo.payments")


@shared_task(
    autoretry_for=(RetryableProviderError,),
    retry_backoff=True,
    retry_backoff_max=settings.PROVIDER_RETRY_BACKOFF_MAX,
    retry_jitter=True,
    retry_kwargs={"max_retries": settings.PROVIDER_RETRY_MAX_RETRIES},
)
def reconcile_payment_task(payment_id: int) -> str:
    payment = RefreshPaymentStatusUseCase.execute(
        RefreshPaymentStatusCommand(payment_id=payment_id, actor=ActorContext.system())
    )
    logger.info("payment_reconciled", extra={"payment_id": payment.id, "status": payment.status})
    return payment.status


@shared_task(
    autoretry_for=(RetryableProviderError,),
    retry_backoff=True,
    retry_backoff_max=settings.PROVIDER_RETRY_BACKOFF_MAX,
    retry_jitter=True,
    retry_kwargs={"max_retries": settings.PROVIDER_RETRY_MAX_RETRIES},
)
def capture_order_task(order_id: int) -> str:
    payment = CaptureOrderUseCase.execute(CaptureOrderCommand(order_id=order_id))
    return payment.status


@shared_task
def reconcile_pending_payments_task(older_than_minutes: int = 15) -> int:
    """Queue a provider pull for holds still waiting on the provider."""
    cutoff = timezone.now() - timedelta(minutes=older_than_minutes)
    payment_ids = list(
        Payment.objects.filter(
            status__in=[PaymentStatus.CREATED.value, PaymentStatus.REQUIRES_ACTION.value],
            updated_at__lt=cutoff,
        )
        .exclude(provider_reference="")
        .values_list("id", flat=True)
    )
    for payment_id in payment_ids:
        reconcile_payment_task.delay(payment_id)
    if payment_ids:
        logger.info("payment_reconciliation_queued", extra={"count": len(payment_ids)})
    return len(payment_ids)
