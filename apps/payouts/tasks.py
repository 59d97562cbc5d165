from __future__ import annotations

from celery import shared_task
from django.conf import settings

from apps.core.domain.actors import ActorContext
from apps.core.domain.errors import RetryableProviderError
from apps.payouts.application.use_cases.mark_earnings_payable import (
    MarkEarningsPayableCommand,
    MarkEarningsPayableUseCase,
)
from apps.payouts.application.use_cases.send_payout import SendPayoutCommand, SendPayoutUseCase


@shared_task(
    autoretry_for=(RetryableProviderError,),
    retry_backoff=True,
    retry_backoff_max=settings.PROVIDER_RETRY_BACKOFF_MAX,
    retry_jitter=True,
    retry_kwargs={"max_retries": settings.PROVIDER_RETRY_MAX_RETRIES},
)
def send_payout_task(payout_id: int, resend: bool = False) -> str:
    payout = SendPayoutUseCase.execute(
        SendPayoutCommand(payout_id=payout_id, actor=ActorContext.system(), resend=resend)
    )
    return payout.status


@shared_task
def mark_earnings_payable_task() -> int:
    return MarkEarningsPayableUseCase.execute(MarkEarningsPayableCommand())
