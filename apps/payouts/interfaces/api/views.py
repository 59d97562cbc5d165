from __future__ import annotations

from dataclasses import asdict

from rest_framework import status
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from apps.core.domain.errors import DomainError, RetryableProviderError
from apps.core.interfaces.api.actor import actor_from_request
from apps.core.interfaces.api.responses import domain_error, success
from apps.payouts.application.use_cases.create_payout import CreatePayoutCommand, CreatePayoutUseCase
from apps.payouts.application.use_cases.list_payables import ListPayablesUseCase
from apps.payouts.application.use_cases.send_payout import SendPayoutCommand, SendPayoutUseCase
from apps.payouts.application.use_cases.sync_payout_status import (
    HandlePayoutWebhookCommand,
    HandlePayoutWebhookUseCase,
    RefreshPayoutStatusCommand,
    RefreshPayoutStatusUseCase,
)
from apps.payouts.domain.errors import PayoutNotFoundError
from apps.payouts.interfaces.api.serializers import PayoutSerializer
from apps.payouts.models import Payout
from apps.payouts.tasks import send_payout_task


class AdminPayablesAPI(APIView):
    def get(self, request):
        try:
            items = ListPayablesUseCase.execute(actor_from_request(request))
        except DomainError as exc:
            return domain_error(exc)
        return success(data={"items": [asdict(item) for item in items]})


class AdminCreatePayoutAPI(APIView):
    def post(self, request, pro_profile_id: int):
        try:
            payout = CreatePayoutUseCase.execute(
                CreatePayoutCommand(pro_profile_id=pro_profile_id, actor=actor_from_request(request))
            )
        except DomainError as exc:
            return domain_error(exc)
        return success(data=PayoutSerializer(payout).data, http_status=status.HTTP_201_CREATED)


class AdminPayoutDetailAPI(APIView):
    def get(self, request, payout_id: int):
        try:
            actor_from_request(request).require_admin("read payouts")
            payout = Payout.objects.prefetch_related("earnings").filter(id=payout_id).first()
            if payout is None:
                raise PayoutNotFoundError(f"Payout not found: {payout_id}")
        except DomainError as exc:
            return domain_error(exc)
        return success(data=PayoutSerializer(payout).data)


class AdminSendPayoutAPI(APIView):
    resend = False

    def post(self, request, payout_id: int):
        try:
            payout = SendPayoutUseCase.execute(
                SendPayoutCommand(payout_id=payout_id, actor=actor_from_request(request), resend=self.resend)
            )
        except RetryableProviderError as exc:
            send_payout_task.delay(payout_id, resend=self.resend)
            return domain_error(exc)
        except DomainError as exc:
            return domain_error(exc)
        return success(data=PayoutSerializer(payout).data)


class AdminResendPayoutAPI(AdminSendPayoutAPI):
    resend = True


class AdminSyncPayoutAPI(APIView):
    def post(self, request, payout_id: int):
        try:
            payout = RefreshPayoutStatusUseCase.execute(
                RefreshPayoutStatusCommand(payout_id=payout_id, actor=actor_from_request(request))
            )
        except DomainError as exc:
            return domain_error(exc)
        return success(data=PayoutSerializer(payout).data)


class PayoutWebhookAPI(APIView):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "webhooks"

    def post(self, request, provider_code: str):
        try:
            payout = HandlePayoutWebhookUseCase.execute(
                HandlePayoutWebhookCommand(provider_code=provider_code, headers=request.headers, body=request.body)
            )
        except DomainError as exc:
            return domain_error(exc)
        return success(data={"payout_id": payout.id, "status": payout.status})
