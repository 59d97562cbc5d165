from __future__ import annotations

from rest_framework import status
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from apps.core.domain.errors import DomainError
from apps.core.interfaces.api.actor import actor_from_request
from apps.core.interfaces.api.responses import domain_error, invalid_input, success
from apps.payments.application.facade import PaymentGatewayFacade
from apps.payments.application.use_cases.capture_order import CaptureOrderCommand, CaptureOrderUseCase
from apps.payments.application.use_cases.create_preauth import CreatePreauthCommand, CreatePreauthUseCase
from apps.payments.application.use_cases.handle_webhook_event import (
    HandleWebhookEventCommand,
    HandleWebhookEventUseCase,
)
from apps.payments.application.use_cases.refresh_payment_status import (
    RefreshPaymentStatusCommand,
    RefreshPaymentStatusUseCase,
)
from apps.payments.application.use_cases.refund_payment import RefundPaymentCommand, RefundPaymentUseCase
from apps.payments.interfaces.api.serializers import PaymentSerializer, RefundSerializer


class PaymentProvidersAPI(APIView):
    def get(self, request):
        return success(data={"items": PaymentGatewayFacade.available_providers()})


class CreatePreauthAPI(APIView):
    def post(self, request, order_id: int):
        try:
            result = CreatePreauthUseCase.execute(
                CreatePreauthCommand(order_id=order_id, actor=actor_from_request(request))
            )
        except DomainError as exc:
            return domain_error(exc)
        return success(
            data={"payment_id": result.payment_id, "checkout_url": result.checkout_url, "status": result.status},
            http_status=status.HTTP_201_CREATED,
        )


class AdminCaptureOrderAPI(APIView):
    def post(self, request, order_id: int):
        try:
            payment = CaptureOrderUseCase.execute(
                CaptureOrderCommand(order_id=order_id, actor=actor_from_request(request))
            )
        except DomainError as exc:
            return domain_error(exc)
        return success(data=PaymentSerializer(payment).data)


class AdminSyncPaymentAPI(APIView):
    def post(self, request, payment_id: int):
        try:
            payment = RefreshPaymentStatusUseCase.execute(
                RefreshPaymentStatusCommand(payment_id=payment_id, actor=actor_from_request(request))
            )
        except DomainError as exc:
            return domain_error(exc)
        return success(data=PaymentSerializer(payment).data)


class AdminRefundPaymentAPI(APIView):
    def post(self, request, payment_id: int):
        serializer = RefundSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input(serializer)
        try:
            payment = RefundPaymentUseCase.execute(
                RefundPaymentCommand(
                    payment_id=payment_id,
                    actor=actor_from_request(request),
                    reason=serializer.validated_data["reason"],
                )
            )
        except DomainError as exc:
            return domain_error(exc)
        return success(data=PaymentSerializer(payment).data)


class PaymentWebhookAPI(APIView):
    """Unauthenticated; the provider signature over the raw body is the credential."""

    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "webhooks"

    def post(self, request, provider_code: str):
        try:
            payment = HandleWebhookEventUseCase.execute(
                HandleWebhookEventCommand(provider_code=provider_code, headers=request.headers, body=request.body)
            )
        except DomainError as exc:
            return domain_error(exc)
        return success(data={"payment_id": payment.id, "status": payment.status})
