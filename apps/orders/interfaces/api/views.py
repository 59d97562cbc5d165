from __future__ import annotations

from rest_framework import status
from rest_framework.views import APIView

from apps.audit.models import AuditLog
from apps.core.domain.errors import DomainError
from apps.core.interfaces.api.actor import actor_from_request
from apps.core.interfaces.api.responses import domain_error, invalid_input, success
from apps.orders.application.services.order_access import OrderAccess
from apps.orders.application.use_cases.apply_transition import (
    ApplyOrderTransitionCommand,
    ApplyOrderTransitionUseCase,
)
from apps.orders.application.use_cases.approve_hours import ApproveHoursCommand, ApproveHoursUseCase
from apps.orders.application.use_cases.cancel_order import CancelOrderCommand, CancelOrderUseCase
from apps.orders.application.use_cases.create_order import CreateOrderCommand, CreateOrderUseCase
from apps.orders.application.use_cases.force_order_status import (
    ForceOrderStatusCommand,
    ForceOrderStatusUseCase,
)
from apps.orders.application.use_cases.order_actions import (
    AcceptOrderUseCase,
    DisputeOrderCommand,
    DisputeOrderUseCase,
    MarkArrivedUseCase,
    OrderActionCommand,
    RejectOrderUseCase,
    StartOrderUseCase,
    SubmitHoursCommand,
    SubmitHoursUseCase,
    SubmitOrderUseCase,
)
from apps.orders.domain.state_machine import OrderStateMachine
from apps.orders.interfaces.api.serializers import (
    CancelOrderSerializer,
    CreateOrderSerializer,
    ExpectedStatusSerializer,
    ForceStatusSerializer,
    OrderSerializer,
    ReasonSerializer,
    SubmitHoursSerializer,
    TransitionOrderSerializer,
)


def _order_payload(order) -> dict:
    return OrderSerializer(order).data


class OrderCreateAPI(APIView):
    def post(self, request):
        serializer = CreateOrderSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input(serializer)
        try:
            order = CreateOrderUseCase.execute(
                CreateOrderCommand(actor=actor_from_request(request), **serializer.validated_data)
            )
        except DomainError as exc:
            return domain_error(exc)
        return success(data=_order_payload(order), http_status=status.HTTP_201_CREATED)


class OrderDetailAPI(APIView):
    def get(self, request, order_id: int):
        try:
            actor = actor_from_request(request)
            order = OrderAccess.get_order(order_id)
            OrderAccess.ensure_party(actor, order, "view the order")
        except DomainError as exc:
            return domain_error(exc)
        data = _order_payload(order)
        data["allowed_targets"] = [target.value for target in OrderStateMachine.allowed_targets(order.order_status, actor.role)]
        return success(data=data)


class OrderTransitionAPI(APIView):
    def post(self, request, order_id: int):
        serializer = TransitionOrderSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input(serializer)
        try:
            order = ApplyOrderTransitionUseCase.execute(
                ApplyOrderTransitionCommand(order_id=order_id, actor=actor_from_request(request), **serializer.validated_data)
            )
        except DomainError as exc:
            return domain_error(exc)
        return success(data=_order_payload(order))


class OrderActionAPI(APIView):
    """Body-less actions: only an optional `expected_status`."""

    use_case = None

    def post(self, request, order_id: int):
        serializer = ExpectedStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input(serializer)
        try:
            order = self.use_case.execute(
                OrderActionCommand(
                    order_id=order_id,
                    actor=actor_from_request(request),
                    expected_status=serializer.validated_data["expected_status"],
                )
            )
        except DomainError as exc:
            return domain_error(exc)
        return success(data=_order_payload(order))


class SubmitOrderAPI(OrderActionAPI):
    use_case = SubmitOrderUseCase


class AcceptOrderAPI(OrderActionAPI):
    use_case = AcceptOrderUseCase


class RejectOrderAPI(OrderActionAPI):
    use_case = RejectOrderUseCase


class StartOrderAPI(OrderActionAPI):
    use_case = StartOrderUseCase


class MarkArrivedAPI(OrderActionAPI):
    use_case = MarkArrivedUseCase


class SubmitHoursAPI(APIView):
    def post(self, request, order_id: int):
        serializer = SubmitHoursSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input(serializer)
        try:
            order = SubmitHoursUseCase.execute(
                SubmitHoursCommand(order_id=order_id, actor=actor_from_request(request), **serializer.validated_data)
            )
        except DomainError as exc:
            return domain_error(exc)
        return success(data=_order_payload(order))


class ApproveHoursAPI(APIView):
    def post(self, request, order_id: int):
        serializer = ExpectedStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input(serializer)
        try:
            result = ApproveHoursUseCase.execute(
                ApproveHoursCommand(order_id=order_id, actor=actor_from_request(request), **serializer.validated_data)
            )
        except DomainError as exc:
            return domain_error(exc)
        data = _order_payload(result.order)
        data["capture_pending"] = result.capture_error is not None
        return success(data=data)


class CancelOrderAPI(APIView):
    def post(self, request, order_id: int):
        serializer = CancelOrderSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input(serializer)
        try:
            order = CancelOrderUseCase.execute(
                CancelOrderCommand(order_id=order_id, actor=actor_from_request(request), **serializer.validated_data)
            )
        except DomainError as exc:
            return domain_error(exc)
        return success(data=_order_payload(order))


class DisputeOrderAPI(APIView):
    def post(self, request, order_id: int):
        serializer = ReasonSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input(serializer)
        try:
            order = DisputeOrderUseCase.execute(
                DisputeOrderCommand(order_id=order_id, actor=actor_from_request(request), **serializer.validated_data)
            )
        except DomainError as exc:
            return domain_error(exc)
        return success(data=_order_payload(order))


class AdminForceOrderStatusAPI(APIView):
    def post(self, request, order_id: int):
        serializer = ForceStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input(serializer)
        try:
            order = ForceOrderStatusUseCase.execute(
                ForceOrderStatusCommand(order_id=order_id, actor=actor_from_request(request), **serializer.validated_data)
            )
        except DomainError as exc:
            return domain_error(exc)
        return success(data=_order_payload(order))


class AdminOrderAuditAPI(APIView):
    def get(self, request, order_id: int):
        try:
            actor_from_request(request).require_admin("read the audit trail")
            OrderAccess.get_order(order_id)
        except DomainError as exc:
            return domain_error(exc)
        entries = AuditLog.objects.for_resource("order", order_id)
        return success(
            data={
                "items": [
                    {
                        "id": entry.id,
                        "event_type": entry.event_type,
                        "actor_id": entry.actor_id,
                        "actor_role": entry.actor_role,
                        "action": entry.action,
                        "metadata": entry.metadata,
                        "created_at": entry.created_at.isoformat(),
                    }
                    for entry in entries
                ]
            }
        )
