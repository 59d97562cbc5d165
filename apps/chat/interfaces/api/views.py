from __future__ import annotations

from rest_framework.views import APIView

from apps.chat.application.use_cases.is_chat_open import IsChatOpenCommand, IsChatOpenUseCase
from apps.core.domain.errors import DomainError
from apps.core.interfaces.api.actor import actor_from_request
from apps.core.interfaces.api.responses import domain_error, success


class OrderChatAvailabilityAPI(APIView):
    def get(self, request, order_id: int):
        try:
            availability = IsChatOpenUseCase.execute(
                IsChatOpenCommand(order_id=order_id, actor=actor_from_request(request))
            )
        except DomainError as exc:
            return domain_error(exc)
        return success(
            data={"order_id": availability.order_id, "status": availability.status, "is_open": availability.is_open}
        )
