from __future__ import annotations

from rest_framework.views import APIView

from apps.core.domain.errors import DomainError
from apps.core.interfaces.api.actor import actor_from_request
from apps.core.interfaces.api.responses import domain_error, invalid_input, success
from apps.pros.application.use_cases.moderate_pro import ModerateProCommand, ModerateProUseCase
from apps.pros.interfaces.api.serializers import ModerateProSerializer


class ModerateProAPI(APIView):
    action_name = ""

    def post(self, request, pro_profile_id: int):
        serializer = ModerateProSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input(serializer)
        try:
            pro = ModerateProUseCase.execute(
                ModerateProCommand(
                    actor=actor_from_request(request),
                    pro_profile_id=pro_profile_id,
                    action=self.action_name,
                    reason=serializer.validated_data["reason"],
                )
            )
        except DomainError as exc:
            return domain_error(exc)
        return success(data={"id": pro.id, "status": pro.status})


class ApproveProAPI(ModerateProAPI):
    action_name = "approve"


class SuspendProAPI(ModerateProAPI):
    action_name = "suspend"


class UnsuspendProAPI(ModerateProAPI):
    action_name = "unsuspend"
