from __future__ import annotations

from apps.core.domain.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)


class PayoutNotFoundError(NotFoundError):
    pass


class PayoutStateError(InvalidTransitionError):
    def __init__(self, current_status: str, target_status: str):
        super().__init__(
            current_status,
            target_status,
            message=f"Payout cannot move from {current_status} to {target_status}.",
        )


class PayoutConflictError(ConflictError):
    pass


class NoPayableEarningsError(ConflictError):
    code = "nothing_to_pay"


class PayoutProfileIncompleteError(ValidationError):
    def __init__(self, pro_profile_id):
        super().__init__(
            f"Pro profile {pro_profile_id} has no complete payout destination.", field="payout_profile"
        )


class UnknownPayoutProviderError(ValidationError):
    def __init__(self, provider_code: str):
        super().__init__(f"Unknown payout provider: {provider_code}", field="provider")


class PayoutWebhookSignatureError(PermissionDeniedError):
    code = "invalid_signature"


class PayoutWebhookPayloadError(ValidationError):
    pass
