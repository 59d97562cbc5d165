from __future__ import annotations

from apps.core.domain.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)


class PaymentNotFoundError(NotFoundError):
    pass


class PaymentValidationError(ValidationError):
    pass


class PaymentStateError(InvalidTransitionError):
    def __init__(self, current_status: str, target_status: str, *, message: str | None = None):
        super().__init__(
            current_status,
            target_status,
            message=message or f"Payment cannot move from {current_status} to {target_status}.",
        )


class PaymentConflictError(ConflictError):
    pass


class UnknownPaymentProviderError(ValidationError):
    def __init__(self, provider_code: str):
        super().__init__(f"Unknown payment provider: {provider_code}", field="provider")


class WebhookSignatureError(PermissionDeniedError):
    code = "invalid_signature"


class WebhookPayloadError(ValidationError):
    pass
