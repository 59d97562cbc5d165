from __future__ import annotations


class DomainError(ValueError):
    code = "domain_error"

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.field = field


class ValidationError(DomainError):
    code = "validation_error"


class NotFoundError(DomainError):
    code = "not_found"


class PermissionDeniedError(DomainError):
    code = "permission_denied"


class ConflictError(DomainError):
    """The caller's view of the resource is stale; refetch and retry."""

    code = "conflict"

    def __init__(self, message: str, *, current_status: str | None = None, field: str | None = None):
        super().__init__(message, field=field)
        self.current_status = current_status


class InvalidTransitionError(DomainError):
    code = "invalid_transition"

    def __init__(self, current_status: str, target_status: str, *, message: str | None = None):
        super().__init__(message or f"Cannot transition from {current_status} to {target_status}.")
        self.current_status = current_status
        self.target_status = target_status


class ProviderError(DomainError):
    code = "provider_error"
    retryable = False

    def __init__(self, message: str, *, provider: str = "", field: str | None = None):
        super().__init__(message, field=field)
        self.provider = provider


class RetryableProviderError(ProviderError):
    """Transient or ambiguous gateway failure; safe to retry with backoff."""

    code = "provider_unavailable"
    retryable = True


class PermanentProviderError(ProviderError):
    """The gateway rejected the operation; needs manual admin resolution."""

    code = "provider_rejected"
