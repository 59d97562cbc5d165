from __future__ import annotations

from rest_framework import status
from rest_framework.response import Response

from apps.core.domain.errors import (
    ConflictError,
    DomainError,
    InvalidTransitionError,
    NotFoundError,
    PermanentProviderError,
    PermissionDeniedError,
    RetryableProviderError,
    ValidationError,
)

_STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (RetryableProviderError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (PermanentProviderError, status.HTTP_502_BAD_GATEWAY),
)


def success(*, data: dict, http_status: int = status.HTTP_200_OK) -> Response:
    return Response({"success": True, "data": data}, status=http_status)


def error(*, message: str, code: str, field: str | None = None, http_status: int = 400, **extra) -> Response:
    payload: dict = {"success": False, "data": {}, "error": {"message": message, "code": code}}
    if field:
        payload["error"]["field"] = field
    payload["error"].update(extra)
    return Response(payload, status=http_status)


def domain_error(exc: DomainError) -> Response:
    http_status = status.HTTP_400_BAD_REQUEST
    for error_cls, mapped in _STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            http_status = mapped
            break

    extra: dict = {}
    if isinstance(exc, (ConflictError, InvalidTransitionError)) and getattr(exc, "current_status", None):
        extra["current_status"] = exc.current_status
    if isinstance(exc, RetryableProviderError):
        extra["retryable"] = True
    return error(
        message=str(exc),
        code=exc.code,
        field=getattr(exc, "field", None),
        http_status=http_status,
        **extra,
    )


def invalid_input(serializer) -> Response:
    field = next(iter(serializer.errors), None)
    return error(message="Invalid input.", code="validation_error", field=field, http_status=status.HTTP_400_BAD_REQUEST)
