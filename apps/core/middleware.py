"""
Request correlation and timing.

Every response carries `X-Request-Id` (the caller's value when provided) and
`X-Response-Time-ms`; API requests are logged to `arreglatodo.request`.
"""

from __future__ import annotations

import logging
import time
import uuid

logger = logging.getLogger("arreglatodo.request")

REQUEST_ID_HEADER = "X-Request-Id"


class RequestContextMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request_id = (request.META.get("HTTP_X_REQUEST_ID") or "").strip()[:64] or str(uuid.uuid4())
        request.request_id = request_id
        started = time.monotonic()

        response = self.get_response(request)

        elapsed_ms = int((time.monotonic() - started) * 1000)
        response[REQUEST_ID_HEADER] = request_id
        response["X-Response-Time-ms"] = str(elapsed_ms)
        if request.path.startswith("/api/"):
            logger.info(
                "request_completed",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.path,
                    "status_code": response.status_code,
                    "duration_ms": elapsed_ms,
                    "actor_id": request.META.get("HTTP_X_ACTOR_ID", ""),
                },
            )
        return response
