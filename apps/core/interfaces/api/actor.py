"""
Caller identity for API views.

Sessions and tokens are handled by the upstream gateway, which forwards the
authenticated identity as `X-Actor-Id` / `X-Actor-Role` headers.
"""

from __future__ import annotations

from apps.core.domain.actors import ActorContext, ActorRole, parse_role
from apps.core.domain.errors import PermissionDeniedError

ACTOR_ID_HEADER = "HTTP_X_ACTOR_ID"
ACTOR_ROLE_HEADER = "HTTP_X_ACTOR_ROLE"


def actor_from_request(request) -> ActorContext:
    actor_id = (request.META.get(ACTOR_ID_HEADER) or "").strip()
    if not actor_id:
        raise PermissionDeniedError("Missing actor identity.")
    role = parse_role(request.META.get(ACTOR_ROLE_HEADER))
    if role == ActorRole.SYSTEM:
        raise PermissionDeniedError("The system role cannot be used from the API.")
    return ActorContext(actor_id=actor_id, role=role)
