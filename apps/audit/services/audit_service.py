from __future__ import annotations

import logging

from apps.audit.domain.events import AuditEventType
from apps.audit.models import AuditLog
from apps.core.domain.actors import ActorContext

logger = logging.getLogger("arreglatodo.audit")


class AuditService:
    @staticmethod
    def record(
        *,
        event_type: AuditEventType,
        actor: ActorContext,
        resource_type: str,
        resource_id,
        action: str,
        metadata: dict | None = None,
    ) -> AuditLog:
        entry = AuditLog.objects.create(
            event_type=event_type.value,
            actor_id=actor.actor_id,
            actor_role=actor.role.value,
            resource_type=resource_type,
            resource_id=str(resource_id),
            action=action,
            metadata=metadata or {},
        )
        logger.info(
            "audit_recorded",
            extra={
                "event_type": entry.event_type,
                "actor_id": entry.actor_id,
                "actor_role": entry.actor_role,
                "resource_type": resource_type,
                "resource_id": entry.resource_id,
                "action": action,
            },
        )
        return entry

    @staticmethod
    def for_resource(*, resource_type: str, resource_id) -> list[AuditLog]:
        return list(AuditLog.objects.for_resource(resource_type, resource_id))
