from __future__ import annotations

from dataclasses import dataclass

from django.db import transaction
from django.utils import timezone

from apps.audit.domain.events import AuditEventType
from apps.audit.services.audit_service import AuditService
from apps.core.domain.actors import ActorContext
from apps.pros.domain.errors import ProNotFoundError, ProStatusTransitionError
from apps.pros.models import ProProfile

# action -> (allowed source statuses, target status, audit event)
_MODERATION_RULES: dict[str, tuple[frozenset[str], str, AuditEventType]] = {
    "approve": (
        frozenset({ProProfile.STATUS_PENDING}),
        ProProfile.STATUS_APPROVED,
        AuditEventType.PRO_APPROVED,
    ),
    "suspend": (
        frozenset({ProProfile.STATUS_PENDING, ProProfile.STATUS_APPROVED}),
        ProProfile.STATUS_SUSPENDED,
        AuditEventType.PRO_SUSPENDED,
    ),
    "unsuspend": (
        frozenset({ProProfile.STATUS_SUSPENDED}),
        ProProfile.STATUS_APPROVED,
        AuditEventType.PRO_UNSUSPENDED,
    ),
}


@dataclass(frozen=True)
class ModerateProCommand:
    actor: ActorContext
    pro_profile_id: int
    action: str
    reason: str = ""


class ModerateProUseCase:
    @staticmethod
    def execute(cmd: ModerateProCommand) -> ProProfile:
        cmd.actor.require_admin(f"{cmd.action} professionals")
        if cmd.action not in _MODERATION_RULES:
            raise ValueError(f"Unknown moderation action: {cmd.action}")
        sources, target, event_type = _MODERATION_RULES[cmd.action]

        with transaction.atomic():
            pro = ProProfile.objects.select_for_update().filter(id=cmd.pro_profile_id).first()
            if pro is None:
                raise ProNotFoundError(cmd.pro_profile_id)
            if pro.status not in sources:
                raise ProStatusTransitionError(pro.status, target)

            previous_status = pro.status
            now = timezone.now()
            pro.status = target
            update_fields = ["status", "updated_at"]
            if target == ProProfile.STATUS_APPROVED and pro.approved_at is None:
                pro.approved_at = now
                update_fields.append("approved_at")
            if target == ProProfile.STATUS_SUSPENDED:
                pro.suspended_at = now
                update_fields.append("suspended_at")
            pro.save(update_fields=update_fields)

            AuditService.record(
                event_type=event_type,
                actor=cmd.actor,
                resource_type="pro_profile",
                resource_id=pro.id,
                action=cmd.action,
                metadata={"previousStatus": previous_status, "newStatus": target, "reason": cmd.reason},
            )
        return pro
