from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from .errors import PermissionDeniedError, ValidationError


class ActorRole(StrEnum):
    CLIENT = "client"
    PRO = "pro"
    ADMIN = "admin"
    SYSTEM = "system"


SYSTEM_ACTOR_ID = "system"


def parse_role(raw: str | None) -> ActorRole:
    value = (raw or "").strip().lower()
    try:
        return ActorRole(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown actor role: {raw!r}.", field="actor_role") from exc


@dataclass(frozen=True)
class ActorContext:
    actor_id: str
    role: ActorRole

    @classmethod
    def system(cls) -> "ActorContext":
        return cls(actor_id=SYSTEM_ACTOR_ID, role=ActorRole.SYSTEM)

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN

    def require_admin(self, action: str) -> None:
        if not self.is_admin:
            raise PermissionDeniedError(f"Only admins can {action}.")
