from __future__ import annotations

from apps.core.domain.errors import InvalidTransitionError, NotFoundError, PermissionDeniedError


class ProNotFoundError(NotFoundError):
    def __init__(self, pro_profile_id):
        super().__init__(f"Pro profile not found: {pro_profile_id}")
        self.pro_profile_id = pro_profile_id


class ProStatusTransitionError(InvalidTransitionError):
    pass


class ProNotActiveError(PermissionDeniedError):
    pass
