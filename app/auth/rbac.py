from typing import Iterable, Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status

from app.auth.dependencies import get_current_user
from app.auth.schemas import CurrentUser
from app.core.config import settings


def require_school_role(roles: Optional[Iterable[str]] = None):
    """
    Dependency factory: the caller must hold one of `roles` (default: TRANSITION_ALLOWED_ROLES)
    and belong to the school named by the `school_id` path parameter.

    Example:
        Depends(require_school_role())
    """

    async def _checker(
        school_id: UUID,
        current_user: CurrentUser = Depends(get_current_user),
    ) -> CurrentUser:
        allowed = tuple(roles) if roles is not None else tuple(settings.transition_allowed_roles)
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        if current_user.school_id != school_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not allowed to operate on this school",
            )
        return current_user

    return _checker

