# This project was developed with assistance from AI tools.
"""
Request identity for route-level auth.

Identity arrives from the upstream gateway as two headers: ``X-User-Id`` and
``X-User-Role``. This module only trusts and checks them; it never issues or
verifies credentials itself.

Set AUTH_DISABLED=true to bypass the headers (tests / local dev).
"""

import logging
from typing import Annotated

from db.enums import UserRole
from fastapi import Depends, HTTPException, Request, status

from ..core.config import settings
from ..schemas.auth import UserContext

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-Id"
USER_ROLE_HEADER = "X-User-Role"

_DISABLED_USER = UserContext(user_id="dev-user", role=UserRole.ADMIN)


def _resolve_role(raw: str | None) -> UserRole:
    try:
        return UserRole((raw or "").strip().lower())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No recognized role assigned",
        ) from None


async def get_current_user(request: Request) -> UserContext:
    """FastAPI dependency: read identity headers and return UserContext."""
    if settings.AUTH_DISABLED:
        return _DISABLED_USER

    user_id = (request.headers.get(USER_ID_HEADER) or "").strip()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing user identity",
        )
    return UserContext(user_id=user_id, role=_resolve_role(request.headers.get(USER_ROLE_HEADER)))


# Type alias for use in route signatures
CurrentUser = Annotated[UserContext, Depends(get_current_user)]


def require_roles(*allowed_roles: UserRole):
    """Dependency factory: restrict a route to specific roles.

    Usage:
        @router.put("/settings", dependencies=[Depends(require_roles(UserRole.ADMIN))])
    """

    async def _check(user: CurrentUser) -> UserContext:
        if user.role not in allowed_roles:
            logger.warning(
                "RBAC denied: user=%s role=%s attempted route requiring %s",
                user.user_id,
                user.role.value,
                [r.value for r in allowed_roles],
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return _check
