from __future__ import annotations

from contextvars import ContextVar
from typing import Callable, Optional

from fastapi import Depends, HTTPException, Request, status

from src.chatokay.config import settings
from src.chatokay.domain.models.user import User, UserRole
from src.chatokay.services.users.service import user_sync_service

# Context variable storing the identity subject (Clerk user id) for the
# in-flight request, so downstream consumers such as the audit logger can
# attribute events without threading the value through every call.
_current_subject: ContextVar[Optional[str]] = ContextVar("current_subject", default=None)


def get_current_subject() -> Optional[str]:
    """Return the identity subject of the current request, if any."""

    return _current_subject.get()


def read_identity_subject(request: Request) -> Optional[str]:
    """Return the verified identity subject forwarded by the auth gateway.

    Session tokens are verified upstream by the identity provider's
    middleware; the API only sees the resulting subject in
    ``settings.identity_header``. Blank values count as anonymous.
    """

    value = request.headers.get(settings.identity_header)
    if value is None or not value.strip():
        return None
    return value.strip()


async def get_identity_subject(request: Request) -> Optional[str]:
    """FastAPI dependency establishing the identity context for a request."""

    subject = read_identity_subject(request)
    _current_subject.set(subject)
    return subject


async def get_current_user(subject: Optional[str] = Depends(get_identity_subject)) -> User:
    """Resolve the User record for the signed-in caller.

    - No identity: 401.
    - Identity without a synced profile yet (the identity webhook has not
      been processed): 404, the client keeps polling.
    """

    if subject is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    user = user_sync_service.get_by_clerk_id(subject)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User profile not found",
        )
    return user


def ensure_role(user: User, *allowed: UserRole) -> None:
    """Raise HTTP 403 unless ``user`` holds one of the ``allowed`` roles."""

    if user.role in allowed:
        return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=f"Unauthorized. Required role: {' or '.join(r.value for r in allowed)}",
    )


def require_role(*allowed: UserRole) -> Callable[..., object]:
    """Build a dependency returning the current user if their role is allowed."""

    async def _dependency(user: User = Depends(get_current_user)) -> User:
        ensure_role(user, *allowed)
        return user

    return _dependency


require_admin = require_role(UserRole.ADMIN)
require_admin_or_sales = require_role(UserRole.ADMIN, UserRole.SALES)
