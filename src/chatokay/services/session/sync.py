from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from src.chatokay.domain.models.user import UserRole
from src.chatokay.domain.session.context import SessionContext
from src.chatokay.domain.session.guards import Area, GuardAction, evaluate_guard
from src.chatokay.domain.session.status import AuthStatus
from src.chatokay.infra.db.registry import RepositoryRegistry, repositories


class SessionView(BaseModel):
    status: AuthStatus
    role: Optional[UserRole] = None
    area: Area
    action: GuardAction
    location: Optional[str] = None


class SessionSynchronizer:
    """Feeds a SessionContext from the identity subject and the stores.

    Each call writes the facts in the order they would arrive in a browser:
    identity handshake, then the profile, then the business. The business is
    only fetched for client users.
    """

    def __init__(self, context: SessionContext, registry: RepositoryRegistry = repositories) -> None:
        self.context = context
        self._registry = registry

    def sync(self, subject: Optional[str]) -> SessionContext:
        self.context.set_identity(ready=True, signed_in=subject is not None)
        if subject is None:
            self.context.set_user(None)
            self.context.set_business(None)
            return self.context

        user = self._registry.users.get_by_clerk_id(subject)
        self.context.set_user(user)
        if user is None:
            return self.context

        business = self._registry.businesses.get_by_owner(user.id) if user.role == UserRole.CLIENT else None
        self.context.set_business(business)
        return self.context


def resolve_session(
    subject: Optional[str],
    area: Area,
    registry: RepositoryRegistry = repositories,
) -> SessionView:
    """Resolve the session for ``subject`` and evaluate ``area``'s guard."""

    context = SessionSynchronizer(SessionContext(), registry).sync(subject)
    status = context.status
    role = context.role
    decision = evaluate_guard(area, status, role)
    return SessionView(
        status=status,
        role=role,
        area=area,
        action=decision.action,
        location=decision.location,
    )
