from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, FrozenSet, Optional, TypeVar

from src.chatokay.domain.models.user import UserRole
from src.chatokay.domain.session.context import SessionContext
from src.chatokay.domain.session.status import AuthStatus

ONBOARDING_PATH = "/onboarding"
PUBLIC_SIGN_IN_PATH = "/sign-in"
INTERNAL_SIGN_IN_PATH = "/internal/sign-in"


class Area(str, Enum):
    ADMIN = "admin"
    # The sales team's area, served under /comercial.
    SALES = "sales"
    CLIENT = "client"


_AREA_ROLES: Dict[Area, FrozenSet[UserRole]] = {
    Area.ADMIN: frozenset({UserRole.ADMIN}),
    Area.SALES: frozenset({UserRole.SALES, UserRole.ADMIN}),
    Area.CLIENT: frozenset({UserRole.CLIENT}),
}

_AREA_SIGN_IN: Dict[Area, str] = {
    Area.ADMIN: INTERNAL_SIGN_IN_PATH,
    Area.SALES: INTERNAL_SIGN_IN_PATH,
    Area.CLIENT: PUBLIC_SIGN_IN_PATH,
}

_ROLE_HOME: Dict[UserRole, str] = {
    UserRole.ADMIN: "/admin",
    UserRole.SALES: "/comercial",
    UserRole.CLIENT: "/dashboard",
}


class GuardAction(str, Enum):
    LOADING = "loading"
    REDIRECT = "redirect"
    RENDER = "render"


@dataclass(frozen=True)
class GuardDecision:
    action: GuardAction
    location: Optional[str] = None

    @classmethod
    def loading(cls) -> "GuardDecision":
        return cls(GuardAction.LOADING)

    @classmethod
    def redirect(cls, location: str) -> "GuardDecision":
        return cls(GuardAction.REDIRECT, location)

    @classmethod
    def render(cls) -> "GuardDecision":
        return cls(GuardAction.RENDER)


def default_path_for_role(role: UserRole) -> str:
    return _ROLE_HOME[role]


def allowed_roles(area: Area) -> FrozenSet[UserRole]:
    return _AREA_ROLES[area]


def evaluate_guard(area: Area, status: AuthStatus, role: Optional[UserRole]) -> GuardDecision:
    """Decide what a protected area does for the given session state.

    Every area goes through this one function so the redirect table cannot
    drift between layouts.
    """

    if status == AuthStatus.LOADING:
        return GuardDecision.loading()

    if status == AuthStatus.UNAUTHENTICATED:
        return GuardDecision.redirect(_AREA_SIGN_IN[area])

    if status == AuthStatus.ONBOARDING:
        return GuardDecision.redirect(ONBOARDING_PATH)

    # AUTHENTICATED always carries a known role.
    if role is None:
        return GuardDecision.loading()

    if role not in _AREA_ROLES[area]:
        return GuardDecision.redirect(default_path_for_role(role))

    return GuardDecision.render()


def has_access_to_route(role: Optional[UserRole], path: str) -> bool:
    """Return True if ``role`` may open ``path``; unguarded paths are open."""

    if path.startswith("/admin"):
        return role == UserRole.ADMIN
    if path.startswith("/comercial"):
        return role in (UserRole.SALES, UserRole.ADMIN)
    if path.startswith("/dashboard"):
        return role == UserRole.CLIENT
    return True


T = TypeVar("T")


class AreaGuard:
    """Layout guard for one protected area bound to a session context.

    Re-evaluates on every fact change and hands redirect locations to
    ``navigate``. Repeated identical redirects are not re-issued.
    """

    def __init__(
        self,
        area: Area,
        context: SessionContext,
        navigate: Callable[[str], None],
    ) -> None:
        self.area = area
        self._context = context
        self._navigate = navigate
        self._last_redirect: Optional[str] = None
        self._unsubscribe = context.subscribe(self._on_change)
        self._on_change(context)

    @property
    def decision(self) -> GuardDecision:
        """The decision for the facts as they are right now."""

        return evaluate_guard(self.area, self._context.status, self._context.role)

    def render(self, content: T) -> Optional[T]:
        """Return ``content`` only if the area may be shown at this moment."""

        if self.decision.action == GuardAction.RENDER:
            return content
        return None

    def close(self) -> None:
        self._unsubscribe()

    def _on_change(self, context: SessionContext) -> None:
        decision = self.decision
        if decision.action != GuardAction.REDIRECT:
            self._last_redirect = None
            return
        if decision.location == self._last_redirect:
            return
        self._last_redirect = decision.location
        self._navigate(decision.location)  # type: ignore[arg-type]
