from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from src.chatokay.domain.models.business import Business
from src.chatokay.domain.models.user import User, UserRole


class AuthStatus(str, Enum):
    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    ONBOARDING = "onboarding"
    AUTHENTICATED = "authenticated"


class _Pending:
    """Marker for a fact whose fetch has not completed yet."""

    _instance: Optional["_Pending"] = None

    def __new__(cls) -> "_Pending":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "PENDING"

    def __bool__(self) -> bool:
        return False


PENDING = _Pending()

UserFact = Union[User, None, _Pending]
BusinessFact = Union[Business, None, _Pending]


@dataclass(frozen=True)
class SessionFacts:
    """The three independently arriving inputs of the session model.

    ``signed_in`` is only meaningful once ``identity_ready`` is true. ``user``
    and ``business`` are PENDING while their fetch is outstanding and None
    when the fetch completed without a record.
    """

    identity_ready: bool = False
    signed_in: bool = False
    user: UserFact = PENDING
    business: BusinessFact = PENDING


def derive_role(facts: SessionFacts) -> Optional[UserRole]:
    """Return the resolved user's role, or None while unknown."""

    if facts.user is PENDING or facts.user is None:
        return None
    return UserRole.coerce(getattr(facts.user, "role", None))


def derive_auth_status(facts: SessionFacts) -> AuthStatus:
    """Compute the session phase from the current facts.

    Total over every combination of inputs and never raises. Anything that
    cannot be classified yet, including a resolved user with an unknown role,
    yields LOADING so that no caller ever redirects on a guess.
    """

    if not facts.identity_ready:
        return AuthStatus.LOADING

    if not facts.signed_in:
        return AuthStatus.UNAUTHENTICATED

    if facts.user is PENDING or facts.user is None:
        return AuthStatus.LOADING

    role = derive_role(facts)
    if role is None:
        return AuthStatus.LOADING

    # Staff accounts never own a business.
    if role.is_staff:
        return AuthStatus.AUTHENTICATED

    if facts.business is PENDING:
        return AuthStatus.LOADING
    if facts.business is None:
        return AuthStatus.ONBOARDING
    return AuthStatus.AUTHENTICATED
