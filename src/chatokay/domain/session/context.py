from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, List, Optional

from src.chatokay.domain.models.user import UserRole
from src.chatokay.domain.session.status import (
    PENDING,
    AuthStatus,
    BusinessFact,
    SessionFacts,
    UserFact,
    derive_auth_status,
    derive_role,
)

logger = logging.getLogger("session")

Listener = Callable[["SessionContext"], None]


class SessionContext:
    """Injectable holder of the session facts for one signed-in browser/request.

    Each fact has exactly one writer (the identity handshake, the profile
    fetch, the business fetch). ``status`` and ``role`` are derived from the
    current facts on every read; nothing derived is stored.
    """

    def __init__(self, facts: Optional[SessionFacts] = None) -> None:
        self._facts = facts or SessionFacts()
        self._listeners: List[Listener] = []

    @property
    def status(self) -> AuthStatus:
        return derive_auth_status(self._facts)

    @property
    def role(self) -> Optional[UserRole]:
        return derive_role(self._facts)

    def snapshot(self) -> SessionFacts:
        return self._facts

    def set_identity(self, *, ready: bool, signed_in: bool) -> None:
        self._update(identity_ready=ready, signed_in=signed_in)

    def set_user(self, user: UserFact) -> None:
        self._update(user=user)

    def set_business(self, business: BusinessFact) -> None:
        self._update(business=business)

    def reset_records(self) -> None:
        """Mark both records as pending again, e.g. after the identity changes."""

        self._update(user=PENDING, business=PENDING)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` to run after every fact change.

        Returns a callable that removes the listener.
        """

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _update(self, **changes) -> None:
        self._facts = replace(self._facts, **changes)
        # Copy so listeners may unsubscribe while being notified.
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Session listener failed")
