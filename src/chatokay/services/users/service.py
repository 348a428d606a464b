from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass
from typing import Optional
from uuid import UUID, uuid4

from src.chatokay.domain.models.user import IdentityEvent, User, UserRole
from src.chatokay.infra.db.registry import RepositoryRegistry, repositories
from src.chatokay.services.audit.service import audit_service
from src.chatokay.services.scheduler.service import JobScheduler
from src.chatokay.services.subscriptions.service import SubscriptionService, subscription_service

logger = logging.getLogger("users")

REFERRAL_CODE_ALPHABET = string.ascii_uppercase + string.digits
REFERRAL_CODE_LENGTH = 8


class RoleNotAllowedError(Exception):
    """Raised when an operation is not available for the user's role."""


@dataclass
class SyncResult:
    user: User
    created: bool
    trial_scheduled: bool = False


class UserSyncService:
    """Reconciles identity-provider user events into User records.

    Upserts are keyed by the identity provider's user id. Email and name
    follow the provider; role, country and referral linkage are
    first-write-wins so replays and later updates never overwrite them.
    """

    def __init__(
        self,
        registry: RepositoryRegistry = repositories,
        subscriptions: SubscriptionService = subscription_service,
    ) -> None:
        self._registry = registry
        self._subscriptions = subscriptions

    def get_by_clerk_id(self, clerk_id: str) -> Optional[User]:
        return self._registry.users.get_by_clerk_id(clerk_id)

    def resolve_referral(self, referral_code: Optional[str]) -> Optional[UUID]:
        """Return the id of the sales/admin user who issued ``referral_code``.

        Unknown codes and codes belonging to any other role resolve to None.
        """

        if not referral_code:
            return None

        issuer = self._registry.users.get_by_referral_code(referral_code)
        if issuer is not None and issuer.role is not None and issuer.role.is_staff:
            return issuer.id

        logger.warning("Ignoring invalid referral code %r", referral_code)
        return None

    def sync_user(self, event: IdentityEvent, scheduler: JobScheduler) -> SyncResult:
        referral_id = self.resolve_referral(event.referral_code)

        existing = self._registry.users.get_by_clerk_id(event.clerk_id)
        if existing is not None:
            updates = {"email": event.email, "name": event.name}
            if event.country and not existing.country:
                updates["country"] = event.country
            if event.role and existing.role is None:
                updates["role"] = event.role
            if referral_id and existing.referral_id is None:
                updates["referral_id"] = referral_id

            user = existing.model_copy(update=updates)
            self._registry.users.save(user)
            logger.info("Updated user %s", user.id)

            audit_service.log_event(
                action="sync_user",
                resource_type="user",
                resource_id=str(user.id),
                subject="clerk",
                extra={"created": False, "fields": sorted(updates)},
            )
            return SyncResult(user=user, created=False)

        user = User(
            id=uuid4(),
            clerk_id=event.clerk_id,
            email=event.email,
            name=event.name,
            role=event.role or UserRole.CLIENT,
            country=event.country,
            referral_id=referral_id,
        )
        self._registry.users.save(user)
        logger.info("Created user %s with role %s", user.id, user.role.value)

        trial_scheduled = False
        if user.role == UserRole.CLIENT:
            scheduler.run_after(0, self._subscriptions.create_trial_subscription, user.id)
            trial_scheduled = True

        audit_service.log_event(
            action="sync_user",
            resource_type="user",
            resource_id=str(user.id),
            subject="clerk",
            extra={
                "created": True,
                "role": user.role.value,
                "referred": referral_id is not None,
                "trial_scheduled": trial_scheduled,
            },
        )
        return SyncResult(user=user, created=True, trial_scheduled=trial_scheduled)

    def set_country_if_unset(self, user: User, country: str) -> User:
        """Record a best-effort detected country; an existing value is kept."""

        current = self._registry.users.get(user.id) or user
        if current.country:
            return current
        updated = current.model_copy(update={"country": country.upper()})
        self._registry.users.save(updated)
        return updated

    def issue_referral_code(self, user: User) -> User:
        """Give a sales/admin user a referral code, keeping an existing one."""

        if user.role is None or not user.role.is_staff:
            raise RoleNotAllowedError("Only sales and admin users can hold referral codes")

        current = self._registry.users.get(user.id) or user
        if current.referral_code:
            return current

        code = self._generate_referral_code()
        updated = current.model_copy(update={"referral_code": code})
        self._registry.users.save(updated)

        audit_service.log_event(
            action="issue_referral_code",
            resource_type="user",
            resource_id=str(updated.id),
        )
        return updated

    def _generate_referral_code(self) -> str:
        while True:
            code = "".join(secrets.choice(REFERRAL_CODE_ALPHABET) for _ in range(REFERRAL_CODE_LENGTH))
            if self._registry.users.get_by_referral_code(code) is None:
                return code


user_sync_service = UserSyncService()
