from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel

from src.chatokay.config import settings
from src.chatokay.domain.models.subscription import PlanType, Subscription, SubscriptionStatus
from src.chatokay.domain.models.user import User
from src.chatokay.infra.db.registry import RepositoryRegistry, repositories
from src.chatokay.services.audit.service import audit_service

logger = logging.getLogger("billing")


class SubscriberSummary(BaseModel):
    id: UUID
    name: Optional[str] = None
    email: str

    @classmethod
    def from_user(cls, user: User) -> "SubscriberSummary":
        return cls(id=user.id, name=user.name, email=user.email)


class SubscriptionOverview(BaseModel):
    """A user with their subscription, as listed in the admin and sales areas."""

    user: SubscriberSummary
    # None for referred clients who never started a subscription.
    subscription: Optional[Subscription] = None
    active: bool = False


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def is_subscription_active(subscription: Optional[Subscription], now: Optional[datetime] = None) -> bool:
    """True for an unexpired trial or a paid period that has not ended.

    Past-due, canceled and expired subscriptions are inactive.
    """

    if subscription is None:
        return False
    now = now or datetime.now(timezone.utc)

    if subscription.status == SubscriptionStatus.TRIAL:
        return subscription.trial_end_date is not None and _as_utc(subscription.trial_end_date) > now

    if subscription.status == SubscriptionStatus.ACTIVE:
        if subscription.current_period_end is None:
            return True
        return _as_utc(subscription.current_period_end) > now

    return False


class SubscriptionService:
    """Local mirror of each user's subscription (one per user)."""

    def __init__(self, registry: RepositoryRegistry = repositories) -> None:
        self._registry = registry

    def get_for_user(self, user_id: UUID) -> Optional[Subscription]:
        return self._registry.subscriptions.get_by_user(user_id)

    def get_by_customer_id(self, customer_id: str) -> Optional[Subscription]:
        return self._registry.subscriptions.get_by_customer_id(customer_id)

    def is_active_for_user(self, user_id: UUID) -> bool:
        return is_subscription_active(self._registry.subscriptions.get_by_user(user_id))

    def list_all(self) -> List[SubscriptionOverview]:
        """Every subscription with its owner; owners that no longer exist are skipped."""

        overviews = []
        for subscription in self._registry.subscriptions.list_all():
            user = self._registry.users.get(subscription.user_id)
            if user is None:
                logger.warning("Subscription %s belongs to unknown user %s", subscription.id, subscription.user_id)
                continue
            overviews.append(
                SubscriptionOverview(
                    user=SubscriberSummary.from_user(user),
                    subscription=subscription,
                    active=is_subscription_active(subscription),
                )
            )
        return overviews

    def list_referred(self, referrer: User) -> List[SubscriptionOverview]:
        """Clients who signed up with ``referrer``'s code, with or without a subscription."""

        overviews = []
        for client in self._registry.users.list_by_referrer(referrer.id):
            subscription = self._registry.subscriptions.get_by_user(client.id)
            overviews.append(
                SubscriptionOverview(
                    user=SubscriberSummary.from_user(client),
                    subscription=subscription,
                    active=is_subscription_active(subscription),
                )
            )
        return overviews

    def create_trial_subscription(self, user_id: UUID) -> Subscription:
        """Start a trial for ``user_id`` unless a subscription already exists."""

        existing = self._registry.subscriptions.get_by_user(user_id)
        if existing is not None:
            return existing

        subscription = Subscription(
            id=uuid4(),
            user_id=user_id,
            status=SubscriptionStatus.TRIAL,
            trial_end_date=datetime.now(timezone.utc) + timedelta(days=settings.trial_days),
        )
        self._registry.subscriptions.save(subscription)
        logger.info("Created trial subscription %s for user %s", subscription.id, user_id)

        audit_service.log_event(
            action="create_trial_subscription",
            resource_type="subscription",
            resource_id=str(subscription.id),
            subject="system",
            extra={"user_id": str(user_id), "trial_days": settings.trial_days},
        )
        return subscription

    def update_from_stripe(
        self,
        *,
        user_id: UUID,
        status: SubscriptionStatus,
        stripe_customer_id: Optional[str] = None,
        stripe_subscription_id: Optional[str] = None,
        plan_type: Optional[PlanType] = None,
        price_id: Optional[str] = None,
        current_period_end: Optional[datetime] = None,
    ) -> Subscription:
        """Apply provider state to the user's subscription, creating it if needed.

        Optional values that are not supplied keep what is already stored.
        """

        existing = self._registry.subscriptions.get_by_user(user_id)
        if existing is None:
            existing = Subscription(id=uuid4(), user_id=user_id, status=status)

        updated = existing.model_copy(
            update={
                "status": status,
                "stripe_customer_id": stripe_customer_id or existing.stripe_customer_id,
                "stripe_subscription_id": stripe_subscription_id or existing.stripe_subscription_id,
                "plan_type": plan_type or existing.plan_type,
                "price_id": price_id or existing.price_id,
                "current_period_end": current_period_end or existing.current_period_end,
            }
        )
        self._registry.subscriptions.save(updated)

        audit_service.log_event(
            action="update_subscription",
            resource_type="subscription",
            resource_id=str(updated.id),
            subject="stripe",
            extra={"user_id": str(user_id), "status": status.value},
        )
        return updated


subscription_service = SubscriptionService()
