from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional
from uuid import UUID

from src.chatokay.config import settings
from src.chatokay.domain.models.subscription import PlanType, SubscriptionStatus
from src.chatokay.infra.db.registry import RepositoryRegistry, repositories
from src.chatokay.services.subscriptions.service import SubscriptionService, subscription_service

logger = logging.getLogger("billing")

# Provider subscription statuses that do not map to "active".
_STATUS_MAP = {
    "past_due": SubscriptionStatus.PAST_DUE,
    "canceled": SubscriptionStatus.CANCELED,
    "unpaid": SubscriptionStatus.CANCELED,
    "incomplete_expired": SubscriptionStatus.EXPIRED,
}


def map_stripe_status(status: Optional[str]) -> SubscriptionStatus:
    return _STATUS_MAP.get(status or "", SubscriptionStatus.ACTIVE)


def plan_type_for_price(price_id: Optional[str]) -> PlanType:
    if price_id and price_id == settings.stripe_price_id_annual:
        return PlanType.ANNUAL
    return PlanType.MONTHLY


def _object_id(value: Any) -> Optional[str]:
    """Stripe fields like ``customer`` are either an id or an expanded object."""

    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        return value.get("id")
    return None


def _timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    return None


def _first_price_id(subscription: Mapping[str, Any]) -> Optional[str]:
    items = (subscription.get("items") or {}).get("data") or []
    if not items:
        return None
    return (items[0].get("price") or {}).get("id")


def _parse_uuid(value: Any) -> Optional[UUID]:
    if not value:
        return None
    try:
        return UUID(str(value))
    except ValueError:
        return None


class StripeEventProcessor:
    """Applies verified Stripe events to the local subscription mirror.

    Events are applied from their own payload; every handler is an
    idempotent overwrite so redelivered events are harmless.
    """

    def __init__(
        self,
        registry: RepositoryRegistry = repositories,
        subscriptions: SubscriptionService = subscription_service,
    ) -> None:
        self._registry = registry
        self._subscriptions = subscriptions

    def process(self, event: Mapping[str, Any]) -> bool:
        """Dispatch ``event`` on its type. Returns False for ignored events."""

        event_type = event.get("type")
        obj = (event.get("data") or {}).get("object") or {}
        logger.info("Stripe webhook event: %s", event_type)

        if event_type == "checkout.session.completed":
            return self._checkout_completed(obj)
        if event_type in ("customer.subscription.created", "customer.subscription.updated"):
            return self._subscription_updated(obj)
        if event_type == "customer.subscription.deleted":
            return self._subscription_status(
                _object_id(obj.get("customer")), obj.get("id"), SubscriptionStatus.CANCELED
            )
        if event_type == "invoice.payment_succeeded":
            return self._invoice(obj, SubscriptionStatus.ACTIVE)
        if event_type == "invoice.payment_failed":
            return self._invoice(obj, SubscriptionStatus.PAST_DUE)

        logger.info("Ignoring unhandled Stripe event type %s", event_type)
        return False

    def _checkout_completed(self, session: Mapping[str, Any]) -> bool:
        customer_id = _object_id(session.get("customer"))
        subscription_id = _object_id(session.get("subscription"))
        if not customer_id or not subscription_id:
            logger.error("Missing customer or subscription in checkout session %s", session.get("id"))
            return False

        metadata = session.get("metadata") or {}
        user_id = _parse_uuid(metadata.get("userId")) or _parse_uuid(session.get("client_reference_id"))
        if user_id is None:
            existing = self._subscriptions.get_by_customer_id(customer_id)
            user_id = existing.user_id if existing else None
        if user_id is None or self._registry.users.get(user_id) is None:
            logger.error("Could not resolve user for checkout session %s", session.get("id"))
            return False

        plan_type = None
        if metadata.get("planType") in (PlanType.MONTHLY.value, PlanType.ANNUAL.value):
            plan_type = PlanType(metadata["planType"])

        self._subscriptions.update_from_stripe(
            user_id=user_id,
            status=SubscriptionStatus.ACTIVE,
            stripe_customer_id=customer_id,
            stripe_subscription_id=subscription_id,
            plan_type=plan_type,
        )
        return True

    def _subscription_updated(self, subscription: Mapping[str, Any]) -> bool:
        customer_id = _object_id(subscription.get("customer"))
        existing = self._subscriptions.get_by_customer_id(customer_id) if customer_id else None
        if existing is None:
            logger.error("Subscription not found for customer: %s", customer_id)
            return False

        price_id = _first_price_id(subscription)
        self._subscriptions.update_from_stripe(
            user_id=existing.user_id,
            status=map_stripe_status(subscription.get("status")),
            stripe_customer_id=customer_id,
            stripe_subscription_id=subscription.get("id"),
            plan_type=plan_type_for_price(price_id),
            price_id=price_id,
            current_period_end=_timestamp(subscription.get("current_period_end")),
        )
        return True

    def _invoice(self, invoice: Mapping[str, Any], status: SubscriptionStatus) -> bool:
        subscription_id = _object_id(invoice.get("subscription"))
        if not subscription_id:
            return False
        return self._subscription_status(_object_id(invoice.get("customer")), subscription_id, status)

    def _subscription_status(
        self,
        customer_id: Optional[str],
        subscription_id: Optional[str],
        status: SubscriptionStatus,
    ) -> bool:
        existing = self._subscriptions.get_by_customer_id(customer_id) if customer_id else None
        if existing is None:
            logger.error("Subscription not found for customer: %s", customer_id)
            return False

        self._subscriptions.update_from_stripe(
            user_id=existing.user_id,
            status=status,
            stripe_customer_id=customer_id,
            stripe_subscription_id=subscription_id,
        )
        return True


stripe_event_processor = StripeEventProcessor()
