import json
from uuid import uuid4

from fastapi import status
from httpx import ASGITransport, AsyncClient

from src.chatokay.config import settings
from src.chatokay.domain.models.subscription import PlanType, SubscriptionStatus
from src.chatokay.domain.models.user import User, UserRole
from src.chatokay.infra.db.registry import repositories
from src.chatokay.main import app
from src.chatokay.services.subscriptions.service import subscription_service


def _client():
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


def _client_user():
    user = User(id=uuid4(), clerk_id=f"user_{uuid4().hex[:8]}", email="c@example.com", role=UserRole.CLIENT)
    repositories.users.save(user)
    subscription_service.create_trial_subscription(user.id)
    return user


def _event(event_type, obj):
    return json.dumps({"id": f"evt_{uuid4().hex[:10]}", "type": event_type, "data": {"object": obj}})


async def _post(body, headers):
    async with _client() as ac:
        return await ac.post("/stripe-webhook", content=body, headers=headers)


async def test_checkout_completed_activates_subscription(stripe_headers):
    user = _client_user()
    body = _event(
        "checkout.session.completed",
        {
            "id": "cs_1",
            "customer": "cus_1",
            "subscription": "sub_1",
            "metadata": {"userId": str(user.id), "planType": "annual"},
        },
    )

    response = await _post(body, stripe_headers(body))

    assert response.status_code == status.HTTP_200_OK
    subscription = repositories.subscriptions.get_by_user(user.id)
    assert subscription.status == SubscriptionStatus.ACTIVE
    assert subscription.stripe_customer_id == "cus_1"
    assert subscription.stripe_subscription_id == "sub_1"
    assert subscription.plan_type == PlanType.ANNUAL


async def test_subscription_updated_maps_status_plan_and_period(stripe_headers):
    user = _client_user()
    subscription_service.update_from_stripe(
        user_id=user.id, status=SubscriptionStatus.ACTIVE, stripe_customer_id="cus_2"
    )
    body = _event(
        "customer.subscription.updated",
        {
            "id": "sub_2",
            "customer": "cus_2",
            "status": "past_due",
            "current_period_end": 1767225600,
            "items": {"data": [{"price": {"id": settings.stripe_price_id_annual}}]},
        },
    )

    response = await _post(body, stripe_headers(body))

    assert response.status_code == status.HTTP_200_OK
    subscription = repositories.subscriptions.get_by_user(user.id)
    assert subscription.status == SubscriptionStatus.PAST_DUE
    assert subscription.plan_type == PlanType.ANNUAL
    assert subscription.price_id == settings.stripe_price_id_annual
    assert subscription.current_period_end.year == 2026


async def test_subscription_deleted_and_invoice_events(stripe_headers):
    user = _client_user()
    subscription_service.update_from_stripe(
        user_id=user.id, status=SubscriptionStatus.ACTIVE, stripe_customer_id="cus_3"
    )

    failed = _event("invoice.payment_failed", {"id": "in_1", "customer": "cus_3", "subscription": "sub_3"})
    assert (await _post(failed, stripe_headers(failed))).status_code == status.HTTP_200_OK
    assert repositories.subscriptions.get_by_user(user.id).status == SubscriptionStatus.PAST_DUE

    paid = _event("invoice.payment_succeeded", {"id": "in_2", "customer": "cus_3", "subscription": "sub_3"})
    assert (await _post(paid, stripe_headers(paid))).status_code == status.HTTP_200_OK
    assert repositories.subscriptions.get_by_user(user.id).status == SubscriptionStatus.ACTIVE

    deleted = _event("customer.subscription.deleted", {"id": "sub_3", "customer": "cus_3"})
    assert (await _post(deleted, stripe_headers(deleted))).status_code == status.HTTP_200_OK
    assert repositories.subscriptions.get_by_user(user.id).status == SubscriptionStatus.CANCELED


async def test_unknown_customer_is_acknowledged_without_writes(stripe_headers):
    body = _event("customer.subscription.deleted", {"id": "sub_x", "customer": "cus_unknown"})

    response = await _post(body, stripe_headers(body))

    assert response.status_code == status.HTTP_200_OK
    assert repositories.subscriptions.get_by_customer_id("cus_unknown") is None


async def test_missing_signature_header_returns_400():
    body = _event("invoice.payment_failed", {"id": "in_1"})

    response = await _post(body, {"content-type": "application/json"})

    assert response.status_code == status.HTTP_400_BAD_REQUEST


async def test_bad_signature_returns_400_without_writes(stripe_headers):
    user = _client_user()
    subscription_service.update_from_stripe(
        user_id=user.id, status=SubscriptionStatus.ACTIVE, stripe_customer_id="cus_4"
    )
    body = _event("customer.subscription.deleted", {"id": "sub_4", "customer": "cus_4"})
    headers = stripe_headers(body)
    header = headers["stripe-signature"]
    flipped = "0" if header[-1] != "0" else "1"
    headers["stripe-signature"] = header[:-1] + flipped

    response = await _post(body, headers)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert repositories.subscriptions.get_by_user(user.id).status == SubscriptionStatus.ACTIVE


async def test_missing_secret_returns_500(monkeypatch, stripe_headers):
    monkeypatch.setattr(settings, "stripe_webhook_secret", None)
    body = _event("invoice.payment_failed", {"id": "in_1"})

    response = await _post(body, stripe_headers(body))

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
