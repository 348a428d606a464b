from fastapi import status
from httpx import ASGITransport, AsyncClient
from svix.webhooks import Webhook

from src.chatokay.config import settings
from src.chatokay.domain.models.subscription import SubscriptionStatus
from src.chatokay.domain.models.user import UserRole
from src.chatokay.infra.db.registry import repositories
from src.chatokay.main import app


def _client():
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


async def test_user_created_syncs_user_and_starts_trial(clerk_headers, user_event):
    body = user_event("user_2abc")

    async with _client() as ac:
        response = await ac.post("/clerk-webhook", content=body, headers=clerk_headers(body))

    assert response.status_code == status.HTTP_200_OK
    assert response.text == "Webhook processed"

    user = repositories.users.get_by_clerk_id("user_2abc")
    assert user is not None
    assert user.email == "owner@example.com"
    assert user.name == "Ana García"
    assert user.role == UserRole.CLIENT

    # The trial job runs as a background task once the response is sent.
    subscription = repositories.subscriptions.get_by_user(user.id)
    assert subscription is not None
    assert subscription.status == SubscriptionStatus.TRIAL
    assert subscription.trial_end_date is not None


async def test_redelivered_event_creates_one_user_and_one_trial(clerk_headers, user_event):
    body = user_event("user_dup")
    headers = clerk_headers(body, msg_id="msg_fixed")

    async with _client() as ac:
        first = await ac.post("/clerk-webhook", content=body, headers=headers)
        second = await ac.post("/clerk-webhook", content=body, headers=headers)

    assert first.status_code == second.status_code == status.HTTP_200_OK
    users = [u for u in repositories.users.list_all() if u.clerk_id == "user_dup"]
    assert len(users) == 1
    assert repositories.subscriptions.get_by_user(users[0].id) is not None


async def test_internal_signup_with_sales_role(clerk_headers, user_event):
    body = user_event("user_sales", role="sales")

    async with _client() as ac:
        response = await ac.post("/clerk-webhook", content=body, headers=clerk_headers(body))

    assert response.status_code == status.HTTP_200_OK
    user = repositories.users.get_by_clerk_id("user_sales")
    assert user.role == UserRole.SALES
    assert repositories.subscriptions.get_by_user(user.id) is None


async def test_missing_secret_returns_500(monkeypatch, clerk_headers, user_event):
    monkeypatch.setattr(settings, "clerk_webhook_secret", None)
    body = user_event("user_nosecret")

    async with _client() as ac:
        response = await ac.post("/clerk-webhook", content=body, headers=clerk_headers(body))

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert list(repositories.users.list_all()) == []


async def test_missing_svix_headers_returns_400(clerk_headers, user_event):
    body = user_event("user_noheaders")
    headers = clerk_headers(body)
    del headers["svix-signature"]

    async with _client() as ac:
        response = await ac.post("/clerk-webhook", content=body, headers=headers)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.text == "Missing svix headers"


async def test_tampered_signature_is_rejected_without_writes(clerk_headers, user_event):
    body = user_event("user_tampered")
    headers = clerk_headers(body)
    signature = headers["svix-signature"]
    # "v1,<base64>": flip one character of the digest.
    index = 5
    flipped = "A" if signature[index] != "A" else "B"
    headers["svix-signature"] = signature[:index] + flipped + signature[index + 1:]

    async with _client() as ac:
        response = await ac.post("/clerk-webhook", content=body, headers=headers)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.text == "Invalid signature"
    assert list(repositories.users.list_all()) == []


async def test_tampered_body_is_rejected(clerk_headers, user_event):
    body = user_event("user_original")
    headers = clerk_headers(body)
    forged = user_event("user_original", role="sales")

    async with _client() as ac:
        response = await ac.post("/clerk-webhook", content=forged, headers=headers)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert list(repositories.users.list_all()) == []


async def test_other_event_types_are_acknowledged(clerk_headers):
    body = '{"type": "session.created", "data": {"id": "sess_1"}}'

    async with _client() as ac:
        response = await ac.post("/clerk-webhook", content=body, headers=clerk_headers(body))

    assert response.status_code == status.HTTP_200_OK
    assert list(repositories.users.list_all()) == []


async def test_sync_failure_returns_500_for_redelivery(monkeypatch, clerk_headers, user_event):
    def _broken_save(user):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(repositories.users, "save", _broken_save)
    body = user_event("user_broken")

    async with _client() as ac:
        response = await ac.post("/clerk-webhook", content=body, headers=clerk_headers(body))

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.text == "Error syncing user"


async def test_user_updated_keeps_role(clerk_headers, user_event):
    created = user_event("user_upd", role="sales")
    updated = user_event("user_upd", event_type="user.updated", email="new@example.com", role="client")

    async with _client() as ac:
        await ac.post("/clerk-webhook", content=created, headers=clerk_headers(created))
        response = await ac.post("/clerk-webhook", content=updated, headers=clerk_headers(updated))

    assert response.status_code == status.HTTP_200_OK
    user = repositories.users.get_by_clerk_id("user_upd")
    assert user.email == "new@example.com"
    assert user.role == UserRole.SALES


async def test_event_is_read_from_the_verified_body(monkeypatch, clerk_headers, user_event):
    # Recent svix releases return None from verify(); only its exceptions matter.
    real_verify = Webhook.verify

    def _verify_without_payload(self, data, headers):
        real_verify(self, data, headers)
        return None

    monkeypatch.setattr(Webhook, "verify", _verify_without_payload)
    body = user_event("user_none_payload")

    async with _client() as ac:
        response = await ac.post("/clerk-webhook", content=body, headers=clerk_headers(body))

    assert response.status_code == status.HTTP_200_OK
    assert repositories.users.get_by_clerk_id("user_none_payload") is not None


async def test_signed_body_that_is_not_an_event_returns_400(clerk_headers):
    async with _client() as ac:
        not_object = await ac.post("/clerk-webhook", content="[1, 2]", headers=clerk_headers("[1, 2]"))
        no_user_id = '{"type": "user.created", "data": {"email_addresses": []}}'
        missing_id = await ac.post("/clerk-webhook", content=no_user_id, headers=clerk_headers(no_user_id))

    assert not_object.status_code == status.HTTP_400_BAD_REQUEST
    assert not_object.text == "Invalid webhook event"
    assert missing_id.status_code == status.HTTP_400_BAD_REQUEST
    assert list(repositories.users.list_all()) == []


async def test_non_string_referral_code_does_not_block_registration(clerk_headers, user_event):
    body = user_event("user_numeric_ref", referral_code=12345678, role=["sales"])

    async with _client() as ac:
        first = await ac.post("/clerk-webhook", content=body, headers=clerk_headers(body))
        second = await ac.post("/clerk-webhook", content=body, headers=clerk_headers(body))

    assert first.status_code == second.status_code == status.HTTP_200_OK
    user = repositories.users.get_by_clerk_id("user_numeric_ref")
    assert user is not None
    assert user.referral_id is None
    assert user.role == UserRole.CLIENT
