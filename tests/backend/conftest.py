import base64
import hashlib
import hmac
import json
import time
from datetime import datetime, timezone
from uuid import uuid4

import pytest
from svix.webhooks import Webhook

from src.chatokay.config import settings
from src.chatokay.infra.db.registry import repositories

CLERK_SECRET = "whsec_" + base64.b64encode(b"chatokay-test-signing-secret-32b").decode()
STRIPE_SECRET = "whsec_stripe_test_secret"
ANNUAL_PRICE_ID = "price_annual_test"


@pytest.fixture(autouse=True)
def _isolated_state(monkeypatch):
    """Fresh in-memory repositories and known webhook secrets for each test."""

    repositories.reset()
    monkeypatch.setattr(settings, "clerk_webhook_secret", CLERK_SECRET)
    monkeypatch.setattr(settings, "stripe_webhook_secret", STRIPE_SECRET)
    monkeypatch.setattr(settings, "stripe_price_id_annual", ANNUAL_PRICE_ID)
    monkeypatch.setattr(settings, "root_domain", "chatokay.com")
    yield
    repositories.reset()


class RecordingScheduler:
    """JobScheduler that records jobs instead of running them."""

    def __init__(self):
        self.jobs = []

    def run_after(self, delay_seconds, func, *args):
        self.jobs.append((delay_seconds, func, args))


@pytest.fixture
def scheduler():
    return RecordingScheduler()


@pytest.fixture
def clerk_headers():
    """Build signed Svix headers for a Clerk webhook body."""

    def _sign(body: str, msg_id: str | None = None) -> dict:
        msg_id = msg_id or f"msg_{uuid4().hex}"
        now = datetime.now(timezone.utc)
        signature = Webhook(CLERK_SECRET).sign(msg_id, now, body)
        return {
            "svix-id": msg_id,
            "svix-timestamp": str(int(now.timestamp())),
            "svix-signature": signature,
            "content-type": "application/json",
        }

    return _sign


@pytest.fixture
def stripe_headers():
    """Build a valid stripe-signature header for a Stripe webhook body."""

    def _sign(body: str) -> dict:
        timestamp = int(time.time())
        digest = hmac.new(
            STRIPE_SECRET.encode("utf-8"),
            f"{timestamp}.{body}".encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()
        return {"stripe-signature": f"t={timestamp},v1={digest}", "content-type": "application/json"}

    return _sign


def clerk_user_event(clerk_id, *, event_type="user.created", email="owner@example.com", first_name="Ana",
                     last_name="García", role=None, referral_code=None) -> str:
    metadata = {}
    if role is not None:
        metadata["role"] = role
    if referral_code is not None:
        metadata["referralCode"] = referral_code
    return json.dumps(
        {
            "type": event_type,
            "data": {
                "id": clerk_id,
                "email_addresses": [{"email_address": email}],
                "first_name": first_name,
                "last_name": last_name,
                "unsafe_metadata": metadata,
            },
        }
    )


@pytest.fixture
def user_event():
    return clerk_user_event
