from __future__ import annotations

import json
import logging

import stripe
from fastapi import APIRouter, BackgroundTasks, Request
from fastapi.responses import PlainTextResponse
from svix.webhooks import Webhook, WebhookVerificationError

from src.chatokay.config import settings
from src.chatokay.domain.models.user import IdentityEvent
from src.chatokay.services.billing.stripe_events import stripe_event_processor
from src.chatokay.services.scheduler.service import BackgroundTaskScheduler
from src.chatokay.services.users.service import user_sync_service

logger = logging.getLogger("webhooks")

router = APIRouter(tags=["webhooks"])

SVIX_HEADERS = ("svix-id", "svix-timestamp", "svix-signature")
USER_EVENTS = ("user.created", "user.updated")


@router.post("/clerk-webhook", response_class=PlainTextResponse)
async def clerk_webhook(request: Request, background_tasks: BackgroundTasks) -> PlainTextResponse:
    """Identity-provider user lifecycle events.

    The payload is only parsed after the Svix signature has been verified;
    nothing is written for unverified requests. Sync failures answer 500 so
    the provider redelivers, which is safe because the upsert is idempotent.
    """

    secret = settings.clerk_webhook_secret
    if not secret:
        logger.error("CLERK_WEBHOOK_SECRET is not configured")
        return PlainTextResponse("Webhook secret not configured", status_code=500)

    headers = {name: request.headers.get(name) for name in SVIX_HEADERS}
    if not all(headers.values()):
        return PlainTextResponse("Missing svix headers", status_code=400)

    body = await request.body()

    try:
        webhook = Webhook(secret)
    except Exception:
        logger.exception("CLERK_WEBHOOK_SECRET is not a valid signing secret")
        return PlainTextResponse("Webhook secret not configured", status_code=500)

    # Only an authenticity check: the return value differs across svix releases.
    try:
        webhook.verify(body, headers)
    except WebhookVerificationError as exc:
        logger.warning("Rejected identity webhook %s: %s", headers["svix-id"], exc)
        return PlainTextResponse("Invalid signature", status_code=400)

    try:
        event = json.loads(body)
    except ValueError:
        logger.warning("Identity webhook %s body is not valid JSON", headers["svix-id"])
        return PlainTextResponse("Invalid webhook event", status_code=400)
    if not isinstance(event, dict):
        return PlainTextResponse("Invalid webhook event", status_code=400)

    event_type = event.get("type")
    if event_type not in USER_EVENTS:
        logger.info("Ignoring identity webhook event %s", event_type)
        return PlainTextResponse("Webhook processed", status_code=200)

    data = event.get("data")
    if not isinstance(data, dict) or not isinstance(data.get("id"), str):
        logger.warning("Identity webhook %s carries no user id", headers["svix-id"])
        return PlainTextResponse("Invalid webhook event", status_code=400)

    try:
        identity_event = IdentityEvent.from_clerk_payload(data)
        result = user_sync_service.sync_user(identity_event, BackgroundTaskScheduler(background_tasks))
    except Exception:
        logger.exception("Error syncing user from event %s", headers["svix-id"])
        return PlainTextResponse("Error syncing user", status_code=500)

    logger.info(
        "Synced user %s from %s (created=%s)",
        result.user.id,
        event_type,
        result.created,
    )
    return PlainTextResponse("Webhook processed", status_code=200)


@router.post("/stripe-webhook", response_class=PlainTextResponse)
async def stripe_webhook(request: Request) -> PlainTextResponse:
    """Payments-provider subscription and invoice events."""

    secret = settings.stripe_webhook_secret
    if not secret:
        logger.error("STRIPE_WEBHOOK_SECRET is not configured")
        return PlainTextResponse("Webhook secret not configured", status_code=500)

    signature = request.headers.get("stripe-signature")
    if not signature:
        return PlainTextResponse("Missing stripe-signature header", status_code=400)

    payload = (await request.body()).decode("utf-8", errors="replace")

    try:
        stripe.WebhookSignature.verify_header(
            payload, signature, secret, tolerance=stripe.Webhook.DEFAULT_TOLERANCE
        )
    except stripe.SignatureVerificationError as exc:
        logger.warning("Stripe webhook signature verification failed: %s", exc)
        return PlainTextResponse("Invalid signature", status_code=400)

    try:
        event = json.loads(payload)
    except ValueError:
        logger.warning("Stripe webhook body is not valid JSON")
        return PlainTextResponse("Invalid webhook event", status_code=400)
    if not isinstance(event, dict) or not event.get("type"):
        return PlainTextResponse("Invalid webhook event", status_code=400)

    try:
        stripe_event_processor.process(event)
    except Exception:
        logger.exception("Error processing Stripe event %s", event.get("id"))
        return PlainTextResponse("Error processing event", status_code=500)

    return PlainTextResponse("Webhook processed", status_code=200)
