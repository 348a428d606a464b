from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class Settings:
    """Centralized application settings.

    This keeps environment-variable handling in one place so other modules can
    depend on strongly-typed attributes instead of calling os.getenv
    directly.
    """

    # Identity provider (Clerk) webhook signing secret, "whsec_..." format.
    clerk_webhook_secret: Optional[str] = os.getenv("CLERK_WEBHOOK_SECRET")

    # Payments provider (Stripe) webhook signing secret and the price id that
    # identifies the annual plan. Any other price is treated as monthly.
    stripe_webhook_secret: Optional[str] = os.getenv("STRIPE_WEBHOOK_SECRET")
    stripe_price_id_annual: Optional[str] = os.getenv("STRIPE_PRICE_ID_ANNUAL")

    # Root domain tenants hang off, e.g. "acme.chatokay.com".
    root_domain: str = os.getenv("ROOT_DOMAIN", "chatokay.com")

    # Header carrying the identity subject (Clerk user id) once the upstream
    # gateway has verified the session token.
    identity_header: str = os.getenv("IDENTITY_HEADER", "X-Clerk-User-Id")

    # Length of the trial subscription granted to new client users.
    trial_days: int = int(os.getenv("TRIAL_DAYS", "7"))

    # Optional database configuration for SQL-backed repositories.
    database_url: Optional[str] = os.getenv("DATABASE_URL")
    use_sql_repos: bool = os.getenv("USE_SQL_REPOS", "false").lower() == "true"

    # CORS configuration: comma-separated origins. Default is "*" which is
    # acceptable for local development but should be tightened in production.
    cors_allow_origins: str = os.getenv("CORS_ALLOW_ORIGINS", "*")


settings = Settings()
