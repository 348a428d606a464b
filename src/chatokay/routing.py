from __future__ import annotations

import logging
import re
from typing import Iterable, List, Pattern
from urllib.parse import urlencode

from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from src.chatokay.config import settings
from src.chatokay.security import read_identity_subject
from src.chatokay.tenancy import extract_subdomain, set_current_subdomain

logger = logging.getLogger("routing")

PUBLIC_ROUTES = (
    "/",
    "/sign-in(.*)",
    "/sign-up(.*)",
    "/internal/sign-in(.*)",
    "/internal/sign-up(.*)",
    "/api/webhook(.*)",
    "/clerk-webhook",
    "/stripe-webhook",
    "/chat(.*)",
    "/privacy",
    "/terms",
    "/health",
    "/api/v1/health",
    "/api/v1/session",
    "/api/business(.*)",
    "/cancel-appointment(.*)",
    "/api/v1/appointments/cancel(.*)",
)

SIGN_IN_PATH = "/sign-in"


def create_route_matcher(patterns: Iterable[str]) -> "RouteMatcher":
    return RouteMatcher([re.compile(f"^{pattern}$") for pattern in patterns])


class RouteMatcher:
    def __init__(self, patterns: List[Pattern[str]]) -> None:
        self._patterns = patterns

    def __call__(self, path: str) -> bool:
        return any(pattern.match(path) for pattern in self._patterns)


is_public_route = create_route_matcher(PUBLIC_ROUTES)


class SubdomainRoutingMiddleware:
    """Tenant subdomain rewriting plus root-domain access control.

    - ``{tenant}.<root>/`` is served internally by ``/chat/{tenant}``.
    - Other paths on a tenant subdomain pass through untouched.
    - On the root domain, non-public routes need a signed-in identity:
      pages redirect to sign-in, API calls get 401.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        host = request.headers.get("host", "")
        subdomain = extract_subdomain(host, settings.root_domain)
        set_current_subdomain(subdomain)
        path = scope["path"]

        if subdomain:
            if path == "/":
                rewritten = f"/chat/{subdomain}"
                scope = dict(scope, path=rewritten, raw_path=rewritten.encode("utf-8"))
            await self.app(scope, receive, send)
            return

        if is_public_route(path) or read_identity_subject(request) is not None:
            await self.app(scope, receive, send)
            return

        if path.startswith("/api/"):
            response = JSONResponse({"detail": "Authentication required"}, status_code=401)
        else:
            target = path
            query_string = scope.get("query_string", b"").decode("latin-1")
            if query_string:
                target = f"{path}?{query_string}"
            logger.info("Redirecting anonymous request for %s to sign-in", target)
            response = RedirectResponse(url=f"{SIGN_IN_PATH}?{urlencode({'redirect_url': target})}", status_code=307)
        await response(scope, receive, send)
