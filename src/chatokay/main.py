from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.chatokay.api.routes_public import router as public_router
from src.chatokay.api.routes_webhooks import router as webhooks_router
from src.chatokay.api.v1.routes_appointments import router as appointments_router_v1
from src.chatokay.api.v1.routes_businesses import router as businesses_router_v1
from src.chatokay.api.v1.routes_platform import router as platform_router_v1
from src.chatokay.api.v1.routes_session import router as session_router_v1
from src.chatokay.api.v1.routes_subscriptions import router as subscriptions_router_v1
from src.chatokay.api.v1.routes_system import router as system_router_v1
from src.chatokay.api.v1.routes_users import router as users_router_v1
from src.chatokay.config import settings
from src.chatokay.infra.db.bootstrap import init_sql_repositories
from src.chatokay.routing import SubdomainRoutingMiddleware

app = FastAPI(title="ChatOkay API")


@app.on_event("startup")
async def on_startup() -> None:
    """Application startup hook.

    When USE_SQL_REPOS is enabled and a DATABASE_URL is configured, this
    switches the repository registry to SQL-backed repositories. In other
    environments (tests, local dev without a database), this is a no-op and
    the in-memory repositories remain active.
    """

    init_sql_repositories()


# Tenant subdomain rewriting and root-domain access control. Registered before
# CORS so that CORS wraps it and preflight requests are answered first.
app.add_middleware(SubdomainRoutingMiddleware)

# CORS configuration – permissive by default for development. Tighten via
# CORS_ALLOW_ORIGINS in production deployments.
allow_origins = [origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()] or ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["system"])
async def health_check() -> dict:
    """Basic liveness probe for the API root."""
    return {"status": "ok"}


# Provider webhooks and public tenant endpoints live outside the versioned API.
app.include_router(webhooks_router)
app.include_router(public_router)

# Versioned API routers
app.include_router(system_router_v1, prefix="/api/v1")
app.include_router(session_router_v1, prefix="/api/v1")
app.include_router(users_router_v1, prefix="/api/v1")
app.include_router(businesses_router_v1, prefix="/api/v1")
app.include_router(subscriptions_router_v1, prefix="/api/v1")
app.include_router(platform_router_v1, prefix="/api/v1")
app.include_router(appointments_router_v1, prefix="/api/v1")
