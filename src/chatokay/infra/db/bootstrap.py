from __future__ import annotations

import logging
from typing import Optional

from src.chatokay.config import settings
from src.chatokay.infra.db.models import Base
from src.chatokay.infra.db.registry import RepositoryRegistry, repositories
from src.chatokay.infra.db.session import create_engine_for_url, create_sqlalchemy_session_factory
from src.chatokay.infra.db.sql_accounts import SqlBusinessRepository, SqlUserRepository
from src.chatokay.infra.db.sql_billing import (
    SqlAppointmentRepository,
    SqlPlatformSettingsRepository,
    SqlSubscriptionRepository,
)

logger = logging.getLogger("db")


def use_sql_repositories(database_url: str, registry: RepositoryRegistry = repositories) -> None:
    """Point ``registry`` at SQL-backed repositories for ``database_url``.

    Creates tables if they do not exist; real deployments should manage the
    schema with migrations instead.
    """

    engine = create_engine_for_url(database_url)
    Base.metadata.create_all(engine)
    session_factory = create_sqlalchemy_session_factory(engine)

    registry.users = SqlUserRepository(session_factory)
    registry.businesses = SqlBusinessRepository(session_factory)
    registry.subscriptions = SqlSubscriptionRepository(session_factory)
    registry.appointments = SqlAppointmentRepository(session_factory)
    registry.platform_settings = SqlPlatformSettingsRepository(session_factory)


def init_sql_repositories(database_url: Optional[str] = None) -> None:
    """Optionally switch the in-memory repositories to SQL-backed ones.

    If USE_SQL_REPOS is not enabled or DATABASE_URL is not configured, this is
    a no-op and the in-memory repositories remain active.
    """

    if not settings.use_sql_repos:
        return

    db_url = database_url or settings.database_url
    if not db_url:
        logger.warning("USE_SQL_REPOS is enabled but DATABASE_URL is not set; keeping in-memory repositories")
        return

    use_sql_repositories(db_url)
