from __future__ import annotations

from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import select

from src.chatokay.domain.models.business import Business
from src.chatokay.domain.models.user import User
from src.chatokay.infra.db.models import BusinessORM, UserORM
from src.chatokay.infra.db.repositories import BusinessRepository, UserRepository
from src.chatokay.infra.db.session import SessionFactory


class SqlUserRepository(UserRepository):
    """SQL-backed UserRepository keyed by primary key, clerk id and referral code."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    def get(self, user_id: UUID) -> Optional[User]:
        session = self._session_factory()
        try:
            orm = session.get(UserORM, user_id)
            return orm.to_domain() if orm is not None else None
        finally:
            session.close()

    def get_by_clerk_id(self, clerk_id: str) -> Optional[User]:
        session = self._session_factory()
        try:
            orm = session.scalars(select(UserORM).where(UserORM.clerk_id == clerk_id)).first()
            return orm.to_domain() if orm is not None else None
        finally:
            session.close()

    def get_by_referral_code(self, referral_code: str) -> Optional[User]:
        session = self._session_factory()
        try:
            orm = session.scalars(select(UserORM).where(UserORM.referral_code == referral_code)).first()
            return orm.to_domain() if orm is not None else None
        finally:
            session.close()

    def list_all(self) -> Iterable[User]:
        session = self._session_factory()
        try:
            users: List[User] = [orm.to_domain() for orm in session.scalars(select(UserORM))]
            return users
        finally:
            session.close()

    def list_by_referrer(self, referral_id: UUID) -> Iterable[User]:
        session = self._session_factory()
        try:
            stmt = select(UserORM).where(UserORM.referral_id == referral_id)
            return [orm.to_domain() for orm in session.scalars(stmt)]
        finally:
            session.close()

    def save(self, user: User) -> None:
        """Insert or update a User in the database."""

        session = self._session_factory()
        try:
            existing = session.get(UserORM, user.id)
            if existing is None:
                session.add(UserORM.from_domain(user))
            else:
                existing.apply(user)
            session.commit()
        finally:
            session.close()


class SqlBusinessRepository(BusinessRepository):
    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    def get(self, business_id: UUID) -> Optional[Business]:
        session = self._session_factory()
        try:
            orm = session.get(BusinessORM, business_id)
            return orm.to_domain() if orm is not None else None
        finally:
            session.close()

    def get_by_owner(self, user_id: UUID) -> Optional[Business]:
        session = self._session_factory()
        try:
            orm = session.scalars(select(BusinessORM).where(BusinessORM.user_id == user_id)).first()
            return orm.to_domain() if orm is not None else None
        finally:
            session.close()

    def get_by_subdomain(self, subdomain: str) -> Optional[Business]:
        session = self._session_factory()
        try:
            orm = session.scalars(select(BusinessORM).where(BusinessORM.subdomain == subdomain)).first()
            return orm.to_domain() if orm is not None else None
        finally:
            session.close()

    def save(self, business: Business) -> None:
        session = self._session_factory()
        try:
            existing = session.get(BusinessORM, business.id)
            if existing is None:
                session.add(BusinessORM.from_domain(business))
            else:
                existing.apply(business)
            session.commit()
        finally:
            session.close()
