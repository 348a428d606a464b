from __future__ import annotations

from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import select

from src.chatokay.domain.models.appointment import Appointment
from src.chatokay.domain.models.platform_settings import PlatformSettings
from src.chatokay.domain.models.subscription import Subscription
from src.chatokay.infra.db.models import AppointmentORM, PlatformSettingsORM, SubscriptionORM
from src.chatokay.infra.db.repositories import (
    AppointmentRepository,
    PlatformSettingsRepository,
    SubscriptionRepository,
)
from src.chatokay.infra.db.session import SessionFactory


class SqlSubscriptionRepository(SubscriptionRepository):
    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    def get_by_user(self, user_id: UUID) -> Optional[Subscription]:
        session = self._session_factory()
        try:
            orm = session.scalars(select(SubscriptionORM).where(SubscriptionORM.user_id == user_id)).first()
            return orm.to_domain() if orm is not None else None
        finally:
            session.close()

    def get_by_customer_id(self, customer_id: str) -> Optional[Subscription]:
        session = self._session_factory()
        try:
            orm = session.scalars(
                select(SubscriptionORM).where(SubscriptionORM.stripe_customer_id == customer_id)
            ).first()
            return orm.to_domain() if orm is not None else None
        finally:
            session.close()

    def list_all(self) -> Iterable[Subscription]:
        session = self._session_factory()
        try:
            return [orm.to_domain() for orm in session.scalars(select(SubscriptionORM))]
        finally:
            session.close()

    def save(self, subscription: Subscription) -> None:
        session = self._session_factory()
        try:
            existing = session.get(SubscriptionORM, subscription.id)
            if existing is None:
                session.add(SubscriptionORM.from_domain(subscription))
            else:
                existing.apply(subscription)
            session.commit()
        finally:
            session.close()


class SqlAppointmentRepository(AppointmentRepository):
    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    def get(self, appointment_id: UUID) -> Optional[Appointment]:
        session = self._session_factory()
        try:
            orm = session.get(AppointmentORM, appointment_id)
            return orm.to_domain() if orm is not None else None
        finally:
            session.close()

    def get_by_cancellation_token(self, token: str) -> Optional[Appointment]:
        session = self._session_factory()
        try:
            orm = session.scalars(
                select(AppointmentORM).where(AppointmentORM.cancellation_token == token)
            ).first()
            return orm.to_domain() if orm is not None else None
        finally:
            session.close()

    def save(self, appointment: Appointment) -> None:
        session = self._session_factory()
        try:
            existing = session.get(AppointmentORM, appointment.id)
            if existing is None:
                session.add(AppointmentORM.from_domain(appointment))
            else:
                existing.apply(appointment)
            session.commit()
        finally:
            session.close()


class SqlPlatformSettingsRepository(PlatformSettingsRepository):
    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    def get(self) -> Optional[PlatformSettings]:
        session = self._session_factory()
        try:
            orm = session.get(PlatformSettingsORM, 1)
            return orm.to_domain() if orm is not None else None
        finally:
            session.close()

    def save(self, platform_settings: PlatformSettings) -> None:
        session = self._session_factory()
        try:
            orm = session.get(PlatformSettingsORM, 1)
            if orm is None:
                orm = PlatformSettingsORM(id=1, platform_fee_percentage=platform_settings.platform_fee_percentage)
                session.add(orm)
            orm.platform_fee_percentage = platform_settings.platform_fee_percentage
            orm.updated_at = platform_settings.updated_at
            orm.updated_by = platform_settings.updated_by
            session.commit()
        finally:
            session.close()
