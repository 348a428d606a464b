from __future__ import annotations

from typing import Dict, Iterable, Optional
from uuid import UUID

from src.chatokay.domain.models.appointment import Appointment
from src.chatokay.domain.models.business import Business
from src.chatokay.domain.models.platform_settings import PlatformSettings
from src.chatokay.domain.models.subscription import Subscription
from src.chatokay.domain.models.user import User
from src.chatokay.infra.db.repositories import (
    AppointmentRepository,
    BusinessRepository,
    PlatformSettingsRepository,
    SubscriptionRepository,
    UserRepository,
)


class InMemoryUserRepository(UserRepository):
    def __init__(self) -> None:
        self._users: Dict[UUID, User] = {}

    def get(self, user_id: UUID) -> Optional[User]:
        return self._users.get(user_id)

    def get_by_clerk_id(self, clerk_id: str) -> Optional[User]:
        for user in self._users.values():
            if user.clerk_id == clerk_id:
                return user
        return None

    def get_by_referral_code(self, referral_code: str) -> Optional[User]:
        for user in self._users.values():
            if user.referral_code == referral_code:
                return user
        return None

    def list_all(self) -> Iterable[User]:
        return list(self._users.values())

    def list_by_referrer(self, referral_id: UUID) -> Iterable[User]:
        return [user for user in self._users.values() if user.referral_id == referral_id]

    def save(self, user: User) -> None:
        # Store a copy so callers cannot mutate persisted state in place.
        self._users[user.id] = user.model_copy()


class InMemoryBusinessRepository(BusinessRepository):
    def __init__(self) -> None:
        self._businesses: Dict[UUID, Business] = {}

    def get(self, business_id: UUID) -> Optional[Business]:
        return self._businesses.get(business_id)

    def get_by_owner(self, user_id: UUID) -> Optional[Business]:
        for business in self._businesses.values():
            if business.user_id == user_id:
                return business
        return None

    def get_by_subdomain(self, subdomain: str) -> Optional[Business]:
        for business in self._businesses.values():
            if business.subdomain == subdomain:
                return business
        return None

    def save(self, business: Business) -> None:
        self._businesses[business.id] = business.model_copy(deep=True)


class InMemorySubscriptionRepository(SubscriptionRepository):
    def __init__(self) -> None:
        self._by_user: Dict[UUID, Subscription] = {}

    def get_by_user(self, user_id: UUID) -> Optional[Subscription]:
        return self._by_user.get(user_id)

    def get_by_customer_id(self, customer_id: str) -> Optional[Subscription]:
        for subscription in self._by_user.values():
            if subscription.stripe_customer_id == customer_id:
                return subscription
        return None

    def list_all(self) -> Iterable[Subscription]:
        return list(self._by_user.values())

    def save(self, subscription: Subscription) -> None:
        self._by_user[subscription.user_id] = subscription.model_copy()


class InMemoryAppointmentRepository(AppointmentRepository):
    def __init__(self) -> None:
        self._appointments: Dict[UUID, Appointment] = {}

    def get(self, appointment_id: UUID) -> Optional[Appointment]:
        return self._appointments.get(appointment_id)

    def get_by_cancellation_token(self, token: str) -> Optional[Appointment]:
        for appointment in self._appointments.values():
            if appointment.cancellation_token == token:
                return appointment
        return None

    def save(self, appointment: Appointment) -> None:
        self._appointments[appointment.id] = appointment.model_copy(deep=True)


class InMemoryPlatformSettingsRepository(PlatformSettingsRepository):
    def __init__(self) -> None:
        self._settings: Optional[PlatformSettings] = None

    def get(self) -> Optional[PlatformSettings]:
        return self._settings

    def save(self, platform_settings: PlatformSettings) -> None:
        self._settings = platform_settings.model_copy()
