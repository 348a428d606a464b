from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Optional
from uuid import UUID

from src.chatokay.domain.models.appointment import Appointment
from src.chatokay.domain.models.business import Business
from src.chatokay.domain.models.platform_settings import PlatformSettings
from src.chatokay.domain.models.subscription import Subscription
from src.chatokay.domain.models.user import User


class UserRepository(ABC):
    @abstractmethod
    def get(self, user_id: UUID) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    def get_by_clerk_id(self, clerk_id: str) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    def get_by_referral_code(self, referral_code: str) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    def list_all(self) -> Iterable[User]:
        raise NotImplementedError

    @abstractmethod
    def list_by_referrer(self, referral_id: UUID) -> Iterable[User]:
        raise NotImplementedError

    @abstractmethod
    def save(self, user: User) -> None:
        raise NotImplementedError


class BusinessRepository(ABC):
    @abstractmethod
    def get(self, business_id: UUID) -> Optional[Business]:
        raise NotImplementedError

    @abstractmethod
    def get_by_owner(self, user_id: UUID) -> Optional[Business]:
        raise NotImplementedError

    @abstractmethod
    def get_by_subdomain(self, subdomain: str) -> Optional[Business]:
        raise NotImplementedError

    @abstractmethod
    def save(self, business: Business) -> None:
        raise NotImplementedError


class SubscriptionRepository(ABC):
    @abstractmethod
    def get_by_user(self, user_id: UUID) -> Optional[Subscription]:
        raise NotImplementedError

    @abstractmethod
    def get_by_customer_id(self, customer_id: str) -> Optional[Subscription]:
        raise NotImplementedError

    @abstractmethod
    def list_all(self) -> Iterable[Subscription]:
        raise NotImplementedError

    @abstractmethod
    def save(self, subscription: Subscription) -> None:
        raise NotImplementedError


class AppointmentRepository(ABC):
    @abstractmethod
    def get(self, appointment_id: UUID) -> Optional[Appointment]:
        raise NotImplementedError

    @abstractmethod
    def get_by_cancellation_token(self, token: str) -> Optional[Appointment]:
        raise NotImplementedError

    @abstractmethod
    def save(self, appointment: Appointment) -> None:
        raise NotImplementedError


class PlatformSettingsRepository(ABC):
    @abstractmethod
    def get(self) -> Optional[PlatformSettings]:
        raise NotImplementedError

    @abstractmethod
    def save(self, platform_settings: PlatformSettings) -> None:
        raise NotImplementedError
