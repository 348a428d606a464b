from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, DateTime, Float, String, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from src.chatokay.domain.models.appointment import Appointment, AppointmentStatus, CustomerData
from src.chatokay.domain.models.business import Business, Theme
from src.chatokay.domain.models.platform_settings import PlatformSettings
from src.chatokay.domain.models.subscription import PlanType, Subscription, SubscriptionStatus
from src.chatokay.domain.models.user import User, UserRole


class Base(DeclarativeBase):
    pass


class UserORM(Base):
    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    clerk_id: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
    email: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str | None] = mapped_column(String, nullable=True)
    # Stored as plain text so an unexpected value surfaces as an unknown role
    # instead of failing the load.
    role: Mapped[str | None] = mapped_column(String, nullable=True)
    country: Mapped[str | None] = mapped_column(String, nullable=True)
    referral_code: Mapped[str | None] = mapped_column(String, nullable=True, unique=True, index=True)
    referral_id: Mapped[UUID | None] = mapped_column(Uuid, nullable=True, index=True)

    @classmethod
    def from_domain(cls, user: User) -> "UserORM":
        orm = cls(id=user.id)
        orm.apply(user)
        return orm

    def apply(self, user: User) -> None:
        self.clerk_id = user.clerk_id
        self.email = user.email
        self.name = user.name
        self.role = user.role.value if user.role else None
        self.country = user.country
        self.referral_code = user.referral_code
        self.referral_id = user.referral_id

    def to_domain(self) -> User:
        return User(
            id=self.id,
            clerk_id=self.clerk_id,
            email=self.email,
            name=self.name,
            role=UserRole.coerce(self.role),
            country=self.country,
            referral_code=self.referral_code,
            referral_id=self.referral_id,
        )


class BusinessORM(Base):
    __tablename__ = "businesses"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    subdomain: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
    description: Mapped[str | None] = mapped_column(String, nullable=True)
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    phone: Mapped[str | None] = mapped_column(String, nullable=True)
    welcome_message: Mapped[str | None] = mapped_column(String, nullable=True)
    theme: Mapped[str] = mapped_column(String, nullable=False, default=Theme.LIGHT.value)
    # Services and availability are small nested documents; JSON keeps them
    # in the same shape the API exposes.
    services: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=list)
    availability: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=list)

    @classmethod
    def from_domain(cls, business: Business) -> "BusinessORM":
        orm = cls(id=business.id)
        orm.apply(business)
        return orm

    def apply(self, business: Business) -> None:
        self.user_id = business.user_id
        self.name = business.name
        self.subdomain = business.subdomain
        self.description = business.description
        self.email = business.email
        self.phone = business.phone
        self.welcome_message = business.welcome_message
        self.theme = business.theme.value
        self.services = [s.model_dump() for s in business.services]
        self.availability = [d.model_dump() for d in business.availability]

    def to_domain(self) -> Business:
        return Business(
            id=self.id,
            user_id=self.user_id,
            name=self.name,
            subdomain=self.subdomain,
            description=self.description,
            email=self.email,
            phone=self.phone,
            welcome_message=self.welcome_message,
            theme=Theme(self.theme),
            services=self.services or [],
            availability=self.availability or [],
        )


class SubscriptionORM(Base):
    __tablename__ = "subscriptions"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, unique=True, index=True)
    status: Mapped[str] = mapped_column(String, nullable=False)
    trial_end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    current_period_end: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    stripe_customer_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    stripe_subscription_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    plan_type: Mapped[str | None] = mapped_column(String, nullable=True)
    price_id: Mapped[str | None] = mapped_column(String, nullable=True)

    @classmethod
    def from_domain(cls, subscription: Subscription) -> "SubscriptionORM":
        orm = cls(id=subscription.id)
        orm.apply(subscription)
        return orm

    def apply(self, subscription: Subscription) -> None:
        self.user_id = subscription.user_id
        self.status = subscription.status.value
        self.trial_end_date = subscription.trial_end_date
        self.current_period_end = subscription.current_period_end
        self.stripe_customer_id = subscription.stripe_customer_id
        self.stripe_subscription_id = subscription.stripe_subscription_id
        self.plan_type = subscription.plan_type.value if subscription.plan_type else None
        self.price_id = subscription.price_id

    def to_domain(self) -> Subscription:
        return Subscription(
            id=self.id,
            user_id=self.user_id,
            status=SubscriptionStatus(self.status),
            trial_end_date=self.trial_end_date,
            current_period_end=self.current_period_end,
            stripe_customer_id=self.stripe_customer_id,
            stripe_subscription_id=self.stripe_subscription_id,
            plan_type=PlanType(self.plan_type) if self.plan_type else None,
            price_id=self.price_id,
        )


class AppointmentORM(Base):
    __tablename__ = "appointments"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    business_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    customer_name: Mapped[str] = mapped_column(String, nullable=False)
    customer_email: Mapped[str | None] = mapped_column(String, nullable=True)
    customer_phone: Mapped[str | None] = mapped_column(String, nullable=True)
    appointment_time: Mapped[str] = mapped_column(String, nullable=False)
    service_name: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False)
    notes: Mapped[str | None] = mapped_column(String, nullable=True)
    cancellation_token: Mapped[str | None] = mapped_column(String, nullable=True, unique=True, index=True)

    @classmethod
    def from_domain(cls, appointment: Appointment) -> "AppointmentORM":
        orm = cls(id=appointment.id)
        orm.apply(appointment)
        return orm

    def apply(self, appointment: Appointment) -> None:
        self.business_id = appointment.business_id
        self.customer_name = appointment.customer.name
        self.customer_email = appointment.customer.email
        self.customer_phone = appointment.customer.phone
        self.appointment_time = appointment.appointment_time
        self.service_name = appointment.service_name
        self.status = appointment.status.value
        self.notes = appointment.notes
        self.cancellation_token = appointment.cancellation_token

    def to_domain(self) -> Appointment:
        return Appointment(
            id=self.id,
            business_id=self.business_id,
            customer=CustomerData(
                name=self.customer_name,
                email=self.customer_email,
                phone=self.customer_phone,
            ),
            appointment_time=self.appointment_time,
            service_name=self.service_name,
            status=AppointmentStatus(self.status),
            notes=self.notes,
            cancellation_token=self.cancellation_token,
        )


class PlatformSettingsORM(Base):
    __tablename__ = "platform_settings"

    # Single-row table.
    id: Mapped[int] = mapped_column(primary_key=True, default=1)
    platform_fee_percentage: Mapped[float] = mapped_column(Float, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_by: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)

    def to_domain(self) -> PlatformSettings:
        return PlatformSettings(
            platform_fee_percentage=self.platform_fee_percentage,
            updated_at=self.updated_at,
            updated_by=self.updated_by,
        )
