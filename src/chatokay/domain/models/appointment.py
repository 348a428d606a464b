from __future__ import annotations

from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class CustomerData(BaseModel):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None


class Appointment(BaseModel):
    """A booking made by an end customer through a tenant's chatbot."""

    id: UUID
    business_id: UUID
    customer: CustomerData
    # ISO-8601 local time as entered by the booking flow.
    appointment_time: str
    service_name: str
    status: AppointmentStatus = AppointmentStatus.PENDING
    notes: Optional[str] = None
    # One-time token embedded in the customer's cancellation link.
    cancellation_token: Optional[str] = None
