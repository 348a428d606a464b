from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class SubscriptionStatus(str, Enum):
    TRIAL = "trial"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    EXPIRED = "expired"


class PlanType(str, Enum):
    MONTHLY = "monthly"
    ANNUAL = "annual"


class Subscription(BaseModel):
    id: UUID
    user_id: UUID
    status: SubscriptionStatus
    trial_end_date: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    plan_type: Optional[PlanType] = None
    price_id: Optional[str] = None
