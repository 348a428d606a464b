from __future__ import annotations

import re
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

SUBDOMAIN_PATTERN = re.compile(r"^[a-z0-9](?:[a-z0-9-]{1,61}[a-z0-9])$")
RESERVED_SUBDOMAINS = frozenset({"www", "api", "app", "admin"})


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class BusinessService(BaseModel):
    id: str
    name: str
    # Minutes.
    duration: int
    price: Optional[float] = None
    max_people: Optional[int] = None


class TimeSlot(BaseModel):
    start: str
    end: str


class DayAvailability(BaseModel):
    day: str
    slots: List[TimeSlot] = Field(default_factory=list)


class Business(BaseModel):
    """A tenant: one customer organization owned by a single client user."""

    id: UUID
    user_id: UUID
    name: str
    subdomain: str
    description: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    welcome_message: Optional[str] = None
    theme: Theme = Theme.LIGHT
    services: List[BusinessService] = Field(default_factory=list)
    availability: List[DayAvailability] = Field(default_factory=list)


def is_valid_subdomain(value: str) -> bool:
    return bool(SUBDOMAIN_PATTERN.match(value)) and value not in RESERVED_SUBDOMAINS
