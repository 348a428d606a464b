from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

DEFAULT_PLATFORM_FEE_PERCENTAGE = 10.0


class PlatformSettings(BaseModel):
    # Share of revenue attributed to platform costs, 10 means 10%.
    platform_fee_percentage: float = DEFAULT_PLATFORM_FEE_PERCENTAGE
    updated_at: Optional[datetime] = None
    updated_by: Optional[UUID] = None
