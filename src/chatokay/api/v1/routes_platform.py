from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from src.chatokay.domain.models.platform_settings import PlatformSettings
from src.chatokay.domain.models.user import User
from src.chatokay.security import require_admin, require_admin_or_sales
from src.chatokay.services.platform.service import InvalidPlatformFeeError, platform_settings_service

router = APIRouter(prefix="/platform", tags=["platform"])


class PlatformSettingsUpdateRequest(BaseModel):
    platform_fee_percentage: float


@router.get("/settings", response_model=PlatformSettings)
async def get_platform_settings(_: User = Depends(require_admin_or_sales)) -> PlatformSettings:
    return platform_settings_service.get()


@router.put("/settings", response_model=PlatformSettings)
async def update_platform_settings(
    payload: PlatformSettingsUpdateRequest,
    current_user: User = Depends(require_admin),
) -> PlatformSettings:
    try:
        return platform_settings_service.update_fee_percentage(
            payload.platform_fee_percentage,
            updated_by=current_user,
        )
    except InvalidPlatformFeeError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
