from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from src.chatokay.domain.models.business import Business, BusinessService, DayAvailability, Theme
from src.chatokay.domain.models.user import User
from src.chatokay.security import get_current_user
from src.chatokay.services.businesses.service import (
    BusinessAlreadyExistsError,
    BusinessNotFoundError,
    BusinessOwnerRoleError,
    InvalidSubdomainError,
    SubdomainTakenError,
    tenant_service,
)

router = APIRouter(prefix="/businesses", tags=["businesses"])


class BusinessCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    subdomain: str
    description: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    welcome_message: Optional[str] = None
    theme: Theme = Theme.LIGHT
    services: List[BusinessService] = Field(default_factory=list)
    availability: List[DayAvailability] = Field(default_factory=list)


@router.post("/", response_model=Business, status_code=status.HTTP_201_CREATED)
async def create_business(
    payload: BusinessCreateRequest,
    current_user: User = Depends(get_current_user),
) -> Business:
    """Onboarding: create the signed-in client's business."""

    try:
        return tenant_service.create_business(owner=current_user, **payload.model_dump())
    except BusinessOwnerRoleError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    except InvalidSubdomainError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except (BusinessAlreadyExistsError, SubdomainTakenError) as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc


@router.get("/me", response_model=Business)
async def get_my_business(current_user: User = Depends(get_current_user)) -> Business:
    business = tenant_service.get_for_owner(current_user)
    if business is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Business not found")
    return business


class BusinessUpdateRequest(BaseModel):
    """Settings a client can change after onboarding; omitted fields are kept."""

    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    welcome_message: Optional[str] = None
    theme: Optional[Theme] = None
    services: Optional[List[BusinessService]] = None
    availability: Optional[List[DayAvailability]] = None


@router.patch("/me", response_model=Business)
async def update_my_business(
    payload: BusinessUpdateRequest,
    current_user: User = Depends(get_current_user),
) -> Business:
    changes = payload.model_dump(exclude_unset=True)
    # Explicit nulls only clear optional text fields.
    for required in ("name", "theme", "services", "availability"):
        if required in changes and changes[required] is None:
            del changes[required]

    try:
        return tenant_service.update_business(owner=current_user, changes=changes)
    except BusinessOwnerRoleError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    except BusinessNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
