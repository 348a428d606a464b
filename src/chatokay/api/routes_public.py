from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from src.chatokay.domain.models.business import Business, BusinessService, DayAvailability, Theme
from src.chatokay.services.businesses.service import tenant_service

logger = logging.getLogger("businesses")

router = APIRouter(tags=["public"])


class PublicBusiness(BaseModel):
    """Tenant record as exposed to anonymous visitors (no owner details)."""

    id: UUID
    name: str
    subdomain: str
    description: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    welcome_message: Optional[str] = None
    theme: Theme
    services: List[BusinessService]
    availability: List[DayAvailability]

    @classmethod
    def from_business(cls, business: Business) -> "PublicBusiness":
        return cls(**business.model_dump(exclude={"user_id"}))


class ChatBootstrap(BaseModel):
    subdomain: str
    business_name: str
    welcome_message: Optional[str] = None
    theme: Theme
    services: List[BusinessService]


@router.get("/api/business/", include_in_schema=False)
async def get_business_without_subdomain() -> JSONResponse:
    return JSONResponse({"error": "Subdomain is required"}, status_code=status.HTTP_400_BAD_REQUEST)


@router.get("/api/business/{subdomain}", response_model=PublicBusiness)
async def get_business_by_subdomain(subdomain: str):
    """Tenant lookup used by the public chat pages."""

    if not subdomain.strip():
        return JSONResponse({"error": "Subdomain is required"}, status_code=status.HTTP_400_BAD_REQUEST)

    try:
        business = tenant_service.get_by_subdomain(subdomain)
    except Exception:
        logger.exception("Error fetching business for subdomain %s", subdomain)
        return JSONResponse({"error": "Internal server error"}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if business is None:
        return JSONResponse({"error": "Business not found"}, status_code=status.HTTP_404_NOT_FOUND)

    return PublicBusiness.from_business(business)


@router.get("/chat/{subdomain}", response_model=ChatBootstrap)
async def chat_bootstrap(subdomain: str) -> ChatBootstrap:
    """Data the tenant's chat page needs to start a conversation."""

    business = tenant_service.get_by_subdomain(subdomain)
    if business is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Business not found")

    return ChatBootstrap(
        subdomain=business.subdomain,
        business_name=business.name,
        welcome_message=business.welcome_message,
        theme=business.theme,
        services=business.services,
    )
