from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from src.chatokay.domain.models.user import User
from src.chatokay.security import get_current_user
from src.chatokay.services.users.service import RoleNotAllowedError, user_sync_service

router = APIRouter(prefix="/users", tags=["users"])


class CountryUpdateRequest(BaseModel):
    # ISO 3166-1 alpha-2, as returned by the IP geolocation lookups.
    country: str = Field(min_length=2, max_length=2, pattern=r"^[A-Za-z]{2}$")


@router.get("/me", response_model=User)
async def get_me(current_user: User = Depends(get_current_user)) -> User:
    return current_user


@router.post("/me/country", response_model=User)
async def set_my_country(
    payload: CountryUpdateRequest,
    current_user: User = Depends(get_current_user),
) -> User:
    """Store the country detected in the browser after sign-up.

    Detection is best effort; once a country is stored later calls keep it.
    """

    return user_sync_service.set_country_if_unset(current_user, payload.country)


@router.post("/me/referral-code", response_model=User)
async def issue_my_referral_code(current_user: User = Depends(get_current_user)) -> User:
    try:
        return user_sync_service.issue_referral_code(current_user)
    except RoleNotAllowedError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
