from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from src.chatokay.domain.models.subscription import Subscription
from src.chatokay.domain.models.user import User
from src.chatokay.security import get_current_user, require_admin, require_admin_or_sales
from src.chatokay.services.subscriptions.service import SubscriptionOverview, subscription_service

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


class ActiveSubscriptionResponse(BaseModel):
    active: bool


@router.get("/", response_model=List[SubscriptionOverview])
async def list_subscriptions(_: User = Depends(require_admin)) -> List[SubscriptionOverview]:
    """Admin area: every subscription on the platform."""

    return subscription_service.list_all()


@router.get("/referred", response_model=List[SubscriptionOverview])
async def list_referred_subscriptions(
    current_user: User = Depends(require_admin_or_sales),
) -> List[SubscriptionOverview]:
    """Sales area: clients who signed up with the caller's referral code."""

    return subscription_service.list_referred(current_user)


@router.get("/me", response_model=Subscription)
async def get_my_subscription(current_user: User = Depends(get_current_user)) -> Subscription:
    subscription = subscription_service.get_for_user(current_user.id)
    if subscription is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subscription not found")
    return subscription


@router.get("/me/active", response_model=ActiveSubscriptionResponse)
async def is_my_subscription_active(current_user: User = Depends(get_current_user)) -> ActiveSubscriptionResponse:
    return ActiveSubscriptionResponse(active=subscription_service.is_active_for_user(current_user.id))
