from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel

from src.chatokay.services.appointments.service import CancellationView, appointment_service

router = APIRouter(prefix="/appointments", tags=["appointments"])


class CancelRequest(BaseModel):
    token: str


# Both endpoints always answer 200: unknown and already-cancelled tokens are
# terminal states of the cancellation page, not errors.


@router.get("/cancel", response_model=CancellationView)
async def get_cancellation(token: Optional[str] = Query(None)) -> CancellationView:
    return appointment_service.lookup_by_token(token)


@router.post("/cancel", response_model=CancellationView)
async def cancel_appointment(payload: CancelRequest) -> CancellationView:
    return appointment_service.cancel_by_token(payload.token)
