from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.chatokay.domain.session.guards import Area
from src.chatokay.security import get_identity_subject
from src.chatokay.services.session.sync import SessionView, resolve_session

router = APIRouter(prefix="/session", tags=["session"])


@router.get("", response_model=SessionView)
async def get_session(
    area: Area = Query(Area.CLIENT),
    subject: Optional[str] = Depends(get_identity_subject),
) -> SessionView:
    """Session phase, role and the guard decision for ``area``.

    Layouts call this to decide between rendering, a loading placeholder and
    a redirect. Anonymous callers are reported as unauthenticated.
    """

    return resolve_session(subject, area)
