from __future__ import annotations
from datetime import datetime
from typing import Literal
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fshome.auth_deps import AdminContext, get_current_admin
from fshome.config import settings
from fshome.db import get_session
from fshome.errors import AdminError, to_http
from fshome.schemas.common import Page
from fshome.schemas.participation import ParticipationPublic, ReviewRequest
from fshome.services.participations import list_participations, review_participation

router = APIRouter(prefix="/participations", tags=["participations"])

StatusFilter = Literal["pending", "approved", "rejected"]

@router.get("", response_model=Page[ParticipationPublic])
async def list_all(
    session: AsyncSession = Depends(get_session),
    admin: AdminContext = Depends(get_current_admin),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    challenge_id: UUID | None = Query(default=None),
    status: StatusFilter | None = Query(default=None),
    user_id: UUID | None = Query(default=None),
    submitted_from: datetime | None = Query(default=None),
    submitted_to: datetime | None = Query(default=None),
):
    rows, total = await list_participations(
        session, page, page_size,
        challenge_id=challenge_id, status=status, user_id=user_id,
        submitted_from=submitted_from, submitted_to=submitted_to,
    )
    return Page[ParticipationPublic].build([ParticipationPublic.model_validate(p) for p in rows], total, page, page_size)

@router.post("/{participation_id}/review", response_model=ParticipationPublic)
async def review(
    participation_id: UUID,
    payload: ReviewRequest,
    session: AsyncSession = Depends(get_session),
    admin: AdminContext = Depends(get_current_admin),
):
    """Approve (awarding the mode's points once) or reject a challenge submission."""
    try:
        p = await review_participation(session, participation_id, payload.status, payload.admin_note, admin)
        await session.commit()
    except AdminError as e:
        await session.rollback()
        raise to_http(e)
    return ParticipationPublic.model_validate(p)
