from __future__ import annotations
from typing import Literal
from uuid import UUID
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from fshome.auth_deps import AdminContext, get_current_admin
from fshome.config import settings
from fshome.db import get_session
from fshome.errors import AdminError, to_http
from fshome.models.challenge import WeeklyChallenge
from fshome.schemas.challenge import (
    ChallengeCreate, ChallengeUpdate, ChallengePublic, ChallengeDetail, ModeCreate, ModeUpdate, ModePublic,
)
from fshome.schemas.common import Page
from fshome.services import challenges as svc

router = APIRouter(prefix="/challenges", tags=["challenges"])
modes_router = APIRouter(prefix="/modes", tags=["challenges"])

StatusFilter = Literal["draft", "active", "ended"]

async def hydrate_detail(session: AsyncSession, ch: WeeklyChallenge) -> ChallengeDetail:
    modes = await svc.list_modes(session, ch.id)
    counts = await svc.participant_counts(session, [ch.id])
    return ChallengeDetail(
        **ChallengePublic.model_validate(ch).model_dump(),
        modes=[ModePublic.model_validate(m) for m in modes],
        participant_count=counts.get(ch.id, 0),
    )

@router.get("", response_model=Page[ChallengeDetail])
async def list_challenges(
    session: AsyncSession = Depends(get_session),
    admin: AdminContext = Depends(get_current_admin),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    season_id: UUID | None = Query(default=None),
    status: StatusFilter | None = Query(default=None),
    week_number: int | None = Query(default=None, ge=1),
    search: str | None = Query(default=None, max_length=100),
):
    rows, total = await svc.list_challenges(
        session, page, page_size, season_id=season_id, status=status, week_number=week_number, search=search
    )
    items = [await hydrate_detail(session, ch) for ch in rows]
    return Page[ChallengeDetail].build(items, total, page, page_size)

@router.post("", response_model=ChallengePublic, status_code=201)
async def create_challenge(
    payload: ChallengeCreate,
    session: AsyncSession = Depends(get_session),
    admin: AdminContext = Depends(get_current_admin),
):
    try:
        ch = await svc.create_challenge(session, payload, admin)
        await session.commit()
    except AdminError as e:
        await session.rollback()
        raise to_http(e)
    return ChallengePublic.model_validate(ch)

@router.get("/{challenge_id}", response_model=ChallengeDetail)
async def get_challenge(challenge_id: UUID, session: AsyncSession = Depends(get_session), admin: AdminContext = Depends(get_current_admin)):
    try:
        ch = await svc.get_challenge(session, challenge_id)
    except AdminError as e:
        raise to_http(e)
    return await hydrate_detail(session, ch)

@router.patch("/{challenge_id}", response_model=ChallengePublic)
async def update_challenge(
    challenge_id: UUID,
    payload: ChallengeUpdate,
    session: AsyncSession = Depends(get_session),
    admin: AdminContext = Depends(get_current_admin),
):
    try:
        ch = await svc.update_challenge(session, challenge_id, payload, admin)
        await session.commit()
    except AdminError as e:
        await session.rollback()
        raise to_http(e)
    return ChallengePublic.model_validate(ch)

@router.delete("/{challenge_id}", status_code=204)
async def delete_challenge(challenge_id: UUID, session: AsyncSession = Depends(get_session), admin: AdminContext = Depends(get_current_admin)):
    try:
        await svc.delete_challenge(session, challenge_id, admin)
        await session.commit()
    except AdminError as e:
        await session.rollback()
        raise to_http(e)
    return Response(status_code=204)

async def _lifecycle(action, challenge_id: UUID, session: AsyncSession, admin: AdminContext) -> ChallengePublic:
    try:
        ch = await action(session, challenge_id, admin)
        await session.commit()
    except AdminError as e:
        await session.rollback()
        raise to_http(e)
    return ChallengePublic.model_validate(ch)

@router.post("/{challenge_id}/activate", response_model=ChallengePublic)
async def activate_challenge(challenge_id: UUID, session: AsyncSession = Depends(get_session), admin: AdminContext = Depends(get_current_admin)):
    return await _lifecycle(svc.activate_challenge, challenge_id, session, admin)

@router.post("/{challenge_id}/end", response_model=ChallengePublic)
async def end_challenge(challenge_id: UUID, session: AsyncSession = Depends(get_session), admin: AdminContext = Depends(get_current_admin)):
    return await _lifecycle(svc.end_challenge, challenge_id, session, admin)

@router.post("/{challenge_id}/reopen", response_model=ChallengePublic)
async def reopen_challenge(challenge_id: UUID, session: AsyncSession = Depends(get_session), admin: AdminContext = Depends(get_current_admin)):
    """Only possible while the parent season is active."""
    return await _lifecycle(svc.reopen_challenge, challenge_id, session, admin)

# ---------- modes ----------

@router.get("/{challenge_id}/modes", response_model=list[ModePublic])
async def list_modes(challenge_id: UUID, session: AsyncSession = Depends(get_session), admin: AdminContext = Depends(get_current_admin)):
    try:
        modes = await svc.list_modes(session, challenge_id)
    except AdminError as e:
        raise to_http(e)
    return [ModePublic.model_validate(m) for m in modes]

@router.post("/{challenge_id}/modes", response_model=ModePublic, status_code=201)
async def create_mode(
    challenge_id: UUID,
    payload: ModeCreate,
    session: AsyncSession = Depends(get_session),
    admin: AdminContext = Depends(get_current_admin),
):
    try:
        mode = await svc.create_mode(session, challenge_id, payload, admin)
        await session.commit()
    except AdminError as e:
        await session.rollback()
        raise to_http(e)
    return ModePublic.model_validate(mode)

@modes_router.patch("/{mode_id}", response_model=ModePublic)
async def update_mode(
    mode_id: UUID,
    payload: ModeUpdate,
    session: AsyncSession = Depends(get_session),
    admin: AdminContext = Depends(get_current_admin),
):
    try:
        mode = await svc.update_mode(session, mode_id, payload, admin)
        await session.commit()
    except AdminError as e:
        await session.rollback()
        raise to_http(e)
    return ModePublic.model_validate(mode)

@modes_router.delete("/{mode_id}", status_code=204)
async def delete_mode(mode_id: UUID, session: AsyncSession = Depends(get_session), admin: AdminContext = Depends(get_current_admin)):
    try:
        await svc.delete_mode(session, mode_id, admin)
        await session.commit()
    except AdminError as e:
        await session.rollback()
        raise to_http(e)
    return Response(status_code=204)
