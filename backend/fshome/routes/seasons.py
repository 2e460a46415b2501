from __future__ import annotations
from typing import Literal
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from fshome.auth_deps import AdminContext, get_current_admin, require_super_admin
from fshome.config import settings
from fshome.db import get_session
from fshome.errors import AdminError, to_http
from fshome.schemas.common import Page
from fshome.schemas.season import (
    SeasonCreate, SeasonUpdate, SeasonPublic, LeaderboardEntryPublic, SettlementResult, PrizeStatusUpdate,
)
from fshome.services import seasons as svc

router = APIRouter(prefix="/seasons", tags=["seasons"])
leaderboard_router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])

StatusFilter = Literal["active", "ended", "settled"]

def _settlement(season, standings) -> SettlementResult:
    return SettlementResult(
        season=SeasonPublic.model_validate(season),
        leaderboard_count=len(standings),
        winners=[st.user_id for st in standings if st.is_winner],
    )

@router.get("", response_model=Page[SeasonPublic])
async def list_seasons(
    session: AsyncSession = Depends(get_session),
    admin: AdminContext = Depends(get_current_admin),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    status: StatusFilter | None = Query(default=None),
    year: int | None = Query(default=None),
):
    rows, total = await svc.list_seasons(session, page, page_size, status=status, year=year)
    return Page[SeasonPublic].build([SeasonPublic.model_validate(s) for s in rows], total, page, page_size)

@router.get("/current", response_model=SeasonPublic)
async def current_season(session: AsyncSession = Depends(get_session), admin: AdminContext = Depends(get_current_admin)):
    season = await svc.get_active_season(session)
    if not season:
        raise HTTPException(status_code=404, detail="No active season")
    return SeasonPublic.model_validate(season)

@router.post("", response_model=SeasonPublic, status_code=201)
async def create_season(
    payload: SeasonCreate,
    session: AsyncSession = Depends(get_session),
    admin: AdminContext = Depends(get_current_admin),
):
    try:
        season = await svc.create_season(session, payload, admin)
        await session.commit()
    except AdminError as e:
        await session.rollback()
        raise to_http(e)
    return SeasonPublic.model_validate(season)

@router.get("/{season_id}", response_model=SeasonPublic)
async def get_season(season_id: UUID, session: AsyncSession = Depends(get_session), admin: AdminContext = Depends(get_current_admin)):
    try:
        return SeasonPublic.model_validate(await svc.get_season(session, season_id))
    except AdminError as e:
        raise to_http(e)

@router.patch("/{season_id}", response_model=SeasonPublic)
async def update_season(
    season_id: UUID,
    payload: SeasonUpdate,
    session: AsyncSession = Depends(get_session),
    admin: AdminContext = Depends(get_current_admin),
):
    try:
        season = await svc.update_season(session, season_id, payload, admin)
        await session.commit()
    except AdminError as e:
        await session.rollback()
        raise to_http(e)
    return SeasonPublic.model_validate(season)

@router.delete("/{season_id}", status_code=204)
async def delete_season(
    season_id: UUID,
    session: AsyncSession = Depends(get_session),
    admin: AdminContext = Depends(require_super_admin),
):
    try:
        await svc.delete_season(session, season_id, admin)
        await session.commit()
    except AdminError as e:
        await session.rollback()
        raise to_http(e)
    return Response(status_code=204)

@router.post("/{season_id}/end", response_model=SettlementResult)
async def end_season(season_id: UUID, session: AsyncSession = Depends(get_session), admin: AdminContext = Depends(get_current_admin)):
    """End the season and settle its leaderboard. All-or-nothing: on failure the season stays active."""
    try:
        season, standings = await svc.end_season(session, season_id, admin)
        await session.commit()
    except AdminError as e:
        await session.rollback()
        raise to_http(e)
    return _settlement(season, standings)

@router.post("/{season_id}/resettle", response_model=SettlementResult)
async def resettle_season(season_id: UUID, session: AsyncSession = Depends(get_session), admin: AdminContext = Depends(get_current_admin)):
    try:
        season, standings = await svc.resettle_season(session, season_id, admin)
        await session.commit()
    except AdminError as e:
        await session.rollback()
        raise to_http(e)
    return _settlement(season, standings)

@router.post("/{season_id}/settle", response_model=SeasonPublic)
async def settle_season(season_id: UUID, session: AsyncSession = Depends(get_session), admin: AdminContext = Depends(get_current_admin)):
    try:
        season = await svc.settle_season(session, season_id, admin)
        await session.commit()
    except AdminError as e:
        await session.rollback()
        raise to_http(e)
    return SeasonPublic.model_validate(season)

@router.post("/{season_id}/reopen", response_model=SeasonPublic)
async def reopen_season(season_id: UUID, session: AsyncSession = Depends(get_session), admin: AdminContext = Depends(get_current_admin)):
    try:
        season = await svc.reopen_season(session, season_id, admin)
        await session.commit()
    except AdminError as e:
        await session.rollback()
        raise to_http(e)
    return SeasonPublic.model_validate(season)

@router.get("/{season_id}/leaderboard", response_model=Page[LeaderboardEntryPublic])
async def season_leaderboard(
    season_id: UUID,
    session: AsyncSession = Depends(get_session),
    admin: AdminContext = Depends(get_current_admin),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=50, ge=1, le=settings.max_page_size),
):
    try:
        rows, total = await svc.list_leaderboard(session, season_id, page, page_size)
    except AdminError as e:
        raise to_http(e)
    return Page[LeaderboardEntryPublic].build([LeaderboardEntryPublic.model_validate(r) for r in rows], total, page, page_size)

@leaderboard_router.patch("/{entry_id}", response_model=LeaderboardEntryPublic)
async def update_prize_status(
    entry_id: UUID,
    payload: PrizeStatusUpdate,
    session: AsyncSession = Depends(get_session),
    admin: AdminContext = Depends(get_current_admin),
):
    try:
        entry = await svc.update_prize_status(session, entry_id, payload.prize_status, admin)
        await session.commit()
    except AdminError as e:
        await session.rollback()
        raise to_http(e)
    return LeaderboardEntryPublic.model_validate(entry)
