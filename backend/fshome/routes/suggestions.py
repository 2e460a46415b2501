from __future__ import annotations
from typing import Literal
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fshome.auth_deps import AdminContext, get_current_admin
from fshome.config import settings
from fshome.db import get_session
from fshome.errors import AdminError, to_http
from fshome.schemas.common import Page
from fshome.schemas.suggestion import SuggestionPublic, ProcessSuggestionRequest
from fshome.services.suggestions import list_suggestions, process_suggestion

router = APIRouter(prefix="/suggestions", tags=["suggestions"])

@router.get("", response_model=Page[SuggestionPublic])
async def list_all(
    session: AsyncSession = Depends(get_session),
    admin: AdminContext = Depends(get_current_admin),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    season_id: UUID | None = Query(default=None),
    status: Literal["pending", "adopted", "rejected"] | None = Query(default=None),
    user_id: UUID | None = Query(default=None),
):
    rows, total = await list_suggestions(session, page, page_size, season_id=season_id, status=status, user_id=user_id)
    return Page[SuggestionPublic].build([SuggestionPublic.model_validate(s) for s in rows], total, page, page_size)

@router.post("/{suggestion_id}/process", response_model=SuggestionPublic)
async def process(
    suggestion_id: UUID,
    payload: ProcessSuggestionRequest,
    session: AsyncSession = Depends(get_session),
    admin: AdminContext = Depends(get_current_admin),
):
    try:
        s = await process_suggestion(session, suggestion_id, payload, admin)
        await session.commit()
    except AdminError as e:
        await session.rollback()
        raise to_http(e)
    return SuggestionPublic.model_validate(s)
