from __future__ import annotations
from fastapi import APIRouter, Depends, Request
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from fshome.config import settings
from fshome.db import get_session
from fshome.services.seasons import get_active_season

router = APIRouter()

@router.get("/health")
async def health(request: Request, session: AsyncSession = Depends(get_session)):
    active = await get_active_season(session)
    return {
        "status": "ok",
        "env": settings.environment,
        "time": datetime.now(timezone.utc).isoformat(),
        "request_id": request.headers.get("x-request-id") or request.state.request_id,
        "active_season": active.name if active else None,
    }

@router.get("/version")
async def version():
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "git_sha": settings.git_sha,
        "build": "docker",
    }
