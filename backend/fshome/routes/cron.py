from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fshome.config import settings
from fshome.db import get_session
from fshome.jobs.pending_digest import check_pending

router = APIRouter(prefix="/cron", tags=["cron"])

@router.get("/check-pending")
async def check_pending_reviews(
    session: AsyncSession = Depends(get_session),
    authorization: str | None = Header(None),
    secret: str | None = Query(default=None),
):
    if settings.cron_secret:
        provided = authorization.split(" ", 1)[1] if authorization and authorization.lower().startswith("bearer ") else secret
        if provided != settings.cron_secret:
            raise HTTPException(status_code=401, detail="Unauthorized")
    return await check_pending(session)
