from __future__ import annotations
from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fshome.auth_deps import AdminContext, get_current_admin
from fshome.db import get_session
from fshome.schemas.honor import HonorPublic, MilestoneGrantRequest, MilestoneGrantResult
from fshome.services.honors import grant_milestone_honor, list_user_honors

router = APIRouter(prefix="/honors", tags=["honors"])

@router.get("/{user_id}", response_model=list[HonorPublic])
async def user_honors(user_id: UUID, session: AsyncSession = Depends(get_session), admin: AdminContext = Depends(get_current_admin)):
    return [HonorPublic.model_validate(h) for h in await list_user_honors(session, user_id)]

@router.post("/milestone", response_model=MilestoneGrantResult)
async def grant_milestone(
    payload: MilestoneGrantRequest,
    session: AsyncSession = Depends(get_session),
    admin: AdminContext = Depends(get_current_admin),
):
    """Record milestone honors for an unlock count. Safe to repeat; already-held honors are skipped."""
    granted = await grant_milestone_honor(session, payload.user_id, payload.unlock_count)
    await session.commit()
    return MilestoneGrantResult(user_id=payload.user_id, granted=granted)
