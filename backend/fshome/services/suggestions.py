from __future__ import annotations
from uuid import UUID
import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fshome.auth_deps import AdminContext
from fshome.config import settings
from fshome.db import utcnow
from fshome.errors import NotFound, InvalidTransition
from fshome.models.challenge import WeeklyChallenge
from fshome.models.points import UserPoints
from fshome.models.suggestion import UserSuggestion
from fshome.schemas.suggestion import ProcessSuggestionRequest
from fshome.services.paging import paginate

log = structlog.get_logger()

async def list_suggestions(
    session: AsyncSession,
    page: int,
    page_size: int,
    season_id: UUID | None = None,
    status: str | None = None,
    user_id: UUID | None = None,
) -> tuple[list[UserSuggestion], int]:
    q = select(UserSuggestion)
    if season_id:
        q = q.where(UserSuggestion.season_id == season_id)
    if status:
        q = q.where(UserSuggestion.status == status)
    if user_id:
        q = q.where(UserSuggestion.user_id == user_id)
    q = q.order_by(UserSuggestion.created_at.desc())
    return await paginate(session, q, page, page_size)

async def _award_adoption_once(session: AsyncSession, s: UserSuggestion) -> bool:
    reward = settings.suggestion_adopted_points
    if reward <= 0:
        return False
    exists = await session.scalar(
        select(UserPoints.id).where(UserPoints.suggestion_id == s.id, UserPoints.point_type == "suggestion_adopted")
    )
    if exists:
        return False
    session.add(UserPoints(
        user_id=s.user_id,
        season_id=s.season_id,
        suggestion_id=s.id,
        point_type="suggestion_adopted",
        points=reward,
        description=f"Challenge suggestion adopted: +{reward} points",
    ))
    return True

async def process_suggestion(
    session: AsyncSession, suggestion_id: UUID, req: ProcessSuggestionRequest, admin: AdminContext
) -> UserSuggestion:
    s = await session.get(UserSuggestion, suggestion_id, with_for_update=True)
    if not s:
        raise NotFound("Suggestion not found")
    if s.status != "pending":
        raise InvalidTransition(f"Suggestion was already {s.status}")

    if req.adopted_challenge_id is not None:
        ch = await session.get(WeeklyChallenge, req.adopted_challenge_id)
        if not ch:
            raise NotFound("Adopted challenge not found")
        if ch.season_id != s.season_id:
            raise InvalidTransition("Adopted challenge belongs to a different season than the suggestion")

    s.status = req.status
    s.admin_note = req.admin_note
    s.adopted_challenge_id = req.adopted_challenge_id
    s.updated_at = utcnow()
    awarded = await _award_adoption_once(session, s) if s.status == "adopted" else False
    await session.flush()
    log.info(
        "suggestion_processed",
        suggestion_id=str(s.id),
        status=s.status,
        points_awarded=awarded,
        admin_id=str(admin.admin_id),
    )
    return s
