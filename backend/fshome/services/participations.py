from __future__ import annotations
from datetime import datetime
from uuid import UUID
import structlog
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from fshome.auth_deps import AdminContext
from fshome.db import utcnow
from fshome.errors import NotFound
from fshome.models.challenge import WeeklyChallenge, ChallengeMode
from fshome.models.participation import UserParticipation
from fshome.models.points import UserPoints
from fshome.services.paging import paginate
from fshome.services.settlement import COMPLETION_TYPES

log = structlog.get_logger()

async def list_participations(
    session: AsyncSession,
    page: int,
    page_size: int,
    challenge_id: UUID | None = None,
    status: str | None = None,
    user_id: UUID | None = None,
    submitted_from: datetime | None = None,
    submitted_to: datetime | None = None,
) -> tuple[list[UserParticipation], int]:
    q = select(UserParticipation)
    if challenge_id:
        q = q.where(UserParticipation.challenge_id == challenge_id)
    if status:
        q = q.where(UserParticipation.status == status)
    if user_id:
        q = q.where(UserParticipation.user_id == user_id)
    if submitted_from:
        q = q.where(UserParticipation.submitted_at >= submitted_from)
    if submitted_to:
        q = q.where(UserParticipation.submitted_at <= submitted_to)
    q = q.order_by(UserParticipation.submitted_at.desc())
    return await paginate(session, q, page, page_size)

async def _award_completion_once(session: AsyncSession, p: UserParticipation, season_id: UUID, mode: ChallengeMode) -> bool:
    """One completion row per participation; re-approving never double-counts."""
    reward = int(mode.points_reward or 0)
    if reward <= 0:
        return False
    point_type = f"{mode.mode_type}_completion"
    exists = await session.scalar(
        select(UserPoints.id).where(UserPoints.participation_id == p.id, UserPoints.point_type == point_type)
    )
    if exists:
        return False
    session.add(UserPoints(
        user_id=p.user_id,
        season_id=season_id,
        participation_id=p.id,
        point_type=point_type,
        points=reward,
        description=f"Completed {mode.mode_type} mode challenge: +{reward} points",
    ))
    return True

async def review_participation(
    session: AsyncSession, participation_id: UUID, status: str, admin_note: str | None, admin: AdminContext
) -> UserParticipation:
    """
    Approve or reject a submission.
      - approval writes the completion points (mode.points_reward) to the season ledger, once
      - moving an approved submission away from approved removes its completion points
    """
    p = await session.get(UserParticipation, participation_id, with_for_update=True)
    if not p:
        raise NotFound("Participation not found")
    ch = await session.get(WeeklyChallenge, p.challenge_id)
    mode = await session.get(ChallengeMode, p.mode_id)
    if not ch or not mode:
        raise NotFound("Challenge or mode for this participation no longer exists")

    prev_status = p.status
    p.status = status
    p.admin_note = admin_note
    p.reviewed_at = utcnow()
    p.reviewed_by = admin.admin_id

    awarded = False
    if status == "approved":
        awarded = await _award_completion_once(session, p, ch.season_id, mode)
    elif prev_status == "approved":
        await session.execute(
            delete(UserPoints).where(
                UserPoints.participation_id == p.id, UserPoints.point_type.in_(COMPLETION_TYPES)
            )
        )
    await session.flush()
    log.info(
        "participation_reviewed",
        participation_id=str(p.id),
        from_status=prev_status,
        to_status=status,
        points_awarded=awarded,
        admin_id=str(admin.admin_id),
    )
    return p
