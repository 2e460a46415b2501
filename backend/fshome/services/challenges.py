from __future__ import annotations
from uuid import UUID
import structlog
from sqlalchemy import select, func, delete, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fshome.auth_deps import AdminContext
from fshome.db import utcnow
from fshome.errors import NotFound, InvalidTransition, Conflict
from fshome.models.challenge import WeeklyChallenge, ChallengeMode
from fshome.models.participation import UserParticipation
from fshome.models.points import UserPoints
from fshome.models.suggestion import UserSuggestion
from fshome.schemas.challenge import ChallengeCreate, ChallengeUpdate, ModeCreate, ModeUpdate
from fshome.services.paging import paginate
from fshome.services.seasons import get_season

log = structlog.get_logger()

# ---------- reads ----------

async def get_challenge(session: AsyncSession, challenge_id: UUID, *, for_update: bool = False) -> WeeklyChallenge:
    ch = await session.get(WeeklyChallenge, challenge_id, with_for_update=for_update)
    if not ch:
        raise NotFound("Challenge not found")
    return ch

async def list_challenges(
    session: AsyncSession,
    page: int,
    page_size: int,
    season_id: UUID | None = None,
    status: str | None = None,
    week_number: int | None = None,
    search: str | None = None,
) -> tuple[list[WeeklyChallenge], int]:
    q = select(WeeklyChallenge)
    if season_id:
        q = q.where(WeeklyChallenge.season_id == season_id)
    if status:
        q = q.where(WeeklyChallenge.status == status)
    if week_number:
        q = q.where(WeeklyChallenge.week_number == week_number)
    if search:
        pattern = f"%{search}%"
        q = q.where(or_(WeeklyChallenge.title.ilike(pattern), WeeklyChallenge.description.ilike(pattern)))
    q = q.order_by(WeeklyChallenge.start_date.desc(), WeeklyChallenge.week_number.desc())
    return await paginate(session, q, page, page_size)

async def participant_counts(session: AsyncSession, challenge_ids: list[UUID]) -> dict[UUID, int]:
    if not challenge_ids:
        return {}
    rows = (await session.execute(
        select(UserParticipation.challenge_id, func.count(func.distinct(UserParticipation.user_id)))
        .where(UserParticipation.challenge_id.in_(challenge_ids))
        .group_by(UserParticipation.challenge_id)
    )).all()
    return {cid: int(n) for cid, n in rows}

async def list_modes(session: AsyncSession, challenge_id: UUID) -> list[ChallengeMode]:
    await get_challenge(session, challenge_id)
    return (await session.execute(
        select(ChallengeMode).where(ChallengeMode.challenge_id == challenge_id).order_by(ChallengeMode.mode_type)
    )).scalars().all()

# ---------- challenge writes ----------

async def create_challenge(session: AsyncSession, data: ChallengeCreate, admin: AdminContext) -> WeeklyChallenge:
    await get_season(session, data.season_id)
    ch = WeeklyChallenge(**data.model_dump(), status="draft", created_by=admin.admin_id)
    session.add(ch)
    await session.flush()
    log.info("challenge_created", challenge_id=str(ch.id), season_id=str(ch.season_id), admin_id=str(admin.admin_id))
    return ch

async def update_challenge(session: AsyncSession, challenge_id: UUID, data: ChallengeUpdate, admin: AdminContext) -> WeeklyChallenge:
    ch = await get_challenge(session, challenge_id)
    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if value is None and field not in ("description", "official_video_url"):
            continue
        setattr(ch, field, value)
    if ch.end_date < ch.start_date:
        raise InvalidTransition("end_date must not be before start_date")
    ch.updated_at = utcnow()
    await session.flush()
    log.info("challenge_updated", challenge_id=str(ch.id), fields=sorted(changes), admin_id=str(admin.admin_id))
    return ch

async def delete_challenge(session: AsyncSession, challenge_id: UUID, admin: AdminContext) -> None:
    ch = await get_challenge(session, challenge_id)
    participation_ids = select(UserParticipation.id).where(UserParticipation.challenge_id == ch.id)
    await session.execute(delete(UserPoints).where(UserPoints.participation_id.in_(participation_ids)))
    await session.execute(delete(UserParticipation).where(UserParticipation.challenge_id == ch.id))
    await session.execute(delete(ChallengeMode).where(ChallengeMode.challenge_id == ch.id))
    # Suggestions survive; they just lose the link
    for s in (await session.execute(select(UserSuggestion).where(UserSuggestion.adopted_challenge_id == ch.id))).scalars():
        s.adopted_challenge_id = None
    await session.delete(ch)
    await session.flush()
    log.warning("challenge_deleted", challenge_id=str(challenge_id), admin_id=str(admin.admin_id))

# ---------- lifecycle ----------

async def _transition(session: AsyncSession, ch: WeeklyChallenge, to_status: str, event: str, admin: AdminContext) -> WeeklyChallenge:
    prev = ch.status
    ch.status = to_status
    ch.updated_at = utcnow()
    await session.flush()
    log.info(event, challenge_id=str(ch.id), from_status=prev, to_status=to_status, admin_id=str(admin.admin_id))
    return ch

async def activate_challenge(session: AsyncSession, challenge_id: UUID, admin: AdminContext) -> WeeklyChallenge:
    ch = await get_challenge(session, challenge_id, for_update=True)
    if ch.status != "draft":
        raise InvalidTransition(f"Challenge is {ch.status}; only a draft challenge can be activated")
    return await _transition(session, ch, "active", "challenge_activated", admin)

async def end_challenge(session: AsyncSession, challenge_id: UUID, admin: AdminContext) -> WeeklyChallenge:
    ch = await get_challenge(session, challenge_id, for_update=True)
    if ch.status != "active":
        raise InvalidTransition(f"Challenge is {ch.status}; only an active challenge can be ended")
    return await _transition(session, ch, "ended", "challenge_ended", admin)

async def reopen_challenge(session: AsyncSession, challenge_id: UUID, admin: AdminContext) -> WeeklyChallenge:
    ch = await get_challenge(session, challenge_id, for_update=True)
    if ch.status != "ended":
        raise InvalidTransition(f"Challenge is {ch.status}; only an ended challenge can be reopened")
    season = await get_season(session, ch.season_id)
    if season.status != "active":
        raise InvalidTransition(
            f"Cannot reopen challenge: season '{season.name}' ({season.id}) is {season.status}; reopen the season first"
        )
    return await _transition(session, ch, "active", "challenge_reopened", admin)

# ---------- modes ----------

async def _ensure_mode_type_free(session: AsyncSession, challenge_id: UUID, mode_type: str, exclude_mode_id: UUID | None = None) -> None:
    q = select(ChallengeMode.id).where(ChallengeMode.challenge_id == challenge_id, ChallengeMode.mode_type == mode_type)
    if exclude_mode_id is not None:
        q = q.where(ChallengeMode.id != exclude_mode_id)
    if await session.scalar(q.limit(1)):
        raise Conflict(f"This challenge already has a {mode_type} mode; each challenge allows one mode per type")

async def _flush_mode(session: AsyncSession, mode_type: str) -> None:
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise Conflict(f"This challenge already has a {mode_type} mode; each challenge allows one mode per type")

async def get_mode(session: AsyncSession, mode_id: UUID) -> ChallengeMode:
    mode = await session.get(ChallengeMode, mode_id)
    if not mode:
        raise NotFound("Challenge mode not found")
    return mode

async def create_mode(session: AsyncSession, challenge_id: UUID, data: ModeCreate, admin: AdminContext) -> ChallengeMode:
    await get_challenge(session, challenge_id)
    await _ensure_mode_type_free(session, challenge_id, data.mode_type)
    mode = ChallengeMode(challenge_id=challenge_id, **data.model_dump())
    session.add(mode)
    await _flush_mode(session, data.mode_type)
    log.info("mode_created", mode_id=str(mode.id), challenge_id=str(challenge_id), mode_type=mode.mode_type, admin_id=str(admin.admin_id))
    return mode

async def update_mode(session: AsyncSession, mode_id: UUID, data: ModeUpdate, admin: AdminContext) -> ChallengeMode:
    mode = await get_mode(session, mode_id)
    changes = data.model_dump(exclude_unset=True)
    new_type = changes.get("mode_type")
    if new_type and new_type != mode.mode_type:
        await _ensure_mode_type_free(session, mode.challenge_id, new_type, exclude_mode_id=mode.id)
    for field, value in changes.items():
        if value is None and field not in ("difficulty_level", "demo_video_url"):
            continue
        setattr(mode, field, value)
    await _flush_mode(session, mode.mode_type)
    log.info("mode_updated", mode_id=str(mode.id), fields=sorted(changes), admin_id=str(admin.admin_id))
    return mode

async def delete_mode(session: AsyncSession, mode_id: UUID, admin: AdminContext) -> None:
    mode = await get_mode(session, mode_id)
    participation_ids = select(UserParticipation.id).where(UserParticipation.mode_id == mode.id)
    await session.execute(delete(UserPoints).where(UserPoints.participation_id.in_(participation_ids)))
    await session.execute(delete(UserParticipation).where(UserParticipation.mode_id == mode.id))
    await session.delete(mode)
    await session.flush()
    log.info("mode_deleted", mode_id=str(mode_id), admin_id=str(admin.admin_id))
