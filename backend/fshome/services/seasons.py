from __future__ import annotations
from uuid import UUID
import structlog
from sqlalchemy import select, update, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fshome.auth_deps import AdminContext
from fshome.db import utcnow
from fshome.errors import NotFound, InvalidTransition, Conflict
from fshome.models.challenge import WeeklyChallenge, ChallengeMode
from fshome.models.honor import UserHonor
from fshome.models.participation import UserParticipation
from fshome.models.points import UserPoints
from fshome.models.season import Season, SeasonLeaderboard
from fshome.models.suggestion import UserSuggestion
from fshome.schemas.season import SeasonCreate, SeasonUpdate
from fshome.services.paging import paginate
from fshome.services.settlement import Standing, settle_leaderboard, clear_leaderboard

log = structlog.get_logger()

REOPENABLE = ("ended", "settled")

# ---------- reads ----------

async def get_season(session: AsyncSession, season_id: UUID, *, for_update: bool = False) -> Season:
    season = await session.get(Season, season_id, with_for_update=for_update)
    if not season:
        raise NotFound("Season not found")
    return season

async def get_active_season(session: AsyncSession, exclude_id: UUID | None = None) -> Season | None:
    q = select(Season).where(Season.status == "active")
    if exclude_id is not None:
        q = q.where(Season.id != exclude_id)
    return (await session.execute(q.limit(1))).scalars().first()

async def list_seasons(
    session: AsyncSession, page: int, page_size: int, status: str | None = None, year: int | None = None
) -> tuple[list[Season], int]:
    q = select(Season)
    if status:
        q = q.where(Season.status == status)
    if year:
        q = q.where(Season.year == year)
    q = q.order_by(Season.year.desc(), Season.quarter.desc(), Season.created_at.desc())
    return await paginate(session, q, page, page_size)

async def list_leaderboard(session: AsyncSession, season_id: UUID, page: int, page_size: int) -> tuple[list[SeasonLeaderboard], int]:
    await get_season(session, season_id)
    q = (
        select(SeasonLeaderboard)
        .where(SeasonLeaderboard.season_id == season_id)
        .order_by(SeasonLeaderboard.rank_position.asc())
    )
    return await paginate(session, q, page, page_size)

# ---------- helpers ----------

async def _ensure_no_other_active(session: AsyncSession, season_id: UUID | None, hint: str) -> None:
    other = await get_active_season(session, exclude_id=season_id)
    if other:
        raise Conflict(f"Season '{other.name}' is already active; {hint}")

async def _flush_guarding_single_active(session: AsyncSession) -> None:
    # The partial unique index on seasons(status) WHERE status='active' catches a racing request
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise Conflict("Another season became active concurrently; only one season can be active")

# ---------- writes ----------

async def create_season(session: AsyncSession, data: SeasonCreate, admin: AdminContext) -> Season:
    await _ensure_no_other_active(session, None, "end it before creating a new season")
    season = Season(**data.model_dump(), status="active")
    session.add(season)
    await _flush_guarding_single_active(session)
    log.info("season_created", season_id=str(season.id), name=season.name, admin_id=str(admin.admin_id))
    return season

async def update_season(session: AsyncSession, season_id: UUID, data: SeasonUpdate, admin: AdminContext) -> Season:
    season = await get_season(session, season_id)
    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if value is None and field != "prize_description":
            continue
        setattr(season, field, value)
    if season.end_date < season.start_date:
        raise InvalidTransition("end_date must not be before start_date")
    season.updated_at = utcnow()
    await session.flush()
    log.info("season_updated", season_id=str(season.id), fields=sorted(changes), admin_id=str(admin.admin_id))
    return season

async def end_season(session: AsyncSession, season_id: UUID, admin: AdminContext) -> tuple[Season, list[Standing]]:
    """
    active -> ended, settling the leaderboard and granting winner honors in the same transaction.
    Nothing is committed here; if settlement raises, the caller's rollback leaves the season active.
    """
    season = await get_season(session, season_id, for_update=True)
    if season.status != "active":
        raise InvalidTransition(f"Season '{season.name}' is {season.status}; only an active season can be ended")

    # Conditional claim: a concurrent end of the same season matches zero rows here
    claimed = await session.execute(
        update(Season)
        .where(Season.id == season_id, Season.status == "active")
        .values(status="ended", updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if claimed.rowcount != 1:
        raise Conflict(f"Season '{season.name}' was changed by another request; reload and retry")

    standings = await settle_leaderboard(session, season)
    await session.refresh(season)
    log.info("season_ended", season_id=str(season.id), leaderboard_count=len(standings), admin_id=str(admin.admin_id))
    return season, standings

async def resettle_season(session: AsyncSession, season_id: UUID, admin: AdminContext) -> tuple[Season, list[Standing]]:
    """Recompute the leaderboard of an ended/settled season without touching its status."""
    season = await get_season(session, season_id, for_update=True)
    if season.status not in REOPENABLE:
        raise InvalidTransition(f"Season '{season.name}' is {season.status}; only ended or settled seasons can be re-settled")
    standings = await settle_leaderboard(session, season)
    log.info("season_resettled", season_id=str(season.id), leaderboard_count=len(standings), admin_id=str(admin.admin_id))
    return season, standings

async def settle_season(session: AsyncSession, season_id: UUID, admin: AdminContext) -> Season:
    """ended -> settled: prizes finalised, standings frozen."""
    season = await get_season(session, season_id, for_update=True)
    if season.status != "ended":
        raise InvalidTransition(f"Season '{season.name}' is {season.status}; only an ended season can be settled")
    season.status = "settled"
    season.updated_at = utcnow()
    await session.flush()
    log.info("season_settled", season_id=str(season.id), admin_id=str(admin.admin_id))
    return season

async def reopen_season(session: AsyncSession, season_id: UUID, admin: AdminContext) -> Season:
    """ended|settled -> active. Clears the derived leaderboard; it is rebuilt on the next end."""
    season = await get_season(session, season_id, for_update=True)
    if season.status not in REOPENABLE:
        raise InvalidTransition(f"Season '{season.name}' is {season.status}; only ended or settled seasons can be reopened")
    await _ensure_no_other_active(session, season.id, "end it before reopening this season")
    cleared = await clear_leaderboard(session, season.id)
    season.status = "active"
    season.updated_at = utcnow()
    await _flush_guarding_single_active(session)
    log.info("season_reopened", season_id=str(season.id), leaderboard_cleared=cleared, admin_id=str(admin.admin_id))
    return season

async def delete_season(session: AsyncSession, season_id: UUID, admin: AdminContext) -> None:
    """Irreversible. Removes the season with everything that belongs to it, including the rank honors it awarded."""
    season = await get_season(session, season_id, for_update=True)
    challenge_ids = select(WeeklyChallenge.id).where(WeeklyChallenge.season_id == season.id)

    # Children first so it also holds where FK cascades are not enforced (SQLite)
    await session.execute(delete(UserPoints).where(UserPoints.season_id == season.id))
    await session.execute(delete(UserParticipation).where(UserParticipation.challenge_id.in_(challenge_ids)))
    await session.execute(delete(UserSuggestion).where(UserSuggestion.season_id == season.id))
    await session.execute(delete(ChallengeMode).where(ChallengeMode.challenge_id.in_(challenge_ids)))
    await session.execute(delete(WeeklyChallenge).where(WeeklyChallenge.season_id == season.id))
    await session.execute(delete(SeasonLeaderboard).where(SeasonLeaderboard.season_id == season.id))
    await session.execute(
        delete(UserHonor).where(UserHonor.honor_category == "season", UserHonor.reference_id == str(season.id))
    )
    await session.delete(season)
    await session.flush()
    log.warning("season_deleted", season_id=str(season_id), name=season.name, admin_id=str(admin.admin_id))

async def update_prize_status(session: AsyncSession, entry_id: UUID, prize_status: str, admin: AdminContext) -> SeasonLeaderboard:
    entry = await session.get(SeasonLeaderboard, entry_id)
    if not entry:
        raise NotFound("Leaderboard entry not found")
    if not entry.is_winner:
        raise InvalidTransition("Only winners have a prize to track")
    entry.prize_status = prize_status
    await session.flush()
    log.info("prize_status_updated", entry_id=str(entry.id), prize_status=prize_status, admin_id=str(admin.admin_id))
    return entry
