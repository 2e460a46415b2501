from __future__ import annotations
import uuid
from dataclasses import dataclass
from uuid import UUID
import structlog
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from fshome.config import settings
from fshome.db import dialect_name, utcnow
from fshome.models.honor import UserHonor
from fshome.models.season import Season

log = structlog.get_logger()

MILESTONES = (10, 50, 100, 150, 200, 300, 400, 500, 600, 700, 800, 900, 1000)

SEASON_RANK_HONORS = {1: "season_1st", 2: "season_2nd", 3: "season_3rd"}

@dataclass(frozen=True)
class HonorSpec:
    name: str
    icon: str
    category: str  # milestone | season

HONOR_CONFIG: dict[str, HonorSpec] = {
    **{
        f"milestone_{m}": HonorSpec(f"{m} moves unlocked!", f"milestone_{m}.png", "milestone")
        for m in MILESTONES
    },
    **{
        honor_type: HonorSpec(f"No.{rank}", f"{honor_type}.png", "season")
        for rank, honor_type in SEASON_RANK_HONORS.items()
    },
}

def icon_url(honor_type: str) -> str:
    return f"{settings.honor_icon_base}{HONOR_CONFIG[honor_type].icon}"

def milestones_reached(unlock_count: int, policy: str = "crossed") -> list[int]:
    """
    Milestones an unlock count qualifies for.
      exact   => only a milestone equal to the count (a bulk unlock jumping past it grants nothing)
      crossed => every milestone at or below the count
    """
    if policy == "exact":
        return [m for m in MILESTONES if m == unlock_count]
    if policy == "crossed":
        return [m for m in MILESTONES if m <= unlock_count]
    raise ValueError(f"unknown milestone policy: {policy!r}")

async def _insert_ignoring_duplicate(session: AsyncSession, values: dict) -> bool:
    """INSERT ... ON CONFLICT (user_id, honor_type, reference_id) DO NOTHING. True if a row was written."""
    dialect = dialect_name(session)
    if dialect == "postgresql":
        stmt = pg_insert(UserHonor)
    elif dialect == "sqlite":
        stmt = sqlite_insert(UserHonor)
    else:
        raise RuntimeError(f"honor upsert not supported on {dialect}")
    stmt = stmt.values(id=uuid.uuid4(), earned_at=utcnow(), **values).on_conflict_do_nothing(
        index_elements=["user_id", "honor_type", "reference_id"]
    )
    result = await session.execute(stmt)
    return (result.rowcount or 0) > 0

async def grant_milestone_honor(
    session: AsyncSession, user_id: UUID, unlock_count: int, policy: str | None = None
) -> list[str]:
    """Record milestone honors for a user's unlocked-move count. Returns honor types newly granted."""
    granted: list[str] = []
    for milestone in milestones_reached(unlock_count, policy or settings.milestone_policy):
        honor_type = f"milestone_{milestone}"
        honor = HONOR_CONFIG[honor_type]
        created = await _insert_ignoring_duplicate(session, {
            "user_id": user_id,
            "honor_type": honor_type,
            "honor_category": honor.category,
            "honor_name": honor.name,
            "honor_icon": icon_url(honor_type),
            "reference_id": "",
            "reference_value": milestone,
        })
        if created:
            granted.append(honor_type)
            log.info("honor_granted", user_id=str(user_id), honor_type=honor_type)
    return granted

async def grant_season_rank_honor(session: AsyncSession, user_id: UUID, season: Season, rank: int) -> bool:
    if rank not in SEASON_RANK_HONORS:
        raise ValueError(f"season honors exist for ranks 1-3, got {rank}")
    honor_type = SEASON_RANK_HONORS[rank]
    honor = HONOR_CONFIG[honor_type]
    created = await _insert_ignoring_duplicate(session, {
        "user_id": user_id,
        "honor_type": honor_type,
        "honor_category": honor.category,
        "honor_name": f"{season.name} {honor.name}",
        "honor_icon": icon_url(honor_type),
        "reference_id": str(season.id),
        "reference_value": rank,
    })
    if created:
        log.info("honor_granted", user_id=str(user_id), honor_type=honor_type, season_id=str(season.id))
    return created

async def list_user_honors(session: AsyncSession, user_id: UUID) -> list[UserHonor]:
    return (await session.execute(
        select(UserHonor).where(UserHonor.user_id == user_id).order_by(UserHonor.earned_at.desc())
    )).scalars().all()
