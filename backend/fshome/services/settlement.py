from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable
from uuid import UUID
import structlog
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from fshome.models.honor import UserHonor
from fshome.models.points import UserPoints
from fshome.models.season import Season, SeasonLeaderboard
from fshome.services.honors import SEASON_RANK_HONORS, grant_season_rank_honor

log = structlog.get_logger()

WINNER_SLOTS = 3
COMPLETION_TYPES = ("simple_completion", "hard_completion")

@dataclass
class Standing:
    user_id: UUID
    total_points: int = 0
    participation_count: int = 0
    simple_completions: int = 0
    hard_completions: int = 0
    first_completion_at: datetime | None = None
    rank_position: int = 0

    @property
    def is_winner(self) -> bool:
        return 1 <= self.rank_position <= WINNER_SLOTS

    @property
    def prize_status(self) -> str:
        return "pending" if self.is_winner else "none"

def _as_utc(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything stored is UTC
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt.astimezone(timezone.utc)

# ---------- pure: aggregate & rank ----------

def aggregate_points(rows: Iterable[tuple[UUID, int, str, datetime | None]]) -> list[Standing]:
    """Fold (user_id, points, point_type, earned_at) ledger rows into one Standing per user."""
    by_user: dict[UUID, Standing] = {}
    for user_id, points, point_type, earned_at in rows:
        st = by_user.get(user_id)
        if st is None:
            st = by_user[user_id] = Standing(user_id=user_id)
        st.total_points += int(points or 0)
        if point_type == "participation":
            st.participation_count += 1
        elif point_type == "simple_completion":
            st.simple_completions += 1
        elif point_type == "hard_completion":
            st.hard_completions += 1
        if point_type in COMPLETION_TYPES and earned_at is not None:
            at = _as_utc(earned_at)
            if st.first_completion_at is None or at < st.first_completion_at:
                st.first_completion_at = at
    return list(by_user.values())

def _rank_key(st: Standing):
    # points desc, then earliest first completion (none sorts last), then user id asc
    return (
        -st.total_points,
        st.first_completion_at is None,
        st.first_completion_at or datetime.max.replace(tzinfo=timezone.utc),
        str(st.user_id),
    )

def rank_standings(standings: Iterable[Standing]) -> list[Standing]:
    """Order standings and assign distinct, gapless ranks starting at 1."""
    ordered = sorted(standings, key=_rank_key)
    for idx, st in enumerate(ordered, start=1):
        st.rank_position = idx
    return ordered

# ---------- db: read ledger, write leaderboard ----------

async def compute_standings(session: AsyncSession, season_id: UUID) -> list[Standing]:
    rows = (await session.execute(
        select(UserPoints.user_id, UserPoints.points, UserPoints.point_type, UserPoints.earned_at)
        .where(UserPoints.season_id == season_id)
    )).all()
    return rank_standings(aggregate_points(rows))

async def clear_leaderboard(session: AsyncSession, season_id: UUID) -> int:
    result = await session.execute(delete(SeasonLeaderboard).where(SeasonLeaderboard.season_id == season_id))
    return int(result.rowcount or 0)

async def write_leaderboard(session: AsyncSession, season_id: UUID, standings: list[Standing]) -> list[SeasonLeaderboard]:
    """Replace the season's leaderboard with `standings` (delete-then-insert)."""
    await clear_leaderboard(session, season_id)
    entries = [
        SeasonLeaderboard(
            season_id=season_id,
            user_id=st.user_id,
            total_points=st.total_points,
            rank_position=st.rank_position,
            participation_count=st.participation_count,
            simple_completions=st.simple_completions,
            hard_completions=st.hard_completions,
            first_completion_at=st.first_completion_at,
            is_winner=st.is_winner,
            prize_status=st.prize_status,
        )
        for st in standings
    ]
    session.add_all(entries)
    await session.flush()
    return entries

async def revoke_stale_rank_honors(session: AsyncSession, season_id: UUID, standings: list[Standing]) -> int:
    """Drop this season's rank honors that the given standings no longer award."""
    keep = {(st.user_id, SEASON_RANK_HONORS[st.rank_position]) for st in standings if st.is_winner}
    held = (await session.execute(
        select(UserHonor).where(UserHonor.honor_category == "season", UserHonor.reference_id == str(season_id))
    )).scalars().all()
    stale = [h for h in held if (h.user_id, h.honor_type) not in keep]
    for h in stale:
        await session.delete(h)
    await session.flush()
    if stale:
        log.info(
            "honors_revoked",
            season_id=str(season_id),
            revoked=[f"{h.user_id}:{h.honor_type}" for h in stale],
        )
    return len(stale)

async def settle_leaderboard(session: AsyncSession, season: Season) -> list[Standing]:
    """
    Recompute the season's final standings and bring its season-rank honors in line:
    winners get theirs, honors from an earlier settlement that no longer match are removed.
    Deterministic for unchanged ledger data, so running it again just overwrites.
    Does not commit; the caller owns the transaction.
    """
    standings = await compute_standings(session, season.id)
    await write_leaderboard(session, season.id, standings)
    await revoke_stale_rank_honors(session, season.id, standings)
    for st in standings:
        if st.is_winner:
            await grant_season_rank_honor(session, st.user_id, season, st.rank_position)
    log.info(
        "leaderboard_settled",
        season_id=str(season.id),
        entries=len(standings),
        winners=[str(st.user_id) for st in standings if st.is_winner],
    )
    return standings
