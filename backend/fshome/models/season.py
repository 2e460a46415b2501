from __future__ import annotations
import uuid
from datetime import date, datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, Boolean, Date, DateTime, ForeignKey, Index, Text, UniqueConstraint, Uuid, func, text
from fshome.db import Base, utcnow

class Season(Base):
    __tablename__ = "seasons"
    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    quarter: Mapped[int] = mapped_column(Integer, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")  # active|ended|settled
    prize_description: Mapped[str | None] = mapped_column(Text())
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (
        # At most one active season system-wide
        Index(
            "uq_seasons_single_active", "status", unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )


class SeasonLeaderboard(Base):
    """
    Derived standings for one season, one row per user.
    Rewritten wholesale by settlement; cleared when the season is reopened.
    """
    __tablename__ = "season_leaderboards"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    season_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("seasons.id", ondelete="CASCADE"), index=True, nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), index=True, nullable=False)

    total_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rank_position: Mapped[int] = mapped_column(Integer, nullable=False)
    participation_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    simple_completions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    hard_completions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    first_completion_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    is_winner: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    prize_status: Mapped[str] = mapped_column(String(16), nullable=False, default="none")  # none|pending|shipped|delivered

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("season_id", "user_id", name="uq_leaderboard_season_user"),
        UniqueConstraint("season_id", "rank_position", name="uq_leaderboard_season_rank"),
    )
