from __future__ import annotations
import uuid
from datetime import date, datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, Date, DateTime, ForeignKey, JSON, Text, UniqueConstraint, Uuid, func
from fshome.db import Base, utcnow

class WeeklyChallenge(Base):
    __tablename__ = "weekly_challenges"
    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    season_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("seasons.id", ondelete="CASCADE"), index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str | None] = mapped_column(Text())
    week_number: Mapped[int] = mapped_column(Integer, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="draft")  # draft|active|ended
    official_video_url: Mapped[str | None] = mapped_column(Text())
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), ForeignKey("admin_users.id", ondelete="SET NULL"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False)

class ChallengeMode(Base):
    __tablename__ = "challenge_modes"
    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    challenge_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("weekly_challenges.id", ondelete="CASCADE"), index=True, nullable=False)
    mode_type: Mapped[str] = mapped_column(String(16), nullable=False)  # simple|hard
    title: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str] = mapped_column(Text(), nullable=False, default="")
    moves_required: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    difficulty_level: Mapped[int | None] = mapped_column(Integer)
    points_reward: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    demo_video_url: Mapped[str | None] = mapped_column(Text())
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("challenge_id", "mode_type", name="uq_challenge_mode_type"),
    )
