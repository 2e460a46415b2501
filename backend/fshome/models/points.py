from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, DateTime, ForeignKey, UniqueConstraint, Uuid, func
from fshome.db import Base, utcnow

class UserPoints(Base):
    """
    Season point ledger, one row per earning event.
    point_type:
      - participation       => submitted a video for a challenge
      - simple_completion   => approved simple-mode submission (mode.points_reward)
      - hard_completion     => approved hard-mode submission (mode.points_reward)
      - suggestion_adopted  => a user's challenge idea was adopted

    Settlement sums this table per (season, user).
    """
    __tablename__ = "user_points"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), index=True, nullable=False)
    season_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("seasons.id", ondelete="CASCADE"), index=True, nullable=False
    )

    # Idempotency: at most one row of each type per participation
    participation_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("user_participations.id", ondelete="CASCADE"), index=True, nullable=True
    )
    suggestion_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("user_suggestions.id", ondelete="SET NULL"), nullable=True
    )

    point_type: Mapped[str] = mapped_column(String(32), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)

    earned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("participation_id", "point_type", name="uq_points_participation_type"),
    )
