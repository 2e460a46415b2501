from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, DateTime, UniqueConstraint, Uuid, func
from fshome.db import Base, utcnow

class UserHonor(Base):
    """
    Achievement badges. reference_id is the season id for season-rank honors
    and the empty string for milestones, so the unique key never contains NULL
    and both kinds deduplicate on (user_id, honor_type, reference_id).
    """
    __tablename__ = "user_honors"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), index=True, nullable=False)

    honor_type: Mapped[str] = mapped_column(String(32), nullable=False)      # milestone_10 .. milestone_1000 | season_1st|2nd|3rd
    honor_category: Mapped[str] = mapped_column(String(16), nullable=False)  # milestone | season
    honor_name: Mapped[str] = mapped_column(String(255), nullable=False)
    honor_icon: Mapped[str | None] = mapped_column(String(512), nullable=True)

    reference_id: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    reference_value: Mapped[int | None] = mapped_column(Integer, nullable=True)

    earned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "honor_type", "reference_id", name="uq_honor_user_type_ref"),
    )
