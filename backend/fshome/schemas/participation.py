from __future__ import annotations
from pydantic import BaseModel, ConfigDict
from typing import Literal
from uuid import UUID
from datetime import datetime

ParticipationStatus = Literal["pending", "approved", "rejected"]

class ParticipationPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    challenge_id: UUID
    mode_id: UUID
    video_url: str
    thumbnail_url: str | None = None
    submission_note: str | None = None
    status: ParticipationStatus
    admin_note: str | None = None
    submitted_at: datetime
    reviewed_at: datetime | None = None
    reviewed_by: UUID | None = None

class ReviewRequest(BaseModel):
    status: Literal["approved", "rejected"]
    admin_note: str | None = None
