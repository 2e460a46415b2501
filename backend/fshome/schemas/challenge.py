from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Literal, List
from uuid import UUID
from datetime import date, datetime

ChallengeStatus = Literal["draft", "active", "ended"]
ModeType = Literal["simple", "hard"]

class ChallengeCreate(BaseModel):
    season_id: UUID
    title: str = Field(min_length=1, max_length=120)
    description: str | None = None
    week_number: int = Field(ge=1, le=53)
    start_date: date
    end_date: date
    official_video_url: str | None = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

class ChallengeUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1, max_length=120)
    description: str | None = None
    week_number: int | None = Field(default=None, ge=1, le=53)
    start_date: date | None = None
    end_date: date | None = None
    official_video_url: str | None = None

class ModeCreate(BaseModel):
    mode_type: ModeType
    title: str = Field(min_length=1, max_length=120)
    description: str = ""
    moves_required: List[str] = Field(default_factory=list)
    difficulty_level: int | None = Field(default=None, ge=1, le=5)
    points_reward: int = Field(ge=0, default=0)
    demo_video_url: str | None = None

class ModeUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    mode_type: ModeType | None = None
    title: str | None = Field(default=None, min_length=1, max_length=120)
    description: str | None = None
    moves_required: List[str] | None = None
    difficulty_level: int | None = Field(default=None, ge=1, le=5)
    points_reward: int | None = Field(default=None, ge=0)
    demo_video_url: str | None = None

class ModePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    challenge_id: UUID
    mode_type: ModeType
    title: str
    description: str
    moves_required: List[str]
    difficulty_level: int | None = None
    points_reward: int
    demo_video_url: str | None = None
    created_at: datetime

class ChallengePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    season_id: UUID
    title: str
    description: str | None = None
    week_number: int
    start_date: date
    end_date: date
    status: ChallengeStatus
    official_video_url: str | None = None
    created_by: UUID | None = None
    created_at: datetime
    updated_at: datetime

class ChallengeDetail(ChallengePublic):
    modes: list[ModePublic] = []
    participant_count: int = 0
