from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Literal
from uuid import UUID
from datetime import date, datetime

SeasonStatus = Literal["active", "ended", "settled"]
PrizeStatus = Literal["none", "pending", "shipped", "delivered"]

class SeasonCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    year: int = Field(ge=2000, le=2100)
    quarter: int = Field(ge=1, le=4)
    start_date: date
    end_date: date
    prize_description: str | None = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

class SeasonUpdate(BaseModel):
    """Descriptive fields only; status moves through the lifecycle endpoints."""
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=120)
    year: int | None = Field(default=None, ge=2000, le=2100)
    quarter: int | None = Field(default=None, ge=1, le=4)
    start_date: date | None = None
    end_date: date | None = None
    prize_description: str | None = None

class SeasonPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    year: int
    quarter: int
    start_date: date
    end_date: date
    status: SeasonStatus
    prize_description: str | None = None
    created_at: datetime
    updated_at: datetime

class LeaderboardEntryPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    season_id: UUID
    user_id: UUID
    total_points: int
    rank_position: int
    participation_count: int
    simple_completions: int
    hard_completions: int
    first_completion_at: datetime | None = None
    is_winner: bool
    prize_status: PrizeStatus
    created_at: datetime

class SettlementResult(BaseModel):
    season: SeasonPublic
    leaderboard_count: int
    winners: list[UUID]

class PrizeStatusUpdate(BaseModel):
    prize_status: Literal["pending", "shipped", "delivered"]
