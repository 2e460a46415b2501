from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID
from datetime import datetime

class HonorPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    honor_type: str
    honor_category: str
    honor_name: str
    honor_icon: str | None = None
    reference_id: str
    reference_value: int | None = None
    earned_at: datetime

class MilestoneGrantRequest(BaseModel):
    user_id: UUID
    unlock_count: int = Field(ge=0)

class MilestoneGrantResult(BaseModel):
    user_id: UUID
    granted: list[str]
