from __future__ import annotations
from pydantic import BaseModel, ConfigDict, model_validator
from typing import Literal
from uuid import UUID
from datetime import datetime

SuggestionStatus = Literal["pending", "adopted", "rejected"]

class SuggestionPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    season_id: UUID
    suggestion_text: str
    status: SuggestionStatus
    adopted_challenge_id: UUID | None = None
    admin_note: str | None = None
    created_at: datetime
    updated_at: datetime

class ProcessSuggestionRequest(BaseModel):
    status: Literal["adopted", "rejected"]
    admin_note: str | None = None
    adopted_challenge_id: UUID | None = None

    @model_validator(mode="after")
    def challenge_only_when_adopted(self):
        if self.status == "rejected" and self.adopted_challenge_id is not None:
            raise ValueError("adopted_challenge_id is only valid when status is 'adopted'")
        return self
