from __future__ import annotations
from pydantic import BaseModel, EmailStr
from uuid import UUID
from datetime import datetime

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class AdminPublic(BaseModel):
    id: UUID
    email: EmailStr
    nickname: str | None = None
    role: str
    created_at: datetime

class TokenPair(BaseModel):
    access: str
    refresh: str
