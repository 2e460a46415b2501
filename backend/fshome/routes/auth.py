from __future__ import annotations
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, Header
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog
from fshome.auth_deps import AdminContext, get_current_admin
from fshome.db import get_session
from fshome.models.admin import AdminUser
from fshome.schemas.auth import LoginRequest, AdminPublic, TokenPair
from fshome.security import verify_password, make_access_token, make_refresh_token, decode_token

router = APIRouter(prefix="/auth", tags=["auth"])
log = structlog.get_logger()

def _pair(admin: AdminUser) -> TokenPair:
    sub = str(admin.id)
    return TokenPair(access=make_access_token(sub, admin.role), refresh=make_refresh_token(sub, admin.role))

@router.post("/login", response_model=TokenPair)
async def login(payload: LoginRequest, session: AsyncSession = Depends(get_session)):
    admin = await session.scalar(select(AdminUser).where(AdminUser.email == payload.email))
    if not admin or not verify_password(payload.password, admin.password_hash):
        log.warning("admin_login_failed", email=payload.email)
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not admin.is_active:
        raise HTTPException(status_code=403, detail="Admin account is disabled")
    log.info("admin_login", admin_id=str(admin.id))
    return _pair(admin)

@router.post("/refresh", response_model=TokenPair)
async def refresh(authorization: str | None = Header(None), session: AsyncSession = Depends(get_session)):
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Missing refresh token")
    token = authorization.split(" ", 1)[1]
    try:
        data = decode_token(token)
        admin_id = UUID(str(data.get("sub")))
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid token")
    if data.get("type") != "refresh":
        raise HTTPException(status_code=401, detail="Wrong token type")
    # Role or activation may have changed since the refresh token was issued
    admin = await session.get(AdminUser, admin_id)
    if not admin or not admin.is_active:
        raise HTTPException(status_code=403, detail="Admin access required")
    return _pair(admin)

@router.get("/me", response_model=AdminPublic)
async def me(admin: AdminContext = Depends(get_current_admin), session: AsyncSession = Depends(get_session)):
    row = await session.get(AdminUser, admin.admin_id)
    return AdminPublic(id=row.id, email=row.email, nickname=row.nickname, role=row.role, created_at=row.created_at)
