from __future__ import annotations
from dataclasses import dataclass
from uuid import UUID
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from fshome.db import get_session
from fshome.security import decode_token
from fshome.models.admin import AdminUser

security = HTTPBearer()

@dataclass(frozen=True)
class AdminContext:
    """Who is acting on this request; handed to every service call that writes."""
    admin_id: UUID
    email: str
    role: str
    request_id: str | None = None

    @property
    def is_super_admin(self) -> bool:
        return self.role == "super_admin"

async def get_current_admin(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    session: AsyncSession = Depends(get_session),
) -> AdminContext:
    token = credentials.credentials
    try:
        data = decode_token(token)
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid token")
    if data.get("type") != "access":
        raise HTTPException(status_code=401, detail="Wrong token type")
    try:
        admin_id = UUID(str(data.get("sub")))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid token")
    admin = await session.get(AdminUser, admin_id)
    if not admin or not admin.is_active:
        raise HTTPException(status_code=403, detail="Admin access required")
    return AdminContext(
        admin_id=admin.id,
        email=admin.email,
        role=admin.role,
        request_id=getattr(request.state, "request_id", None),
    )

async def require_super_admin(admin: AdminContext = Depends(get_current_admin)) -> AdminContext:
    if not admin.is_super_admin:
        raise HTTPException(status_code=403, detail="Super admin access required")
    return admin
