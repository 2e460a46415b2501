from __future__ import annotations
from datetime import datetime, timezone
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase
from fshome.config import settings

class Base(DeclarativeBase):
    pass

engine = create_async_engine(settings.database_url, future=True, echo=False)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False)

async def get_session() -> AsyncGenerator[AsyncSession, None]:
    # Routes commit explicitly; anything left uncommitted is rolled back on close.
    async with SessionLocal() as session:
        yield session

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def dialect_name(session: AsyncSession) -> str:
    return session.get_bind().dialect.name
