from __future__ import annotations
from sqlalchemy import Select, select, func
from sqlalchemy.ext.asyncio import AsyncSession

async def paginate(session: AsyncSession, stmt: Select, page: int, page_size: int) -> tuple[list, int]:
    """Run `stmt` for one 1-based page; returns (rows, total matching rows)."""
    total = await session.scalar(select(func.count()).select_from(stmt.order_by(None).subquery())) or 0
    rows = (await session.execute(stmt.limit(page_size).offset((page - 1) * page_size))).scalars().all()
    return list(rows), int(total)
