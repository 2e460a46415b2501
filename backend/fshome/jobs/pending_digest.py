from __future__ import annotations
import asyncio
from datetime import datetime, timezone as dt_tz
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
import structlog
from fshome.config import settings
from fshome.db import SessionLocal
from fshome.models.participation import UserParticipation
from fshome.models.suggestion import UserSuggestion

log = structlog.get_logger()

# kind -> (label, unit)
PENDING_KINDS = {
    "participations": ("Challenge participations", "videos"),
    "suggestions": ("Challenge suggestions", "ideas"),
}

async def pending_counts(session: AsyncSession) -> dict[str, int]:
    participations = await session.scalar(
        select(func.count()).select_from(UserParticipation).where(UserParticipation.status == "pending")
    ) or 0
    suggestions = await session.scalar(
        select(func.count()).select_from(UserSuggestion).where(UserSuggestion.status == "pending")
    ) or 0
    return {"participations": int(participations), "suggestions": int(suggestions)}

def build_digest(counts: dict[str, int], now: datetime | None = None) -> dict | None:
    """Plain-text operator digest, or None when nothing waits for review."""
    total = sum(counts.values())
    if total == 0:
        return None
    now = now or datetime.now(dt_tz.utc)
    lines = [
        f"- {PENDING_KINDS[kind][0]}: {n} {PENDING_KINDS[kind][1]}"
        for kind, n in counts.items() if n > 0
    ]
    text = "\n".join([
        "FSHOME review reminder",
        f"{total} item(s) are waiting for review:",
        *lines,
        f"Review them at {settings.admin_url.rstrip('/')}/admin/weekly-challenge/participations",
        f"Checked at {now.isoformat(timespec='seconds')}",
    ])
    return {"subject": f"[FSHOME] {total} items awaiting review", "text": text, "total": total}

async def check_pending(session: AsyncSession) -> dict:
    """
    Count pending review items and hand the digest to the operators.
    At most one digest per invocation; delivery goes to the log stream (no mail transport here).
    """
    counts = await pending_counts(session)
    digest = build_digest(counts)
    if digest is None:
        log.info("pending_digest_skipped", counts=counts)
        return {"sent": False, "counts": counts}
    log.info(
        "pending_digest",
        to=settings.operator_emails,
        subject=digest["subject"],
        body=digest["text"],
        counts=counts,
    )
    return {"sent": True, "counts": counts, "total": digest["total"], "subject": digest["subject"]}

async def _run() -> dict:
    async with SessionLocal() as session:
        return await check_pending(session)

def main():
    # Scheduler entry point (sync)
    from fshome.logging_setup import configure_logging
    configure_logging()
    return asyncio.run(_run())

if __name__ == "__main__":
    main()
