from datetime import datetime, timezone

import pytest

from fshome.config import settings
from fshome.jobs.pending_digest import build_digest, check_pending


def test_digest_none_when_nothing_pending():
    assert build_digest({"participations": 0, "suggestions": 0}) is None


def test_digest_lists_only_nonzero_kinds():
    now = datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc)
    digest = build_digest({"participations": 3, "suggestions": 0}, now=now)
    assert digest["subject"] == "[FSHOME] 3 items awaiting review"
    assert digest["total"] == 3
    assert "Challenge participations: 3 videos" in digest["text"]
    assert "Challenge suggestions" not in digest["text"]
    assert "2026-10-19T08:00:00+00:00" in digest["text"]


@pytest.mark.asyncio
async def test_check_pending_counts(session, factory):
    assert (await check_pending(session))["sent"] is False

    season = await factory.season()
    ch = await factory.challenge(season)
    mode = await factory.mode(ch)
    await factory.participation(mode)
    await factory.participation(mode, status="approved")
    await factory.suggestion(season)

    result = await check_pending(session)
    assert result["sent"] is True
    assert result["counts"] == {"participations": 1, "suggestions": 1}
    assert result["total"] == 2


@pytest.mark.asyncio
async def test_cron_route_secret(client, monkeypatch):
    monkeypatch.setattr(settings, "cron_secret", "tick")
    r = await client.get("/cron/check-pending")
    assert r.status_code == 401
    r = await client.get("/cron/check-pending", params={"secret": "wrong"})
    assert r.status_code == 401
    r = await client.get("/cron/check-pending", headers={"Authorization": "Bearer tick"})
    assert r.status_code == 200
    assert r.json()["sent"] is False
    r = await client.get("/cron/check-pending", params={"secret": "tick"})
    assert r.status_code == 200
