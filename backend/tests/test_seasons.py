import uuid
from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker

from fshome.db import Base
from fshome.errors import Conflict, InvalidTransition
from fshome.models.honor import UserHonor
from fshome.models.points import UserPoints
from fshome.models.season import Season, SeasonLeaderboard
from fshome.services import seasons as svc
from fshome.services import settlement

T0 = datetime(2026, 7, 1, 12, 0, tzinfo=timezone.utc)

SEASON = {
    "name": "2026 Q3",
    "year": 2026,
    "quarter": 3,
    "start_date": "2026-07-01",
    "end_date": "2026-09-30",
    "prize_description": "Signed ball for the top three",
}


@pytest.mark.asyncio
async def test_requires_bearer(client):
    r = await client.get("/seasons")
    assert r.status_code in (401, 403)


@pytest.mark.asyncio
async def test_create_list_current(client, auth):
    r = await client.post("/seasons", json=SEASON, headers=auth)
    assert r.status_code == 201, r.text
    season = r.json()
    assert season["status"] == "active"

    r = await client.get("/seasons/current", headers=auth)
    assert r.status_code == 200
    assert r.json()["id"] == season["id"]

    r = await client.get("/seasons", params={"status": "active"}, headers=auth)
    body = r.json()
    assert body["total"] == 1
    assert body["data"][0]["name"] == "2026 Q3"


@pytest.mark.asyncio
async def test_current_404_without_active(client, auth):
    r = await client.get("/seasons/current", headers=auth)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_create_rejects_bad_dates(client, auth):
    r = await client.post("/seasons", json={**SEASON, "end_date": "2026-06-01"}, headers=auth)
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_single_active_season(client, auth):
    r = await client.post("/seasons", json=SEASON, headers=auth)
    first = r.json()["id"]

    r = await client.post("/seasons", json={**SEASON, "name": "2026 Q4", "quarter": 4}, headers=auth)
    assert r.status_code == 409
    assert "2026 Q3" in r.json()["detail"]

    r = await client.post(f"/seasons/{first}/end", headers=auth)
    assert r.status_code == 200
    r = await client.post("/seasons", json={**SEASON, "name": "2026 Q4", "quarter": 4}, headers=auth)
    assert r.status_code == 201

    # the ended season cannot come back while Q4 runs
    r = await client.post(f"/seasons/{first}/reopen", headers=auth)
    assert r.status_code == 409
    assert "2026 Q4" in r.json()["detail"]


@pytest.mark.asyncio
async def test_update_season_fields_only(client, auth):
    r = await client.post("/seasons", json=SEASON, headers=auth)
    sid = r.json()["id"]
    r = await client.patch(f"/seasons/{sid}", json={"name": "Summer 2026"}, headers=auth)
    assert r.status_code == 200
    assert r.json()["name"] == "Summer 2026"
    r = await client.patch(f"/seasons/{sid}", json={"status": "ended"}, headers=auth)
    assert r.status_code == 422
    r = await client.patch(f"/seasons/{sid}", json={"end_date": "2026-01-01"}, headers=auth)
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_end_settles_leaderboard(client, auth, factory):
    season = await factory.season()
    u1, u2, u3 = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    await factory.points(season, u1, 50, "hard_completion", T0 + timedelta(hours=1))
    await factory.points(season, u2, 50, "hard_completion", T0)
    await factory.points(season, u3, 30, "simple_completion", T0)

    r = await client.post(f"/seasons/{season.id}/end", headers=auth)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["season"]["status"] == "ended"
    assert body["leaderboard_count"] == 3
    assert body["winners"] == [str(u2), str(u1), str(u3)]

    r = await client.get(f"/seasons/{season.id}/leaderboard", headers=auth)
    rows = r.json()["data"]
    assert [row["rank_position"] for row in rows] == [1, 2, 3]
    assert [row["user_id"] for row in rows] == [str(u2), str(u1), str(u3)]
    assert all(row["prize_status"] == "pending" for row in rows)

    # second end is refused
    r = await client.post(f"/seasons/{season.id}/end", headers=auth)
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_end_empty_season(client, auth, factory):
    season = await factory.season()
    r = await client.post(f"/seasons/{season.id}/end", headers=auth)
    assert r.status_code == 200
    assert r.json()["leaderboard_count"] == 0
    assert r.json()["winners"] == []


@pytest.mark.asyncio
async def test_end_reopen_end_is_deterministic(client, auth, factory, session):
    season = await factory.season()
    for i in range(5):
        await factory.points(season, uuid.uuid4(), 10 + i % 2 * 5, "simple_completion", T0 + timedelta(minutes=i))

    r = await client.post(f"/seasons/{season.id}/end", headers=auth)
    first = r.json()
    board1 = (await client.get(f"/seasons/{season.id}/leaderboard", headers=auth)).json()["data"]

    r = await client.post(f"/seasons/{season.id}/reopen", headers=auth)
    assert r.status_code == 200
    assert r.json()["status"] == "active"
    # reopening clears the derived leaderboard
    assert (await client.get(f"/seasons/{season.id}/leaderboard", headers=auth)).json()["total"] == 0

    r = await client.post(f"/seasons/{season.id}/end", headers=auth)
    second = r.json()
    board2 = (await client.get(f"/seasons/{season.id}/leaderboard", headers=auth)).json()["data"]

    assert first["winners"] == second["winners"]
    strip = lambda rows: [(x["user_id"], x["rank_position"], x["total_points"]) for x in rows]
    assert strip(board1) == strip(board2)
    # honors are not duplicated by the second settlement
    honors = (await session.execute(select(UserHonor).where(UserHonor.reference_id == str(season.id)))).scalars().all()
    assert len(honors) == 3


@pytest.mark.asyncio
async def test_settle_and_resettle(client, auth, factory):
    season = await factory.season()
    user = uuid.uuid4()
    await factory.points(season, user, 10, "simple_completion")

    r = await client.post(f"/seasons/{season.id}/settle", headers=auth)
    assert r.status_code == 400  # still active

    await client.post(f"/seasons/{season.id}/end", headers=auth)
    r = await client.post(f"/seasons/{season.id}/settle", headers=auth)
    assert r.status_code == 200
    assert r.json()["status"] == "settled"

    # a late point correction shows up after resettling
    await factory.points(season, user, 5, "participation")
    r = await client.post(f"/seasons/{season.id}/resettle", headers=auth)
    assert r.status_code == 200
    assert r.json()["season"]["status"] == "settled"
    board = (await client.get(f"/seasons/{season.id}/leaderboard", headers=auth)).json()["data"]
    assert board[0]["total_points"] == 15
    assert board[0]["participation_count"] == 1


@pytest.mark.asyncio
async def test_prize_status_winners_only(client, auth, factory):
    season = await factory.season()
    users = [uuid.uuid4() for _ in range(4)]
    for i, user in enumerate(users):
        await factory.points(season, user, 100 - i, "simple_completion")
    await client.post(f"/seasons/{season.id}/end", headers=auth)
    board = (await client.get(f"/seasons/{season.id}/leaderboard", headers=auth)).json()["data"]

    r = await client.patch(f"/leaderboard/{board[0]['id']}", json={"prize_status": "shipped"}, headers=auth)
    assert r.status_code == 200
    assert r.json()["prize_status"] == "shipped"

    r = await client.patch(f"/leaderboard/{board[3]['id']}", json={"prize_status": "shipped"}, headers=auth)
    assert r.status_code == 400

    r = await client.patch(f"/leaderboard/{uuid.uuid4()}", json={"prize_status": "shipped"}, headers=auth)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_delete_requires_super_admin(client, auth, super_auth, factory):
    season = await factory.season()
    challenge = await factory.challenge(season)
    mode = await factory.mode(challenge)
    await factory.participation(mode)
    await factory.suggestion(season)

    r = await client.delete(f"/seasons/{season.id}", headers=auth)
    assert r.status_code == 403
    r = await client.delete(f"/seasons/{season.id}", headers=super_auth)
    assert r.status_code == 204
    r = await client.get(f"/seasons/{season.id}", headers=super_auth)
    assert r.status_code == 404
    r = await client.get("/challenges", headers=super_auth)
    assert r.json()["total"] == 0


@pytest.mark.asyncio
async def test_end_rolls_back_when_honor_grant_fails(session, factory, admin, monkeypatch):
    season = await factory.season()
    season_id = season.id
    await factory.points(season, uuid.uuid4(), 10, "simple_completion")

    async def broken(*args, **kwargs):
        raise RuntimeError("honor store unavailable")

    monkeypatch.setattr(settlement, "grant_season_rank_honor", broken)
    with pytest.raises(RuntimeError):
        await svc.end_season(session, season_id, admin)
    await session.rollback()

    reloaded = await session.get(Season, season_id, populate_existing=True)
    assert reloaded.status == "active"
    assert (await session.execute(select(SeasonLeaderboard))).scalars().all() == []


@pytest.mark.asyncio
async def test_service_guards(session, factory, admin):
    season = await factory.season(status="settled")
    with pytest.raises(InvalidTransition):
        await svc.end_season(session, season.id, admin)
    await factory.season(name="2026 Q4", quarter=4)
    with pytest.raises(Conflict):
        await svc.reopen_season(session, season.id, admin)


@pytest.mark.asyncio
async def test_resettle_moves_rank_honors_with_the_leaderboard(client, auth, factory, session):
    season = await factory.season()
    a, b = uuid.uuid4(), uuid.uuid4()
    await factory.points(season, a, 50, "simple_completion")
    await factory.points(season, b, 40, "simple_completion")

    r = await client.post(f"/seasons/{season.id}/end", headers=auth)
    assert r.json()["winners"] == [str(a), str(b)]

    # a late approval flips the order
    await factory.points(season, b, 30, "hard_completion")
    r = await client.post(f"/seasons/{season.id}/resettle", headers=auth)
    assert r.json()["winners"] == [str(b), str(a)]

    honors = (await session.execute(
        select(UserHonor).where(UserHonor.reference_id == str(season.id))
    )).scalars().all()
    assert sorted((h.honor_type, h.user_id) for h in honors) == sorted([("season_1st", b), ("season_2nd", a)])


@pytest.mark.asyncio
async def test_delete_season_drops_its_rank_honors(client, auth, super_auth, factory, session):
    season = await factory.season()
    user = uuid.uuid4()
    await factory.points(season, user, 10, "simple_completion")
    await client.post(f"/seasons/{season.id}/end", headers=auth)
    await client.post("/honors/milestone", json={"user_id": str(user), "unlock_count": 10}, headers=auth)

    r = await client.delete(f"/seasons/{season.id}", headers=super_auth)
    assert r.status_code == 204
    honors = (await session.execute(select(UserHonor).where(UserHonor.user_id == user))).scalars().all()
    # the milestone is not tied to the season and stays
    assert [h.honor_type for h in honors] == ["milestone_10"]


@pytest.mark.asyncio
async def test_racing_end_settles_once(tmp_path, admin):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'race.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    make_session = async_sessionmaker(eng, expire_on_commit=False)
    users = [uuid.uuid4() for _ in range(4)]
    try:
        async with make_session() as seed:
            season = Season(
                name="2026 Q3", year=2026, quarter=3,
                start_date=date(2026, 7, 1), end_date=date(2026, 9, 30), status="active",
            )
            seed.add(season)
            await seed.flush()
            for i, user in enumerate(users):
                seed.add(UserPoints(user_id=user, season_id=season.id, point_type="simple_completion", points=10 + i, earned_at=T0))
            await seed.commit()
            season_id = season.id

        async with make_session() as slow, make_session() as fast:
            # the slow request has already seen the season as active
            seen = await slow.get(Season, season_id)
            assert seen.status == "active"

            await svc.end_season(fast, season_id, admin)
            await fast.commit()

            with pytest.raises((Conflict, InvalidTransition)):
                await svc.end_season(slow, season_id, admin)
            await slow.rollback()

        async with make_session() as check:
            rows = (await check.execute(select(SeasonLeaderboard))).scalars().all()
            assert sorted(r.rank_position for r in rows) == [1, 2, 3, 4]
            honors = (await check.execute(select(UserHonor))).scalars().all()
            assert len(honors) == 3
            assert (await check.get(Season, season_id)).status == "ended"
    finally:
        await eng.dispose()
