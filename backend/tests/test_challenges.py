import uuid

import pytest

CHALLENGE = {
    "title": "Around the World week",
    "description": "Land three ATWs in a row",
    "week_number": 1,
    "start_date": "2026-07-01",
    "end_date": "2026-07-07",
}

SIMPLE = {"mode_type": "simple", "title": "Single ATW", "moves_required": ["ATW"], "points_reward": 10}
HARD = {"mode_type": "hard", "title": "Triple ATW", "moves_required": ["ATW", "ATW", "ATW"], "points_reward": 30, "difficulty_level": 4}


@pytest.mark.asyncio
async def test_create_starts_as_draft(client, auth, factory, admin_user):
    season = await factory.season()
    r = await client.post("/challenges", json={**CHALLENGE, "season_id": str(season.id)}, headers=auth)
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["status"] == "draft"
    assert body["created_by"] == str(admin_user.id)


@pytest.mark.asyncio
async def test_create_for_missing_season(client, auth):
    r = await client.post("/challenges", json={**CHALLENGE, "season_id": str(uuid.uuid4())}, headers=auth)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_lifecycle_draft_active_ended(client, auth, factory):
    season = await factory.season()
    ch = await factory.challenge(season, status="draft")

    r = await client.post(f"/challenges/{ch.id}/end", headers=auth)
    assert r.status_code == 400  # draft cannot end

    r = await client.post(f"/challenges/{ch.id}/activate", headers=auth)
    assert r.json()["status"] == "active"
    r = await client.post(f"/challenges/{ch.id}/activate", headers=auth)
    assert r.status_code == 400

    r = await client.post(f"/challenges/{ch.id}/end", headers=auth)
    assert r.json()["status"] == "ended"
    r = await client.post(f"/challenges/{ch.id}/reopen", headers=auth)
    assert r.status_code == 200
    assert r.json()["status"] == "active"


@pytest.mark.asyncio
async def test_reopen_refused_when_season_not_active(client, auth, factory):
    season = await factory.season(name="2026 Q2", status="ended", quarter=2)
    ch = await factory.challenge(season, status="ended")

    r = await client.post(f"/challenges/{ch.id}/reopen", headers=auth)
    assert r.status_code == 400
    detail = r.json()["detail"]
    assert "2026 Q2" in detail
    assert str(season.id) in detail
    assert "ended" in detail

    r = await client.get(f"/challenges/{ch.id}", headers=auth)
    assert r.json()["status"] == "ended"


@pytest.mark.asyncio
async def test_list_filters_and_detail(client, auth, factory):
    season = await factory.season()
    ch1 = await factory.challenge(season, week_number=1, title="Crossover basics")
    await factory.challenge(season, week_number=2, status="draft", title="Toe stalls")
    mode = await factory.mode(ch1)
    user = uuid.uuid4()
    await factory.participation(mode, user_id=user)
    await factory.participation(mode, user_id=user)
    await factory.participation(mode)

    r = await client.get("/challenges", params={"season_id": str(season.id)}, headers=auth)
    assert r.json()["total"] == 2
    r = await client.get("/challenges", params={"status": "draft"}, headers=auth)
    assert [c["title"] for c in r.json()["data"]] == ["Toe stalls"]
    r = await client.get("/challenges", params={"search": "crossover"}, headers=auth)
    assert [c["title"] for c in r.json()["data"]] == ["Crossover basics"]

    r = await client.get(f"/challenges/{ch1.id}", headers=auth)
    detail = r.json()
    assert detail["participant_count"] == 2
    assert [m["mode_type"] for m in detail["modes"]] == ["simple"]


@pytest.mark.asyncio
async def test_update_and_delete(client, auth, factory):
    season = await factory.season()
    ch = await factory.challenge(season)
    mode = await factory.mode(ch)
    await factory.participation(mode)

    r = await client.patch(f"/challenges/{ch.id}", json={"title": "Renamed"}, headers=auth)
    assert r.json()["title"] == "Renamed"
    r = await client.patch(f"/challenges/{ch.id}", json={"status": "ended"}, headers=auth)
    assert r.status_code == 422

    r = await client.delete(f"/challenges/{ch.id}", headers=auth)
    assert r.status_code == 204
    r = await client.get(f"/challenges/{ch.id}", headers=auth)
    assert r.status_code == 404
    r = await client.get("/participations", headers=auth)
    assert r.json()["total"] == 0


@pytest.mark.asyncio
async def test_one_mode_per_type(client, auth, factory):
    season = await factory.season()
    ch = await factory.challenge(season)

    r = await client.post(f"/challenges/{ch.id}/modes", json=SIMPLE, headers=auth)
    assert r.status_code == 201, r.text
    simple_id = r.json()["id"]
    assert r.json()["moves_required"] == ["ATW"]

    r = await client.post(f"/challenges/{ch.id}/modes", json={**SIMPLE, "title": "Another"}, headers=auth)
    assert r.status_code == 409

    r = await client.post(f"/challenges/{ch.id}/modes", json=HARD, headers=auth)
    assert r.status_code == 201
    hard_id = r.json()["id"]

    # keeping its own type is not a clash
    r = await client.patch(f"/modes/{simple_id}", json={"mode_type": "simple", "points_reward": 15}, headers=auth)
    assert r.status_code == 200
    assert r.json()["points_reward"] == 15

    r = await client.patch(f"/modes/{simple_id}", json={"mode_type": "hard"}, headers=auth)
    assert r.status_code == 409

    r = await client.delete(f"/modes/{hard_id}", headers=auth)
    assert r.status_code == 204
    r = await client.patch(f"/modes/{simple_id}", json={"mode_type": "hard"}, headers=auth)
    assert r.status_code == 200

    r = await client.get(f"/challenges/{ch.id}/modes", headers=auth)
    assert [m["mode_type"] for m in r.json()] == ["hard"]


@pytest.mark.asyncio
async def test_mode_validation(client, auth, factory):
    season = await factory.season()
    ch = await factory.challenge(season)
    r = await client.post(f"/challenges/{ch.id}/modes", json={**SIMPLE, "mode_type": "expert"}, headers=auth)
    assert r.status_code == 422
    r = await client.post(f"/challenges/{ch.id}/modes", json={**SIMPLE, "points_reward": -1}, headers=auth)
    assert r.status_code == 422
    r = await client.post(f"/challenges/{uuid.uuid4()}/modes", json=SIMPLE, headers=auth)
    assert r.status_code == 404
