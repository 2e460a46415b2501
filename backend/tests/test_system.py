from fastapi.testclient import TestClient
import pytest

from fshome.main import app


def test_version_ok():
    client = TestClient(app)
    r = client.get("/version")
    assert r.status_code == 200
    data = r.json()
    assert data["name"] == "fshome-admin-api"
    assert "version" in data and "git_sha" in data


@pytest.mark.asyncio
async def test_health_ok(client, factory):
    r = await client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert data["active_season"] is None
    assert "request_id" in data

    await factory.season(name="2026 Q4", quarter=4)
    r = await client.get("/health", headers={"X-Request-ID": "req-123"})
    assert r.json()["active_season"] == "2026 Q4"
    assert r.json()["request_id"] == "req-123"
    assert r.headers["X-Request-ID"] == "req-123"
