"""Tests for the JSON API."""

from functools import partial

import pytest
from httpx import ASGITransport, AsyncClient

from tokenmeter.dashboard_app import create_dashboard_app
from tokenmeter.db import Database
from tokenmeter.loader import UsageLoader

SESSION = "0b5e2a4c-1f3d-4e6a-9b7c-2d8e1f0a3b4c.jsonl"


@pytest.fixture
async def db(tmp_path):
    """Use a temp database for tests."""
    database = Database(tmp_path / "test.db")
    await database.init()
    yield database
    await database.close()


@pytest.fixture
def app(db, projects_root):
    return create_dashboard_app(db, loader_factory=partial(UsageLoader, roots=[projects_root]))


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["service"] == "tokenmeter"


@pytest.mark.asyncio
async def test_today(client, projects_root, make_entry, write_log):
    write_log(projects_root / "-p" / SESSION, [make_entry("m", "r", 10, 20, 30, 40)])

    resp = await client.get("/api/today")

    assert resp.status_code == 200
    data = resp.json()
    assert data["totalTokens"] == 100
    assert data["messageCount"] == 1
    assert "records" not in data

    resp = await client.get("/api/today", params={"records": "true"})
    assert resp.json()["records"][0]["messageId"] == "m"


@pytest.mark.asyncio
async def test_session_scoped_by_workspace(client, projects_root, make_entry, write_log):
    write_log(projects_root / "-home-dev-app" / SESSION, [make_entry(cache_read=321)])

    resp = await client.get("/api/session", params={"workspace": "/home/dev/app"})
    assert resp.json()["totalTokens"] == 321
    assert resp.json()["isActive"] is True

    resp = await client.get("/api/session", params={"workspace": "/home/dev/elsewhere"})
    assert resp.json()["isActive"] is False


@pytest.mark.asyncio
async def test_history_records_snapshots(client, projects_root, make_entry, write_log):
    write_log(projects_root / "-p" / SESSION, [make_entry(cache_read=50)])
    await client.get("/api/today")
    await client.get("/api/session")

    resp = await client.get("/api/history")
    kinds = sorted(e["kind"] for e in resp.json())
    assert kinds == ["session", "today"]

    resp = await client.get("/api/history", params={"kind": "session"})
    assert [e["totalTokens"] for e in resp.json()] == [50]
