"""Test the FastAPI endpoints."""
import asyncio

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

import api.app as app_module
from api.app import app


@pytest_asyncio.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    # the runner task belongs to this test's event loop
    await app_module.shutdown()
    app_module.runner = None


@pytest.mark.asyncio
async def test_requires_running_game(client):
    app_module.runner = None
    response = await client.get("/game/local/state")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_start_game(client):
    """Test starting a new game."""
    response = await client.post("/game/start", json={"seed": 123})
    assert response.status_code == 200
    assert response.json() == {"game_id": "local", "round": 1}


@pytest.mark.asyncio
async def test_get_state(client):
    """Test getting game state."""
    await client.post("/game/start", json={"seed": 42, "round": 2})
    response = await client.get("/game/local/state")

    assert response.status_code == 200
    data = response.json()
    assert data["round"] == 2
    assert len(data["towers"]) == 4
    assert len(data["lanes"]) == 5
    master = data["towers"][0]
    assert master["is_master"] is True
    assert master["capture_state"] == "stable"
    assert len(master["pos"]) == 2


@pytest.mark.asyncio
async def test_post_orders(client):
    """Test submitting orders."""
    await client.post("/game/start", json={"seed": 42})
    response = await client.post("/game/local/orders", json=[
        {"source_ids": ["tower-0"], "target_id": "tower-2"}
    ])
    assert response.status_code == 200
    assert response.json() == {"queued": 1}

    bad = await client.post("/game/local/orders", json=[{"source_ids": [], "target_id": "tower-2"}])
    assert bad.status_code == 422


@pytest.mark.asyncio
async def test_get_events(client):
    """Test retrieving events."""
    await client.post("/game/start", json={"seed": 42})
    await client.post("/game/local/orders", json=[
        {"source_ids": ["tower-0"], "target_id": "tower-2"}
    ])
    # Wait a moment for ticks to process
    await asyncio.sleep(0.2)
    response = await client.get("/game/local/events?since=0")

    assert response.status_code == 200
    data = response.json()
    assert "next_offset" in data
    kinds = [e["kind"] for e in data["events"]]
    assert "LevelLoaded" in kinds
    assert "Dispatched" in kinds


@pytest.mark.asyncio
async def test_pause_resume_and_next(client):
    await client.post("/game/start", json={"seed": 42})
    response = await client.post("/game/local/pause")
    assert response.json() == {"paused": True}
    state = (await client.get("/game/local/state")).json()
    assert state["paused"] is True

    response = await client.post("/game/local/resume")
    assert response.json() == {"paused": False}

    # no victory yet, so the same round is replayed
    response = await client.post("/game/local/next")
    assert response.json() == {"round": 1}


@pytest.mark.asyncio
async def test_time_control(client):
    await client.post("/game/start", json={"seed": 42})
    response = await client.post("/game/local/time-control?time_compression=4")
    assert response.json() == {"time_compression": 4.0}
    response = await client.get("/game/local/time-control")
    assert response.json() == {"time_compression": 4.0}
