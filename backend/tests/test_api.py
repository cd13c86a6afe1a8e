"""HTTP API tests using FastAPI's TestClient."""
import pytest
from fastapi.testclient import TestClient

from whatnext.main import create_app


@pytest.fixture()
def client(router):
    with TestClient(create_app(router)) as test_client:
        yield test_client


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


def test_add_list_and_delete(client):
    resp = client.post("/api/activities/", json={"name": " read ", "priority": 2.0})
    assert resp.status_code == 201
    assert resp.json() == {"activity": "read", "priority": 2.0}

    resp = client.post("/api/activities/", json={"name": "walk"})
    assert resp.json()["priority"] == 1.0

    names = [a["activity"] for a in client.get("/api/activities/").json()]
    assert sorted(names) == ["read", "walk"]

    assert client.delete("/api/activities/read").status_code == 200
    assert client.delete("/api/activities/read").status_code == 404


def test_add_validation_and_duplicates(client):
    assert client.post("/api/activities/", json={"name": "  "}).status_code == 400
    client.post("/api/activities/", json={"name": "read"})
    assert client.post("/api/activities/", json={"name": "read"}).status_code == 409


def test_adjust_priority(client):
    client.post("/api/activities/", json={"name": "play guitar", "priority": 1.0})
    resp = client.patch("/api/activities/play guitar/priority", json={"delta": 0.2})
    assert resp.status_code == 200
    assert resp.json() == {"activity": "play guitar", "priority": 1.2}

    assert client.patch("/api/activities/ghost/priority", json={"delta": 0.1}).status_code == 404
    assert client.patch("/api/activities/ghost/priority", json={}).status_code == 422


def test_suggest(client):
    assert client.get("/api/activities/suggest").status_code == 404
    client.post("/api/activities/", json={"name": "read", "priority": 1.0})
    body = client.get("/api/activities/suggest").json()
    assert body["activity"] == "read"
    assert body["priority"] >= body["min_roll"]


def test_offline_status_and_sync(client, remote_store, clock):
    remote_store.reachable = False
    client.post("/api/activities/", json={"name": "queued", "priority": 1.0})

    status = client.get("/api/sync/status").json()
    assert status == {"online": False, "status": "offline", "pending_count": 1}
    assert client.post("/api/sync/").status_code == 503

    remote_store.reachable = True
    clock.advance(10)
    resp = client.post("/api/sync/")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success_count"] == 1
    assert body["failed_count"] == 0
    assert body["pulled"] is True
    assert client.get("/api/sync/status").json()["pending_count"] == 0
    assert remote_store.get("queued") is not None


def test_sync_in_progress_conflict(client, router):
    router.sync_lock.acquire()
    try:
        assert client.post("/api/sync/").status_code == 409
    finally:
        router.sync_lock.release()


def test_unusable_priorities_are_rejected(client):
    resp = client.post("/api/activities/", json={"name": "neg", "priority": -1})
    assert resp.status_code == 400
    assert client.get("/api/activities/suggest").status_code == 404

    client.post("/api/activities/", json={"name": "read", "priority": 1.0})
    resp = client.patch("/api/activities/read/priority", json={"delta": 1e308})
    assert resp.status_code == 400
    assert client.get("/api/activities/suggest").json()["activity"] == "read"
