"""Tests for the capreg HTTP API."""

import inspect

import pytest
from fastapi.testclient import TestClient

from capreg.registry.registry import Registry
from capreg.registry.store import MemoryStore
from web.backend.app.dependencies import set_registry
from web.backend.app.main import app

ENTRY = {
    "type": "model",
    "description": "Segmentation",
    "host": "http://10.0.0.5:8000",
    "endpoints": ["POST /segment"],
    "version": "1.0.0",
    "usage": {
        "import": "from yolo_client import YoloClient",
        "init": "client = YoloClient()",
        "example": "client.segment(img)",
        "returns": "masks",
    },
}


@pytest.fixture
def client():
    set_registry(Registry(MemoryStore()))
    yield TestClient(app, headers={"X-Agent-Id": "vision-skill"})
    set_registry(None)


def _create(client, item_id="camera-aliases", category="sdk"):
    return client.post("/api/wishlist", json={"id": item_id, "category": category})


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


# --- Wishlist ---


def test_create_uses_agent_header(client):
    resp = _create(client)
    assert resp.status_code == 201
    body = resp.json()
    assert body["requested_by"] == "vision-skill"
    assert body["votes"] == 1
    assert body["status"] == "pending"
    assert body["assigned"] is None


def test_create_duplicate_is_conflict(client):
    _create(client)
    resp = _create(client)
    assert resp.status_code == 409
    assert resp.json()["detail"]["kind"] == "DuplicateId"


def test_create_bad_category(client):
    resp = _create(client, category="robots")
    assert resp.status_code == 422
    assert resp.json()["detail"]["kind"] == "InvalidCategory"


def test_request_collapses_into_upvote(client):
    client.post("/api/wishlist/request", json={"id": "depth-api", "category": "api"})
    resp = client.post("/api/wishlist/request", json={"id": "depth-api", "category": "api"})
    assert resp.status_code == 200
    assert resp.json()["votes"] == 2


def test_pending_queue_order(client):
    _create(client, "a")
    _create(client, "b")
    client.post("/api/wishlist/b/upvote")
    ids = [i["id"] for i in client.get("/api/wishlist/pending").json()]
    assert ids == ["b", "a"]


def test_full_lifecycle(client):
    _create(client)
    resp = client.post(
        "/api/wishlist/camera-aliases/transition",
        json={"status": "building", "assigned": "steve"},
        headers={"X-Agent-Id": "steve"},
    )
    assert resp.status_code == 200
    assert resp.json()["assigned"] == "steve"

    resp = client.post(
        "/api/wishlist/camera-aliases/transition",
        json={"status": "done", "actor": "steve", "completed_at": "2026-10-19T12:00:00Z"},
    )
    assert resp.json()["status"] == "done"

    resp = client.post("/api/wishlist/camera-aliases/transition", json={"status": "pending"})
    assert resp.status_code == 409
    assert resp.json()["detail"]["kind"] == "InvalidTransition"


def test_transition_missing_field(client):
    _create(client)
    resp = client.post("/api/wishlist/camera-aliases/transition", json={"status": "building"})
    assert resp.status_code == 422
    assert resp.json()["detail"]["kind"] == "MissingField"


def test_unknown_item_is_not_found(client):
    assert client.get("/api/wishlist/ghost").status_code == 404
    assert client.post("/api/wishlist/ghost/upvote").status_code == 404
    assert client.delete("/api/wishlist/ghost").status_code == 404


def test_list_filters(client):
    _create(client, "a", "sdk")
    _create(client, "b", "api")
    assert [i["id"] for i in client.get("/api/wishlist", params={"category": "api"}).json()] == ["b"]


def test_malformed_body_is_rejected(client):
    assert client.post("/api/wishlist", json={"category": "sdk"}).status_code == 422


# --- Catalog ---


def test_publish_and_get(client):
    resp = client.post("/api/catalog/yolo-segmentation", json=ENTRY)
    assert resp.status_code == 201
    entry = resp.json()["entry"]
    assert entry["usage"]["import"] == "from yolo_client import YoloClient"
    assert entry["added_by"] == "vision-skill"
    assert entry["added_at"]

    resp = client.get("/api/catalog")
    assert resp.json()["updated"]
    assert list(resp.json()["capabilities"]) == ["yolo-segmentation"]


def test_publish_without_usage(client):
    resp = client.post("/api/catalog/yolo-segmentation", json={**ENTRY, "usage": None})
    assert resp.status_code == 422
    assert resp.json()["detail"]["kind"] == "MissingUsageBlock"
    assert client.get("/api/catalog/yolo-segmentation").status_code == 404


def test_publish_duplicate(client):
    client.post("/api/catalog/yolo-segmentation", json=ENTRY)
    resp = client.post("/api/catalog/yolo-segmentation", json=ENTRY)
    assert resp.status_code == 409
    assert resp.json()["detail"]["kind"] == "DuplicateCapability"


def test_update_and_remove(client):
    client.post("/api/catalog/yolo-segmentation", json=ENTRY)
    resp = client.put("/api/catalog/yolo-segmentation", json=ENTRY)
    assert resp.json()["entry"]["version"] == "1.0.1"

    assert client.delete("/api/catalog/yolo-segmentation").status_code == 200
    assert client.put("/api/catalog/yolo-segmentation", json=ENTRY).status_code == 404


# --- Conformance and documents ---


def test_check_descriptor(client):
    resp = client.post(
        "/api/conformance/check",
        json={
            "imports": ["requests"],
            "constructor": [{"name": "host", "default": "http://10.0.0.5:8000"}],
            "methods": [{"name": "health"}],
        },
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["passed"] is False
    assert body["results"][0]["check"] == "forbidden-imports"
    assert body["results"][2]["passed"] is True


def test_inspect_source(client):
    source = '"""Usage:\n    import depth_client\n    depth_client.DepthClient().health()\n"""\n'
    resp = client.post("/api/conformance/inspect", json={"source": source})
    body = resp.json()
    assert body["descriptor"]["module_docstring"].startswith("Usage:")
    assert not body["passed"]


def test_validate_and_schema(client):
    _create(client)
    assert client.get("/api/validate").json() == {"valid": True, "issues": []}
    assert client.get("/api/schema/wishlist").json()["type"] == "array"
    assert client.get("/api/schema/other").status_code == 404


def test_hand_edited_nulls_are_served():
    catalog = {"updated": None, "capabilities": {"x": {**ENTRY, "client_sdk": None, "api_docs": None}}}
    wishlist = [{"id": "a", "name": None, "description": None, "category": "api", "votes": 1, "status": "pending"}]
    set_registry(Registry(MemoryStore(wishlist=wishlist, catalog=catalog)))
    try:
        client = TestClient(app)
        resp = client.get("/api/catalog")
        assert resp.status_code == 200
        assert resp.json()["capabilities"]["x"]["client_sdk"] == ""
        resp = client.get("/api/wishlist/a")
        assert resp.status_code == 200
        assert resp.json()["name"] == ""
    finally:
        set_registry(None)


def test_registry_endpoints_run_in_threadpool():
    for route in app.routes:
        path = getattr(route, "path", "")
        if path.startswith(("/api/wishlist", "/api/catalog", "/api/validate")):
            assert not inspect.iscoroutinefunction(route.endpoint), path
