"""Unit tests for API endpoints."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from topicmap.api.main import create_app
from topicmap.api.routes import ExpandRequest, FocusRequest, HealthResponse, LabelRequest
from topicmap.errors import ExpansionBusyError, KnowledgeSourceError
from topicmap.session import MapSession


@pytest.fixture
def client(session: MapSession) -> TestClient:
    return TestClient(create_app(session))


def seed(client: TestClient) -> dict:
    response = client.post("/v1/map/expand", json={"topic": "Rust"})
    assert response.status_code == 200
    return response.json()


def node_by_label(data: dict, label: str) -> dict:
    return next(n for n in data["nodes"] if n["label"] == label)


class TestModels:
    """Tests for request/response models."""

    def test_expand_request_defaults(self) -> None:
        req = ExpandRequest(topic="Rust")
        assert req.parent_id is None

    def test_expand_request_rejects_empty_topic(self) -> None:
        with pytest.raises(ValueError):
            ExpandRequest(topic="")

    def test_focus_request_allows_null(self) -> None:
        assert FocusRequest().node_id is None

    def test_label_request_rejects_empty(self) -> None:
        with pytest.raises(ValueError):
            LabelRequest(label="")

    def test_health_response(self) -> None:
        resp = HealthResponse(status="ok", nodes=0, busy=False)
        assert resp.version == "0.1.0"


class TestEndpoints:
    """Tests for the map endpoints."""

    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["nodes"] == 0

    def test_empty_map(self, client: TestClient) -> None:
        data = client.get("/v1/map").json()
        assert data == {"nodes": [], "edges": [], "busy": False, "focus_id": None}

    def test_seed(self, client: TestClient) -> None:
        data = seed(client)
        assert data["succeeded"] is True
        assert len(data["new_node_ids"]) == 4

        nodes = data["map"]["nodes"]
        visible = [n for n in nodes if not n["hidden"]]
        assert [n["label"] for n in visible] == ["Rust"]
        assert visible[0]["collapsed"] is True
        assert visible[0]["can_expand"] is False
        assert set(visible[0]["position"]) == {"x", "y"}
        assert all(e["hidden"] for e in data["map"]["edges"])

    def test_expand_failure_is_not_http_error(self, client: TestClient, session) -> None:
        session.protocol.knowledge.expand = AsyncMock(side_effect=KnowledgeSourceError("down"))
        response = client.post("/v1/map/expand", json={"topic": "Rust"})
        assert response.status_code == 200
        assert response.json()["succeeded"] is False
        assert response.json()["map"]["nodes"] == []

    def test_expand_unknown_parent(self, client: TestClient) -> None:
        response = client.post("/v1/map/expand", json={"topic": "x", "parent_id": "ghost"})
        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "not_found"
        assert body["detail"]["node_id"] == "ghost"

    def test_expand_validation_error(self, client: TestClient) -> None:
        response = client.post("/v1/map/expand", json={})
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_toggle(self, client: TestClient) -> None:
        root = node_by_label(seed(client)["map"], "Rust")
        response = client.post(f"/v1/map/nodes/{root['id']}/toggle")
        assert response.status_code == 200
        data = response.json()
        assert data["collapsed"] is False
        assert not node_by_label(data["map"], "Ownership")["hidden"]

    def test_toggle_unknown(self, client: TestClient) -> None:
        assert client.post("/v1/map/nodes/ghost/toggle").status_code == 404

    def test_delete(self, client: TestClient) -> None:
        ownership = node_by_label(seed(client)["map"], "Ownership")
        response = client.delete(f"/v1/map/nodes/{ownership['id']}")
        assert response.status_code == 200
        data = response.json()
        assert len(data["removed_ids"]) == 2
        assert node_by_label(data["map"], "Rust")["child_hint"] == 1

    def test_focus(self, client: TestClient) -> None:
        ownership = node_by_label(seed(client)["map"], "Ownership")
        data = client.post("/v1/map/focus", json={"node_id": ownership["id"]}).json()
        assert data["focus_id"] == ownership["id"]
        assert node_by_label(data, "Tooling")["focus_state"] == "dimmed"
        assert node_by_label(data, "Rust")["focus_state"] == "connected"

        cleared = client.post("/v1/map/focus", json={"node_id": None}).json()
        assert cleared["focus_id"] is None

    def test_edit_label(self, client: TestClient) -> None:
        root = node_by_label(seed(client)["map"], "Rust")
        data = client.patch(f"/v1/map/nodes/{root['id']}", json={"label": "Rust lang"}).json()
        assert node_by_label(data, "Rust lang")["id"] == root["id"]

    def test_blank_label(self, client: TestClient) -> None:
        root = node_by_label(seed(client)["map"], "Rust")
        response = client.patch(f"/v1/map/nodes/{root['id']}", json={"label": "   "})
        assert response.status_code == 400

    def test_drag_and_layout(self, client: TestClient) -> None:
        root = node_by_label(seed(client)["map"], "Rust")
        data = client.post(f"/v1/map/nodes/{root['id']}/position", json={"x": 900, "y": 10}).json()
        assert node_by_label(data, "Rust")["position"] == {"x": 900.0, "y": 10.0}

        layout = client.post("/v1/map/layout").json()
        assert layout["changed"] is True
        assert node_by_label(layout["map"], "Rust")["position"] == root["position"]

        assert client.post("/v1/map/layout").json()["changed"] is False

    def test_reset(self, client: TestClient) -> None:
        seed(client)
        data = client.post("/v1/map/reset").json()
        assert data["nodes"] == []

    def test_busy_conflict(self, client: TestClient, session) -> None:
        with patch.object(session, "expand", AsyncMock(side_effect=ExpansionBusyError())):
            response = client.post("/v1/map/expand", json={"topic": "Rust"})
        assert response.status_code == 409
        assert response.json()["error"] == "expansion_busy"
