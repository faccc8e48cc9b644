"""Tests for the HTTP surface."""

import json

import pytest
from fastapi.testclient import TestClient

from canvas_ledger import server
from canvas_ledger.api import canvas_routes, event_routes, token_routes
from canvas_ledger.canvas.ledger import CanvasLedger
from canvas_ledger.canvas.ticks import BlockTicks, ManualTicks

from conftest import CREATOR, PAINTER, STRANGER


def as_caller(identity):
    return {"X-Caller": identity}


@pytest.fixture
def api_ledger(monkeypatch, ticks):
    current = CanvasLedger(ticks=ticks)
    for module in (canvas_routes, token_routes):
        monkeypatch.setattr(module, "ledger", current)
        monkeypatch.setattr(module, "indexer_client", None)
    monkeypatch.setattr(event_routes, "ledger", current)
    monkeypatch.setattr(server, "ledger", current)
    return current


@pytest.fixture
def client(api_ledger):
    return TestClient(server.app)


def create(client, width=10, height=10, duration=5, caller=CREATOR):
    response = client.post(
        "/api/canvas",
        json={"width": width, "height": height, "max_duration_ticks": duration},
        headers=as_caller(caller),
    )
    assert response.status_code == 200, response.text
    return response.json()["canvas_id"]


class TestCanvasRoutes:

    def test_create_and_get(self, client):
        canvas_id = create(client)
        body = client.get(f"/api/canvas/{canvas_id}").json()
        assert body["status"] == "Open"
        assert body["creator"] == CREATOR
        assert body["artwork_ref"] == ""

    def test_create_requires_caller(self, client):
        response = client.post("/api/canvas", json={"width": 1, "height": 1, "max_duration_ticks": 1})
        assert response.status_code == 422

    def test_invalid_dimensions(self, client):
        response = client.post(
            "/api/canvas",
            json={"width": 0, "height": 1, "max_duration_ticks": 1},
            headers=as_caller(CREATOR),
        )
        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["error"] == "InvalidDimensions"
        assert detail["category"] == "validation"
        assert detail["transient"] is False

    def test_unknown_canvas(self, client):
        response = client.get("/api/canvas/42")
        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "UnknownCanvas"

    def test_list(self, client):
        create(client)
        create(client, caller=PAINTER)
        assert [c["id"] for c in client.get("/api/canvas").json()] == [1, 2]

    def test_paint_and_read(self, client):
        canvas_id = create(client)
        response = client.put(
            f"/api/canvas/{canvas_id}/pixels/3/3", json={"color": 42}, headers=as_caller(PAINTER)
        )
        assert response.status_code == 200
        assert client.get(f"/api/canvas/{canvas_id}/pixels/3/3").json()["color"] == 42
        assert client.get(f"/api/canvas/{canvas_id}/pixels/0/0").json()["color"] == 255

        listing = client.get(f"/api/canvas/{canvas_id}/pixels").json()
        assert listing["pixels"] == [{"x": 3, "y": 3, "color": 42}]

    def test_out_of_bounds_is_permanent(self, client):
        canvas_id = create(client)
        response = client.put(
            f"/api/canvas/{canvas_id}/pixels/10/0", json={"color": 1}, headers=as_caller(PAINTER)
        )
        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "CoordinatesOutOfBounds"
        assert response.json()["detail"]["transient"] is False

    def test_finished_is_transient(self, client, ticks):
        canvas_id = create(client)
        ticks.set(10)
        response = client.put(
            f"/api/canvas/{canvas_id}/pixels/1/1", json={"color": 7}, headers=as_caller(PAINTER)
        )
        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "CanvasFinished"
        assert response.json()["detail"]["transient"] is True

    def test_invalid_color(self, client):
        canvas_id = create(client)
        response = client.put(
            f"/api/canvas/{canvas_id}/pixels/1/1", json={"color": 300}, headers=as_caller(PAINTER)
        )
        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "InvalidColor"

    def test_claim_flow(self, client, ticks):
        canvas_id = create(client)
        ticks.set(10)

        response = client.post(
            f"/api/canvas/{canvas_id}/claim", json={"artwork_ref": "Qm123"}, headers=as_caller(STRANGER)
        )
        assert response.status_code == 403
        assert response.json()["detail"]["error"] == "NotCanvasOwner"

        response = client.post(
            f"/api/canvas/{canvas_id}/claim", json={"artwork_ref": "Qm123"}, headers=as_caller(CREATOR)
        )
        assert response.status_code == 200
        assert response.json()["holder"] == CREATOR
        assert client.get(f"/api/canvas/{canvas_id}").json()["status"] == "Claimed"

        response = client.post(
            f"/api/canvas/{canvas_id}/claim", json={"artwork_ref": "Qm123"}, headers=as_caller(CREATOR)
        )
        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "CanvasAlreadyClaimed"


class TestTokenRoutes:

    @pytest.fixture
    def token_id(self, client, ticks):
        canvas_id = create(client)
        ticks.set(10)
        client.post(f"/api/canvas/{canvas_id}/claim", json={"artwork_ref": "Qm123"}, headers=as_caller(CREATOR))
        return canvas_id

    def test_metadata_document(self, client, api_ledger, token_id):
        response = client.get(f"/api/token/{token_id}/metadata")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        assert response.text == api_ledger.token_metadata_json(token_id)
        assert json.loads(response.text)["artworkRef"] == "Qm123"

    def test_metadata_unknown(self, client):
        response = client.get("/api/token/9/metadata")
        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "UnknownToken"

    def test_uri(self, client, token_id):
        uri = client.get(f"/api/token/{token_id}/uri").json()["uri"]
        assert uri.startswith("data:application/json;base64,")

    def test_owner_and_balance(self, client, token_id):
        assert client.get(f"/api/token/{token_id}/owner").json()["owner"] == CREATOR
        assert client.get(f"/api/token/balance/{CREATOR}").json()["balance"] == 1

    def test_approve_transfer_burn(self, client, token_id):
        response = client.post(
            f"/api/token/{token_id}/approve", json={"approved": PAINTER}, headers=as_caller(CREATOR)
        )
        assert response.json()["approved"] == PAINTER

        response = client.post(
            f"/api/token/{token_id}/transfer",
            json={"sender": CREATOR, "receiver": STRANGER},
            headers=as_caller(PAINTER),
        )
        assert response.status_code == 200
        assert response.json()["owner"] == STRANGER

        response = client.post(f"/api/token/{token_id}/burn", headers=as_caller(CREATOR))
        assert response.status_code == 403
        assert response.json()["detail"]["error"] == "InsufficientApproval"

        response = client.post(f"/api/token/{token_id}/burn", headers=as_caller(STRANGER))
        assert response.status_code == 200
        assert client.get(f"/api/token/{token_id}/owner").status_code == 404

    def test_operator_routes(self, client, token_id):
        response = client.post(
            "/api/token/operators", json={"operator": PAINTER}, headers=as_caller(CREATOR)
        )
        assert response.status_code == 200
        assert client.get(f"/api/token/operators/{CREATOR}/{PAINTER}").json()["approved"] is True

        response = client.post(
            f"/api/token/{token_id}/transfer",
            json={"sender": CREATOR, "receiver": STRANGER},
            headers=as_caller(PAINTER),
        )
        assert response.json()["owner"] == STRANGER

        response = client.post(
            "/api/token/operators", json={"operator": ""}, headers=as_caller(CREATOR)
        )
        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "InvalidOperator"

    def test_collection(self, client):
        assert client.get("/api/token/collection").json() == {
            "name": "Community Canvas", "symbol": "CANVAS"
        }


class TestEventRoutes:

    def test_feed(self, client):
        canvas_id = create(client)
        client.put(f"/api/canvas/{canvas_id}/pixels/0/0", json={"color": 1}, headers=as_caller(PAINTER))

        body = client.get("/api/events").json()
        assert body["last_sequence"] == 2
        assert body["first_sequence"] == 1
        assert [e["event"] for e in body["events"]] == ["CanvasCreated", "PixelColored"]
        assert body["events"][1]["canvasId"] == canvas_id

        later = client.get("/api/events", params={"since": 1}).json()
        assert [e["sequence"] for e in later["events"]] == [2]

        filtered = client.get("/api/events", params={"event_type": "PixelColored"}).json()
        assert len(filtered["events"]) == 1

    def test_unknown_event_type(self, client):
        assert client.get("/api/events", params={"event_type": "Bogus"}).status_code == 400

    def test_tick_and_advance(self, client):
        assert client.get("/api/tick").json() == {"tick": 0}
        assert client.post("/api/tick/advance", json={"ticks": 4}).json() == {"tick": 4}
        assert client.post("/api/tick/advance", json={"ticks": -1}).status_code == 400

    def test_advance_rejected_for_block_ticks(self, client, api_ledger, monkeypatch):
        monkeypatch.setattr(api_ledger, "ticks", BlockTicks(block_time_seconds=1.0))
        assert client.post("/api/tick/advance", json={"ticks": 1}).status_code == 409


class TestServiceRoutes:

    def test_health(self, client):
        create(client)
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["canvases"] == 1

    def test_root(self, client):
        assert client.get("/").json()["service"] == "Canvas Ledger"


class TestLifespan:

    def test_startup_wires_routes(self, monkeypatch, tmp_path):
        # Restore the injected globals after the test
        for module in (canvas_routes, token_routes, event_routes, server):
            monkeypatch.setattr(module, "ledger", None)
        for module in (canvas_routes, token_routes, server):
            monkeypatch.setattr(module, "indexer_client", None)
        monkeypatch.setattr(server.config, "TICK_MODE", "manual")
        monkeypatch.setattr(server.config, "SNAPSHOT_DIR", str(tmp_path))
        monkeypatch.setattr(server.config, "INDEXER_URL", None)

        with TestClient(server.app) as client:
            assert isinstance(canvas_routes.ledger.ticks, ManualTicks)
            canvas_id = create(client)

        assert (tmp_path / f"canvas_{canvas_id}.json").exists()
