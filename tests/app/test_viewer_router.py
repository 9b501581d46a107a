"""Unit tests for the viewer API router (/api/viewer/*).

Drives a real ViewerSession through FastAPI TestClient. File uploads use
``wait`` so every load has finished when the response arrives.
"""
from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.routers.viewer import router
from mapper.viewer.session import ViewerSession

A = "A_01_KML_Export.kml"
B = "B_02_KML_Export.kml"
C = "C_03_KML_Export.kml"


def _make_app(viewer=None):
    """Create a minimal FastAPI app with the viewer router and optional session."""
    app = FastAPI()
    app.include_router(router)
    app.state.viewer = viewer
    return app


@pytest.fixture
def viewer(store):
    return ViewerSession(store)


@pytest.fixture
def client(viewer):
    return TestClient(_make_app(viewer))


@pytest.fixture
def loaded(client, make_kml):
    """Client with three dropped layers."""
    files = [{"name": n, "content": make_kml(n)} for n in (C, A, B)]
    resp = client.post("/api/viewer/files", json={"files": files, "wait": True})
    assert resp.status_code == 200
    return client


@pytest.mark.unit
class TestSessionEndpoints:
    """Snapshot, uploads, project switch, notifications, events."""

    def test_503_without_viewer(self):
        client = TestClient(_make_app(viewer=None))
        assert client.get("/api/viewer/").status_code == 503
        assert client.get("/api/viewer/layers").status_code == 503

    def test_empty_snapshot(self, client):
        data = client.get("/api/viewer/").json()
        assert data["project"] is None
        assert data["rows"] == []
        assert data["line_weight"] == 3

    def test_upload(self, client, make_kml):
        resp = client.post("/api/viewer/files", json={
            "files": [
                {"name": A, "content": make_kml()},
                {"name": "photo.jpg", "content": ""},
            ],
            "wait": True,
        })
        data = resp.json()
        assert data["added"] == [A]
        assert data["invalid"] == ["photo.jpg"]
        assert data["results"][0]["loaded"] is True

    def test_upload_duplicate(self, loaded, make_kml):
        resp = loaded.post("/api/viewer/files", json={
            "files": [{"name": A, "content": make_kml()}], "wait": True,
        })
        assert resp.json()["ignored"] == [A]

    def test_upload_broken_kml(self, client):
        resp = client.post("/api/viewer/files", json={
            "files": [{"name": A, "content": "<kml"}], "wait": True,
        })
        assert resp.json()["results"][0]["loaded"] is False
        messages = [n["message"] for n in client.get("/api/viewer/notifications").json()]
        assert "Failed to load the file" in messages

    def test_switch_project(self, client):
        resp = client.post("/api/viewer/project", json={"project": "Nord", "user": "anna"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["added"] == ["Nord_01_KML_Export.kml", "Nord_02_KML_Export.kml"]
        assert [r["key"] for r in data["rows"]] == ["01", "02"]
        assert client.get("/api/viewer/").json()["user"] == "anna"

    def test_switch_to_latin1_project(self, latin1_store):
        viewer = ViewerSession(latin1_store)
        client = TestClient(_make_app(viewer))
        resp = client.post("/api/viewer/project", json={"project": "Sued"})
        assert resp.status_code == 200
        assert [r["name"] for r in resp.json()["rows"]] == ["Sued_01_KML_Export.kml"]
        assert viewer.orchestrator.pending_names == set()

    def test_switch_project_explicit_null_user(self, client):
        resp = client.post("/api/viewer/project", json={"project": "Nord", "user": None})
        assert resp.status_code == 200
        assert client.get("/api/viewer/").json()["user"] is None

    def test_switch_missing_project_404(self, client):
        resp = client.post("/api/viewer/project", json={"project": "Sued"})
        assert resp.status_code == 404

    def test_switch_without_store_503(self):
        client = TestClient(_make_app(ViewerSession()))
        assert client.post("/api/viewer/project", json={"project": "Nord"}).status_code == 503

    def test_events_since(self, loaded):
        events = loaded.get("/api/viewer/events").json()
        assert events
        last = events[-1]["seq"]
        loaded.post(f"/api/viewer/layers/{A}/click", json={})
        newer = loaded.get("/api/viewer/events", params={"since": last}).json()
        assert [e["type"] for e in newer] == ["selection_changed"]

    def test_map_state(self, loaded):
        data = loaded.get("/api/viewer/map").json()
        assert len(data["overlays"]) == 6
        assert data["zoom"] == 6


@pytest.mark.unit
class TestLayerEndpoints:
    """Per-layer list actions."""

    def test_rows_sorted(self, loaded):
        rows = loaded.get("/api/viewer/layers").json()
        assert [r["name"] for r in rows] == [A, B, C]

    def test_layer_geojson(self, loaded):
        data = loaded.get(f"/api/viewer/layers/{A}").json()
        assert data["main"]["kind"] == "main"
        assert data["shadow"]["style"]["color"] == "#000000"
        assert all(f["geometry"]["type"] != "Point" for f in data["main"]["features"])

    def test_unknown_layer_404(self, loaded):
        assert loaded.get("/api/viewer/layers/ghost.kml").status_code == 404
        assert loaded.post("/api/viewer/layers/ghost.kml/click", json={}).status_code == 404
        assert loaded.delete("/api/viewer/layers/ghost.kml").status_code == 404

    def test_click_modifiers(self, loaded):
        loaded.post(f"/api/viewer/layers/{A}/click", json={})
        resp = loaded.post(f"/api/viewer/layers/{C}/click", json={"modifier": "range"})
        assert resp.json()["selected"] == [A, B, C]
        resp = loaded.post(f"/api/viewer/layers/{B}/click", json={"modifier": "toggle"})
        assert resp.json()["selected"] == [A, C]

    def test_invalid_modifier_422(self, loaded):
        resp = loaded.post(f"/api/viewer/layers/{A}/click", json={"modifier": "alt"})
        assert resp.status_code == 422

    def test_visibility(self, loaded):
        resp = loaded.post(f"/api/viewer/layers/{A}/visibility")
        assert resp.json() == {"name": A, "visible": False}
        assert len(loaded.get("/api/viewer/map").json()["overlays"]) == 4

    def test_delete(self, loaded):
        assert loaded.delete(f"/api/viewer/layers/{B}").status_code == 200
        assert [r["name"] for r in loaded.get("/api/viewer/layers").json()] == [A, C]

    def test_color(self, loaded):
        resp = loaded.put(f"/api/viewer/layers/{A}/color", json={"color": "#00FF00"})
        assert resp.json() == {"name": A, "color": "#00ff00"}
        assert loaded.put(f"/api/viewer/layers/{A}/color", json={"color": "green"}).status_code == 400

    def test_hover(self, loaded):
        resp = loaded.post(f"/api/viewer/layers/{C}/hover")
        data = resp.json()
        assert data["highlighted"] is True
        assert data["label"]["text"] == "KML 03"
        assert loaded.delete(f"/api/viewer/layers/{C}/hover").json()["removed"] is True

    def test_details(self, loaded):
        assert loaded.get(f"/api/viewer/layers/{B}/details").json()["number"] == "02"

    def test_menu(self, loaded):
        items = loaded.get(f"/api/viewer/layers/{A}/menu").json()
        assert [i["action"] for i in items] == ["zoom", "color", "visibility", "delete"]

    def test_menu_zoom(self, loaded):
        resp = loaded.post(f"/api/viewer/layers/{A}/menu/zoom")
        assert resp.json()["result"] is True
        assert loaded.get("/api/viewer/map").json()["fitted"] is not None

    def test_menu_color(self, loaded):
        resp = loaded.post(f"/api/viewer/layers/{A}/menu/color", json={"color": "#112233"})
        assert resp.json()["result"] == "#112233"
        assert loaded.post(f"/api/viewer/layers/{A}/menu/color").status_code == 400

    def test_menu_unknown_action(self, loaded):
        assert loaded.post(f"/api/viewer/layers/{A}/menu/explode").status_code == 400


@pytest.mark.unit
class TestSelectionEndpoints:
    """Palette, select-all, line weight."""

    def test_recolor_selection(self, loaded):
        loaded.post("/api/viewer/selection/all", json={"selected": True})
        resp = loaded.post("/api/viewer/selection/color", json={"color": "#ABCDEF"})
        assert resp.json()["recolored"] == [A, B, C]
        colors = {r["color"] for r in loaded.get("/api/viewer/layers").json()}
        assert colors == {"#abcdef"}

    def test_recolor_nothing_selected(self, loaded):
        resp = loaded.post("/api/viewer/selection/color", json={"color": "#abcdef"})
        assert resp.json()["recolored"] == []
        messages = [n["message"] for n in loaded.get("/api/viewer/notifications").json()]
        assert "Please select a KML first" in messages

    def test_select_none(self, loaded):
        loaded.post("/api/viewer/selection/all", json={"selected": True})
        resp = loaded.post("/api/viewer/selection/all", json={"selected": False})
        assert resp.json()["selected"] == []

    def test_line_weight(self, loaded):
        assert loaded.put("/api/viewer/line-weight", json={"weight": 6}).json() == {"line_weight": 6}
        data = loaded.get(f"/api/viewer/layers/{A}").json()
        assert data["main"]["style"]["weight"] == 6
        assert data["shadow"]["style"]["weight"] == 12

    def test_line_weight_out_of_range(self, loaded):
        assert loaded.put("/api/viewer/line-weight", json={"weight": 20}).status_code == 400
