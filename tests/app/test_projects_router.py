"""Unit tests for the project API router (/api/projects, /api/users).

Uses FastAPI TestClient with a ProjectStore on a temporary directory.
"""
from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.routers.projects import router


def _make_app(store=None):
    """Create a minimal FastAPI app with the projects router and optional store."""
    app = FastAPI()
    app.include_router(router)
    app.state.store = store
    return app


@pytest.fixture
def client(store):
    return TestClient(_make_app(store))


@pytest.mark.unit
class TestProjectEndpoints:
    """GET/POST /api/projects"""

    def test_list(self, client):
        resp = client.get("/api/projects")
        assert resp.status_code == 200
        assert resp.json() == ["Nord"]

    def test_create(self, client):
        resp = client.post("/api/projects", json={"name": "Befahrung Süd West"})
        assert resp.status_code == 201
        assert resp.json() == {"status": "success", "name": "Sued_West"}
        assert "Sued_West" in client.get("/api/projects").json()

    def test_create_existing_409(self, client):
        resp = client.post("/api/projects", json={"name": "Nord"})
        assert resp.status_code == 409
        assert "already exists" in resp.json()["error"]

    def test_create_invalid_400(self, client):
        resp = client.post("/api/projects", json={"name": "Befahrung"})
        assert resp.status_code == 400
        assert "error" in resp.json()

    def test_create_missing_body_422(self, client):
        assert client.post("/api/projects", json={}).status_code == 422

    def test_503_without_store(self):
        client = TestClient(_make_app(store=None))
        resp = client.get("/api/projects")
        assert resp.status_code == 503


@pytest.mark.unit
class TestKmlEndpoints:
    """GET /api/projects/{project}/kml[/{file}]"""

    def test_list_kml(self, client):
        resp = client.get("/api/projects/Nord/kml")
        assert resp.status_code == 200
        assert resp.json() == ["Nord_01_KML_Export.kml", "Nord_02_KML_Export.kml"]

    def test_missing_project_404(self, client):
        resp = client.get("/api/projects/Sued/kml")
        assert resp.status_code == 404
        assert "Directory not found" in resp.json()["error"]

    def test_raw_kml(self, client):
        resp = client.get("/api/projects/Nord/kml/Nord_02_KML_Export.kml")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("application/vnd.google-earth.kml+xml")
        assert "<name>Zwei</name>" in resp.text

    def test_raw_kml_served_undecoded(self, latin1_store):
        client = TestClient(_make_app(latin1_store))
        resp = client.get("/api/projects/Sued/kml/Sued_01_KML_Export.kml")
        assert resp.status_code == 200
        assert "Straße Süd".encode("latin-1") in resp.content

    def test_raw_missing_file_404(self, client):
        assert client.get("/api/projects/Nord/kml/nope.kml").status_code == 404

    def test_raw_non_kml_400(self, client):
        assert client.get("/api/projects/Nord/kml/readme.txt").status_code == 400


@pytest.mark.unit
class TestUserEndpoints:
    """GET /api/users, GET/PUT /api/users/{user}/settings"""

    def test_list_users(self, client):
        assert client.get("/api/users").json() == ["general", "anna"]

    def test_settings_roundtrip(self, client):
        payload = {"lineWeight": 4, "palette": ["#ff0000", "#00ff00"]}
        resp = client.put("/api/users/anna/settings", json=payload)
        assert resp.status_code == 200
        assert resp.json() == {"status": "success"}
        assert client.get("/api/users/anna/settings").json() == payload

    def test_settings_default_empty(self, client):
        assert client.get("/api/users/general/settings").json() == {}

    def test_unknown_user_404(self, client):
        resp = client.put("/api/users/zoe/settings", json={"a": 1})
        assert resp.status_code == 404
        assert "User directory not found" in resp.json()["error"]

    def test_scalar_payload_400(self, client):
        resp = client.put("/api/users/anna/settings", json="just text")
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid data format"}
