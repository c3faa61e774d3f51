"""Tests for the FastAPI surface."""

import json

import pytest
from fastapi.testclient import TestClient

from conftest import FakeGitHubClient, make_response
from patchpush.main import app
from patchpush.routers import patch as patch_router

SIMPLE_DIFF = "diff --git a/x.txt b/x.txt\n@@ -1,1 +1,2 @@\n line1\n+line2\n"


@pytest.fixture
def client(config_dir):
    return TestClient(app)


@pytest.fixture
def fake_github(monkeypatch):
    fake = FakeGitHubClient(files={"x.txt": "line1"})

    class FakeClientFactory:
        @staticmethod
        def from_config(config, token=None):
            return fake

    monkeypatch.setattr(patch_router, "GitHubClient", FakeClientFactory)
    return fake


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy", "service": "patchpush"}


def test_parse_endpoint_reconstructs_against_originals(client):
    response = client.post("/api/patch/parse", json={"diff": SIMPLE_DIFF, "originals": {"x.txt": "line1"}})
    assert response.status_code == 200
    data = response.json()
    assert data["files"][0]["path"] == "x.txt"
    assert data["changes"][0]["new_content"] == "line1\nline2"
    assert data["skipped"] == []


def test_parse_endpoint_rejects_empty_diff(client):
    response = client.post("/api/patch/parse", json={"diff": ""})
    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_INPUT"


def test_parse_endpoint_strict_conflict(client):
    response = client.post(
        "/api/patch/parse",
        json={"diff": SIMPLE_DIFF, "originals": {"x.txt": "something else"}, "strict": True},
    )
    assert response.status_code == 409
    assert response.json()["details"]["path"] == "x.txt"


def test_diff_endpoint(client):
    response = client.post(
        "/api/patch/diff",
        json={"file_path": "x.txt", "original_content": "line1", "new_content": "line1\nline2"},
    )
    data = response.json()
    assert data["additions"] == 1
    assert data["unified_diff"].startswith("diff --git a/x.txt b/x.txt\n")


def test_apply_without_token_is_unauthorized(client):
    response = client.post(
        "/api/patch/apply",
        json={"owner": "acme", "repo": "widgets", "branch": "main", "diff": SIMPLE_DIFF},
    )
    assert response.status_code == 401


def test_apply_sequential_reports_summary(client, fake_github):
    response = client.post(
        "/api/patch/apply",
        json={"owner": "acme", "repo": "widgets", "branch": "main", "diff": SIMPLE_DIFF, "token": "t"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["strategy"] == "sequential"
    assert data["summary"] == {"total": 1, "successful": 1, "failed": 0, "failures": []}
    assert fake_github.files["x.txt"] == "line1\nline2"


def test_apply_atomic_surfaces_github_error(client, fake_github):
    fake_github.reject_ref_update = True
    response = client.post(
        "/api/patch/apply",
        json={
            "owner": "acme",
            "repo": "widgets",
            "branch": "main",
            "diff": SIMPLE_DIFF,
            "strategy": "atomic",
        },
    )
    assert response.status_code == 422
    assert response.json()["error"] == "GITHUB_ERROR"
    assert fake_github.branches["main"] == "c0"


def test_apply_server_failure_maps_to_remote_status(client, fake_github):
    fake_github.fail("GET", "git/ref/heads/main", *[make_response(503, "unavailable")] * 3)
    response = client.post(
        "/api/patch/apply",
        json={"owner": "acme", "repo": "widgets", "branch": "main", "diff": SIMPLE_DIFF, "strategy": "atomic"},
    )
    assert response.status_code == 503
    assert fake_github.sleep.delays == [1, 2]


def test_config_masks_token_and_updates(client, config_dir):
    update = client.put("/api/config", json={"github": {"token": "ghp_abcdefghijklmnop"}, "patch": {"maxFileSize": 500}})
    assert update.status_code == 200

    data = client.get("/api/config").json()
    assert data["github"]["token"] == "ghp_************mnop"
    assert data["patch"]["maxFileSize"] == 500
    assert data["patch"]["strategy"] == "sequential"

    stored = json.loads((config_dir / "config.json").read_text())
    assert stored["github"]["token"] == "ghp_abcdefghijklmnop"


def test_validate_without_token(client):
    data = client.post("/api/config/validate").json()
    assert data["valid"] is False
    assert "token" in data["message"]


def test_non_json_github_body_maps_to_bad_gateway(client, fake_github):
    fake_github.fail("GET", "git/ref/heads/main", make_response(200, "<html>maintenance</html>"))
    response = client.post(
        "/api/patch/apply",
        json={"owner": "acme", "repo": "widgets", "branch": "main", "diff": SIMPLE_DIFF, "strategy": "atomic"},
    )
    assert response.status_code == 502
    assert response.json()["error"] == "GITHUB_ERROR"
