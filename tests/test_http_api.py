#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Test suite for the HTTP transport.

Run with: pytest tests/test_http_api.py -v
"""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from handoff_server.engine import HandoffEngine
from handoff_server.http_api import create_app
from handoff_server.models import ENV_WARN
from handoff_server.store import InMemoryDocumentStore, LocalDocumentStore


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def client(store):
    # Entering the client runs the lifespan, which bootstraps the store
    with TestClient(create_app(HandoffEngine(store))) as test_client:
        yield test_client


def rpc(method: str, params=None, request_id=1) -> dict:
    return {"jsonrpc": "2.0", "method": method, "params": params, "id": request_id}


# =============================================================================
# Tests
# =============================================================================


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestLifespan:

    def test_bootstraps_on_startup(self, client, store):
        assert store.exists("templates/handoff-template.md")
        assert store.exists("templates/quick-handoff.md")

    def test_bootstraps_local_root(self, tmp_path: Path):
        root = tmp_path / "handoffs"
        with TestClient(create_app(HandoffEngine(LocalDocumentStore(root)))):
            pass
        assert (root / "templates" / "quick-handoff.md").exists()
        assert (root / "archive").is_dir()


class TestMcpEndpoint:
    """Test POST /mcp."""

    def test_create_and_read(self, client):
        created = client.post(
            "/mcp",
            json=rpc(
                "create_handoff",
                {
                    "type": "quick",
                    "initialData": {
                        "date": "2025-03-02",
                        "time": "08:15 UTC",
                        "currentState": {
                            "workingOn": "Cache warmup",
                            "status": "Blocked",
                            "nextStep": "Ask ops",
                        },
                        "environmentStatus": {"details": {"Cache": ENV_WARN}},
                    },
                },
                request_id=11,
            ),
        )
        assert created.status_code == 200
        body = created.json()
        assert body["id"] == 11
        handoff_id = body["result"]["handoff_id"]

        read = client.post("/mcp", json=rpc("read_handoff", {"handoff_id": handoff_id}))
        assert read.status_code == 200
        result = read.json()["result"]
        assert "**Working On**: Cache warmup" in result["content"]
        assert result["metadata"]["date"] == "2025-03-02 08:15 UTC"

    def test_list(self, client):
        response = client.post("/mcp", json=rpc("list_handoffs", {"status": "all"}))
        assert response.status_code == 200
        assert response.json() == {"jsonrpc": "2.0", "result": {"handoffs": []}, "id": 1}

    def test_unknown_method_is_400(self, client):
        response = client.post("/mcp", json=rpc("rename_handoff", {}, request_id=3))
        assert response.status_code == 400
        body = response.json()
        assert body["id"] == 3
        assert body["error"]["code"] == -32000
        assert body["error"]["message"] == "Unknown method: rename_handoff"

    def test_not_found_is_400(self, client):
        response = client.post("/mcp", json=rpc("archive_handoff", {
            "handoff_id": "missing",
            "metadata": {"reason": "x", "tags": [], "completionStatus": "blocked"},
        }))
        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Handoff missing not found"

    def test_invalid_params_is_400(self, client):
        response = client.post("/mcp", json=rpc("list_handoffs", {"status": "someday"}))
        assert response.status_code == 400
        assert response.json()["error"]["message"].startswith("Invalid params for list_handoffs")

    def test_missing_id_defaults_to_1(self, client):
        response = client.post("/mcp", json={"method": "list_handoffs", "params": {"status": "active"}})
        assert response.json()["id"] == 1

    def test_invalid_json_is_400(self, client):
        response = client.post(
            "/mcp", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        body = response.json()
        assert body["error"]["code"] == -32000
        assert body["error"]["message"].startswith("Invalid JSON")
