"""
Tests for the HTTP API served by the status page.
"""

import asyncio
from datetime import datetime, timezone

from aiohttp.test_utils import TestClient, TestServer

from statuspage.main import create_app
from statuspage.models import Incident
from statuspage.store import JsonStatusStore


CONFIG = """
services:
  - name: n8n
    url: https://n8n.example.net
    container: n8n
    description: Workflow Automation
"""


def _request(store, path):
    async def scenario():
        async with TestClient(TestServer(create_app(store))) as client:
            resp = await client.get(path)
            return resp.status, await resp.json()

    return asyncio.run(scenario())


def _store(tmp_path):
    config = tmp_path / "config.yaml"
    config.write_text(CONFIG)
    store = JsonStatusStore(tmp_path / "data", config_file=config)
    store.initialize()
    return store


class TestApi:
    def test_status(self, tmp_path):
        status, body = _request(_store(tmp_path), "/api/status")
        assert status == 200
        assert body["services"] == []
        assert "lastUpdate" in body

    def test_history(self, tmp_path):
        store = _store(tmp_path)
        store.write_history([
            Incident(
                id="1",
                service="n8n",
                title="n8n Service Disruption",
                description="Service is currently unavailable",
                started=datetime(2026, 3, 1, tzinfo=timezone.utc),
            )
        ])
        status, body = _request(store, "/api/history")
        assert status == 200
        assert body["incidents"][0]["resolved"] is None

    def test_config(self, tmp_path):
        status, body = _request(_store(tmp_path), "/api/config")
        assert status == 200
        assert body["services"][0]["container"] == "n8n"

    def test_health(self, tmp_path):
        assert _request(_store(tmp_path), "/health") == (200, {"status": "healthy"})

    def test_unreadable_status_is_500(self, tmp_path):
        store = _store(tmp_path)
        store.status_path.write_text("garbage")
        assert _request(store, "/api/status") == (500, {"error": "Failed to read status"})

    def test_bad_config_is_500(self, tmp_path):
        store = _store(tmp_path)
        store.config_file.write_text("services: [")
        assert _request(store, "/api/config") == (500, {"error": "Failed to read config"})


def _request_with_origin(store, method, path, headers):
    async def scenario():
        async with TestClient(TestServer(create_app(store))) as client:
            resp = await client.request(method, path, headers=headers)
            return resp.status, resp.headers.get("Access-Control-Allow-Origin")

    return asyncio.run(scenario())


class TestCors:
    ORIGIN = "https://dashboard.example.org"

    def test_api_allows_other_origins(self, tmp_path):
        store = _store(tmp_path)
        for path in ("/api/status", "/api/history", "/api/config", "/health"):
            status, allowed = _request_with_origin(store, "GET", path, {"Origin": self.ORIGIN})
            assert status == 200
            assert allowed == self.ORIGIN

    def test_preflight(self, tmp_path):
        status, allowed = _request_with_origin(
            _store(tmp_path),
            "OPTIONS",
            "/api/status",
            {"Origin": self.ORIGIN, "Access-Control-Request-Method": "GET"},
        )
        assert status == 200
        assert allowed == self.ORIGIN
