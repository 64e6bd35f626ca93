"""
Tests for the JSON status store.

Checks the persisted document layout, round-tripping of incidents,
initialization, atomic replacement and error reporting.
"""

import json
import pytest
from dataclasses import replace
from datetime import datetime, timezone

from statuspage.incidents import reconcile
from statuspage.models import (
    ContainerProbeResult,
    Incident,
    ServiceStatus,
    StatusSnapshot,
    UrlProbeResult,
)
from statuspage.store import JsonStatusStore, StoreError


NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def store(tmp_path):
    s = JsonStatusStore(tmp_path / "data", config_file=tmp_path / "missing.yaml")
    s.initialize()
    return s


def _snapshot() -> StatusSnapshot:
    return StatusSnapshot(
        last_update=NOW,
        services=[
            ServiceStatus(
                name="n8n",
                description="Workflow Automation",
                url="https://n8n.example.net",
                container="n8n",
                status="operational",
                container_status=ContainerProbeResult(status="operational", uptime=3600),
                url_status=UrlProbeResult(available=True, response_time=87, status_code=200),
                last_checked=NOW,
            ),
            ServiceStatus(
                name="Planka",
                description="Project Management",
                url="https://planka.example.net",
                container="planka",
                status="down",
                container_status=ContainerProbeResult(status="not_found"),
                url_status=UrlProbeResult(available=False, error="Timeout"),
                last_checked=NOW,
            ),
        ],
    )


class TestInitialize:
    def test_creates_empty_documents(self, store):
        assert store.read_history() == []
        assert store.read_snapshot().services == []

    def test_keeps_existing_documents(self, store):
        store.write_snapshot(_snapshot())
        store.initialize()
        assert len(store.read_snapshot().services) == 2


class TestSnapshot:
    def test_layout(self, store):
        store.write_snapshot(_snapshot())
        doc = json.loads(store.status_path.read_text())

        assert doc["lastUpdate"] == "2026-03-01T12:00:00.000Z"
        first, second = doc["services"]
        assert first == {
            "name": "n8n",
            "description": "Workflow Automation",
            "url": "https://n8n.example.net",
            "container": "n8n",
            "status": "operational",
            "containerStatus": {"status": "operational", "uptime": 3600},
            "urlStatus": {"available": True, "responseTime": 87, "statusCode": 200},
            "lastChecked": "2026-03-01T12:00:00.000Z",
        }
        assert second["containerStatus"] == {"status": "not_found", "uptime": 0}
        assert second["urlStatus"] == {"available": False, "responseTime": 0, "error": "Timeout"}

    def test_round_trip(self, store):
        snapshot = _snapshot()
        store.write_snapshot(snapshot)
        assert store.read_snapshot() == snapshot

    def test_write_replaces_without_leftovers(self, store):
        store.write_snapshot(_snapshot())
        store.write_snapshot(_snapshot())
        leftovers = [p.name for p in store.data_dir.iterdir() if p.name.endswith(".tmp")]
        assert leftovers == []


class TestHistory:
    def test_layout_and_round_trip(self, store):
        incidents = [
            Incident(
                id="1",
                service="n8n",
                title="n8n Service Disruption",
                description="Service is currently unavailable - Service restored",
                started=NOW,
                resolved=NOW,
            ),
            Incident(
                id="2",
                service="Planka",
                title="Planka Service Disruption",
                description="Service is currently unavailable",
                started=NOW,
            ),
        ]
        store.write_history(incidents)

        doc = json.loads(store.history_path.read_text())
        assert doc["incidents"][0]["resolved"] == "2026-03-01T12:00:00.000Z"
        assert doc["incidents"][1]["resolved"] is None
        assert doc["incidents"][1]["impact"] == "major"
        assert store.read_history() == incidents

    def test_reads_legacy_numeric_ids(self, store):
        store.history_path.write_text(json.dumps({"incidents": [{
            "id": 1700000000000,
            "service": "n8n",
            "title": "n8n Service Disruption",
            "description": "Service is currently unavailable",
            "started": "2023-11-14T22:13:20.000Z",
            "resolved": None,
            "impact": "major",
        }]}))
        (incident,) = store.read_history()
        assert incident.id == "1700000000000"
        assert incident.is_open

    def test_offsetless_timestamps_read_as_utc_and_reconcile(self, store):
        store.history_path.write_text(json.dumps({"incidents": [{
            "id": "1",
            "service": "n8n",
            "title": "n8n Service Disruption",
            "description": "Service is currently unavailable",
            "started": "2026-03-01T11:50:00",
            "resolved": None,
            "impact": "major",
        }]}))
        (incident,) = store.read_history()
        assert incident.started == datetime(2026, 3, 1, 11, 50, tzinfo=timezone.utc)

        down = ServiceStatus(
            name="n8n",
            description="",
            url="https://n8n.example.net",
            container="n8n",
            status="down",
            container_status=ContainerProbeResult(status="down"),
            url_status=UrlProbeResult(available=False),
            last_checked=NOW,
        )
        assert reconcile(store.read_history(), [down], NOW) == [incident]

        up = replace(down, status="operational")
        (resolved,) = reconcile(store.read_history(), [up], NOW)
        assert resolved.resolved == NOW

    def test_missing_history_reads_empty(self, tmp_path):
        s = JsonStatusStore(tmp_path)
        assert s.read_history() == []

    def test_corrupt_history_raises(self, store):
        store.history_path.write_text("{not json")
        with pytest.raises(StoreError):
            store.read_history()

    def test_malformed_incident_raises(self, store):
        store.history_path.write_text(json.dumps({"incidents": [{"id": "1"}]}))
        with pytest.raises(StoreError):
            store.read_history()


class TestWriteFailure:
    def test_unwritable_directory_raises_and_keeps_old_file(self, store, monkeypatch):
        store.write_snapshot(_snapshot())
        before = store.status_path.read_text()

        def boom(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr("statuspage.store.os.replace", boom)
        with pytest.raises(StoreError):
            store.write_snapshot(StatusSnapshot(last_update=NOW))

        assert store.status_path.read_text() == before
        assert not [p for p in store.data_dir.iterdir() if p.name.endswith(".tmp")]
