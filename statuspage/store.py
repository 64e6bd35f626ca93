"""
JSON file store for the latest status snapshot and the incident history.

Both documents live in the data directory as status.json and history.json.
Writes go to a temporary file in the same directory which is then renamed
over the target, so readers see either the old or the new document.
"""

from __future__ import annotations

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from statuspage.config import load_services
from statuspage.models import Incident, ServiceConfig, StatusSnapshot

STATUS_FILE = "status.json"
HISTORY_FILE = "history.json"


class StoreError(Exception):
    """Raised when a status or history document cannot be read or written."""


class JsonStatusStore:
    """
    File-backed status store.

    Attributes:
        data_dir: Directory holding status.json and history.json.
        config_file: Optional explicit config path for ``load_config``.
    """

    def __init__(self, data_dir: str | Path, config_file: str | Path | None = None) -> None:
        self.data_dir = Path(data_dir)
        self.config_file = config_file

    @property
    def status_path(self) -> Path:
        return self.data_dir / STATUS_FILE

    @property
    def history_path(self) -> Path:
        return self.data_dir / HISTORY_FILE

    def initialize(self) -> None:
        """Create the data directory and empty documents if absent."""
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreError(f"Cannot create data dir {self.data_dir}: {exc}") from exc

        if not self.status_path.exists():
            empty = StatusSnapshot(last_update=datetime.now(timezone.utc))
            self._write_json(self.status_path, empty.to_dict())
        if not self.history_path.exists():
            self._write_json(self.history_path, {"incidents": []})

    # ─── Config ───────────────────────────────────────────────

    def load_config(self) -> List[ServiceConfig]:
        return load_services(self.config_file)

    # ─── Snapshot ─────────────────────────────────────────────

    def write_snapshot(self, snapshot: StatusSnapshot) -> None:
        self._write_json(self.status_path, snapshot.to_dict())

    def read_snapshot_document(self) -> Dict[str, Any]:
        return self._read_json(self.status_path)

    def read_snapshot(self) -> StatusSnapshot:
        data = self.read_snapshot_document()
        try:
            return StatusSnapshot.from_dict(data)
        except (KeyError, TypeError, ValueError) as exc:
            raise StoreError(f"Malformed snapshot in {self.status_path}: {exc}") from exc

    # ─── History ──────────────────────────────────────────────

    def read_history_document(self) -> Dict[str, Any]:
        if not self.history_path.exists():
            return {"incidents": []}
        return self._read_json(self.history_path)

    def read_history(self) -> List[Incident]:
        data = self.read_history_document()
        try:
            return [Incident.from_dict(item) for item in data.get("incidents", [])]
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise StoreError(f"Malformed history in {self.history_path}: {exc}") from exc

    def write_history(self, incidents: List[Incident]) -> None:
        self._write_json(
            self.history_path,
            {"incidents": [inc.to_dict() for inc in incidents]},
        )

    # ─── Helpers ──────────────────────────────────────────────

    @staticmethod
    def _read_json(path: Path) -> Dict[str, Any]:
        try:
            with open(path, "r") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            raise StoreError(f"Cannot read {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StoreError(f"{path} does not contain a JSON object")
        return data

    @staticmethod
    def _write_json(path: Path, data: Dict[str, Any]) -> None:
        """Write ``data`` to a temp file beside ``path`` and rename it over."""
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
            )
            with os.fdopen(fd, "w") as fh:
                json.dump(data, fh, indent=2)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, path)
        except OSError as exc:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StoreError(f"Cannot write {path}: {exc}") from exc
