"""
Data models for the status page.

Defines structured representations for configured services, probe results,
per-service statuses, snapshots and incidents. Each model knows how to turn
itself into the flat JSON shape the status page has always persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from dateutil import parser as dateutil_parser

# Container / service status values
OPERATIONAL = "operational"
DOWN = "down"
NOT_FOUND = "not_found"
ERROR = "error"


def format_timestamp(value: datetime) -> str:
    """ISO-8601 with millisecond precision and a trailing Z for UTC."""
    text = value.isoformat(timespec="milliseconds")
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


def parse_timestamp(value: str) -> datetime:
    """Parse ISO-8601; times without an offset are taken as UTC."""
    parsed = dateutil_parser.isoparse(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class ServiceConfig:
    """A single monitored service: a container plus its public URL."""

    name: str
    url: str
    container: str
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "url": self.url,
            "container": self.container,
            "description": self.description,
        }


@dataclass(frozen=True)
class ContainerProbeResult:
    """Run state of a container as reported by the container runtime."""

    status: str  # operational, down, not_found or error
    uptime: int = 0  # seconds, only meaningful when operational
    error: Optional[str] = None
    state: Optional[str] = None  # raw runtime state, e.g. "running", "exited"
    created: Optional[int] = None  # epoch seconds

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"status": self.status, "uptime": self.uptime}
        if self.state is not None:
            data["state"] = self.state
        if self.created is not None:
            data["created"] = self.created
        if self.error is not None:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContainerProbeResult":
        return cls(
            status=data["status"],
            uptime=int(data.get("uptime", 0)),
            error=data.get("error"),
            state=data.get("state"),
            created=data.get("created"),
        )


@dataclass(frozen=True)
class UrlProbeResult:
    """Reachability of a service's public URL."""

    available: bool
    response_time: int = 0  # milliseconds
    status_code: Optional[int] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "available": self.available,
            "responseTime": self.response_time,
        }
        if self.status_code is not None:
            data["statusCode"] = self.status_code
        if self.error is not None:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UrlProbeResult":
        return cls(
            available=bool(data["available"]),
            response_time=int(data.get("responseTime", 0)),
            status_code=data.get("statusCode"),
            error=data.get("error"),
        )


@dataclass(frozen=True)
class ServiceStatus:
    """
    The evaluated state of one service for one tick.

    Attributes:
        name: Service name (unique key from configuration).
        description: Human-readable description.
        url: Public URL that was probed.
        container: Container reference that was probed.
        status: "operational" or "down".
        container_status: Raw container probe result.
        url_status: Raw URL probe result.
        last_checked: When the evaluation happened.
    """

    name: str
    description: str
    url: str
    container: str
    status: str
    container_status: ContainerProbeResult
    url_status: UrlProbeResult
    last_checked: datetime

    @property
    def is_operational(self) -> bool:
        return self.status == OPERATIONAL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "url": self.url,
            "container": self.container,
            "status": self.status,
            "containerStatus": self.container_status.to_dict(),
            "urlStatus": self.url_status.to_dict(),
            "lastChecked": format_timestamp(self.last_checked),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ServiceStatus":
        return cls(
            name=data["name"],
            description=data.get("description", ""),
            url=data.get("url", ""),
            container=data.get("container", ""),
            status=data["status"],
            container_status=ContainerProbeResult.from_dict(data["containerStatus"]),
            url_status=UrlProbeResult.from_dict(data["urlStatus"]),
            last_checked=parse_timestamp(data["lastChecked"]),
        )


@dataclass(frozen=True)
class StatusSnapshot:
    """All service statuses from the most recent tick, in config order."""

    last_update: datetime
    services: List[ServiceStatus] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lastUpdate": format_timestamp(self.last_update),
            "services": [s.to_dict() for s in self.services],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StatusSnapshot":
        return cls(
            last_update=parse_timestamp(data["lastUpdate"]),
            services=[ServiceStatus.from_dict(s) for s in data.get("services", [])],
        )


@dataclass(frozen=True)
class Incident:
    """
    A recorded outage of a single service.

    An incident is open while ``resolved`` is None.
    """

    id: str
    service: str
    title: str
    description: str
    started: datetime
    resolved: Optional[datetime] = None
    impact: str = "major"

    @property
    def is_open(self) -> bool:
        return self.resolved is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "service": self.service,
            "title": self.title,
            "description": self.description,
            "started": format_timestamp(self.started),
            "resolved": format_timestamp(self.resolved) if self.resolved else None,
            "impact": self.impact,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Incident":
        resolved = data.get("resolved")
        return cls(
            id=str(data["id"]),
            service=data["service"],
            title=data.get("title", ""),
            description=data.get("description", ""),
            started=parse_timestamp(data["started"]),
            resolved=parse_timestamp(resolved) if resolved else None,
            impact=data.get("impact", "major"),
        )


@dataclass
class MonitorSettings:
    """Global monitor settings."""

    log_level: str = "INFO"
    check_interval: int = 120  # seconds
    probe_timeout: float = 10.0  # seconds, per container / URL probe
    docker_socket: str = "/var/run/docker.sock"
    data_dir: str = "data"
