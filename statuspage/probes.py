"""
Probe adapters: container run state and public URL reachability.

Containers are looked up through the Docker Engine HTTP API on its Unix
socket; URLs are fetched with a plain GET. Every probe is bounded by a
timeout and reports failures as a result object, never as an exception,
so one unreachable service cannot break a tick.
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import aiohttp
from dateutil import parser as dateutil_parser

from statuspage.models import (
    DOWN,
    ERROR,
    NOT_FOUND,
    OPERATIONAL,
    ContainerProbeResult,
    UrlProbeResult,
)

# Host part is ignored when talking over the Unix socket
_DOCKER_BASE = "http://docker"


class ProbeAdapter(ABC):
    """Anything that can probe a container and a URL."""

    @abstractmethod
    async def probe_container(self, ref: str) -> ContainerProbeResult:
        """Return the run state of the container matching ``ref``."""

    @abstractmethod
    async def probe_url(self, url: str) -> UrlProbeResult:
        """Return reachability and response time of ``url``."""


def find_container(containers: List[Dict[str, Any]], ref: str) -> Optional[Dict[str, Any]]:
    """
    Pick the first container whose name or image contains ``ref``.

    Docker reports names with a leading slash, e.g. "/n8n".
    """
    for container in containers:
        names = container.get("Names") or []
        image = container.get("Image") or ""
        if any(ref in name for name in names) or ref in image:
            return container
    return None


def container_result(
    summary: Optional[Dict[str, Any]],
    details: Optional[Dict[str, Any]] = None,
    now: Optional[datetime] = None,
) -> ContainerProbeResult:
    """
    Map Docker's container listing + inspect output to a probe result.

    Args:
        summary: Entry from /containers/json, or None if nothing matched.
        details: Output of /containers/{id}/json, used for uptime.
        now: Reference time for uptime; defaults to UTC now.
    """
    if summary is None:
        return ContainerProbeResult(status=NOT_FOUND, uptime=0)

    state = summary.get("State")
    created = summary.get("Created")
    if state != "running":
        return ContainerProbeResult(status=DOWN, uptime=0, state=state, created=created)

    uptime = 0
    started_at = ((details or {}).get("State") or {}).get("StartedAt")
    if started_at:
        try:
            started = dateutil_parser.isoparse(started_at)
        except (ValueError, TypeError):
            started = None
        if started is not None:
            now = now or datetime.now(timezone.utc)
            uptime = max(0, int((now - started).total_seconds()))

    return ContainerProbeResult(
        status=OPERATIONAL, uptime=uptime, state=state, created=created
    )


class HttpProbeAdapter(ProbeAdapter):
    """
    Probe adapter backed by two aiohttp sessions.

    Attributes:
        docker: Session bound to the Docker socket (``UnixConnector``).
        http: Session used for public URL checks.
        timeout: Upper bound in seconds for each individual probe.
    """

    def __init__(
        self,
        docker: aiohttp.ClientSession,
        http: aiohttp.ClientSession,
        timeout: float = 10.0,
    ) -> None:
        self.docker = docker
        self.http = http
        self.timeout = timeout

    async def probe_container(self, ref: str) -> ContainerProbeResult:
        try:
            return await asyncio.wait_for(self._inspect_container(ref), self.timeout)
        except asyncio.TimeoutError:
            return ContainerProbeResult(status=ERROR, uptime=0, error="Timeout")
        except (aiohttp.ClientError, OSError, ValueError) as exc:
            return ContainerProbeResult(status=ERROR, uptime=0, error=str(exc) or type(exc).__name__)
        except (KeyError, AttributeError, TypeError) as exc:
            # Listing entries that do not look like Docker containers
            return ContainerProbeResult(status=ERROR, uptime=0, error=f"Unexpected Docker response: {exc!r}")

    async def _inspect_container(self, ref: str) -> ContainerProbeResult:
        async with self.docker.get(
            f"{_DOCKER_BASE}/containers/json", params={"all": "1"}
        ) as resp:
            resp.raise_for_status()
            containers = await resp.json()

        summary = find_container(containers, ref)
        if summary is None or summary.get("State") != "running":
            return container_result(summary)

        async with self.docker.get(
            f"{_DOCKER_BASE}/containers/{summary['Id']}/json"
        ) as resp:
            resp.raise_for_status()
            details = await resp.json()

        return container_result(summary, details)

    async def probe_url(self, url: str) -> UrlProbeResult:
        started = time.monotonic()
        try:
            async with self.http.get(
                url,
                allow_redirects=False,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as resp:
                elapsed = int((time.monotonic() - started) * 1000)
                return UrlProbeResult(
                    available=200 <= resp.status < 400,
                    response_time=elapsed,
                    status_code=resp.status,
                )
        except asyncio.TimeoutError:
            return UrlProbeResult(available=False, response_time=0, error="Timeout")
        except (aiohttp.ClientError, OSError, ValueError):
            return UrlProbeResult(available=False, response_time=0, error="Connection failed")


def docker_session(socket_path: str) -> aiohttp.ClientSession:
    """Create a session that talks to the Docker daemon over its socket."""
    return aiohttp.ClientSession(connector=aiohttp.UnixConnector(path=socket_path))


def http_session() -> aiohttp.ClientSession:
    """Shared session for URL checks, pooling connections across services."""
    connector = aiohttp.TCPConnector(limit_per_host=5)
    return aiohttp.ClientSession(connector=connector)
