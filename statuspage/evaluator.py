"""
Status evaluation: turns one container probe and one URL probe into a
single per-service status.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from statuspage.models import (
    DOWN,
    OPERATIONAL,
    ContainerProbeResult,
    ServiceConfig,
    ServiceStatus,
    UrlProbeResult,
)


def overall_status(
    container_result: ContainerProbeResult,
    url_result: UrlProbeResult,
) -> str:
    """
    A service is operational only when its container is running AND its
    public URL answers. There is no degraded state.
    """
    if container_result.status == OPERATIONAL and url_result.available:
        return OPERATIONAL
    return DOWN


def evaluate(
    service: ServiceConfig,
    container_result: ContainerProbeResult,
    url_result: UrlProbeResult,
    checked_at: Optional[datetime] = None,
) -> ServiceStatus:
    """
    Combine the probe results for one service into a ServiceStatus.

    Args:
        service: The configured service.
        container_result: Result of probing ``service.container``.
        url_result: Result of probing ``service.url``.
        checked_at: Evaluation time; defaults to UTC now.
    """
    return ServiceStatus(
        name=service.name,
        description=service.description,
        url=service.url,
        container=service.container,
        status=overall_status(container_result, url_result),
        container_status=container_result,
        url_status=url_result,
        last_checked=checked_at or datetime.now(timezone.utc),
    )
