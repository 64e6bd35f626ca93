"""
Incident tracking.

Reconciles a full batch of service statuses against the incident history:
  - a down service opens an incident, unless an open one started less than
    an hour ago (the dedup window)
  - an operational service resolves every open incident it has
  - the history is trimmed to the most recent entries afterwards

Everything here is pure: histories go in, new histories come out.
"""

from __future__ import annotations

import re
from dataclasses import replace
from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Set

from statuspage.models import DOWN, OPERATIONAL, Incident, ServiceStatus

DEDUP_WINDOW = timedelta(hours=1)
MAX_INCIDENTS = 100

OPEN_DESCRIPTION = "Service is currently unavailable"
RESTORED_SUFFIX = " - Service restored"
IMPACT_MAJOR = "major"

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def incident_id(
    service_name: str,
    now: datetime,
    taken: Optional[Set[str]] = None,
) -> str:
    """
    Epoch milliseconds plus a slug of the service name.

    Service names that slug to the same text within one tick get a numeric
    suffix so ids stay unique across ``taken``.
    """
    millis = int(now.timestamp() * 1000)
    slug = _SLUG_RE.sub("-", service_name.lower()).strip("-") or "service"
    candidate = f"{millis}-{slug}"
    if not taken:
        return candidate
    seq = 1
    unique = candidate
    while unique in taken:
        seq += 1
        unique = f"{candidate}-{seq}"
    return unique


def find_recent_open(
    history: Sequence[Incident],
    service_name: str,
    now: datetime,
) -> Optional[Incident]:
    """Return an open incident for the service started within the window."""
    for incident in history:
        if (
            incident.service == service_name
            and incident.is_open
            and now - incident.started < DEDUP_WINDOW
        ):
            return incident
    return None


def open_incident(
    service_name: str,
    now: datetime,
    taken: Optional[Set[str]] = None,
) -> Incident:
    return Incident(
        id=incident_id(service_name, now, taken),
        service=service_name,
        title=f"{service_name} Service Disruption",
        description=OPEN_DESCRIPTION,
        started=now,
        resolved=None,
        impact=IMPACT_MAJOR,
    )


def reconcile(
    history: Sequence[Incident],
    statuses: Sequence[ServiceStatus],
    now: datetime,
) -> List[Incident]:
    """
    Apply one tick's statuses to the incident history.

    Args:
        history: Incidents so far, oldest first.
        statuses: Every service status from the tick, in config order.
        now: Reconciliation time, used for new and resolved timestamps.

    Returns:
        A new history list, capped at MAX_INCIDENTS entries.
    """
    incidents: List[Incident] = list(history)

    for status in statuses:
        if status.status == DOWN:
            if find_recent_open(incidents, status.name, now) is None:
                taken = {inc.id for inc in incidents}
                incidents.append(open_incident(status.name, now, taken))

        elif status.status == OPERATIONAL:
            incidents = [
                replace(
                    inc,
                    resolved=now,
                    description=inc.description + RESTORED_SUFFIX,
                )
                if inc.service == status.name and inc.is_open
                else inc
                for inc in incidents
            ]

    return incidents[-MAX_INCIDENTS:]


def newly_opened(before: Sequence[Incident], after: Sequence[Incident]) -> List[Incident]:
    """Incidents in ``after`` whose id did not exist in ``before``."""
    known = {inc.id for inc in before}
    return [inc for inc in after if inc.id not in known]


def newly_resolved(before: Sequence[Incident], after: Sequence[Incident]) -> List[Incident]:
    """Incidents open in ``before`` that are resolved in ``after``."""
    was_open = {inc.id for inc in before if inc.is_open}
    return [inc for inc in after if inc.id in was_open and not inc.is_open]
