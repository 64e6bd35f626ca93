"""
Console Notifier: Clean, structured console output.

Formats ticks, service statuses and incident transitions into timestamped
console lines, with ANSI colors for readability.
"""

from __future__ import annotations

import sys
from datetime import datetime, timezone

from statuspage.models import Incident, ServiceStatus

# ANSI color codes for terminal styling
_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_RED = "\033[91m"
_GREEN = "\033[92m"
_YELLOW = "\033[93m"
_BLUE = "\033[94m"
_CYAN = "\033[96m"
_WHITE = "\033[97m"
_GRAY = "\033[90m"


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _status_color(status: str) -> str:
    """Pick a color based on service status."""
    return _GREEN if status == "operational" else _RED


def print_banner() -> None:
    """Print the startup banner."""
    banner = f"""
{_BOLD}{_CYAN}+------------------------------------------------------------------+
|          Service Status Page -- Container & URL Monitor          |
+------------------------------------------------------------------+{_RESET}
"""
    print(banner)


def print_monitoring_start(service_count: int, check_interval: int) -> None:
    """Print a message when the periodic checks begin."""
    print(
        f"  {_BOLD}{_BLUE}> Monitoring:{_RESET} {_WHITE}{service_count} service(s){_RESET}"
        f"  {_DIM}[every {check_interval}s]{_RESET}"
    )


def print_server_start(port: int) -> None:
    print(f"  {_BOLD}{_BLUE}> Status page:{_RESET} {_WHITE}http://localhost:{port}{_RESET}")


def print_service_status(status: ServiceStatus) -> None:
    """Print one evaluated service (debug level)."""
    color = _status_color(status.status)
    url = status.url_status
    detail = f"container={status.container_status.status}"
    if url.status_code is not None:
        detail += f" http={url.status_code} {url.response_time}ms"
    elif url.error:
        detail += f" url={url.error}"
    print(
        f"    {_BOLD}{status.name:<16}{_RESET} {color}{status.status}{_RESET}"
        f"  {_DIM}{detail}{_RESET}"
    )


def print_tick_complete(operational: int, total: int) -> None:
    color = _GREEN if operational == total else _YELLOW
    print(
        f"  {_GRAY}[{_now()}]{_RESET} Status updated: "
        f"{color}{operational}/{total} operational{_RESET}"
    )


def print_incident_opened(incident: Incident) -> None:
    ts = incident.started.strftime("%Y-%m-%d %H:%M:%S")
    print(
        f"  {_GRAY}[{ts}]{_RESET} {_BOLD}{_RED}NEW INCIDENT{_RESET} "
        f"{incident.title}  {_DIM}({incident.id}){_RESET}"
    )


def print_incident_resolved(incident: Incident) -> None:
    ts = incident.resolved.strftime("%Y-%m-%d %H:%M:%S") if incident.resolved else _now()
    print(
        f"  {_GRAY}[{ts}]{_RESET} {_BOLD}{_GREEN}RESOLVED{_RESET} "
        f"{incident.title}  {_DIM}({incident.id}){_RESET}"
    )


def print_no_changes() -> None:
    """Print a subtle heartbeat when no incident changed (debug level)."""
    print(f"  {_DIM}[{_now()}] No incident changes{_RESET}", end="\r")
    sys.stdout.flush()


def print_tick_skipped() -> None:
    print(
        f"  {_GRAY}[{_now()}]{_RESET} {_YELLOW}Previous check still running, "
        f"skipping this tick{_RESET}"
    )


def print_error(context: str, message: str) -> None:
    """Print an error message."""
    print(
        f"  {_GRAY}[{_now()}]{_RESET} {_RED}ERROR{_RESET} "
        f"{_BOLD}{context}:{_RESET} {message}"
    )


def print_config_error(message: str) -> None:
    print(f"\n{_BOLD}{_RED}Invalid configuration:{_RESET} {message}\n", file=sys.stderr)


def print_shutdown() -> None:
    """Print shutdown message."""
    print(f"\n{_BOLD}{_CYAN}Status page stopped. Goodbye!{_RESET}\n")
