"""
YAML configuration loader.

Reads config.yaml and produces typed ServiceConfig / MonitorSettings objects.
JSON is a subset of YAML, so an existing services.json works unchanged.
Falls back to the default service list if the config file is missing.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Tuple

import yaml

from statuspage.models import MonitorSettings, ServiceConfig

# Default path: config.yaml next to the project root
_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"

CONFIG_ENV_VAR = "STATUSPAGE_CONFIG"

# Fallback if no config file exists at all
_DEFAULT_SERVICES = [
    ServiceConfig(
        name="n8n",
        url="https://n8n.examplename.net",
        container="n8n",
        description="Workflow Automation",
    ),
    ServiceConfig(
        name="Planka",
        url="https://planka.examplename.net",
        container="planka",
        description="Project Management",
    ),
    ServiceConfig(
        name="Ghostfolio",
        url="https://ghostfolio.examplename.net",
        container="ghostfolio",
        description="Portfolio Management",
    ),
]


class ConfigError(Exception):
    """Raised when the configuration file exists but cannot be used."""


def config_path(path: str | Path | None = None) -> Path:
    """Resolve the config path: explicit argument, env var, then default."""
    if path:
        return Path(path)
    env = os.environ.get(CONFIG_ENV_VAR)
    if env:
        return Path(env)
    return _DEFAULT_CONFIG_PATH


def _read_document(config_file: Path) -> Dict[str, Any]:
    try:
        with open(config_file, "r") as fh:
            raw = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Cannot read config {config_file}: {exc}") from exc

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config {config_file} must be a mapping")
    return raw


def _parse_services(raw: Dict[str, Any]) -> List[ServiceConfig]:
    entries = raw.get("services") or []
    if not isinstance(entries, list):
        raise ConfigError("'services' must be a list")

    services: List[ServiceConfig] = []
    seen = set()
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ConfigError(f"Service #{index} must be a mapping")
        try:
            service = ServiceConfig(
                name=str(entry["name"]),
                url=str(entry["url"]),
                container=str(entry["container"]),
                description=str(entry.get("description", "")),
            )
        except KeyError as exc:
            raise ConfigError(f"Service #{index} is missing key {exc}") from exc

        if service.name in seen:
            raise ConfigError(f"Duplicate service name: {service.name}")
        seen.add(service.name)
        services.append(service)

    return services


def _parse_settings(raw: Dict[str, Any]) -> MonitorSettings:
    raw_settings = raw.get("settings") or {}
    if not isinstance(raw_settings, dict):
        raise ConfigError("'settings' must be a mapping")

    defaults = MonitorSettings()
    try:
        settings = MonitorSettings(
            log_level=str(raw_settings.get("log_level", defaults.log_level)).upper(),
            check_interval=int(raw_settings.get("check_interval", defaults.check_interval)),
            probe_timeout=float(raw_settings.get("probe_timeout", defaults.probe_timeout)),
            docker_socket=str(raw_settings.get("docker_socket", defaults.docker_socket)),
            data_dir=str(raw_settings.get("data_dir", defaults.data_dir)),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc

    if settings.check_interval <= 0 or settings.probe_timeout <= 0:
        raise ConfigError("check_interval and probe_timeout must be positive")
    return settings


def load_services(path: str | Path | None = None) -> List[ServiceConfig]:
    """
    Load only the service list. Called once per tick so edits to the
    config file take effect without a restart.
    """
    config_file = config_path(path)
    if not config_file.exists():
        return list(_DEFAULT_SERVICES)
    return _parse_services(_read_document(config_file))


def load_config(
    path: str | Path | None = None,
) -> Tuple[List[ServiceConfig], MonitorSettings]:
    """
    Load and parse the YAML configuration file.

    Returns:
        A tuple of (list of ServiceConfig, MonitorSettings).

    Raises:
        ConfigError: if the file exists but is malformed.
    """
    config_file = config_path(path)

    if not config_file.exists():
        print(f"⚠  Config file not found at {config_file}, using defaults.")
        return list(_DEFAULT_SERVICES), MonitorSettings()

    raw = _read_document(config_file)
    return _parse_services(raw), _parse_settings(raw)
