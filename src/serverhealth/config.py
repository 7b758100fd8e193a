"""Configuration loading and validation for serverhealth."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


@dataclass
class SourcesConfig:
    """Where metric sources are read from.

    Pointing ``proc_path``/``sys_path`` at a bind-mounted host tree lets the
    service report host metrics while running inside a container.
    """

    proc_path: str = "/proc"
    sys_path: str = "/sys"
    host_root: str = ""
    docker_command: str = "docker"
    docker_timeout_seconds: float = 10.0


@dataclass
class CollectorConfig:
    """Collector settings."""

    cpu_mode: str = "background"
    cpu_interval_seconds: float = 1.0
    cpu_blocking_pause_seconds: float = 0.2
    docker: bool = True


@dataclass
class ProbeConfig:
    """Internet throughput probe settings."""

    enabled: bool = True
    interval_seconds: float = 3600.0
    speedtest_command: str = "speedtest-cli"
    download_url: str = "https://speed.cloudflare.com/__down?bytes=5000000"
    download_timeout_seconds: float = 20.0


@dataclass
class ServerConfig:
    """HTTP server settings."""

    host: str = "0.0.0.0"
    port: int = 9090
    web_root: str = "/usr/share/serverhealth"


@dataclass
class OtelExporterConfig:
    """OpenTelemetry exporter settings."""

    enabled: bool = False
    endpoint: str = "http://localhost:4318"
    service_name: str = "serverhealth"
    headers: dict[str, str] = field(default_factory=dict)
    export_interval_ms: int = 10000
    interval_seconds: float = 15.0


@dataclass
class ServerHealthConfig:
    """Top-level serverhealth configuration."""

    log_level: str = "INFO"
    sources: SourcesConfig = field(default_factory=SourcesConfig)
    collector: CollectorConfig = field(default_factory=CollectorConfig)
    probe: ProbeConfig = field(default_factory=ProbeConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    otel: OtelExporterConfig = field(default_factory=OtelExporterConfig)


_SECTIONS: dict[str, type] = {
    "sources": SourcesConfig,
    "collector": CollectorConfig,
    "probe": ProbeConfig,
    "server": ServerConfig,
    "otel": OtelExporterConfig,
}

# env var -> (path into the config dict, coercion)
_ENV_MAP: dict[str, tuple[tuple[str, ...], str]] = {
    "PROC_PATH": (("sources", "proc_path"), "str"),
    "SYS_PATH": (("sources", "sys_path"), "str"),
    "HOST_ROOT": (("sources", "host_root"), "str"),
    "PORT": (("server", "port"), "int"),
    "WEB_ROOT": (("server", "web_root"), "str"),
    "SERVERHEALTH_LOG_LEVEL": (("log_level",), "str"),
    "SERVERHEALTH_CPU_MODE": (("collector", "cpu_mode"), "str"),
    "SERVERHEALTH_DOCKER": (("collector", "docker"), "bool"),
    "SERVERHEALTH_PROBE_ENABLED": (("probe", "enabled"), "bool"),
    "SERVERHEALTH_PROBE_INTERVAL": (("probe", "interval_seconds"), "float"),
    "SERVERHEALTH_OTEL_ENABLED": (("otel", "enabled"), "bool"),
    "SERVERHEALTH_OTEL_ENDPOINT": (("otel", "endpoint"), "str"),
}

_CPU_MODES = ("background", "blocking")


def _coerce(value: str, kind: str) -> Any:
    if kind == "int":
        return int(value)
    if kind == "float":
        return float(value)
    if kind == "bool":
        return value.strip().lower() in ("1", "true", "yes", "on")
    return value


def _merge_dict(target: dict[str, Any], source: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *source* into *target*."""
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge_dict(target[key], value)
        else:
            target[key] = value
    return target


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides on top of file values."""
    for env_key, (path, kind) in _ENV_MAP.items():
        value = os.environ.get(env_key)
        if value is None or value == "":
            continue
        obj = data
        for part in path[:-1]:
            obj = obj.setdefault(part, {})
        obj[path[-1]] = _coerce(value, kind)
    return data


def _dict_to_config(data: dict[str, Any]) -> ServerHealthConfig:
    """Convert a raw dictionary to a ServerHealthConfig dataclass."""
    sections: dict[str, Any] = {}
    for key, cls in _SECTIONS.items():
        section_data = data.get(key) or {}
        if not isinstance(section_data, dict):
            raise ValueError(f"config section {key!r} must be a mapping")
        sections[key] = cls(**{
            k: v for k, v in section_data.items()
            if k in cls.__dataclass_fields__
        })

    cfg = ServerHealthConfig(log_level=str(data.get("log_level", "INFO")).upper(), **sections)
    if cfg.collector.cpu_mode not in _CPU_MODES:
        raise ValueError(
            f"collector.cpu_mode must be one of {_CPU_MODES}, got {cfg.collector.cpu_mode!r}"
        )
    return cfg


def load_config(path: str | Path | None = None) -> ServerHealthConfig:
    """Load configuration from a YAML file with environment overrides.

    Looks for ``serverhealth.yaml`` in the current directory if *path* is None.
    A missing file is not an error; defaults apply.
    """
    data: dict[str, Any] = {}
    if path is None:
        path = Path("serverhealth.yaml")
    else:
        path = Path(path)

    if path.exists():
        with open(path, encoding="utf-8") as fh:
            loaded = yaml.safe_load(fh)
            if isinstance(loaded, dict):
                _merge_dict(data, loaded)

    data = _apply_env_overrides(data)
    return _dict_to_config(data)
