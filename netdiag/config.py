"""Configuration loading helpers for the network diagnostics service."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml

from .estimator import EstimatorConfig

DEFAULT_API_URL = "http://backend.themsovietbois.com:3001/"
API_URL_ENV = "NETDIAG_API_URL"
LOG_LEVEL_ENV = "NETDIAG_LOG_LEVEL"


@dataclass
class PathsConfig:
    data_dir: Path
    logs_dir: Path


@dataclass
class ProbeConfig:
    base_url: str = DEFAULT_API_URL
    retries: int = 3
    chunk_size: int = 65536
    request_timeout: Optional[float] = None
    scan_workers: int = 6

    def __post_init__(self) -> None:
        if not self.base_url.endswith("/"):
            self.base_url = f"{self.base_url}/"
        if self.retries < 1:
            raise ValueError("probe.retries must be at least 1")


@dataclass
class BandwidthMonitorConfig:
    interval_seconds: float = 5.0
    fluctuation: float = 0.1


@dataclass
class SchedulerConfig:
    enabled: bool = False
    interval_minutes: int = 30


@dataclass
class WebConfig:
    host: str = "0.0.0.0"
    port: int = 8000
    secret_key: str = "change-me"
    reverse_proxy_headers: bool = False


@dataclass
class ExportConfig:
    csv_name: str = "history.csv"


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file_name: str = "netdiag.log"
    max_bytes: int = 5 * 1024 * 1024
    backup_count: int = 5
    quiet_loggers: List[str] = field(default_factory=lambda: ["apscheduler", "urllib3"])


@dataclass
class AppConfig:
    root_dir: Path
    paths: PathsConfig
    probe: ProbeConfig = field(default_factory=ProbeConfig)
    estimator: EstimatorConfig = field(default_factory=EstimatorConfig)
    bandwidth_monitor: BandwidthMonitorConfig = field(default_factory=BandwidthMonitorConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    web: WebConfig = field(default_factory=WebConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _as_path(base: Path, maybe_path: Optional[str]) -> Path:
    if not maybe_path:
        raise ValueError("Path configuration entries cannot be empty")
    path = (base / maybe_path).resolve()
    path.mkdir(parents=True, exist_ok=True)
    return path


def load_config(path: Optional[str] = None) -> AppConfig:
    """Load application configuration from a YAML file and the environment.

    An explicit ``path`` must exist. Without one, ``config.yaml`` in the
    working directory is used when present and defaults apply otherwise.
    """

    root_dir = Path(path).resolve().parent if path else Path.cwd()
    source_path = Path(path) if path else root_dir / "config.yaml"
    if path and not source_path.exists():
        raise FileNotFoundError(f"Missing configuration file at {source_path}")

    data = {}
    if source_path.exists():
        with source_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}

    paths_data = data.get("paths") or {}
    paths = PathsConfig(
        data_dir=_as_path(root_dir, paths_data.get("data_dir", "data")),
        logs_dir=_as_path(root_dir, paths_data.get("logs_dir", "logs")),
    )

    probe_data = dict(data.get("probe") or {})
    if os.environ.get(API_URL_ENV):
        probe_data["base_url"] = os.environ[API_URL_ENV]

    logging_data = dict(data.get("logging") or {})
    if os.environ.get(LOG_LEVEL_ENV):
        logging_data["level"] = os.environ[LOG_LEVEL_ENV]

    config = AppConfig(
        root_dir=root_dir,
        paths=paths,
        probe=ProbeConfig(**probe_data),
        estimator=EstimatorConfig(**data.get("estimator") or {}),
        bandwidth_monitor=BandwidthMonitorConfig(**data.get("bandwidth_monitor") or {}),
        scheduler=SchedulerConfig(**data.get("scheduler") or {}),
        web=WebConfig(**data.get("web") or {}),
        export=ExportConfig(**data.get("export") or {}),
        logging=LoggingConfig(**logging_data),
    )

    return config
