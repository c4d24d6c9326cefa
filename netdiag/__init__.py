"""Application bootstrap helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from .bandwidth import BandwidthMonitor
from .config import AppConfig, load_config
from .exporter import CSVExporter
from .logging_setup import configure_logging
from .probes.orchestrator import ProbeOrchestrator
from .scheduler import SchedulerService
from .web.app import create_web_app


class ApplicationContext:
    """Holds shared singletons for the service."""

    def __init__(self, config: AppConfig):
        self.config = config
        configure_logging(config)
        self.orchestrator = ProbeOrchestrator(config.probe)
        self.exporter = CSVExporter(config, self.orchestrator.history)
        self.bandwidth_monitor = BandwidthMonitor(
            config.estimator.download_speed_mbps,
            config.estimator.upload_speed_mbps,
            interval_seconds=config.bandwidth_monitor.interval_seconds,
            fluctuation=config.bandwidth_monitor.fluctuation,
        )
        self.scheduler = SchedulerService(config, self.orchestrator, self.exporter)
        self.web_app = create_web_app(
            config=config,
            orchestrator=self.orchestrator,
            exporter=self.exporter,
            bandwidth_monitor=self.bandwidth_monitor,
            scheduler=self.scheduler,
        )

    def start(self) -> None:
        self.bandwidth_monitor.start()
        self.scheduler.start()

    def shutdown(self) -> None:
        self.scheduler.shutdown()
        self.bandwidth_monitor.stop()


def bootstrap(config_path: Optional[str] = None) -> ApplicationContext:
    """Load configuration and wire dependencies."""

    config_file = Path(config_path).resolve() if config_path else None
    config = load_config(str(config_file)) if config_file else load_config()
    return ApplicationContext(config)
