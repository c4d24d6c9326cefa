"""Background scheduler for automatic probe cycles."""

from __future__ import annotations

import logging
from datetime import datetime

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .config import AppConfig
from .exporter import CSVExporter
from .probes.orchestrator import CycleInProgressError, ProbeOrchestrator

LOGGER = logging.getLogger(__name__)


class SchedulerService:
    def __init__(
        self,
        config: AppConfig,
        orchestrator: ProbeOrchestrator,
        exporter: CSVExporter,
    ) -> None:
        self.config = config
        self.orchestrator = orchestrator
        self.exporter = exporter
        self.scheduler = BackgroundScheduler(timezone="UTC")
        self.started = False

    def start(self) -> None:
        if self.started:
            LOGGER.warning("Scheduler already started, ignoring duplicate start request")
            return

        if not self.config.scheduler.enabled:
            LOGGER.info("Automatic probe cycles disabled; cycles run on request only")
            return

        interval = self.config.scheduler.interval_minutes
        try:
            trigger = IntervalTrigger(minutes=interval)
            self.scheduler.add_job(self._run_cycle, trigger=trigger, id="scheduled-probe-cycle")
            self.scheduler.start()
            self.started = True
            LOGGER.info("Scheduler started with interval %s minutes", interval)
        except Exception as exc:  # pylint: disable=broad-except
            LOGGER.error("Failed to start scheduler: %s", exc, exc_info=True)
            LOGGER.error("Probe cycles can still be triggered manually through the API")

    def shutdown(self) -> None:
        if self.started:
            self.scheduler.shutdown(wait=False)
            self.started = False

    def _run_cycle(self) -> None:
        LOGGER.info("Starting scheduled probe cycle at %s", datetime.utcnow().isoformat())
        try:
            self.orchestrator.run_cycle()
        except CycleInProgressError:
            LOGGER.info("Skipping scheduled cycle - a probe cycle is already running")
            return
        except Exception as exc:  # pylint: disable=broad-except
            LOGGER.exception("Scheduled probe cycle failed: %s", exc)
            return
        self.exporter.write_snapshot()
