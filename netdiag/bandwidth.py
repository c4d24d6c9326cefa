"""Simulated "current bandwidth" figure for display purposes."""

from __future__ import annotations

import logging
import random
import threading
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

LOGGER = logging.getLogger(__name__)

JOB_ID = "bandwidth-monitor"


class BandwidthMonitor:
    """Periodically perturb the midpoint of the configured speeds by a random factor.

    The value is cosmetic; estimates and probe cycles never read it. Use as a
    context manager, or pair ``start()`` with ``stop()``, so the timer does
    not outlive its owner.
    """

    def __init__(
        self,
        download_speed_mbps: float,
        upload_speed_mbps: float,
        interval_seconds: float = 5.0,
        fluctuation: float = 0.1,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.download_speed_mbps = download_speed_mbps
        self.upload_speed_mbps = upload_speed_mbps
        self.interval_seconds = interval_seconds
        self.fluctuation = fluctuation
        self.rng = rng or random.Random()
        self.current_bandwidth = 0.0
        self._lock = threading.Lock()
        self._scheduler: Optional[BackgroundScheduler] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def update_speeds(self, download_speed_mbps: float, upload_speed_mbps: float) -> None:
        with self._lock:
            self.download_speed_mbps = download_speed_mbps
            self.upload_speed_mbps = upload_speed_mbps

    def sample(self) -> float:
        with self._lock:
            base = (self.download_speed_mbps + self.upload_speed_mbps) / 2
            offset = self.rng.random() * 2 * self.fluctuation - self.fluctuation
            self.current_bandwidth = base * (1 + offset)
            return self.current_bandwidth

    def start(self) -> None:
        if self.running:
            LOGGER.warning("Bandwidth monitor already started, ignoring duplicate start request")
            return
        self._scheduler = BackgroundScheduler(timezone="UTC")
        self._scheduler.add_job(
            self.sample,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=JOB_ID,
        )
        self._scheduler.start()
        LOGGER.debug("Bandwidth monitor started (every %ss)", self.interval_seconds)

    def stop(self) -> None:
        if self._scheduler is None:
            return
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        LOGGER.debug("Bandwidth monitor stopped")

    def __enter__(self) -> "BandwidthMonitor":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
