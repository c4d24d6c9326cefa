"""Sequential network probe cycles against the diagnostics backend."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, Optional, Tuple

import requests

from ..config import ProbeConfig
from ..units import round_half_up
from .models import (
    HistoryEntry,
    HistorySeries,
    ProbeResults,
    local_time_label,
    parse_leading_float,
)

LOGGER = logging.getLogger(__name__)

# (endpoint, result key) for the remote scans issued as one concurrent batch.
SCAN_PROBES: Tuple[Tuple[str, str], ...] = (
    ("nmap", "nmap"),
    ("open-ports", "ports"),
    ("services", "services"),
    ("vuln-scan", "vuln"),
    ("ssl-check", "ssl"),
    ("firewall-check", "firewall"),
)

UPLOAD_FILENAME = "downloaded_test_file"

STATE_IDLE = "idle"
STATE_RUNNING = "running"
STATE_COMPLETED = "completed"


class ProbeError(RuntimeError):
    """A single probe attempt failed."""


class CycleInProgressError(RuntimeError):
    """Raised when a cycle is requested while another one is still running."""


def _throughput(size_bytes: int, elapsed_seconds: float) -> float:
    """Megabytes (MiB) per second."""
    if elapsed_seconds <= 0:
        LOGGER.debug("Non-positive elapsed time for %d bytes; reporting 0 MB/s", size_bytes)
        return 0.0
    return size_bytes / elapsed_seconds / 1024 / 1024


class ProbeOrchestrator:
    """Run the ip -> ping -> download -> upload -> scans sequence and record history.

    ``session`` is anything with ``requests.Session``'s ``get``/``post``
    signature. ``clock`` returns monotonic seconds and ``wall_clock`` epoch
    seconds; both exist so timing can be pinned down.
    """

    def __init__(
        self,
        config: ProbeConfig,
        session: Optional[requests.Session] = None,
        results: Optional[ProbeResults] = None,
        history: Optional[HistorySeries] = None,
        clock: Callable[[], float] = time.perf_counter,
        wall_clock: Callable[[], float] = time.time,
    ):
        self.config = config
        self.session = session or requests.Session()
        self.results = results if results is not None else ProbeResults()
        self.history = history if history is not None else HistorySeries()
        self.clock = clock
        self.wall_clock = wall_clock
        self.progress: Optional[float] = 0.0
        self._state = STATE_IDLE
        self._cycle_lock = threading.Lock()

    @property
    def state(self) -> str:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._cycle_lock.locked()

    def url_for(self, endpoint: str) -> str:
        return f"{self.config.base_url}{endpoint}"

    def run_cycle(self) -> HistoryEntry:
        if not self._cycle_lock.acquire(blocking=False):
            raise CycleInProgressError("A probe cycle is already running")
        try:
            self._state = STATE_RUNNING
            self.results.reset()
            self.progress = 0.0
            LOGGER.info("Starting probe cycle against %s", self.config.base_url)

            self.probe_ip()
            self.probe_ping()

            download_speed = 0.0
            upload_speed = 0.0
            try:
                buffer, download_speed = self.probe_download()
            except (requests.RequestException, ProbeError, ValueError) as exc:
                LOGGER.error("Download probe failed: %s", exc)
                self.results.set("download", f"Download failed: {exc}")
                self.results.set("upload", "Upload skipped: no download data")
            else:
                upload_speed = self.probe_upload(buffer)

            self.probe_scans()

            entry = HistoryEntry(
                timestamp=local_time_label(),
                ping=parse_leading_float(self.results.get("ping")),
                download=round_half_up(download_speed, 2),
                upload=round_half_up(upload_speed, 2),
            )
            self.history.append(entry)
            self._state = STATE_COMPLETED
            LOGGER.info(
                "Probe cycle completed (ping %s / down %.2f MB/s / up %.2f MB/s)",
                self.results.get("ping"),
                download_speed,
                upload_speed,
            )
            return entry
        except Exception:
            self._state = STATE_IDLE
            raise
        finally:
            self._cycle_lock.release()

    def fetch_with_retry(self, endpoint: str, key: str) -> bool:
        """GET ``endpoint`` and store its JSON ``key``; only the last failure is recorded."""
        url = self.url_for(endpoint)
        retries = self.config.retries
        for attempt in range(1, retries + 1):
            try:
                response = self.session.get(url, timeout=self.config.request_timeout)
                if not response.ok:
                    raise ProbeError(f"HTTP error! status: {response.status_code}")
                data = response.json()
                if not isinstance(data, dict):
                    raise ProbeError(f"Unexpected payload type {type(data).__name__}")
                self.results.set(key, data.get(key) or f"Error: {data.get('error')}")
                return True
            except Exception as exc:
                LOGGER.debug("Attempt %d/%d for %s failed: %s", attempt, retries, url, exc)
                if attempt == retries:
                    LOGGER.warning("Probe %s failed after %d attempts: %s", endpoint, retries, exc)
                    self.results.set(key, f"Request failed: {exc}")
        return False

    def probe_ip(self) -> None:
        self.fetch_with_retry("ip", "ip")

    def probe_ping(self) -> int:
        start = self.clock()
        self.fetch_with_retry("ping", "ping")
        # The measured round trip replaces whatever the endpoint reported.
        elapsed_ms = round((self.clock() - start) * 1000)
        self.results.set("ping", f"{elapsed_ms}ms")
        return elapsed_ms

    def probe_download(self) -> Tuple[bytes, float]:
        start = self.clock()
        with self.session.get(
            self.url_for("download"), stream=True, timeout=self.config.request_timeout
        ) as response:
            if not response.ok:
                raise ProbeError(f"HTTP error! status: {response.status_code}")
            if response.raw is None:
                raise ProbeError("Failed to read download stream")

            expected = int(response.headers.get("content-length") or 0)
            self.progress = 0.0 if expected else None
            buffer = bytearray()
            for chunk in response.iter_content(chunk_size=self.config.chunk_size):
                if not chunk:
                    continue
                buffer.extend(chunk)
                if expected:
                    self.progress = min(100.0, len(buffer) / expected * 100)

        self.progress = 100.0
        speed = _throughput(len(buffer), self.clock() - start)
        self.results.set("download", f"Download Speed: {speed:.2f} MB/s")
        LOGGER.info("Downloaded %d bytes at %.2f MB/s", len(buffer), speed)
        return bytes(buffer), speed

    def probe_upload(self, payload: bytes) -> float:
        """POST the downloaded bytes back; the server-reported ``uploadTime`` wins when present."""
        start = self.clock()
        headers = {"x-start-time": str(int(self.wall_clock() * 1000))}
        files = {"file": (UPLOAD_FILENAME, payload, "application/octet-stream")}
        try:
            response = self.session.post(
                self.url_for("upload"),
                files=files,
                headers=headers,
                timeout=self.config.request_timeout,
            )
            if not response.ok:
                raise ProbeError(f"HTTP error! status: {response.status_code} {response.reason}")
            data = response.json()
            client_ms = (self.clock() - start) * 1000
            server_ms = data.get("uploadTime") if isinstance(data, dict) else None
            upload_ms = server_ms or client_ms
            speed = _throughput(len(payload), float(upload_ms) / 1000)
        except (requests.RequestException, ProbeError, ValueError, TypeError) as exc:
            LOGGER.error("Upload probe failed: %s", exc)
            self.results.set("upload", f"Upload failed: {exc}")
            return 0.0

        self.results.set("upload", f"Upload Speed: {speed:.2f} MB/s")
        LOGGER.info("Uploaded %d bytes at %.2f MB/s", len(payload), speed)
        return speed

    def probe_scans(self) -> None:
        workers = max(1, min(self.config.scan_workers, len(SCAN_PROBES)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="scan") as executor:
            futures = [
                executor.submit(self.fetch_with_retry, endpoint, key)
                for endpoint, key in SCAN_PROBES
            ]
            wait(futures)
        for future in futures:
            future.result()
