"""Shared result containers for probe cycles."""

from __future__ import annotations

import re
import threading
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Dict, Iterator, List, Optional, Union

ProbeValue = Union[str, float]

PLACEHOLDERS: Dict[str, str] = {
    "ip": "Fetching...",
    "ping": "Testing...",
    "download": "Testing...",
    "upload": "Testing...",
    "nmap": "Scanning...",
    "ports": "Scanning...",
    "services": "Detecting...",
    "vuln": "Scanning...",
    "ssl": "Checking...",
    "firewall": "Checking...",
}

_LEADING_FLOAT = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_leading_float(value: ProbeValue) -> float:
    """Parse the numeric prefix of ``value`` (``"42ms"`` -> 42.0); nan when there is none."""
    if isinstance(value, (int, float)):
        return float(value)
    match = _LEADING_FLOAT.match(value)
    return float(match.group(0)) if match else float("nan")


def local_time_label(moment: Optional[datetime] = None) -> str:
    """Format a local time as ``3:04:05 PM``."""
    moment = moment or datetime.now()
    return f"{moment.hour % 12 or 12}:{moment:%M:%S %p}"


class ProbeResults:
    """Result map where every probe owns exactly one key."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._values: Dict[str, ProbeValue] = dict(PLACEHOLDERS)

    def reset(self) -> None:
        with self._lock:
            self._values = dict(PLACEHOLDERS)

    def set(self, key: str, value: ProbeValue) -> None:
        if key not in PLACEHOLDERS:
            raise KeyError(f"Unknown probe key {key!r}")
        with self._lock:
            self._values[key] = value

    def get(self, key: str) -> ProbeValue:
        with self._lock:
            return self._values[key]

    def snapshot(self) -> Dict[str, ProbeValue]:
        with self._lock:
            return dict(self._values)


@dataclass(frozen=True)
class HistoryEntry:
    timestamp: str
    ping: float
    download: float
    upload: float

    def to_dict(self) -> dict:
        return asdict(self)


class HistorySeries:
    """Append-only, in-memory record of completed cycles."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: List[HistoryEntry] = []

    def append(self, entry: HistoryEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def entries(self) -> List[HistoryEntry]:
        with self._lock:
            return list(self._entries)

    def latest(self) -> Optional[HistoryEntry]:
        with self._lock:
            return self._entries[-1] if self._entries else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(self.entries())
