"""Network probe cycle orchestration."""

from .models import HistoryEntry, HistorySeries, ProbeResults
from .orchestrator import CycleInProgressError, ProbeError, ProbeOrchestrator

__all__ = [
    "CycleInProgressError",
    "HistoryEntry",
    "HistorySeries",
    "ProbeError",
    "ProbeOrchestrator",
    "ProbeResults",
]
