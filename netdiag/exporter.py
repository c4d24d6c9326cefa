"""CSV export helpers for probe history."""

from __future__ import annotations

import csv
import io
import math
from pathlib import Path

from .config import AppConfig
from .probes.models import HistoryEntry, HistorySeries


class CSVExporter:
    def __init__(self, config: AppConfig, history: HistorySeries):
        self.config = config
        self.history = history

    def build_csv(self) -> io.StringIO:
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(self._header())

        for entry in self.history:
            writer.writerow(self._row_for_entry(entry))

        buffer.seek(0)
        return buffer

    def _header(self) -> list:
        return [
            "timestamp",
            "ping_ms",
            "download_mb_s",
            "upload_mb_s",
        ]

    @staticmethod
    def _row_for_entry(entry: HistoryEntry) -> list:
        return [
            entry.timestamp,
            CSVExporter._blank_if_nan(entry.ping),
            entry.download,
            entry.upload,
        ]

    @staticmethod
    def _blank_if_nan(value):
        return "" if math.isnan(value) else value

    def write_snapshot(self) -> Path:
        buffer = self.build_csv()
        target = self.config.paths.data_dir / self.config.export.csv_name
        target.write_text(buffer.getvalue(), encoding="utf-8")
        return target
