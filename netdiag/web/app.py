"""Flask application factory and HTTP routes."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import List

from flask import Flask, Response, jsonify, request
from werkzeug.middleware.proxy_fix import ProxyFix

from ..bandwidth import BandwidthMonitor
from ..config import AppConfig
from ..estimator import FileItem, TransferEstimator
from ..exporter import CSVExporter
from ..probes.orchestrator import CycleInProgressError, ProbeOrchestrator
from ..scheduler import SchedulerService

LOGGER = logging.getLogger(__name__)


def create_web_app(
    config: AppConfig,
    orchestrator: ProbeOrchestrator,
    exporter: CSVExporter,
    bandwidth_monitor: BandwidthMonitor,
    scheduler: SchedulerService,
) -> Flask:
    app = Flask(__name__)
    app.config["SECRET_KEY"] = config.web.secret_key

    if config.web.reverse_proxy_headers:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)  # type: ignore

    executor = ThreadPoolExecutor(max_workers=1)

    @app.get("/api/results")
    def api_results():
        return jsonify(
            {
                "state": orchestrator.state,
                "progress": orchestrator.progress,
                "results": orchestrator.results.snapshot(),
            }
        )

    @app.post("/api/cycle")
    def api_run_cycle():
        if orchestrator.is_running:
            return jsonify({"error": "A probe cycle is already running"}), 409
        executor.submit(_run_cycle_task, orchestrator, exporter)
        return jsonify({"status": "queued", "task": "probe-cycle"}), 202

    @app.get("/api/history")
    def api_history():
        return jsonify([entry.to_dict() for entry in orchestrator.history])

    @app.get("/api/export/csv")
    def api_export_csv():
        buffer = exporter.build_csv()
        filename = f"history-{datetime.utcnow().strftime('%Y%m%dT%H%M%S')}.csv"
        return Response(
            buffer.getvalue(),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.post("/api/estimate")
    def api_estimate():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({"error": "Expected a JSON object"}), 400

        try:
            files = _parse_files(payload.get("files") or [])
            estimator_config = config.estimator.merged(payload.get("config") or {})
        except (TypeError, ValueError) as exc:
            return jsonify({"error": str(exc)}), 400

        result = TransferEstimator(estimator_config).estimate(files)
        bandwidth_monitor.update_speeds(
            estimator_config.download_speed_mbps, estimator_config.upload_speed_mbps
        )
        return jsonify(result.to_dict())

    @app.get("/api/bandwidth")
    def api_bandwidth():
        return jsonify(
            {
                "current_bandwidth": bandwidth_monitor.current_bandwidth,
                "running": bandwidth_monitor.running,
            }
        )

    @app.get("/api/status")
    def api_status():
        return jsonify(
            {
                "base_url": config.probe.base_url,
                "state": orchestrator.state,
                "history_length": len(orchestrator.history),
                "scheduler_enabled": scheduler.started,
            }
        )

    return app


def _parse_files(raw_files) -> List[FileItem]:
    if not isinstance(raw_files, list):
        raise ValueError("'files' must be a list")
    items = []
    for raw in raw_files:
        if not isinstance(raw, dict) or "size" not in raw:
            raise ValueError("Each file needs at least a 'size'")
        items.append(
            FileItem(
                name=str(raw.get("name", "")),
                size=float(raw["size"]),
                unit=raw.get("unit", "bytes"),
                mime_type=str(raw.get("type", "")),
            )
        )
    return items


def _run_cycle_task(orchestrator: ProbeOrchestrator, exporter: CSVExporter):
    try:
        orchestrator.run_cycle()
    except CycleInProgressError:
        LOGGER.info("Probe cycle request ignored - a cycle is already running")
        return
    except Exception as e:
        LOGGER.error(f"Probe cycle task failed: {e}")
        return
    exporter.write_snapshot()
