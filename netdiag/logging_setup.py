"""Root logger setup: a rotating log file under ``logs_dir`` plus the console."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import AppConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(config: AppConfig) -> Path:
    """Replace the root handlers and return the log file path."""
    settings = config.logging
    config.paths.logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = config.paths.logs_dir / settings.file_name

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.level.upper(), logging.INFO))
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = [
        RotatingFileHandler(log_path, maxBytes=settings.max_bytes, backupCount=settings.backup_count),
        logging.StreamHandler(),
    ]
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    # The bandwidth timer and urllib3 log every job run and connection at INFO/DEBUG.
    for name in settings.quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_path
