"""
Test suite for root logger configuration.
"""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from netdiag.config import load_config
from netdiag.logging_setup import configure_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
        if isinstance(handler, logging.FileHandler):
            handler.close()
    for handler in saved_handlers:
        root.addHandler(handler)
    root.setLevel(saved_level)


def test_rotating_file_follows_logging_section(tmp_path, monkeypatch, restore_root_logger):
    monkeypatch.delenv("NETDIAG_LOG_LEVEL", raising=False)
    path = tmp_path / "config.yaml"
    path.write_text(
        "logging:\n"
        "  level: debug\n"
        "  file_name: diag.log\n"
        "  max_bytes: 1024\n"
        "  backup_count: 2\n"
        "  quiet_loggers: [chatty.lib]\n",
        encoding="utf-8",
    )
    config = load_config(str(path))

    log_path = configure_logging(config)

    assert log_path == (tmp_path / "logs" / "diag.log").resolve()
    assert restore_root_logger.level == logging.DEBUG
    file_handlers = [h for h in restore_root_logger.handlers if isinstance(h, RotatingFileHandler)]
    assert len(file_handlers) == 1
    assert file_handlers[0].maxBytes == 1024
    assert file_handlers[0].backupCount == 2
    assert logging.getLogger("chatty.lib").level == logging.WARNING

    logging.getLogger("netdiag.test").info("cycle finished")
    file_handlers[0].flush()
    assert "[INFO] netdiag.test - cycle finished" in log_path.read_text(encoding="utf-8")


def test_reconfiguring_replaces_handlers(tmp_path, restore_root_logger):
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")
    config = load_config(str(path))

    configure_logging(config)
    configure_logging(config)

    assert len(restore_root_logger.handlers) == 2
