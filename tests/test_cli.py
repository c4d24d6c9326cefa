"""
Test suite for the command line entry point.
"""

import json
import logging

import pytest

import main


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    monkeypatch.delenv("NETDIAG_API_URL", raising=False)
    path = tmp_path / "config.yaml"
    path.write_text("estimator:\n  network_latency_ms: 0\n", encoding="utf-8")
    yield str(path)
    for handler in list(logging.getLogger().handlers):
        if isinstance(handler, logging.FileHandler):
            handler.close()
            logging.getLogger().removeHandler(handler)


def test_estimate_virtual_items(config_path, capsys):
    main.main(["--config", config_path, "estimate", "--item", "disk.img:10:MB", "--download", "10"])
    body = json.loads(capsys.readouterr().out)
    assert body["download_time_seconds"] == pytest.approx((10 * 8) / (10 * 1024 * 1024))
    assert body["normalized_unit"] == "MB"


def test_estimate_real_files(config_path, tmp_path, capsys):
    sample = tmp_path / "notes.txt"
    sample.write_bytes(b"a" * 2048)
    main.main(["--config", config_path, "estimate", str(sample), "--vpn", "--p2p", "--cloud", "aws-s3"])
    body = json.loads(capsys.readouterr().out)
    assert body["total_size_bytes"] == 2048
    assert body["normalized_size"] == 2.0
    assert body["normalized_unit"] == "KB"


def test_estimate_compression_flag(config_path, capsys):
    main.main(["--config", config_path, "estimate", "--item", "x:1:GB", "--compression", "100"])
    body = json.loads(capsys.readouterr().out)
    assert body["download_time_seconds"] == 0.0


@pytest.mark.parametrize(
    "raw_item, message",
    [
        ("disk.img:10", "expected NAME:SIZE:UNIT"),
        ("disk.img:ten:MB", "could not convert"),
        ("disk.img:10:PB", "Unknown size unit"),
    ],
)
def test_malformed_item_is_a_usage_error(config_path, capsys, raw_item, message):
    with pytest.raises(SystemExit) as excinfo:
        main.main(["--config", config_path, "estimate", "--item", raw_item])
    assert excinfo.value.code == 2
    err = capsys.readouterr().err
    assert "argument --item" in err
    assert message in err
