"""
Test suite for the display-only bandwidth monitor.
"""

import random

import pytest

from netdiag.bandwidth import BandwidthMonitor


class TestSample:
    def test_starts_at_zero(self):
        assert BandwidthMonitor(10, 20).current_bandwidth == 0.0

    @pytest.mark.parametrize("seed", range(20))
    def test_within_ten_percent_of_midpoint(self, seed):
        monitor = BandwidthMonitor(10, 20, rng=random.Random(seed))
        value = monitor.sample()
        assert 15 * 0.9 <= value < 15 * 1.1
        assert monitor.current_bandwidth == value

    def test_extremes_of_random_draw(self):
        class Fixed:
            def __init__(self, value):
                self.value = value

            def random(self):
                return self.value

        assert BandwidthMonitor(4, 6, rng=Fixed(0.0)).sample() == pytest.approx(4.5)
        assert BandwidthMonitor(4, 6, rng=Fixed(0.5)).sample() == pytest.approx(5.0)

    def test_update_speeds(self):
        monitor = BandwidthMonitor(1, 1, fluctuation=0.0)
        monitor.update_speeds(100, 300)
        assert monitor.sample() == 200


class TestLifecycle:
    def test_context_manager_stops_timer(self):
        with BandwidthMonitor(1, 2, interval_seconds=60) as monitor:
            assert monitor.running
        assert not monitor.running

    def test_stop_is_idempotent(self):
        monitor = BandwidthMonitor(1, 2, interval_seconds=60)
        monitor.stop()
        monitor.start()
        monitor.stop()
        monitor.stop()
        assert not monitor.running

    def test_duplicate_start_keeps_single_timer(self, caplog):
        monitor = BandwidthMonitor(1, 2, interval_seconds=60)
        try:
            monitor.start()
            monitor.start()
            assert "already started" in caplog.text
        finally:
            monitor.stop()
