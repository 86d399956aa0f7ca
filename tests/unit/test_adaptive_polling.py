"""Test adaptive polling functionality."""

import asyncio
from unittest.mock import MagicMock

import pytest

from minddigit.adaptive_polling import AdaptivePollingScheduler, history_load_factor
from minddigit.config import PollingConfig
from minddigit.network_health import ConnectionQuality, NetworkHealthTracker


def _quick_config() -> PollingConfig:
    return PollingConfig(base_interval=0.5, min_interval=0.2, max_interval=5.0)


class TestIntervalAdaptation:
    """Test interval movement on reported outcomes."""

    def test_starts_at_base_interval(self):
        scheduler = AdaptivePollingScheduler("test", _quick_config())
        assert scheduler.interval == 0.5

    def test_three_failures_from_half_second(self):
        """0.5s * 1.5^3 stays below the 5s ceiling."""
        scheduler = AdaptivePollingScheduler("test", _quick_config())
        for _ in range(3):
            scheduler.report_outcome(False)

        assert scheduler.interval == pytest.approx(min(0.5 * 1.5**3, 5.0))

    def test_failures_capped_at_max(self):
        scheduler = AdaptivePollingScheduler("test", _quick_config())
        for _ in range(20):
            scheduler.report_outcome(False)

        assert scheduler.interval == 5.0

    def test_successes_floored_at_min(self):
        scheduler = AdaptivePollingScheduler("test", _quick_config())
        scheduler.report_outcome(True)
        assert scheduler.interval == pytest.approx(0.5 / 1.2)

        for _ in range(20):
            scheduler.report_outcome(True)
        assert scheduler.interval == 0.2

    def test_bounds_hold_after_every_adjustment(self):
        scheduler = AdaptivePollingScheduler("test", _quick_config())
        for outcome in [False, True, False, False, True, True, True, False] * 5:
            interval = scheduler.report_outcome(outcome)
            assert scheduler.min_interval <= interval <= scheduler.max_interval

    def test_weak_link_holds_success_at_base(self):
        health = NetworkHealthTracker()
        for _ in range(5):
            health.record_failure()
        assert health.connection_quality() is ConnectionQuality.POOR
        scheduler = AdaptivePollingScheduler("test", _quick_config(), health=health)

        for _ in range(3):
            scheduler.report_outcome(True)

        assert scheduler.interval == 0.5

    def test_healthy_link_speeds_up(self):
        health = NetworkHealthTracker()
        health.record_success(50.0)
        scheduler = AdaptivePollingScheduler("test", _quick_config(), health=health)

        scheduler.report_outcome(True)

        assert scheduler.interval == pytest.approx(0.5 / 1.2)

    def test_config_is_copied(self):
        config = _quick_config()
        scheduler = AdaptivePollingScheduler("test", config)
        scheduler.report_outcome(False)

        assert config.current_interval == 0.5

    def test_reset_interval(self):
        scheduler = AdaptivePollingScheduler("test", _quick_config())
        scheduler.report_outcome(False)
        scheduler.reset_interval()

        assert scheduler.interval == 0.5


class TestRateLimit:
    """Test the minimum gap between accepted quick-status requests."""

    def test_refuses_within_gap(self):
        now = [100.0]
        scheduler = AdaptivePollingScheduler("test", _quick_config(), min_request_gap=0.1, clock=lambda: now[0])

        assert scheduler.acquire_slot() is True
        now[0] += 0.05
        assert scheduler.acquire_slot() is False
        now[0] += 0.06
        assert scheduler.acquire_slot() is True

    def test_refused_slot_does_not_move_window(self):
        now = [0.0]
        scheduler = AdaptivePollingScheduler("test", _quick_config(), min_request_gap=0.1, clock=lambda: now[0])

        scheduler.acquire_slot()
        now[0] = 0.09
        assert scheduler.acquire_slot() is False
        now[0] = 0.1
        assert scheduler.acquire_slot() is True


class TestHistoryLoadFactor:
    """Test background delay scaling for long matches."""

    @pytest.mark.parametrize(
        ("length", "factor"),
        [(0, 1.0), (20, 1.0), (21, 1.5), (40, 1.5), (41, 2.0), (200, 2.0)],
    )
    def test_steps(self, length, factor):
        assert history_load_factor(length) == factor

    def test_armed_delay_uses_load_factor(self):
        config = PollingConfig(base_interval=3.0, min_interval=2.0, max_interval=10.0)
        scheduler = AdaptivePollingScheduler("test", config, load_factor=lambda: 2.0)

        assert scheduler.interval == 3.0
        assert scheduler.armed_delay == 6.0


class TestWidening:
    """Test temporary bound replacement."""

    async def test_widen_clamps_current_interval(self):
        scheduler = AdaptivePollingScheduler("test", _quick_config())
        scheduler.widen(2.0, 5.0)

        assert scheduler.is_widened
        assert scheduler.interval == 2.0
        for _ in range(5):
            scheduler.report_outcome(True)
        assert scheduler.interval == 2.0

    async def test_restore_bounds(self):
        scheduler = AdaptivePollingScheduler("test", _quick_config())
        scheduler.widen(10.0, 10.0)
        assert scheduler.interval == 10.0

        scheduler.restore_bounds()

        assert not scheduler.is_widened
        assert scheduler.min_interval == 0.2
        assert scheduler.max_interval == 5.0
        assert scheduler.interval == 5.0

    async def test_widen_expires_after_duration(self):
        scheduler = AdaptivePollingScheduler("test", _quick_config())
        scheduler.widen(2.0, 5.0, duration=0.02)

        await asyncio.sleep(0.05)

        assert not scheduler.is_widened
        assert scheduler.min_interval == 0.2

    async def test_invalid_bounds_rejected(self):
        scheduler = AdaptivePollingScheduler("test", _quick_config())
        with pytest.raises(ValueError):
            scheduler.widen(5.0, 2.0)


class TestTimer:
    """Test the repeating timer."""

    async def test_ticks_while_running(self):
        config = PollingConfig(base_interval=0.01, min_interval=0.01, max_interval=1.0)
        scheduler = AdaptivePollingScheduler("test", config)
        callback = MagicMock()
        scheduler.on_tick(callback)

        scheduler.start()
        await asyncio.sleep(0.08)
        scheduler.stop()

        assert callback.call_count >= 2

    async def test_stop_prevents_ticks(self):
        config = PollingConfig(base_interval=0.01, min_interval=0.01, max_interval=1.0)
        scheduler = AdaptivePollingScheduler("test", config)
        callback = MagicMock()
        scheduler.on_tick(callback)

        scheduler.start()
        scheduler.stop()
        await asyncio.sleep(0.05)

        callback.assert_not_called()
        assert not scheduler.is_running

    async def test_unsubscribe(self):
        config = PollingConfig(base_interval=0.01, min_interval=0.01, max_interval=1.0)
        scheduler = AdaptivePollingScheduler("test", config)
        callback = MagicMock()
        remove = scheduler.on_tick(callback)
        remove()

        scheduler.start()
        await asyncio.sleep(0.05)
        scheduler.close()

        callback.assert_not_called()

    async def test_outcome_rearms_with_new_interval(self):
        """A failure pushes the next tick out to the new interval."""
        config = PollingConfig(base_interval=0.02, min_interval=0.01, max_interval=10.0, error_multiplier=100.0)
        scheduler = AdaptivePollingScheduler("test", config)
        callback = MagicMock()
        scheduler.on_tick(callback)

        scheduler.start()
        scheduler.report_outcome(False)
        await asyncio.sleep(0.06)
        scheduler.stop()

        assert scheduler.interval == pytest.approx(2.0)
        callback.assert_not_called()

    async def test_failing_callback_does_not_stop_timer(self):
        config = PollingConfig(base_interval=0.01, min_interval=0.01, max_interval=1.0)
        scheduler = AdaptivePollingScheduler("test", config)
        broken = MagicMock(side_effect=RuntimeError("boom"))
        healthy = MagicMock()
        scheduler.on_tick(broken)
        scheduler.on_tick(healthy)

        scheduler.start()
        await asyncio.sleep(0.05)
        scheduler.stop()

        assert healthy.call_count >= 2
