"""Unit tests for network health bookkeeping."""

import pytest

from minddigit.network_health import ConnectionQuality, HealthSample, NetworkHealthTracker


class TestHealthRecording:
    """Test success/failure bookkeeping."""

    def test_initial_sample(self):
        tracker = NetworkHealthTracker()
        sample = tracker.current_health()

        assert sample == HealthSample()
        assert sample.success_rate == 1.0
        assert sample.avg_latency_ms == 0.0
        assert sample.consecutive_errors == 0

    def test_first_success_seeds_latency(self):
        tracker = NetworkHealthTracker()
        sample = tracker.record_success(400)

        assert sample.avg_latency_ms == 400
        assert sample.total_requests == 1
        assert sample.successful_requests == 1

    def test_latency_is_exponentially_weighted(self):
        tracker = NetworkHealthTracker()
        tracker.record_success(100)
        sample = tracker.record_success(600)

        assert sample.avg_latency_ms == pytest.approx(0.8 * 100 + 0.2 * 600)

    def test_failure_updates_rate_and_streak(self):
        tracker = NetworkHealthTracker()
        tracker.record_success(100)
        tracker.record_failure()
        sample = tracker.record_failure()

        assert sample.total_requests == 3
        assert sample.successful_requests == 1
        assert sample.success_rate == pytest.approx(1 / 3)
        assert sample.consecutive_errors == 2

    def test_success_resets_consecutive_errors(self):
        """Any success clears the failure streak."""
        tracker = NetworkHealthTracker()
        for _ in range(4):
            tracker.record_failure()

        sample = tracker.record_success(50)

        assert sample.consecutive_errors == 0
        assert sample.success_rate == pytest.approx(1 / 5)

    def test_sample_is_immutable(self):
        tracker = NetworkHealthTracker()
        sample = tracker.current_health()
        tracker.record_failure()

        # The earlier snapshot is unchanged
        assert sample.consecutive_errors == 0

    def test_reset_restores_initial_sample(self):
        tracker = NetworkHealthTracker()
        tracker.record_failure()
        tracker.record_success(2000)

        tracker.reset()

        assert tracker.current_health() == HealthSample()

    def test_invalid_weight_rejected(self):
        with pytest.raises(ValueError):
            NetworkHealthTracker(ewma_weight=0)


class TestConnectionQuality:
    """Test connection quality thresholds."""

    def test_excellent_when_fast_and_reliable(self):
        tracker = NetworkHealthTracker()
        for _ in range(10):
            tracker.record_success(200)

        assert tracker.connection_quality() is ConnectionQuality.EXCELLENT

    def test_good_when_latency_above_one_second(self):
        tracker = NetworkHealthTracker()
        tracker.record_success(1500)

        assert tracker.connection_quality() is ConnectionQuality.GOOD

    def test_fair_when_success_rate_low(self):
        tracker = NetworkHealthTracker()
        tracker.record_success(100)
        tracker.record_failure()
        tracker.record_success(100)
        tracker.record_failure()

        # 50% success rate, streak of one
        assert tracker.connection_quality() is ConnectionQuality.FAIR

    def test_fair_when_latency_above_three_seconds(self):
        tracker = NetworkHealthTracker()
        tracker.record_success(3500)

        assert tracker.connection_quality() is ConnectionQuality.FAIR

    def test_poor_after_five_consecutive_errors(self):
        tracker = NetworkHealthTracker()
        for _ in range(20):
            tracker.record_success(100)
        for _ in range(5):
            tracker.record_failure()

        assert tracker.connection_quality() is ConnectionQuality.POOR
