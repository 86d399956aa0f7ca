"""Network health bookkeeping.

Tracks the rolling success rate, an exponentially weighted average latency and
the number of consecutive failures. Pure bookkeeping: no timers, no I/O.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum

from .const import (
    FAILURE_ERROR_THRESHOLD,
    FAILURE_WARNING_THRESHOLD,
    LATENCY_EWMA_WEIGHT,
    QUALITY_FAIR_LATENCY_MS,
    QUALITY_FAIR_SUCCESS_RATE,
    QUALITY_GOOD_LATENCY_MS,
    QUALITY_GOOD_SUCCESS_RATE,
    QUALITY_POOR_CONSECUTIVE_ERRORS,
)

_LOGGER = logging.getLogger(__name__)


class ConnectionQuality(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


@dataclass(frozen=True)
class HealthSample:
    """Snapshot of link health after the latest completed request."""

    success_rate: float = 1.0
    avg_latency_ms: float = 0.0
    consecutive_errors: int = 0
    total_requests: int = 0
    successful_requests: int = 0


class NetworkHealthTracker:
    """Record request outcomes and rate the connection."""

    def __init__(self, ewma_weight: float = LATENCY_EWMA_WEIGHT) -> None:
        if not 0 < ewma_weight <= 1:
            raise ValueError("ewma_weight must be in (0, 1]")
        self._weight = ewma_weight
        self._sample = HealthSample()

    def record_success(self, latency_ms: float) -> HealthSample:
        """Record a completed request and return the new sample."""
        prev = self._sample
        latency_ms = max(0.0, float(latency_ms))
        successful = prev.successful_requests + 1
        total = prev.total_requests + 1
        if prev.successful_requests == 0:
            # First measured latency seeds the average
            avg = latency_ms
        else:
            avg = (1 - self._weight) * prev.avg_latency_ms + self._weight * latency_ms

        if prev.consecutive_errors >= FAILURE_WARNING_THRESHOLD:
            _LOGGER.info("Server reachable again after %d failed requests", prev.consecutive_errors)

        self._sample = HealthSample(
            success_rate=successful / total,
            avg_latency_ms=avg,
            consecutive_errors=0,
            total_requests=total,
            successful_requests=successful,
        )
        return self._sample

    def record_failure(self) -> HealthSample:
        """Record a failed request and return the new sample."""
        prev = self._sample
        total = prev.total_requests + 1
        consecutive = prev.consecutive_errors + 1
        self._sample = replace(
            prev,
            success_rate=prev.successful_requests / total,
            consecutive_errors=consecutive,
            total_requests=total,
        )

        # Escalate log level as failures pile up
        if consecutive == FAILURE_ERROR_THRESHOLD:
            _LOGGER.warning(
                "%d consecutive request failures (success rate %.0f%%)",
                consecutive,
                self._sample.success_rate * 100,
            )
        elif consecutive == FAILURE_WARNING_THRESHOLD:
            _LOGGER.info("%d consecutive request failures", consecutive)
        else:
            _LOGGER.debug("Request failure recorded (%d consecutive)", consecutive)
        return self._sample

    def current_health(self) -> HealthSample:
        return self._sample

    def connection_quality(self) -> ConnectionQuality:
        """Rate the link from the current sample."""
        sample = self._sample
        if sample.consecutive_errors >= QUALITY_POOR_CONSECUTIVE_ERRORS:
            return ConnectionQuality.POOR
        if sample.success_rate < QUALITY_FAIR_SUCCESS_RATE or sample.avg_latency_ms > QUALITY_FAIR_LATENCY_MS:
            return ConnectionQuality.FAIR
        if sample.success_rate < QUALITY_GOOD_SUCCESS_RATE or sample.avg_latency_ms > QUALITY_GOOD_LATENCY_MS:
            return ConnectionQuality.GOOD
        return ConnectionQuality.EXCELLENT

    def reset(self) -> None:
        """Forget all history (manual refresh)."""
        self._sample = HealthSample()
