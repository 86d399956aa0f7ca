"""Adaptive polling scheduler.

One scheduler owns one polling cadence: an interval inside ``[min, max]`` and
a repeating timer armed with ``loop.call_later``. Every reported outcome moves
the interval (divide on success, multiply on failure) and re-arms a running
timer so the new interval takes effect immediately. An optional
NetworkHealthTracker holds the interval at base on a weak link.

The sync engine runs two instances:
- fast path ("quick status"): 0.5s base, 0.2s - 5s
- background path ("full sync"): 3s base, 2s - 10s, stretched for long matches
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any

from .config import PollingConfig
from .const import HISTORY_LOAD_STEPS
from .network_health import ConnectionQuality, NetworkHealthTracker

_LOGGER = logging.getLogger(__name__)

TickCallback = Callable[[], None]

_WEAK_LINK = (ConnectionQuality.FAIR, ConnectionQuality.POOR)


def history_load_factor(history_length: int) -> float:
    """Return the delay multiplier for a match with *history_length* moves."""
    factor = 1.0
    for threshold, step_factor in HISTORY_LOAD_STEPS:
        if history_length > threshold:
            factor = step_factor
    return factor


class AdaptivePollingScheduler:
    """Adaptive interval plus cancel-and-reschedule timer.

    The owner reports every request outcome. When a health tracker is given, a
    success on a FAIR or POOR link only brings the interval back to base
    instead of speeding up past it.
    """

    def __init__(
        self,
        name: str,
        config: PollingConfig,
        *,
        min_request_gap: float = 0.0,
        load_factor: Callable[[], float] | None = None,
        health: NetworkHealthTracker | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self._config = config.copy()
        self._default_bounds = (config.min_interval, config.max_interval)
        self._min_request_gap = min_request_gap
        self._load_factor = load_factor
        self._health = health
        self._clock = clock

        self._callbacks: list[TickCallback] = []
        self._loop: asyncio.AbstractEventLoop | None = None
        self._handle: asyncio.TimerHandle | None = None
        self._restore_handle: asyncio.TimerHandle | None = None
        self._running = False
        self._widened = False
        self._last_slot: float | None = None

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def interval(self) -> float:
        return self._config.current_interval

    @property
    def min_interval(self) -> float:
        return self._config.min_interval

    @property
    def max_interval(self) -> float:
        return self._config.max_interval

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_widened(self) -> bool:
        return self._widened

    @property
    def armed_delay(self) -> float:
        """Delay used for the next timer: interval times the load factor."""
        factor = self._load_factor() if self._load_factor is not None else 1.0
        return self._config.current_interval * factor

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start ticking. Must be called from the event loop thread."""
        if self._running:
            return
        self._loop = asyncio.get_running_loop()
        self._running = True
        self._arm()
        _LOGGER.debug("%s polling started at %.2fs", self.name, self.interval)

    def stop(self) -> None:
        """Stop ticking; the interval and bounds are kept."""
        self._running = False
        self._cancel()
        _LOGGER.debug("%s polling stopped", self.name)

    def close(self) -> None:
        """Stop and drop every callback and pending bound restore."""
        self.stop()
        if self._restore_handle is not None:
            self._restore_handle.cancel()
            self._restore_handle = None
        self._callbacks.clear()

    def on_tick(self, callback: TickCallback) -> Callable[[], None]:
        """Register *callback* for every tick; returns an unsubscribe function."""
        self._callbacks.append(callback)

        def remove() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return remove

    # ------------------------------------------------------------------
    # Adaptation
    # ------------------------------------------------------------------

    def report_outcome(self, success: bool) -> float:
        """Adapt the interval to a request outcome and return the new interval."""
        cfg = self._config
        previous = cfg.current_interval
        if success:
            floor = cfg.min_interval
            if self._health is not None and self._health.connection_quality() in _WEAK_LINK:
                floor = max(floor, cfg.base_interval)
            cfg.current_interval = max(previous / cfg.success_divider, floor)
        else:
            cfg.current_interval = min(previous * cfg.error_multiplier, cfg.max_interval)
        cfg.clamp()

        if cfg.current_interval != previous:
            _LOGGER.debug(
                "%s interval %.2fs -> %.2fs (%s)",
                self.name,
                previous,
                cfg.current_interval,
                "success" if success else "failure",
            )
        if self._running:
            self._arm()
        return cfg.current_interval

    def reset_interval(self) -> None:
        """Return to the base interval (clamped to the active bounds)."""
        self._config.current_interval = self._config.base_interval
        self._config.clamp()
        if self._running:
            self._arm()

    def acquire_slot(self) -> bool:
        """Rate limit: refuse if the previous accepted request was too recent."""
        now = self._clock()
        if self._last_slot is not None and now - self._last_slot < self._min_request_gap:
            return False
        self._last_slot = now
        return True

    def widen(self, min_interval: float, max_interval: float, duration: float | None = None) -> None:
        """Temporarily replace the bounds; restored after *duration* seconds if given."""
        if min_interval <= 0 or min_interval > max_interval:
            raise ValueError(f"invalid bounds [{min_interval}, {max_interval}]")
        cfg = self._config
        cfg.min_interval = min_interval
        cfg.max_interval = max_interval
        cfg.clamp()
        self._widened = True
        _LOGGER.debug(
            "%s bounds widened to [%.1f, %.1f]s%s",
            self.name,
            min_interval,
            max_interval,
            f" for {duration:.0f}s" if duration else "",
        )

        if self._restore_handle is not None:
            self._restore_handle.cancel()
            self._restore_handle = None
        if duration is not None:
            loop = self._loop or asyncio.get_running_loop()
            self._restore_handle = loop.call_later(duration, self.restore_bounds)
        if self._running:
            self._arm()

    def restore_bounds(self) -> None:
        """End a temporary widening early (or on its timer)."""
        if self._restore_handle is not None:
            self._restore_handle.cancel()
            self._restore_handle = None
        if not self._widened:
            return
        cfg = self._config
        cfg.min_interval, cfg.max_interval = self._default_bounds
        cfg.clamp()
        self._widened = False
        _LOGGER.debug("%s bounds restored to [%.1f, %.1f]s", self.name, cfg.min_interval, cfg.max_interval)
        if self._running:
            self._arm()

    # ------------------------------------------------------------------
    # Timer
    # ------------------------------------------------------------------

    def _arm(self) -> None:
        self._cancel()
        loop = self._loop or asyncio.get_running_loop()
        self._handle = loop.call_later(self.armed_delay, self._fire)

    def _cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        for callback in list(self._callbacks):
            try:
                callback()
            except Exception:  # noqa: BLE001
                _LOGGER.exception("%s tick callback failed", self.name)
        if self._running and self._handle is None:
            self._arm()

    def get_diagnostics(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "running": self._running,
            "interval": round(self._config.current_interval, 3),
            "armed_delay": round(self.armed_delay, 3),
            "min_interval": self._config.min_interval,
            "max_interval": self._config.max_interval,
            "widened": self._widened,
        }
