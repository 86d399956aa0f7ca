"""Recovery logic for background sync failures.

Keeps the state machine separate from the orchestrator so it stays small and
testable. ``NORMAL -> DEGRADING -> RECOVERING -> NORMAL``:

- every failed background request bumps the retry counter (DEGRADING)
- at the threshold the last snapshot is shown, a short-lived reconnecting
  indicator is raised and a single delayed resume is scheduled (RECOVERING)
- a cold start (timeout, or a 5xx with an internal-error body) skips the
  counter and warms the server up with one long ``/health`` request
- any success returns to NORMAL
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

import async_timeout

from .config import RecoveryConfig
from .models import SyncSnapshot
from .network_health import NetworkHealthTracker
from .utils import compact_error, looks_like_cold_start

_LOGGER = logging.getLogger(__name__)


class RecoveryState(str, Enum):
    NORMAL = "normal"
    DEGRADING = "degrading"
    RECOVERING = "recovering"


class RecoveryController:
    """Track consecutive background failures and drive recovery."""

    def __init__(
        self,
        config: RecoveryConfig | None = None,
        *,
        health: NetworkHealthTracker | None = None,
        snapshot_provider: Callable[[], SyncSnapshot | None] | None = None,
        on_enter: Callable[[], None] | None = None,
        on_show_snapshot: Callable[[SyncSnapshot], None] | None = None,
        on_indicator: Callable[[bool], None] | None = None,
        on_resume: Callable[[bool], None] | None = None,
        warmup: Callable[[], Awaitable[Any]] | None = None,
        load_factor: Callable[[], float] | None = None,
    ) -> None:
        self.config = config or RecoveryConfig()
        self._health = health
        self._snapshot_provider = snapshot_provider
        self._on_enter = on_enter
        self._on_show_snapshot = on_show_snapshot
        self._on_indicator = on_indicator
        self._on_resume = on_resume
        self._warmup = warmup
        self._load_factor = load_factor

        self._state = RecoveryState.NORMAL
        self._retry_count = 0
        self._reconnecting = False
        self._cold_start = False
        self._recoveries = 0

        self._resume_handle: asyncio.TimerHandle | None = None
        self._indicator_handle: asyncio.TimerHandle | None = None
        self._warmup_task: asyncio.Task | None = None

    # ---------------------------------------------------------------------
    # Query helpers
    # ---------------------------------------------------------------------

    @property
    def state(self) -> RecoveryState:
        return self._state

    @property
    def retry_count(self) -> int:
        return self._retry_count

    @property
    def is_recovering(self) -> bool:
        return self._state is RecoveryState.RECOVERING

    @property
    def reconnecting(self) -> bool:
        """True while the non-blocking reconnecting indicator should show."""
        return self._reconnecting

    @property
    def recoveries(self) -> int:
        """How many times recovery mode has been entered."""
        return self._recoveries

    # ---------------------------------------------------------------------
    # Recording helpers
    # ---------------------------------------------------------------------

    def record_success(self, latency_ms: float | None = None) -> None:
        """Reset the failure counter after a successful background request."""
        if self._health is not None and latency_ms is not None:
            self._health.record_success(latency_ms)
        if self._state is RecoveryState.RECOVERING:
            # A late success while a resume is pending ends recovery early
            _LOGGER.info("Server responded during recovery")
            self._cancel_resume()
            self._resume()
            return
        if self._state is RecoveryState.DEGRADING:
            _LOGGER.debug("Background sync recovered after %d failures", self._retry_count)
        self._state = RecoveryState.NORMAL
        self._retry_count = 0

    def record_failure(self, err: BaseException | None = None) -> None:
        """Increment the failure counter; may enter recovery."""
        if self._health is not None:
            self._health.record_failure()

        if self._state is RecoveryState.RECOVERING:
            _LOGGER.debug("Ignoring failure while recovering: %s", compact_error(err) if err else "unknown")
            return

        if err is not None and looks_like_cold_start(err):
            _LOGGER.info("Server looks like it is cold starting (%s)", compact_error(err))
            self._enter_recovery(cold_start=True)
            return

        self._retry_count += 1
        self._state = RecoveryState.DEGRADING
        _LOGGER.debug(
            "Background sync failure %d/%d: %s",
            self._retry_count,
            self.config.threshold,
            compact_error(err) if err else "unknown",
        )
        if self._retry_count >= self.config.threshold:
            self._enter_recovery(cold_start=False)

    def resume_delay(self) -> float:
        factor = self._load_factor() if self._load_factor is not None else 1.0
        return self.config.base_delay * factor

    # ---------------------------------------------------------------------
    # Recovery flow
    # ---------------------------------------------------------------------

    def _enter_recovery(self, cold_start: bool) -> None:
        loop = asyncio.get_running_loop()
        self._state = RecoveryState.RECOVERING
        self._retry_count = 0
        self._cold_start = cold_start
        self._recoveries += 1
        _LOGGER.warning(
            "Entering recovery mode (%s)",
            "cold start warm-up" if cold_start else f"resume in {self.resume_delay():.1f}s",
        )
        if self._on_enter is not None:
            self._on_enter()

        snapshot = self._snapshot_provider() if self._snapshot_provider is not None else None
        if snapshot is not None and self._on_show_snapshot is not None:
            self._on_show_snapshot(snapshot)

        self._set_indicator(True)
        if self._indicator_handle is not None:
            self._indicator_handle.cancel()
        self._indicator_handle = loop.call_later(self.config.indicator_seconds, self._set_indicator, False)

        self._cancel_resume()
        if cold_start and self._warmup is not None:
            self._warmup_task = loop.create_task(self._warm_up())
        else:
            self._resume_handle = loop.call_later(self.resume_delay(), self._resume)

    async def _warm_up(self) -> None:
        try:
            async with async_timeout.timeout(self.config.warmup_timeout):
                await self._warmup()
            _LOGGER.debug("Warm-up request succeeded")
        except asyncio.CancelledError:
            raise
        except Exception as err:  # noqa: BLE001
            # Resolved either way; normal polling will tell us the rest
            _LOGGER.debug("Warm-up request failed: %s", compact_error(err))
        self._warmup_task = None
        self._resume()

    def _resume(self) -> None:
        self._resume_handle = None
        cold_start = self._cold_start
        self._state = RecoveryState.NORMAL
        self._retry_count = 0
        self._cold_start = False
        _LOGGER.info("Leaving recovery mode, resuming sync")
        if self._on_resume is not None:
            self._on_resume(cold_start)

    def _set_indicator(self, visible: bool) -> None:
        if not visible:
            self._indicator_handle = None
        if self._reconnecting == visible:
            return
        self._reconnecting = visible
        if self._on_indicator is not None:
            self._on_indicator(visible)

    def _cancel_resume(self) -> None:
        if self._resume_handle is not None:
            self._resume_handle.cancel()
            self._resume_handle = None
        if self._warmup_task is not None and not self._warmup_task.done():
            self._warmup_task.cancel()
        self._warmup_task = None

    def reset(self) -> None:
        """Return to NORMAL and cancel any pending resume (manual refresh)."""
        self._cancel_resume()
        self._state = RecoveryState.NORMAL
        self._retry_count = 0
        self._cold_start = False

    def close(self) -> None:
        self.reset()
        if self._indicator_handle is not None:
            self._indicator_handle.cancel()
            self._indicator_handle = None
        self._reconnecting = False

    def get_diagnostics(self) -> dict[str, Any]:
        return {
            "state": self._state.value,
            "retry_count": self._retry_count,
            "threshold": self.config.threshold,
            "reconnecting": self._reconnecting,
            "recoveries": self._recoveries,
            "resume_pending": self._resume_handle is not None or self._warmup_task is not None,
        }
