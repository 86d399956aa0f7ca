"""Typed engine configuration.

Options arrive as a plain mapping (for instance loaded from a settings file)
and are validated with a voluptuous schema before being turned into frozen
dataclasses. Nothing downstream reads configuration by string key.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import voluptuous as vol

from .const import (
    ACTION_TIMEOUT,
    APP_BACKGROUND_INTERVAL,
    BACKGROUND_BASE_INTERVAL,
    BACKGROUND_MAX_INTERVAL,
    BACKGROUND_MIN_INTERVAL,
    COLD_START_WIDEN_DURATION,
    COLD_START_WIDEN_MAX,
    COLD_START_WIDEN_MIN,
    CONFIRMED_RETENTION_SECONDS,
    ERROR_MULTIPLIER,
    FULL_SYNC_TIMEOUT,
    HIGH_PRIORITY_WINDOW,
    QUICK_BASE_INTERVAL,
    QUICK_MAX_INTERVAL,
    QUICK_MIN_INTERVAL,
    QUICK_MIN_REQUEST_GAP,
    QUICK_STATUS_TIMEOUT,
    RECONNECTING_INDICATOR_SECONDS,
    RECOVERY_BASE_DELAY,
    RECOVERY_THRESHOLD,
    SUCCESS_DIVIDER,
    WARMUP_TIMEOUT,
)

# Option keys
CONF_QUICK_BASE_INTERVAL = "quick_base_interval"
CONF_QUICK_MIN_INTERVAL = "quick_min_interval"
CONF_QUICK_MAX_INTERVAL = "quick_max_interval"
CONF_BACKGROUND_BASE_INTERVAL = "background_base_interval"
CONF_BACKGROUND_MIN_INTERVAL = "background_min_interval"
CONF_BACKGROUND_MAX_INTERVAL = "background_max_interval"
CONF_ERROR_MULTIPLIER = "error_multiplier"
CONF_SUCCESS_DIVIDER = "success_divider"
CONF_QUICK_MIN_REQUEST_GAP = "quick_min_request_gap"
CONF_APP_BACKGROUND_INTERVAL = "app_background_interval"
CONF_RECOVERY_THRESHOLD = "recovery_threshold"
CONF_RECOVERY_BASE_DELAY = "recovery_base_delay"
CONF_INDICATOR_SECONDS = "reconnecting_indicator_seconds"
CONF_WARMUP_TIMEOUT = "warmup_timeout"
CONF_COLD_START_WIDEN_MIN = "cold_start_widen_min"
CONF_COLD_START_WIDEN_MAX = "cold_start_widen_max"
CONF_COLD_START_WIDEN_DURATION = "cold_start_widen_duration"
CONF_HIGH_PRIORITY_WINDOW = "high_priority_window"
CONF_CONFIRMED_RETENTION = "confirmed_retention"
CONF_QUICK_STATUS_TIMEOUT = "quick_status_timeout"
CONF_FULL_SYNC_TIMEOUT = "full_sync_timeout"
CONF_ACTION_TIMEOUT = "action_timeout"

_SECONDS = vol.All(vol.Coerce(float), vol.Range(min=0.01, max=600.0))
_FACTOR = vol.All(vol.Coerce(float), vol.Range(min=1.0, min_included=False, max=10.0))

SYNC_OPTIONS_SCHEMA = vol.Schema(
    {
        vol.Optional(CONF_QUICK_BASE_INTERVAL, default=QUICK_BASE_INTERVAL): _SECONDS,
        vol.Optional(CONF_QUICK_MIN_INTERVAL, default=QUICK_MIN_INTERVAL): _SECONDS,
        vol.Optional(CONF_QUICK_MAX_INTERVAL, default=QUICK_MAX_INTERVAL): _SECONDS,
        vol.Optional(CONF_BACKGROUND_BASE_INTERVAL, default=BACKGROUND_BASE_INTERVAL): _SECONDS,
        vol.Optional(CONF_BACKGROUND_MIN_INTERVAL, default=BACKGROUND_MIN_INTERVAL): _SECONDS,
        vol.Optional(CONF_BACKGROUND_MAX_INTERVAL, default=BACKGROUND_MAX_INTERVAL): _SECONDS,
        vol.Optional(CONF_ERROR_MULTIPLIER, default=ERROR_MULTIPLIER): _FACTOR,
        vol.Optional(CONF_SUCCESS_DIVIDER, default=SUCCESS_DIVIDER): _FACTOR,
        vol.Optional(CONF_QUICK_MIN_REQUEST_GAP, default=QUICK_MIN_REQUEST_GAP): vol.All(
            vol.Coerce(float), vol.Range(min=0.0, max=10.0)
        ),
        vol.Optional(CONF_APP_BACKGROUND_INTERVAL, default=APP_BACKGROUND_INTERVAL): _SECONDS,
        vol.Optional(CONF_RECOVERY_THRESHOLD, default=RECOVERY_THRESHOLD): vol.All(
            vol.Coerce(int), vol.Range(min=1, max=50)
        ),
        vol.Optional(CONF_RECOVERY_BASE_DELAY, default=RECOVERY_BASE_DELAY): _SECONDS,
        vol.Optional(CONF_INDICATOR_SECONDS, default=RECONNECTING_INDICATOR_SECONDS): _SECONDS,
        vol.Optional(CONF_WARMUP_TIMEOUT, default=WARMUP_TIMEOUT): _SECONDS,
        vol.Optional(CONF_COLD_START_WIDEN_MIN, default=COLD_START_WIDEN_MIN): _SECONDS,
        vol.Optional(CONF_COLD_START_WIDEN_MAX, default=COLD_START_WIDEN_MAX): _SECONDS,
        vol.Optional(CONF_COLD_START_WIDEN_DURATION, default=COLD_START_WIDEN_DURATION): _SECONDS,
        vol.Optional(CONF_HIGH_PRIORITY_WINDOW, default=HIGH_PRIORITY_WINDOW): _SECONDS,
        vol.Optional(CONF_CONFIRMED_RETENTION, default=CONFIRMED_RETENTION_SECONDS): _SECONDS,
        vol.Optional(CONF_QUICK_STATUS_TIMEOUT, default=QUICK_STATUS_TIMEOUT): _SECONDS,
        vol.Optional(CONF_FULL_SYNC_TIMEOUT, default=FULL_SYNC_TIMEOUT): _SECONDS,
        vol.Optional(CONF_ACTION_TIMEOUT, default=ACTION_TIMEOUT): _SECONDS,
    }
)


@dataclass
class PollingConfig:
    """Interval bookkeeping for one polling cadence.

    ``current_interval`` is the only field that moves at runtime; the
    invariant ``min_interval <= current_interval <= max_interval`` is enforced
    on construction and by :meth:`clamp`.
    """

    base_interval: float
    min_interval: float
    max_interval: float
    error_multiplier: float = ERROR_MULTIPLIER
    success_divider: float = SUCCESS_DIVIDER
    current_interval: float | None = None

    def __post_init__(self) -> None:
        if self.min_interval <= 0:
            raise ValueError("min_interval must be positive")
        if self.min_interval > self.max_interval:
            raise ValueError(f"min_interval {self.min_interval} exceeds max_interval {self.max_interval}")
        if not self.min_interval <= self.base_interval <= self.max_interval:
            raise ValueError(f"base_interval {self.base_interval} outside [{self.min_interval}, {self.max_interval}]")
        if self.error_multiplier <= 1:
            raise ValueError("error_multiplier must be greater than 1")
        if self.success_divider <= 1:
            raise ValueError("success_divider must be greater than 1")
        if self.current_interval is None:
            self.current_interval = self.base_interval
        self.clamp()

    def clamp(self) -> float:
        """Pull current_interval back inside the bounds and return it."""
        self.current_interval = min(max(self.current_interval, self.min_interval), self.max_interval)
        return self.current_interval

    def copy(self) -> PollingConfig:
        return PollingConfig(
            base_interval=self.base_interval,
            min_interval=self.min_interval,
            max_interval=self.max_interval,
            error_multiplier=self.error_multiplier,
            success_divider=self.success_divider,
            current_interval=self.current_interval,
        )


@dataclass(frozen=True)
class RecoveryConfig:
    """Thresholds and delays for the recovery controller."""

    threshold: int = RECOVERY_THRESHOLD
    base_delay: float = RECOVERY_BASE_DELAY
    indicator_seconds: float = RECONNECTING_INDICATOR_SECONDS
    warmup_timeout: float = WARMUP_TIMEOUT
    widen_min: float = COLD_START_WIDEN_MIN
    widen_max: float = COLD_START_WIDEN_MAX
    widen_duration: float = COLD_START_WIDEN_DURATION


def _default_quick() -> PollingConfig:
    return PollingConfig(QUICK_BASE_INTERVAL, QUICK_MIN_INTERVAL, QUICK_MAX_INTERVAL)


def _default_background() -> PollingConfig:
    return PollingConfig(BACKGROUND_BASE_INTERVAL, BACKGROUND_MIN_INTERVAL, BACKGROUND_MAX_INTERVAL)


@dataclass(frozen=True)
class SyncConfig:
    """Complete engine configuration."""

    quick: PollingConfig = field(default_factory=_default_quick)
    background: PollingConfig = field(default_factory=_default_background)
    recovery: RecoveryConfig = field(default_factory=RecoveryConfig)
    quick_min_request_gap: float = QUICK_MIN_REQUEST_GAP
    app_background_interval: float = APP_BACKGROUND_INTERVAL
    high_priority_window: float = HIGH_PRIORITY_WINDOW
    confirmed_retention: float = CONFIRMED_RETENTION_SECONDS
    quick_status_timeout: float = QUICK_STATUS_TIMEOUT
    full_sync_timeout: float = FULL_SYNC_TIMEOUT
    action_timeout: float = ACTION_TIMEOUT

    @classmethod
    def from_options(cls, options: Mapping[str, Any] | None = None) -> SyncConfig:
        """Validate an options mapping and build the typed configuration.

        Raises:
            vol.Invalid: an option has the wrong type or is out of range.
            ValueError: the interval bounds are inconsistent.
        """
        opts = SYNC_OPTIONS_SCHEMA(dict(options or {}))
        multiplier = opts[CONF_ERROR_MULTIPLIER]
        divider = opts[CONF_SUCCESS_DIVIDER]

        quick = PollingConfig(
            base_interval=opts[CONF_QUICK_BASE_INTERVAL],
            min_interval=opts[CONF_QUICK_MIN_INTERVAL],
            max_interval=opts[CONF_QUICK_MAX_INTERVAL],
            error_multiplier=multiplier,
            success_divider=divider,
        )
        background = PollingConfig(
            base_interval=opts[CONF_BACKGROUND_BASE_INTERVAL],
            min_interval=opts[CONF_BACKGROUND_MIN_INTERVAL],
            max_interval=opts[CONF_BACKGROUND_MAX_INTERVAL],
            error_multiplier=multiplier,
            success_divider=divider,
        )
        recovery = RecoveryConfig(
            threshold=opts[CONF_RECOVERY_THRESHOLD],
            base_delay=opts[CONF_RECOVERY_BASE_DELAY],
            indicator_seconds=opts[CONF_INDICATOR_SECONDS],
            warmup_timeout=opts[CONF_WARMUP_TIMEOUT],
            widen_min=opts[CONF_COLD_START_WIDEN_MIN],
            widen_max=opts[CONF_COLD_START_WIDEN_MAX],
            widen_duration=opts[CONF_COLD_START_WIDEN_DURATION],
        )
        if recovery.widen_min > recovery.widen_max:
            raise ValueError("cold_start_widen_min exceeds cold_start_widen_max")

        return cls(
            quick=quick,
            background=background,
            recovery=recovery,
            quick_min_request_gap=opts[CONF_QUICK_MIN_REQUEST_GAP],
            app_background_interval=opts[CONF_APP_BACKGROUND_INTERVAL],
            high_priority_window=opts[CONF_HIGH_PRIORITY_WINDOW],
            confirmed_retention=opts[CONF_CONFIRMED_RETENTION],
            quick_status_timeout=opts[CONF_QUICK_STATUS_TIMEOUT],
            full_sync_timeout=opts[CONF_FULL_SYNC_TIMEOUT],
            action_timeout=opts[CONF_ACTION_TIMEOUT],
        )
