"""Constants for the MindDigit sync engine.

This module defines the constants used throughout the package, including
API endpoints, server game-state strings, polling defaults and recovery
thresholds.

API Endpoints:
    - Room endpoints (join, status, quick status)
    - Game endpoints (secret, digits, guess, history, skip, leave)
    - Liveness endpoint used for cold-start warm-up

Defaults:
    - Fast path ("quick status") polling
    - Background path ("full sync") polling
    - Recovery, warm-up and prioritisation timings
"""

from __future__ import annotations

from typing import Final

NAME = "MindDigit"
VERSION = "0.3.0"

DEFAULT_BASE_URL = "https://minddigit-server.vercel.app"

# -----------------------------------------------------------------------------
# API endpoints
# -----------------------------------------------------------------------------
API_ENDPOINT_JOIN = "/room/join"
API_ENDPOINT_STATUS = "/room/status"
API_ENDPOINT_QUICK_STATUS = "/room/quick-status"
API_ENDPOINT_SET_SECRET = "/game/set-secret"
API_ENDPOINT_SELECT_DIGITS = "/game/select-digits"
API_ENDPOINT_GUESS = "/game/guess"
API_ENDPOINT_HISTORY = "/game/history"
API_ENDPOINT_SKIP_TURN = "/game/skip-turn"
API_ENDPOINT_LEAVE = "/game/leave"
API_ENDPOINT_HEALTH = "/health"

# Request/response keys
KEY_ROOM_ID = "roomId"
KEY_PLAYER_ID = "playerId"
KEY_CLIENT_ACTION_ID = "clientActionId"

# Server game-state strings
SERVER_STATE_WAITING = "WAITING"
SERVER_STATE_DIGIT_SELECTION = "DIGIT_SELECTION"
SERVER_STATE_SECRET_SETTING = "SECRET_SETTING"
SERVER_STATE_PLAYING = "PLAYING"
SERVER_STATE_ACTIVE = "ACTIVE"
SERVER_STATE_FINISHED = "FINISHED"
SERVER_STATE_WINNER_ANNOUNCED = "WINNER_ANNOUNCED"
SERVER_STATE_CONTINUE_GUESSING = "CONTINUE_GUESSING"

# -----------------------------------------------------------------------------
# Transport defaults
# -----------------------------------------------------------------------------
DEFAULT_TIMEOUT = 5  # seconds
DEFAULT_RETRY_COUNT = 1  # the scheduler owns retries; the client tries once
QUICK_STATUS_TIMEOUT = 3.0
FULL_SYNC_TIMEOUT = 5.0
ACTION_TIMEOUT = 5.0
WARMUP_TIMEOUT = 20.0

# -----------------------------------------------------------------------------
# Polling defaults (seconds)
# -----------------------------------------------------------------------------
QUICK_BASE_INTERVAL = 0.5
QUICK_MIN_INTERVAL = 0.2
QUICK_MAX_INTERVAL = 5.0
BACKGROUND_BASE_INTERVAL = 3.0
BACKGROUND_MIN_INTERVAL = 2.0
BACKGROUND_MAX_INTERVAL = 10.0
ERROR_MULTIPLIER = 1.5
SUCCESS_DIVIDER = 1.2
QUICK_MIN_REQUEST_GAP = 0.1  # 100ms rate limit between quick-status requests
APP_BACKGROUND_INTERVAL = 10.0

# Background path scaling for long matches: (history length threshold, factor)
HISTORY_LOAD_STEPS: Final[tuple[tuple[int, float], ...]] = (
    (20, 1.5),
    (40, 2.0),
)

# -----------------------------------------------------------------------------
# Health / connection quality
# -----------------------------------------------------------------------------
LATENCY_EWMA_WEIGHT = 0.2
QUALITY_POOR_CONSECUTIVE_ERRORS = 5
QUALITY_FAIR_SUCCESS_RATE = 0.7
QUALITY_FAIR_LATENCY_MS = 3000.0
QUALITY_GOOD_SUCCESS_RATE = 0.9
QUALITY_GOOD_LATENCY_MS = 1000.0

# Logging escalation (mirrors transport noise throttling)
FAILURE_WARNING_THRESHOLD = 3
FAILURE_ERROR_THRESHOLD = 5

# -----------------------------------------------------------------------------
# Recovery
# -----------------------------------------------------------------------------
RECOVERY_THRESHOLD = 3
RECOVERY_BASE_DELAY = 5.0
RECONNECTING_INDICATOR_SECONDS = 3.0
COLD_START_WIDEN_MIN = 2.0
COLD_START_WIDEN_MAX = 5.0
COLD_START_WIDEN_DURATION = 30.0
COLD_START_MARKERS: Final[tuple[str, ...]] = (
    "internal server error",
    "internal error",
    "function_invocation_failed",
    "function_invocation_timeout",
    "service unavailable",
    "bad gateway",
)

# -----------------------------------------------------------------------------
# Optimistic updates / prioritisation
# -----------------------------------------------------------------------------
CONFIRMED_RETENTION_SECONDS = 300.0  # 5 minutes
HIGH_PRIORITY_WINDOW = 0.5

HEADERS: Final[dict[str, str]] = {
    "Content-Type": "application/json",
    "Cache-Control": "no-cache",
}
