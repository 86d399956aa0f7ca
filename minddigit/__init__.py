"""MindDigit client-side sync engine.

Keeps a two-player guessing game in sync with its HTTP/JSON server using
adaptive polling, optimistic updates and snapshot-based recovery.
"""

from __future__ import annotations

from .api import (
    MindDigitActionError,
    MindDigitClient,
    MindDigitConnectionError,
    MindDigitError,
    MindDigitInvalidDataError,
    MindDigitRequestError,
    MindDigitResponseError,
    MindDigitServerError,
    MindDigitTimeoutError,
)
from .config import PollingConfig, RecoveryConfig, SyncConfig
from .const import VERSION
from .coordinator import HistoryUpdate, SyncOrchestrator, SyncState
from .models import GameState, HistoryEntry, HistoryLine, RoomSession, SyncSnapshot
from .network_health import ConnectionQuality, HealthSample
from .optimistic import ActionKind, ActionStatus, PendingAction
from .recovery import RecoveryState

__version__ = VERSION

__all__ = [
    "ActionKind",
    "ActionStatus",
    "ConnectionQuality",
    "GameState",
    "HealthSample",
    "HistoryEntry",
    "HistoryLine",
    "HistoryUpdate",
    "MindDigitActionError",
    "MindDigitClient",
    "MindDigitConnectionError",
    "MindDigitError",
    "MindDigitInvalidDataError",
    "MindDigitRequestError",
    "MindDigitResponseError",
    "MindDigitServerError",
    "MindDigitTimeoutError",
    "PendingAction",
    "PollingConfig",
    "RecoveryConfig",
    "RecoveryState",
    "RoomSession",
    "SyncConfig",
    "SyncOrchestrator",
    "SyncSnapshot",
    "SyncState",
]
