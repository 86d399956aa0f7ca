"""Provide diagnostics for the MindDigit sync engine."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import asdict
from importlib import metadata
from typing import TYPE_CHECKING, Any

from .const import VERSION

if TYPE_CHECKING:
    from .coordinator import SyncOrchestrator

_LOGGER = logging.getLogger(__name__)

REDACTED = "**REDACTED**"

# Sensitive data to redact from diagnostics
TO_REDACT = [
    "player_id",
    "playerId",
    "secret",
    "current_turn",
]


def _get_aiohttp_version() -> str:
    try:
        return metadata.version("aiohttp")
    except metadata.PackageNotFoundError:
        return "unknown"


def redact_data(data: Any, to_redact: Iterable[str] = TO_REDACT) -> Any:
    """Return a copy of *data* with sensitive keys replaced, recursing into containers."""
    keys = set(to_redact)
    if isinstance(data, Mapping):
        return {
            key: (REDACTED if key in keys and value not in (None, "") else redact_data(value, keys))
            for key, value in data.items()
        }
    if isinstance(data, list | tuple):
        return [redact_data(item, keys) for item in data]
    return data


def get_sync_diagnostics(engine: SyncOrchestrator) -> dict[str, Any]:
    """Get a redacted picture of the engine for bug reports."""
    session = engine.session
    ledger_actions = engine.ledger.snapshot()

    diagnostics = {
        "version": VERSION,
        "aiohttp_version": _get_aiohttp_version(),
        "base_url": engine.client.base_url,
        "session": asdict(session) if session is not None else None,
        "modes": {
            "continue_guessing": engine.continue_guessing,
            "app_background": engine.in_background,
        },
        "polling": {
            "quick": engine.quick_poller.get_diagnostics(),
            "background": engine.background_poller.get_diagnostics(),
        },
        "health": {
            **asdict(engine.health),
            "connection_quality": engine.connection_quality.value,
        },
        "recovery": engine.recovery.get_diagnostics(),
        "ledger": {
            "total": len(ledger_actions),
            "pending": sum(1 for action in ledger_actions if not action.is_terminal),
            "kinds": sorted({action.kind.value for action in ledger_actions}),
        },
        "history": {
            "displayed": len(engine.history),
            "signature": engine.history.signature,
            "full_rebuild_pending": engine.history.full_rebuild_pending,
        },
        "prioritizer": {
            "window_open": engine.prioritizer.window_open,
            "queued": engine.prioritizer.queued,
        },
        "snapshot_captured_at": engine.snapshot.captured_at if engine.snapshot is not None else None,
    }
    return redact_data(diagnostics)
