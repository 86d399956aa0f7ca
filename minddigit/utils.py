"""Shared utility functions for the MindDigit sync engine."""

from __future__ import annotations

import logging

from .api_base import MindDigitConnectionError, MindDigitServerError, MindDigitTimeoutError
from .const import COLD_START_MARKERS

_LOGGER = logging.getLogger(__name__)

_MAX_COMPACT_LENGTH = 160


def is_connection_error(err: BaseException) -> bool:
    """Check if error is a connection or timeout error (including in exception chain)."""
    if isinstance(err, MindDigitConnectionError | MindDigitTimeoutError | TimeoutError):
        return True
    # Check exception chain for wrapped connection errors
    cause = getattr(err, "__cause__", None)
    if cause and isinstance(cause, MindDigitConnectionError | MindDigitTimeoutError | TimeoutError):
        return True
    return False


def looks_like_cold_start(err: BaseException) -> bool:
    """Return True when a failure looks like a serverless backend waking up.

    A timeout qualifies, as does a 5xx whose body names an internal or
    invocation error.
    """
    if isinstance(err, MindDigitTimeoutError | TimeoutError):
        return True
    if isinstance(err, MindDigitServerError):
        body = (err.body or "").lower()
        return any(marker in body for marker in COLD_START_MARKERS)
    return False


def compact_error(err: BaseException) -> str:
    """Shorten an error for log lines so repeated failures do not flood logs."""
    if isinstance(err, MindDigitTimeoutError | TimeoutError):
        return "timeout"
    if isinstance(err, MindDigitConnectionError):
        return "server unreachable"
    if isinstance(err, MindDigitServerError):
        return f"server error {err.status}" if err.status else "server error"
    message = str(err) or type(err).__name__
    if len(message) > _MAX_COMPACT_LENGTH:
        return message[: _MAX_COMPACT_LENGTH - 3] + "..."
    return message
