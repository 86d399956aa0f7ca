"""MindDigit API modular façade.

Keeps the public import path (``minddigit.api.MindDigitClient``) stable while
endpoint helpers live in small ``api_*`` mixins on top of the transport in
``api_base.py``.
"""

from __future__ import annotations

from .api_base import (
    MindDigitActionError,
    MindDigitConnectionError,
    MindDigitError,
    MindDigitInvalidDataError,
    MindDigitRequestError,
    MindDigitResponseError,
    MindDigitServerError,
    MindDigitTimeoutError,
)
from .api_base import (
    MindDigitClient as _BaseClient,
)
from .api_game import GameAPI
from .api_room import RoomAPI


# Order is important: mixins first, base client last so its `__init__` is
# called exactly once via Python's MRO.
class MindDigitClient(RoomAPI, GameAPI, _BaseClient):
    """Aggregated MindDigit HTTP API client."""

    # No additional code – all behaviour lives in the mixins or the base client.


__all__ = [
    "MindDigitClient",
    "MindDigitError",
    "MindDigitRequestError",
    "MindDigitResponseError",
    "MindDigitTimeoutError",
    "MindDigitConnectionError",
    "MindDigitServerError",
    "MindDigitInvalidDataError",
    "MindDigitActionError",
]
