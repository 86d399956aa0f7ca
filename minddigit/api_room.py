"""Room-level helpers for the MindDigit HTTP client.

Joining, leaving and the two status reads. All networking is provided by the
base client (``api_base.MindDigitClient``).
"""

from __future__ import annotations

from typing import Any

from .const import (
    API_ENDPOINT_HEALTH,
    API_ENDPOINT_JOIN,
    API_ENDPOINT_LEAVE,
    API_ENDPOINT_QUICK_STATUS,
    API_ENDPOINT_STATUS,
    KEY_PLAYER_ID,
    KEY_ROOM_ID,
)
from .models import JoinResponse, RoomStatusResponse


class RoomAPI:  # mixin – must appear *before* the base client in MRO
    """Room membership and status reads."""

    # The mixin relies on the base client providing `_request`, `_ensure_success` and `_parse`.

    async def join_room(self, player_name: str, *, timeout: float | None = None) -> JoinResponse:
        """Join (or create) a room and return the assigned identifiers."""
        payload = await self._request(  # type: ignore[attr-defined]
            API_ENDPOINT_JOIN, "POST", json_body={"playerName": player_name}, timeout=timeout
        )
        self._ensure_success(payload, API_ENDPOINT_JOIN)  # type: ignore[attr-defined]
        return self._parse(JoinResponse, payload, API_ENDPOINT_JOIN)  # type: ignore[attr-defined]

    async def get_room_status(
        self,
        room_id: str,
        player_id: str,
        *,
        timeout: float | None = None,
        conditional: bool = True,
    ) -> RoomStatusResponse | None:
        """Return the full room snapshot, or None when unchanged since the last read."""
        payload = await self._request(  # type: ignore[attr-defined]
            API_ENDPOINT_STATUS,
            params={KEY_ROOM_ID: room_id, KEY_PLAYER_ID: player_id},
            timeout=timeout,
            conditional=conditional,
        )
        if payload is None:
            return None
        self._ensure_success(payload, API_ENDPOINT_STATUS)  # type: ignore[attr-defined]
        return self._parse(RoomStatusResponse, payload, API_ENDPOINT_STATUS)  # type: ignore[attr-defined]

    async def get_quick_status(
        self, room_id: str, player_id: str, *, timeout: float | None = None
    ) -> RoomStatusResponse:
        """Return the cheap turn/state/historyCount view of the room."""
        payload = await self._request(  # type: ignore[attr-defined]
            API_ENDPOINT_QUICK_STATUS,
            params={KEY_ROOM_ID: room_id, KEY_PLAYER_ID: player_id},
            timeout=timeout,
        )
        self._ensure_success(payload, API_ENDPOINT_QUICK_STATUS)  # type: ignore[attr-defined]
        return self._parse(RoomStatusResponse, payload, API_ENDPOINT_QUICK_STATUS)  # type: ignore[attr-defined]

    async def leave_room(self, room_id: str, player_id: str, *, timeout: float | None = None) -> None:
        """Tell the server the player left. The answer is not inspected."""
        await self._request(  # type: ignore[attr-defined]
            API_ENDPOINT_LEAVE,
            "POST",
            json_body={KEY_ROOM_ID: room_id, KEY_PLAYER_ID: player_id},
            timeout=timeout,
        )

    async def check_health(self, *, timeout: float | None = None) -> dict[str, Any]:
        """Hit the liveness endpoint; used to warm up a cold server."""
        return await self._request(API_ENDPOINT_HEALTH, timeout=timeout) or {}  # type: ignore[attr-defined]
