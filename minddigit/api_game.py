"""Game-action helpers for the MindDigit HTTP client.

Every POST carries ``roomId``, ``playerId`` and, when the caller has one, the
``clientActionId`` idempotency key so the server can echo it back.
"""

from __future__ import annotations

from typing import Any

from .const import (
    API_ENDPOINT_GUESS,
    API_ENDPOINT_HISTORY,
    API_ENDPOINT_SELECT_DIGITS,
    API_ENDPOINT_SET_SECRET,
    API_ENDPOINT_SKIP_TURN,
    KEY_CLIENT_ACTION_ID,
    KEY_PLAYER_ID,
    KEY_ROOM_ID,
)
from .models import ActionResponse, GuessResponse, HistoryResponse


def _action_body(room_id: str, player_id: str, action_id: str | None, **fields: Any) -> dict[str, Any]:
    body: dict[str, Any] = {KEY_ROOM_ID: room_id, KEY_PLAYER_ID: player_id, **fields}
    if action_id:
        body[KEY_CLIENT_ACTION_ID] = action_id
    return body


class GameAPI:  # mixin – must appear *before* the base client in MRO
    """Secret, digit selection, guessing, skipping and history."""

    async def set_secret(
        self,
        room_id: str,
        player_id: str,
        secret: str,
        *,
        action_id: str | None = None,
        timeout: float | None = None,
    ) -> ActionResponse:
        payload = await self._request(  # type: ignore[attr-defined]
            API_ENDPOINT_SET_SECRET,
            "POST",
            json_body=_action_body(room_id, player_id, action_id, secret=secret),
            timeout=timeout,
        )
        self._ensure_success(payload, API_ENDPOINT_SET_SECRET)  # type: ignore[attr-defined]
        return self._parse(ActionResponse, payload, API_ENDPOINT_SET_SECRET)  # type: ignore[attr-defined]

    async def select_digits(
        self,
        room_id: str,
        player_id: str,
        digits: int,
        *,
        action_id: str | None = None,
        timeout: float | None = None,
    ) -> ActionResponse:
        """Choose the digit count, which starts the game."""
        payload = await self._request(  # type: ignore[attr-defined]
            API_ENDPOINT_SELECT_DIGITS,
            "POST",
            json_body=_action_body(room_id, player_id, action_id, digit=digits),
            timeout=timeout,
        )
        self._ensure_success(payload, API_ENDPOINT_SELECT_DIGITS)  # type: ignore[attr-defined]
        return self._parse(ActionResponse, payload, API_ENDPOINT_SELECT_DIGITS)  # type: ignore[attr-defined]

    async def submit_guess(
        self,
        room_id: str,
        player_id: str,
        guess: str,
        *,
        action_id: str | None = None,
        timeout: float | None = None,
    ) -> GuessResponse:
        """Submit a guess and return the authoritative exact/partial counts."""
        payload = await self._request(  # type: ignore[attr-defined]
            API_ENDPOINT_GUESS,
            "POST",
            json_body=_action_body(room_id, player_id, action_id, guess=guess),
            timeout=timeout,
        )
        self._ensure_success(payload, API_ENDPOINT_GUESS)  # type: ignore[attr-defined]
        return self._parse(GuessResponse, payload, API_ENDPOINT_GUESS)  # type: ignore[attr-defined]

    async def skip_turn(
        self,
        room_id: str,
        player_id: str,
        *,
        action_id: str | None = None,
        timeout: float | None = None,
    ) -> ActionResponse:
        payload = await self._request(  # type: ignore[attr-defined]
            API_ENDPOINT_SKIP_TURN,
            "POST",
            json_body=_action_body(room_id, player_id, action_id),
            timeout=timeout,
        )
        self._ensure_success(payload, API_ENDPOINT_SKIP_TURN)  # type: ignore[attr-defined]
        return self._parse(ActionResponse, payload, API_ENDPOINT_SKIP_TURN)  # type: ignore[attr-defined]

    async def get_history(self, room_id: str, player_id: str, *, timeout: float | None = None) -> HistoryResponse:
        payload = await self._request(  # type: ignore[attr-defined]
            API_ENDPOINT_HISTORY,
            params={KEY_ROOM_ID: room_id, KEY_PLAYER_ID: player_id},
            timeout=timeout,
        )
        self._ensure_success(payload, API_ENDPOINT_HISTORY)  # type: ignore[attr-defined]
        return self._parse(HistoryResponse, payload, API_ENDPOINT_HISTORY)  # type: ignore[attr-defined]
