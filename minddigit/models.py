"""Typed Pydantic models for MindDigit API payloads.

- Only fields currently used by the sync engine are included.
- Field aliases match the server payload keys for seamless parsing; older
  server builds use ``bulls``/``cows`` and ``playerName``/``guess`` so those
  keys are accepted as well.
- Models allow unknown keys for forward compatibility.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .const import (
    SERVER_STATE_ACTIVE,
    SERVER_STATE_CONTINUE_GUESSING,
    SERVER_STATE_DIGIT_SELECTION,
    SERVER_STATE_FINISHED,
    SERVER_STATE_PLAYING,
    SERVER_STATE_SECRET_SETTING,
    SERVER_STATE_WAITING,
    SERVER_STATE_WINNER_ANNOUNCED,
)

_LOGGER = logging.getLogger(__name__)

__all__ = [
    "ActionResponse",
    "GameState",
    "GuessResponse",
    "GuessResult",
    "HistoryEntry",
    "HistoryLine",
    "HistoryResponse",
    "JoinResponse",
    "PlayerInfo",
    "RoomInfo",
    "RoomSession",
    "RoomStatusResponse",
    "SyncSnapshot",
    "ValidationInfo",
    "WinnerInfo",
]


class GameState(str, Enum):
    """Client-side game lifecycle."""

    WAITING = "waiting"
    DIGIT_SELECTION = "digit-selection"
    SECRET_SETTING = "secret-setting"
    ACTIVE = "active"
    FINISHED = "finished"
    CONTINUE_GUESSING = "continue-guessing"  # terminal, local-only mode

    @classmethod
    def from_server(cls, value: str | None) -> GameState | None:
        """Map a server game-state string, or return None when unknown."""
        if not value:
            return None
        mapped = _SERVER_STATE_MAP.get(value.upper())
        if mapped is None:
            _LOGGER.debug("Unknown server game state %r", value)
        return mapped


_SERVER_STATE_MAP: dict[str, GameState] = {
    SERVER_STATE_WAITING: GameState.WAITING,
    SERVER_STATE_DIGIT_SELECTION: GameState.DIGIT_SELECTION,
    SERVER_STATE_SECRET_SETTING: GameState.SECRET_SETTING,
    SERVER_STATE_PLAYING: GameState.ACTIVE,
    SERVER_STATE_ACTIVE: GameState.ACTIVE,
    SERVER_STATE_FINISHED: GameState.FINISHED,
    SERVER_STATE_WINNER_ANNOUNCED: GameState.FINISHED,
    SERVER_STATE_CONTINUE_GUESSING: GameState.CONTINUE_GUESSING,
}


class _MindDigitBase(BaseModel):
    """Base class with permissive extra handling for future-proofing."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class PlayerInfo(_MindDigitBase):
    """One entry of ``room.players``."""

    id: str
    name: str | None = Field(None, validation_alias=AliasChoices("name", "playerName"))
    position: int | None = None
    selected_digits: int | None = Field(None, alias="selectedDigits")
    secret: str | None = None
    has_secret: bool | None = Field(None, alias="hasSecret")


class RoomInfo(_MindDigitBase):
    """The ``room`` object of status and quick-status responses."""

    id: str | None = None
    game_state: str | None = Field(None, alias="gameState")
    players: list[PlayerInfo] = Field(default_factory=list)
    current_turn: str | None = Field(None, alias="currentTurn")
    history_count: int | None = Field(None, alias="historyCount")
    current_player_count: int | None = Field(None, alias="currentPlayerCount")


class ValidationInfo(_MindDigitBase):
    """Server-side consistency report attached to some status responses."""

    valid: bool = True
    reason: str | None = None


class RoomStatusResponse(_MindDigitBase):
    """``GET /room/status`` and ``GET /room/quick-status``."""

    success: bool = True
    room: RoomInfo
    validation: ValidationInfo | None = None
    suggestion: str | None = None
    next_action: str | None = Field(None, alias="nextAction")
    server_time: float | None = Field(None, alias="serverTime")
    recovery: bool = False
    mode: str | None = None


class JoinResponse(_MindDigitBase):
    """``POST /room/join``."""

    room_id: str = Field(alias="roomId")
    player_id: str = Field(alias="playerId")
    position: int = 1
    game_state: str = Field("WAITING", alias="gameState")
    digits: int | None = None
    fallback_mode: bool = Field(False, alias="fallbackMode")
    mode: str | None = None


class WinnerInfo(_MindDigitBase):
    player_id: str | None = Field(None, alias="playerId")
    player_name: str | None = Field(None, alias="playerName")


class GuessResult(_MindDigitBase):
    """Authoritative result of one guess."""

    exact_matches: int = Field(0, validation_alias=AliasChoices("exactMatches", "exact_matches", "bulls"))
    partial_matches: int = Field(0, validation_alias=AliasChoices("partialMatches", "partial_matches", "cows"))
    is_winning: bool = Field(False, validation_alias=AliasChoices("isWinning", "is_winning", "isCorrect"))


class GuessResponse(_MindDigitBase):
    """``POST /game/guess``."""

    success: bool = True
    result: GuessResult | None = None
    current_turn: str | None = Field(None, alias="currentTurn")
    game_state: str | None = Field(None, alias="gameState")
    winner: WinnerInfo | None = None
    client_action_id: str | None = Field(None, alias="clientActionId")


class ActionResponse(_MindDigitBase):
    """Generic response for set-secret, select-digits and skip-turn."""

    success: bool = True
    game_state: str | None = Field(None, alias="gameState")
    message: str | None = None
    next_player: str | None = Field(None, alias="nextPlayer")
    client_action_id: str | None = Field(None, alias="clientActionId")


class HistoryEntry(BaseModel):
    """One recorded move. Immutable; identity is ``(actor, guess_value, timestamp)``."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    actor: str = Field(validation_alias=AliasChoices("actor", "playerName", "player"))
    guess_value: str = Field(validation_alias=AliasChoices("guessValue", "guess_value", "guess"))
    exact_matches: int = Field(0, validation_alias=AliasChoices("exactMatches", "exact_matches", "bulls"))
    partial_matches: int = Field(0, validation_alias=AliasChoices("partialMatches", "partial_matches", "cows"))
    timestamp: str = ""

    @field_validator("guess_value", "timestamp", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        # Servers send numeric guesses/timestamps as numbers on some paths
        if isinstance(value, int | float) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def identity(self) -> tuple[str, str, str]:
        return (self.actor, self.guess_value, self.timestamp)


class HistoryResponse(_MindDigitBase):
    """``GET /game/history``."""

    success: bool = True
    history: list[HistoryEntry] = Field(default_factory=list)
    winner: WinnerInfo | None = None


class SyncSnapshot(BaseModel):
    """Last-known-good full server response, used for recovery display."""

    model_config = ConfigDict(frozen=True)

    room: RoomInfo
    history: tuple[HistoryEntry, ...] = ()
    winner: WinnerInfo | None = None
    captured_at: float = 0.0


@dataclass(frozen=True)
class HistoryLine:
    """A rendered history row: a server entry or an optimistic guess."""

    actor: str
    guess_value: str
    exact_matches: int | None
    partial_matches: int | None
    timestamp: str = ""
    pending: bool = False
    action_id: str | None = None

    @classmethod
    def from_entry(cls, entry: HistoryEntry) -> HistoryLine:
        return cls(
            actor=entry.actor,
            guess_value=entry.guess_value,
            exact_matches=entry.exact_matches,
            partial_matches=entry.partial_matches,
            timestamp=entry.timestamp,
        )


@dataclass
class RoomSession:
    """Identity and coarse state of the room the local player is in."""

    room_id: str
    player_id: str
    player_name: str = ""
    position: int = 1
    digits_expected: int | None = None
    current_turn: str | None = None
    game_state: GameState = GameState.WAITING
    secret: str = ""
    generation: int = 0

    @property
    def is_my_turn(self) -> bool:
        return self.current_turn is not None and self.current_turn == self.player_id
