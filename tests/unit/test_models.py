"""Unit tests for the payload models."""

import pytest
from pydantic import ValidationError

from minddigit.models import (
    GameState,
    GuessResponse,
    HistoryEntry,
    HistoryLine,
    JoinResponse,
    PlayerInfo,
    RoomSession,
    RoomStatusResponse,
)


class TestGameState:
    """Test server state mapping."""

    @pytest.mark.parametrize(
        ("server", "expected"),
        [
            ("WAITING", GameState.WAITING),
            ("DIGIT_SELECTION", GameState.DIGIT_SELECTION),
            ("SECRET_SETTING", GameState.SECRET_SETTING),
            ("PLAYING", GameState.ACTIVE),
            ("ACTIVE", GameState.ACTIVE),
            ("playing", GameState.ACTIVE),
            ("FINISHED", GameState.FINISHED),
            ("WINNER_ANNOUNCED", GameState.FINISHED),
            ("CONTINUE_GUESSING", GameState.CONTINUE_GUESSING),
        ],
    )
    def test_known_states(self, server, expected):
        assert GameState.from_server(server) is expected

    @pytest.mark.parametrize("server", [None, "", "PAUSED"])
    def test_unknown_states(self, server):
        assert GameState.from_server(server) is None


class TestPayloadParsing:
    """Test aliases and forward compatibility."""

    def test_player_name_aliases(self):
        assert PlayerInfo.model_validate({"id": "p1", "playerName": "Alice"}).name == "Alice"
        assert PlayerInfo.model_validate({"id": "p1", "name": "Alice"}).name == "Alice"

    def test_unknown_keys_kept(self):
        status = RoomStatusResponse.model_validate({"room": {"gameState": "WAITING", "roundStartedAt": 5}})
        assert status.room.model_extra == {"roundStartedAt": 5}

    def test_join_defaults(self):
        join = JoinResponse.model_validate({"roomId": "r1", "playerId": "p1"})
        assert join.position == 1
        assert join.game_state == "WAITING"
        assert join.fallback_mode is False

    def test_join_requires_identifiers(self):
        with pytest.raises(ValidationError):
            JoinResponse.model_validate({"roomId": "r1"})

    def test_guess_result_legacy_keys(self):
        response = GuessResponse.model_validate(
            {"result": {"bulls": 4, "cows": 0, "isCorrect": True}, "winner": {"playerId": "p1"}}
        )
        assert response.result.exact_matches == 4
        assert response.result.is_winning is True
        assert response.winner.player_id == "p1"


class TestHistoryEntry:
    """Test the immutable history record."""

    def test_numeric_values_become_strings(self):
        entry = HistoryEntry.model_validate({"playerName": "Bob", "guess": 1234, "timestamp": 1714557600})
        assert entry.guess_value == "1234"
        assert entry.timestamp == "1714557600"

    def test_identity(self):
        entry = HistoryEntry(actor="Bob", guess_value="1234", timestamp="t1")
        assert entry.identity == ("Bob", "1234", "t1")

    def test_frozen(self):
        entry = HistoryEntry(actor="Bob", guess_value="1234", timestamp="t1")
        with pytest.raises(ValidationError):
            entry.actor = "Eve"

    def test_history_line_from_entry(self):
        entry = HistoryEntry(actor="Bob", guess_value="1234", exact_matches=2, partial_matches=1, timestamp="t1")
        line = HistoryLine.from_entry(entry)
        assert line == HistoryLine("Bob", "1234", 2, 1, "t1")
        assert line.pending is False


class TestRoomSession:
    """Test the local session record."""

    def test_is_my_turn(self):
        session = RoomSession(room_id="r1", player_id="p1", current_turn="p1")
        assert session.is_my_turn
        session.current_turn = "p2"
        assert not session.is_my_turn

    def test_no_turn_known(self):
        assert not RoomSession(room_id="r1", player_id="p1").is_my_turn
