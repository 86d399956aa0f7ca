"""Unit tests for the optimistic update ledger."""

from minddigit.models import GuessResult, HistoryEntry
from minddigit.optimistic import ActionKind, ActionStatus, OptimisticUpdateLedger


def _ledger(now: list[float] | None = None) -> OptimisticUpdateLedger:
    clock = now if now is not None else [0.0]
    return OptimisticUpdateLedger(retention=300.0, clock=lambda: clock[0])


class TestAddPending:
    """Test recording new actions."""

    def test_add_returns_unique_ids(self):
        ledger = _ledger()
        first = ledger.add_pending(ActionKind.GUESS, "1234")
        second = ledger.add_pending(ActionKind.GUESS, "1234")

        assert first != second
        assert len(ledger.pending_snapshot()) == 2

    def test_guess_adds_pending_line(self):
        ledger = _ledger()
        action_id = ledger.add_pending(ActionKind.GUESS, "37", actor="Alice")

        lines = ledger.optimistic_lines()

        assert len(lines) == 1
        assert lines[0].pending is True
        assert lines[0].guess_value == "37"
        assert lines[0].exact_matches is None
        assert lines[0].partial_matches is None
        assert lines[0].action_id == action_id

    def test_non_guess_actions_have_no_line(self):
        ledger = _ledger()
        ledger.add_pending(ActionKind.SET_SECRET, "1234")
        ledger.add_pending(ActionKind.SKIP_TURN)

        assert ledger.optimistic_lines() == ()


class TestConfirm:
    """Test confirmation matching."""

    def test_confirm_by_id_updates_line_in_place(self):
        """Guess "37" confirmed as 1 exact / 1 partial keeps its line."""
        ledger = _ledger()
        action_id = ledger.add_pending(ActionKind.GUESS, "37", actor="Alice")

        confirmed = ledger.confirm(action_id, GuessResult(exactMatches=1, partialMatches=1))

        assert confirmed.status is ActionStatus.CONFIRMED
        (line,) = ledger.optimistic_lines()
        assert line.action_id == action_id
        assert line.pending is False
        assert (line.exact_matches, line.partial_matches) == (1, 1)

    def test_confirm_by_match_first_pending_wins(self):
        ledger = _ledger()
        first = ledger.add_pending(ActionKind.GUESS, "1234")
        second = ledger.add_pending(ActionKind.GUESS, "1234")

        confirmed = ledger.confirm(kind=ActionKind.GUESS, payload="1234")

        assert confirmed.id == first
        assert ledger.get(second).status is ActionStatus.PENDING

    def test_unknown_echoed_id_falls_back_to_match(self):
        ledger = _ledger()
        action_id = ledger.add_pending(ActionKind.GUESS, "1234")

        confirmed = ledger.confirm("not-ours", None, kind=ActionKind.GUESS, payload="1234")

        assert confirmed.id == action_id

    def test_repeated_echoed_id_does_not_confirm_another(self):
        ledger = _ledger()
        first = ledger.add_pending(ActionKind.GUESS, "1234")
        second = ledger.add_pending(ActionKind.GUESS, "1234")
        ledger.confirm(first)

        assert ledger.confirm(first, None, kind=ActionKind.GUESS, payload="1234") is None
        assert ledger.get(second).status is ActionStatus.PENDING

    def test_confirm_is_one_way(self):
        ledger = _ledger()
        action_id = ledger.add_pending(ActionKind.GUESS, "1234")
        ledger.confirm(action_id)

        assert ledger.confirm(action_id) is None
        assert ledger.rollback(action_id) is None
        assert ledger.get(action_id).status is ActionStatus.CONFIRMED

    def test_confirm_without_match_returns_none(self):
        ledger = _ledger()
        ledger.add_pending(ActionKind.GUESS, "1234")

        assert ledger.confirm(kind=ActionKind.GUESS, payload="9999") is None


class TestRollback:
    """Test failure handling."""

    def test_rollback_removes_action_and_line(self):
        ledger = _ledger()
        action_id = ledger.add_pending(ActionKind.GUESS, "37", undo={"current_turn": "p-alice"})

        failed = ledger.rollback(action_id)

        assert failed.status is ActionStatus.FAILED
        assert failed.undo == {"current_turn": "p-alice"}
        assert ledger.get(action_id) is None
        assert ledger.optimistic_lines() == ()

    def test_rollback_twice_is_noop(self):
        ledger = _ledger()
        action_id = ledger.add_pending(ActionKind.SKIP_TURN)
        ledger.rollback(action_id)

        assert ledger.rollback(action_id) is None


class TestRetention:
    """Test purging confirmed actions."""

    def test_confirmed_actions_purged_after_retention(self):
        now = [0.0]
        ledger = _ledger(now)
        action_id = ledger.add_pending(ActionKind.GUESS, "1234")
        ledger.confirm(action_id)

        now[0] = 299.0
        assert ledger.purge_expired() == 0
        now[0] = 300.0
        assert ledger.purge_expired() == 1
        assert len(ledger) == 0

    def test_pending_actions_never_purged(self):
        now = [0.0]
        ledger = _ledger(now)
        ledger.add_pending(ActionKind.GUESS, "1234")

        now[0] = 10_000.0

        assert ledger.purge_expired() == 0
        assert ledger.has_pending(ActionKind.GUESS)


class TestAbsorb:
    """Test replacing optimistic lines with server entries."""

    def test_absorb_drops_line(self):
        ledger = _ledger()
        action_id = ledger.add_pending(ActionKind.GUESS, "37", actor="Alice")
        ledger.confirm(action_id, GuessResult(exactMatches=1, partialMatches=1))

        entry = HistoryEntry(actor="Alice", guess_value="37", exact_matches=1, partial_matches=1, timestamp="t1")
        absorbed = ledger.absorb(entry, "Alice")

        assert absorbed.id == action_id
        assert ledger.optimistic_lines() == ()

    def test_absorb_ignores_other_players(self):
        ledger = _ledger()
        ledger.add_pending(ActionKind.GUESS, "37", actor="Alice")

        entry = HistoryEntry(actor="Bob", guess_value="37", timestamp="t1")

        assert ledger.absorb(entry, "Alice") is None
        assert len(ledger.optimistic_lines()) == 1

    def test_absorb_only_once_per_action(self):
        ledger = _ledger()
        ledger.add_pending(ActionKind.GUESS, "37", actor="Alice")
        entry = HistoryEntry(actor="Alice", guess_value="37", timestamp="t1")

        assert ledger.absorb(entry, "Alice") is not None
        assert ledger.absorb(entry, "Alice") is None
