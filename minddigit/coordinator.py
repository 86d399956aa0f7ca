"""MindDigit sync orchestrator.

Glue between the HTTP client and the presentation layer. Owns the room
session, both polling cadences, the optimistic ledger, the history
reconciler and recovery, and publishes an immutable :class:`SyncState` to
listeners after every change.

Everything runs on one asyncio event loop: timers are ``call_later``
handles, network calls are tasks and results are applied on the loop, so no
locks are needed. Each session carries a generation number; responses that
arrive after the session was torn down are discarded.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from typing import Any

from .adaptive_polling import AdaptivePollingScheduler, history_load_factor
from .api import MindDigitActionError, MindDigitClient, MindDigitError, MindDigitResponseError
from .config import SyncConfig
from .history import HistoryReconciler
from .models import (
    GameState,
    GuessResult,
    HistoryLine,
    HistoryResponse,
    PlayerInfo,
    RoomInfo,
    RoomSession,
    RoomStatusResponse,
    SyncSnapshot,
    WinnerInfo,
)
from .network_health import ConnectionQuality, HealthSample, NetworkHealthTracker
from .optimistic import ActionKind, OptimisticUpdateLedger, PendingAction
from .prioritizer import Priority, RequestPrioritizer
from .recovery import RecoveryController, RecoveryState
from .utils import compact_error, is_connection_error

_LOGGER = logging.getLogger(__name__)

StateListener = Callable[["SyncState"], None]

# Server turns naming the local player are stale while one of these is pending
_TURN_FLIPPING_ACTIONS = (ActionKind.GUESS, ActionKind.SKIP_TURN)


@dataclass(frozen=True)
class HistoryUpdate:
    """What changed in the displayed history on the latest apply."""

    full: bool
    new_lines: tuple[HistoryLine, ...] = ()


@dataclass(frozen=True)
class SyncState:
    """The single immutable object observers read."""

    room_id: str | None = None
    player_id: str | None = None
    player_name: str = ""
    game_state: GameState | None = None
    current_turn: str | None = None
    is_my_turn: bool = False
    players: tuple[PlayerInfo, ...] = ()
    digits_expected: int | None = None
    has_secret: bool = False
    history: tuple[HistoryLine, ...] = ()
    history_update: HistoryUpdate | None = None
    history_count: int = 0
    pending_actions: tuple[PendingAction, ...] = ()
    winner: WinnerInfo | None = None
    recovery_state: RecoveryState = RecoveryState.NORMAL
    reconnecting: bool = False
    from_snapshot: bool = False
    connection_quality: ConnectionQuality = ConnectionQuality.EXCELLENT
    health: HealthSample = field(default_factory=HealthSample)
    validation_message: str | None = None

    @property
    def in_room(self) -> bool:
        return self.room_id is not None


def _action_message(err: MindDigitError) -> str:
    """Turn a client error into the message shown to the player."""
    if isinstance(err, MindDigitResponseError):
        return err.message
    if is_connection_error(err):
        return "could not reach the game server"
    return compact_error(err)


class SyncOrchestrator:
    """Keep a room's displayed state in sync with the server."""

    def __init__(
        self,
        client: MindDigitClient | None = None,
        config: SyncConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or SyncConfig()
        self.client = client or MindDigitClient()
        self._owns_client = client is None
        self._clock = clock

        self._health = NetworkHealthTracker()
        self.ledger = OptimisticUpdateLedger(self.config.confirmed_retention, clock=clock)
        self.history = HistoryReconciler()
        self.prioritizer = RequestPrioritizer(self.config.high_priority_window)
        self.quick_poller = AdaptivePollingScheduler(
            "Quick status",
            self.config.quick,
            min_request_gap=self.config.quick_min_request_gap,
            health=self._health,
            clock=clock,
        )
        self.background_poller = AdaptivePollingScheduler(
            "Full sync",
            self.config.background,
            load_factor=self._history_load_factor,
            health=self._health,
            clock=clock,
        )
        self.recovery = RecoveryController(
            self.config.recovery,
            health=self._health,
            snapshot_provider=lambda: self._snapshot,
            on_enter=self._on_recovery_enter,
            on_show_snapshot=self._on_show_snapshot,
            on_indicator=self._on_indicator,
            on_resume=self._on_recovery_resume,
            warmup=self._warm_up,
            load_factor=self._history_load_factor,
        )
        self.quick_poller.on_tick(self._on_quick_tick)
        self.background_poller.on_tick(self._on_background_tick)

        self._session: RoomSession | None = None
        self._generation = 0
        self._state = SyncState()
        self._listeners: list[StateListener] = []
        self._tasks: set[asyncio.Task] = set()
        self._leave_tasks: set[asyncio.Task] = set()
        self._reset_session_state()

    def _reset_session_state(self) -> None:
        self._snapshot: SyncSnapshot | None = None
        self._players: tuple[PlayerInfo, ...] = ()
        self._winner: WinnerInfo | None = None
        self._validation_message: str | None = None
        self._server_history_count = 0
        self._from_snapshot = False
        self._continue_guessing = False
        self._in_background = False
        self._quick_in_flight = False
        self._full_sync: asyncio.Future | None = None
        self._last_update: HistoryUpdate | None = None

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def session(self) -> RoomSession | None:
        return self._session

    @property
    def pending_actions(self) -> tuple[PendingAction, ...]:
        return self.ledger.pending_snapshot()

    @property
    def health(self) -> HealthSample:
        return self._health.current_health()

    @property
    def connection_quality(self) -> ConnectionQuality:
        return self._health.connection_quality()

    @property
    def snapshot(self) -> SyncSnapshot | None:
        return self._snapshot

    @property
    def in_background(self) -> bool:
        return self._in_background

    @property
    def continue_guessing(self) -> bool:
        return self._continue_guessing

    def add_listener(self, callback: StateListener) -> Callable[[], None]:
        """Call *callback* with every new state; returns a remove function."""
        self._listeners.append(callback)

        def remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove

    def diagnostics(self) -> dict[str, Any]:
        from .diagnostics import get_sync_diagnostics

        return get_sync_diagnostics(self)

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    async def join_room(self, player_name: str) -> RoomSession:
        """Join (or create) a room and start syncing it."""
        if self._session is not None:
            raise MindDigitActionError("join", "already in a room")
        try:
            resp = await self.client.join_room(player_name, timeout=self.config.action_timeout)
        except MindDigitError as err:
            _LOGGER.warning("Join failed: %s", compact_error(err))
            raise MindDigitActionError("join", _action_message(err)) from err

        self._generation += 1
        self._reset_session_state()
        self.history.reset()
        self.ledger.clear()
        self.recovery.reset()
        self.client.reset_validators()
        if resp.fallback_mode:
            _LOGGER.info("Server joined room %s in fallback mode", resp.room_id)

        self._session = RoomSession(
            room_id=resp.room_id,
            player_id=resp.player_id,
            player_name=player_name,
            position=resp.position,
            digits_expected=resp.digits,
            game_state=GameState.from_server(resp.game_state) or GameState.WAITING,
            generation=self._generation,
        )
        _LOGGER.info(
            "Joined room %s at position %d (state %s)",
            resp.room_id,
            resp.position,
            self._session.game_state.value,
        )
        self._publish()

        self.quick_poller.start()
        self.background_poller.start()
        self._request_full_sync()
        return self._session

    async def leave(self) -> None:
        """Tell the server we left (without waiting) and tear the session down."""
        session = self._session
        if session is None:
            return
        task = asyncio.get_running_loop().create_task(self._send_leave(session.room_id, session.player_id))
        self._leave_tasks.add(task)
        task.add_done_callback(self._leave_tasks.discard)
        _LOGGER.info("Leaving room %s", session.room_id)
        self._teardown()

    async def close(self) -> None:
        """Tear everything down; late responses are discarded."""
        self._teardown()
        if self._leave_tasks:
            await asyncio.wait(set(self._leave_tasks), timeout=self.config.action_timeout)
            for task in list(self._leave_tasks):
                task.cancel()
        if self._owns_client:
            await self.client.close()

    async def _send_leave(self, room_id: str, player_id: str) -> None:
        try:
            await self.client.leave_room(room_id, player_id, timeout=self.config.action_timeout)
        except MindDigitError as err:
            _LOGGER.debug("Leave request failed (ignored): %s", compact_error(err))

    def _teardown(self) -> None:
        self._generation += 1
        self.quick_poller.stop()
        self.background_poller.stop()
        self.quick_poller.restore_bounds()
        self.background_poller.restore_bounds()
        self.recovery.close()
        self.prioritizer.close()
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()
        self.ledger.clear()
        self.history.reset()
        self._session = None
        self._reset_session_state()
        self._publish()

    # ------------------------------------------------------------------
    # User actions (high priority, optimistic)
    # ------------------------------------------------------------------

    async def submit_guess(self, guess: str) -> GuessResult | None:
        """Show the guess immediately, then confirm it with the server."""
        session = self._require_session("guess")
        guess = guess.strip()
        if not guess:
            raise MindDigitActionError("guess", "guess is empty")

        action_id = self.ledger.add_pending(
            ActionKind.GUESS, guess, undo={"current_turn": session.current_turn}, actor=session.player_name
        )
        if not self._continue_guessing:
            session.current_turn = self._opponent_id()
        self._publish()

        resp = await self._run_action(
            "guess",
            action_id,
            lambda: self.client.submit_guess(
                session.room_id,
                session.player_id,
                guess,
                action_id=action_id,
                timeout=self.config.action_timeout,
            ),
        )
        if resp is None:
            return None

        self.ledger.confirm(resp.client_action_id or action_id, resp.result, kind=ActionKind.GUESS, payload=guess)
        if not self._continue_guessing:
            if resp.current_turn is not None:
                session.current_turn = resp.current_turn
            self._apply_game_state(resp.game_state)
        if resp.winner is not None:
            self._set_winner(resp.winner)
        elif resp.result is not None and resp.result.is_winning:
            self._set_winner(WinnerInfo(player_id=session.player_id, player_name=session.player_name))
        self._publish()
        self._request_full_sync()
        return resp.result

    async def set_secret(self, secret: str) -> None:
        session = self._require_session("set-secret")
        secret = secret.strip()
        if not secret:
            raise MindDigitActionError("set-secret", "secret is empty")

        action_id = self.ledger.add_pending(ActionKind.SET_SECRET, secret, undo={"secret": session.secret})
        session.secret = secret
        self._publish()

        resp = await self._run_action(
            "set-secret",
            action_id,
            lambda: self.client.set_secret(
                session.room_id,
                session.player_id,
                secret,
                action_id=action_id,
                timeout=self.config.action_timeout,
            ),
        )
        if resp is None:
            return
        self.ledger.confirm(resp.client_action_id or action_id, resp, kind=ActionKind.SET_SECRET, payload=secret)
        self._apply_game_state(resp.game_state)
        self._publish()
        self._request_full_sync()

    async def start_game(self, digits: int) -> None:
        """Choose the digit count; the server moves the room to secret setting."""
        session = self._require_session("start-game")
        if digits <= 0:
            raise MindDigitActionError("start-game", "digit count must be positive")

        action_id = self.ledger.add_pending(
            ActionKind.START_GAME,
            str(digits),
            undo={"game_state": session.game_state, "digits_expected": session.digits_expected},
        )
        session.digits_expected = digits
        if not self._continue_guessing:
            session.game_state = GameState.SECRET_SETTING
        self._publish()

        resp = await self._run_action(
            "start-game",
            action_id,
            lambda: self.client.select_digits(
                session.room_id,
                session.player_id,
                digits,
                action_id=action_id,
                timeout=self.config.action_timeout,
            ),
        )
        if resp is None:
            return
        self.ledger.confirm(resp.client_action_id or action_id, resp, kind=ActionKind.START_GAME, payload=str(digits))
        self._apply_game_state(resp.game_state)
        self._publish()
        self._request_full_sync()

    async def skip_turn(self) -> str | None:
        """Pass the turn; returns the server's message, if any."""
        session = self._require_session("skip-turn")
        action_id = self.ledger.add_pending(ActionKind.SKIP_TURN, "", undo={"current_turn": session.current_turn})
        if not self._continue_guessing:
            session.current_turn = self._opponent_id()
        self._publish()

        resp = await self._run_action(
            "skip-turn",
            action_id,
            lambda: self.client.skip_turn(
                session.room_id,
                session.player_id,
                action_id=action_id,
                timeout=self.config.action_timeout,
            ),
        )
        if resp is None:
            return None
        self.ledger.confirm(resp.client_action_id or action_id, resp, kind=ActionKind.SKIP_TURN, payload="")
        if resp.next_player and not self._continue_guessing:
            session.current_turn = resp.next_player
        self._publish()
        self._request_full_sync()
        return resp.message

    async def refresh(self) -> bool:
        """Manual refresh: forget link health and sync now at high priority."""
        self._require_session("refresh")
        _LOGGER.debug("Manual refresh requested")
        self._health.reset()
        if self.recovery.is_recovering:
            self.recovery.reset()
            self._start_polling()
        future = self._request_full_sync(Priority.HIGH)
        self._publish()
        if future is None:
            return False
        return bool(await future)

    def enter_continue_guessing(self) -> None:
        """Switch to local continue-guessing mode after the match ended."""
        session = self._require_session("continue-guessing")
        self._continue_guessing = True
        session.game_state = GameState.CONTINUE_GUESSING
        session.current_turn = session.player_id
        self.history.reset()
        _LOGGER.info("Continue-guessing mode entered in room %s", session.room_id)
        self._publish(HistoryUpdate(full=True))
        self._request_full_sync()

    def enter_background(self) -> None:
        """App went to the background: stop quick polls, slow the full sync."""
        if self._in_background:
            return
        self._in_background = True
        self.quick_poller.stop()
        interval = self.config.app_background_interval
        self.background_poller.widen(interval, interval)
        _LOGGER.debug("Background mode: full sync every %.0fs", interval)

    def enter_foreground(self) -> None:
        """App is visible again: restore cadences and sync immediately."""
        if not self._in_background:
            return
        self._in_background = False
        self.background_poller.restore_bounds()
        if self._session is None:
            return
        if not self.recovery.is_recovering:
            self.quick_poller.start()
        self._request_full_sync()

    async def _run_action(
        self,
        action: str,
        action_id: str,
        call: Callable[[], Coroutine[Any, Any, Any]],
    ) -> Any:
        """Send one user action at high priority; roll back and raise on failure.

        Returns None when the session went away while the request was in flight.
        """
        generation = self._generation
        try:
            resp = await self.prioritizer.submit(Priority.HIGH, call)
        except MindDigitError as err:
            if generation != self._generation:
                raise MindDigitActionError(action, "left the room") from err
            self._rollback(action_id)
            _LOGGER.info("%s rejected: %s", action, _action_message(err))
            raise MindDigitActionError(action, _action_message(err)) from err
        except asyncio.CancelledError:
            if generation == self._generation:
                self._rollback(action_id)
            raise

        if generation != self._generation:
            _LOGGER.debug("Discarding %s response for a closed session", action)
            return None
        return resp

    def _rollback(self, action_id: str) -> None:
        failed = self.ledger.rollback(action_id)
        session = self._session
        if failed is None or session is None:
            return
        for key, value in (failed.undo or {}).items():
            setattr(session, key, value)
        self._publish()

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def _start_polling(self) -> None:
        if self._session is None:
            return
        if not self._in_background:
            self.quick_poller.start()
        self.background_poller.start()

    def _on_quick_tick(self) -> None:
        if self._session is None:
            return
        if self.recovery.is_recovering:
            _LOGGER.debug("Quick status skipped while recovering")
            return
        if self._quick_in_flight:
            return
        if not self.quick_poller.acquire_slot():
            _LOGGER.debug("Quick status rate limited")
            return
        self._quick_in_flight = True
        self._track(self.prioritizer.submit(Priority.LOW, self._quick_status))

    def _on_background_tick(self) -> None:
        if self._session is None or self.recovery.is_recovering:
            return
        self._request_full_sync()

    async def _quick_status(self) -> None:
        session = self._session
        if session is None:
            return
        generation = self._generation
        started = self._clock()
        try:
            status = await self.client.get_quick_status(
                session.room_id, session.player_id, timeout=self.config.quick_status_timeout
            )
        except MindDigitError as err:
            if generation != self._generation:
                return
            _LOGGER.debug("Quick status failed: %s", compact_error(err))
            self.quick_poller.report_outcome(False)
            self.recovery.record_failure(err)
            self._publish()
            return
        finally:
            if generation == self._generation:
                self._quick_in_flight = False

        if generation != self._generation:
            _LOGGER.debug("Discarding quick status for a closed session")
            return
        self.recovery.record_success((self._clock() - started) * 1000)
        self.quick_poller.report_outcome(True)

        room = status.room
        changed = self._apply_room(room, players=False)
        if room.history_count is not None:
            self._server_history_count = room.history_count
            if room.history_count > len(self.history):
                changed = True
        if changed:
            self._publish()
            self._request_full_sync()

    def _request_full_sync(self, priority: Priority = Priority.LOW) -> asyncio.Future | None:
        """Start a full sync unless one is already in flight."""
        if self._session is None:
            return None
        if self._full_sync is not None and not self._full_sync.done():
            return self._full_sync
        self._full_sync = self.prioritizer.submit(priority, self._full_sync_once)
        return self._full_sync

    async def _full_sync_once(self) -> bool:
        session = self._session
        if session is None:
            return False
        generation = self._generation
        started = self._clock()
        try:
            status, history = await asyncio.gather(
                self.client.get_room_status(
                    session.room_id, session.player_id, timeout=self.config.full_sync_timeout
                ),
                self.client.get_history(session.room_id, session.player_id, timeout=self.config.full_sync_timeout),
            )
        except MindDigitError as err:
            if generation != self._generation:
                return False
            if is_connection_error(err):
                _LOGGER.debug("Full sync failed: %s", compact_error(err))
            else:
                _LOGGER.warning("Full sync failed: %s", compact_error(err))
            self.background_poller.report_outcome(False)
            self.recovery.record_failure(err)
            self._publish()
            return False

        if generation != self._generation:
            _LOGGER.debug("Discarding full sync for a closed session")
            return False
        self.background_poller.report_outcome(True)
        self._apply_full_sync(status, history)
        self.recovery.record_success((self._clock() - started) * 1000)
        self._publish(self._last_update)
        return True

    # ------------------------------------------------------------------
    # Applying server data
    # ------------------------------------------------------------------

    def _apply_full_sync(self, status: RoomStatusResponse | None, history: HistoryResponse) -> None:
        session = self._session
        if status is None:
            # 304: room unchanged since the last snapshot
            room = self._snapshot.room if self._snapshot is not None else None
        else:
            room = status.room
            self._apply_validation(status)
        if room is not None:
            self._apply_room(room, players=True)
            if room.history_count is not None:
                self._server_history_count = room.history_count

        full = self.history.full_rebuild_pending
        new_entries = self.history.reconcile(history.history)
        for entry in new_entries:
            self.ledger.absorb(entry, session.player_name)
        self.ledger.purge_expired()
        self._last_update = (
            HistoryUpdate(full=full, new_lines=tuple(HistoryLine.from_entry(e) for e in new_entries))
            if full or new_entries
            else None
        )

        if history.winner is not None and (history.winner.player_id or history.winner.player_name):
            self._set_winner(history.winner)

        if room is not None:
            self._snapshot = SyncSnapshot(
                room=room,
                history=self.history.displayed,
                winner=self._winner,
                captured_at=self._clock(),
            )
        self._from_snapshot = False

    def _apply_room(self, room: RoomInfo, *, players: bool) -> bool:
        """Apply turn, game state, and (for full syncs) players; return True on change."""
        session = self._session
        changed = False

        if players:
            self._players = tuple(room.players)
            me = next((p for p in room.players if p.id == session.player_id), None)
            if me is not None:
                # A locally chosen secret always wins over the server copy
                if me.secret and not session.secret:
                    session.secret = me.secret
                if me.selected_digits and session.digits_expected is None:
                    session.digits_expected = me.selected_digits

        if not self.ledger.has_pending(ActionKind.START_GAME):
            changed |= self._apply_game_state(room.game_state)

        if self._continue_guessing:
            session.current_turn = session.player_id
        elif room.current_turn is not None and room.current_turn != session.current_turn:
            stale = room.current_turn == session.player_id and any(
                self.ledger.has_pending(kind) for kind in _TURN_FLIPPING_ACTIONS
            )
            if stale:
                _LOGGER.debug("Ignoring server turn while our move is pending")
            else:
                session.current_turn = room.current_turn
                changed = True
        return changed

    def _apply_game_state(self, server_state: str | None) -> bool:
        session = self._session
        if self._continue_guessing or session is None:
            return False
        state = GameState.from_server(server_state)
        if state is None or state is session.game_state:
            return False
        _LOGGER.info("Game state %s -> %s", session.game_state.value, state.value)
        session.game_state = state
        return True

    def _apply_validation(self, status: RoomStatusResponse) -> None:
        validation = status.validation
        if validation is not None and not validation.valid:
            message = validation.reason or status.suggestion or "Game state is being corrected"
            if message != self._validation_message:
                _LOGGER.info("Server validation: %s", message)
            self._validation_message = message
        else:
            self._validation_message = None

    def _set_winner(self, winner: WinnerInfo) -> None:
        session = self._session
        if self._winner is None:
            _LOGGER.info("Winner: %s", winner.player_name or winner.player_id)
        self._winner = winner
        if session is not None and not self._continue_guessing:
            session.game_state = GameState.FINISHED

    # ------------------------------------------------------------------
    # Recovery hooks
    # ------------------------------------------------------------------

    def _on_recovery_enter(self) -> None:
        self.quick_poller.stop()
        self.background_poller.stop()

    def _on_show_snapshot(self, snapshot: SyncSnapshot) -> None:
        self._from_snapshot = True
        _LOGGER.debug("Showing snapshot captured at %.1f", snapshot.captured_at)
        self._publish()

    def _on_indicator(self, visible: bool) -> None:
        self._publish()

    def _on_recovery_resume(self, cold_start: bool) -> None:
        if self._session is None:
            return
        if cold_start:
            rc = self.config.recovery
            self.quick_poller.widen(rc.widen_min, rc.widen_max, rc.widen_duration)
            if not self._in_background:
                self.background_poller.widen(rc.widen_min, rc.widen_max, rc.widen_duration)
        self._start_polling()
        self._request_full_sync()
        self._publish()

    async def _warm_up(self) -> Any:
        return await self.client.check_health(timeout=self.config.recovery.warmup_timeout)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_session(self, action: str) -> RoomSession:
        if self._session is None:
            raise MindDigitActionError(action, "not in a room")
        return self._session

    def _opponent_id(self) -> str | None:
        session = self._session
        for player in self._players:
            if player.id != session.player_id:
                return player.id
        return None

    def _history_load_factor(self) -> float:
        return history_load_factor(len(self.history))

    def _track(self, future: asyncio.Future) -> None:
        if isinstance(future, asyncio.Task):
            self._tasks.add(future)
            future.add_done_callback(self._tasks.discard)

    def _publish(self, history_update: HistoryUpdate | None = None) -> None:
        self._state = self._build_state(history_update)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:  # noqa: BLE001
                _LOGGER.exception("Sync state listener failed")

    def _build_state(self, history_update: HistoryUpdate | None) -> SyncState:
        session = self._session
        health = self._health.current_health()
        quality = self._health.connection_quality()
        if session is None:
            return SyncState(
                health=health,
                connection_quality=quality,
                recovery_state=self.recovery.state,
            )

        server_lines = tuple(HistoryLine.from_entry(entry) for entry in self.history.displayed)
        return SyncState(
            room_id=session.room_id,
            player_id=session.player_id,
            player_name=session.player_name,
            game_state=session.game_state,
            current_turn=session.current_turn,
            is_my_turn=session.is_my_turn,
            players=self._players,
            digits_expected=session.digits_expected,
            has_secret=bool(session.secret),
            history=server_lines + self.ledger.optimistic_lines(),
            history_update=history_update,
            history_count=max(self._server_history_count, len(server_lines)),
            pending_actions=self.ledger.pending_snapshot(),
            winner=self._winner,
            recovery_state=self.recovery.state,
            reconnecting=self.recovery.reconnecting,
            from_snapshot=self._from_snapshot,
            connection_quality=quality,
            health=health,
            validation_message=self._validation_message,
        )
