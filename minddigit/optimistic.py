"""Optimistic update ledger.

User actions are shown before the server answers. Each one is recorded as a
:class:`PendingAction` that moves one way, ``pending -> confirmed`` or
``pending -> failed``. Failed actions leave the ledger immediately; confirmed
ones stay for a retention window so late server history can be matched
against them.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from .const import CONFIRMED_RETENTION_SECONDS
from .models import HistoryEntry, HistoryLine

_LOGGER = logging.getLogger(__name__)


class ActionKind(str, Enum):
    GUESS = "guess"
    SET_SECRET = "set-secret"
    START_GAME = "start-game"
    SKIP_TURN = "skip-turn"


class ActionStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass(frozen=True)
class PendingAction:
    """Immutable view of one user action awaiting (or past) confirmation."""

    id: str
    kind: ActionKind
    payload: str
    created_at: float
    actor: str = ""
    status: ActionStatus = ActionStatus.PENDING
    result: Any = None
    undo: Mapping[str, Any] | None = None
    absorbed: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.status is not ActionStatus.PENDING


class OptimisticUpdateLedger:
    """Own every in-flight user action and its optimistic trace."""

    def __init__(
        self,
        retention: float = CONFIRMED_RETENTION_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._retention = retention
        self._clock = clock
        # Insertion ordered, so iteration is oldest first
        self._actions: dict[str, PendingAction] = {}

    def __len__(self) -> int:
        return len(self._actions)

    def add_pending(
        self,
        kind: ActionKind,
        payload: str = "",
        undo: Mapping[str, Any] | None = None,
        actor: str = "",
    ) -> str:
        """Record a new action and return its id (also the idempotency key)."""
        action = PendingAction(
            id=uuid.uuid4().hex,
            kind=ActionKind(kind),
            payload=payload,
            created_at=self._clock(),
            actor=actor,
            undo=dict(undo) if undo is not None else None,
        )
        self._actions[action.id] = action
        _LOGGER.debug("Optimistic %s added (%s)", action.kind.value, action.id)
        return action.id

    def get(self, action_id: str) -> PendingAction | None:
        return self._actions.get(action_id)

    def confirm(
        self,
        action_id: str | None = None,
        result: Any = None,
        *,
        kind: ActionKind | None = None,
        payload: str | None = None,
    ) -> PendingAction | None:
        """Mark an action confirmed and return it, or None when nothing matched.

        Matching is by id when given (the server may echo it as
        ``clientActionId``). An id the ledger does not know falls back to
        ``(kind, payload)`` with the earliest pending action winning; an id
        that is already confirmed matches nothing.
        """
        action = self._find_pending(action_id, kind, payload)
        if action is None:
            return None
        confirmed = replace(action, status=ActionStatus.CONFIRMED, result=result)
        self._actions[action.id] = confirmed
        _LOGGER.debug("Optimistic %s confirmed (%s)", action.kind.value, action.id)
        return confirmed

    def rollback(self, action_id: str) -> PendingAction | None:
        """Fail and remove a pending action; returns it so its undo data can be applied.

        Terminal actions are left untouched and None is returned.
        """
        action = self._actions.get(action_id)
        if action is None or action.is_terminal:
            return None
        del self._actions[action_id]
        _LOGGER.debug("Optimistic %s rolled back (%s)", action.kind.value, action.id)
        return replace(action, status=ActionStatus.FAILED)

    def absorb(self, entry: HistoryEntry, actor: str) -> PendingAction | None:
        """Drop the optimistic line of a guess now present in server history."""
        if entry.actor != actor:
            return None
        for action in self._actions.values():
            if (
                action.kind is ActionKind.GUESS
                and not action.absorbed
                and action.payload == entry.guess_value
            ):
                absorbed = replace(action, absorbed=True)
                self._actions[action.id] = absorbed
                return absorbed
        return None

    def purge_expired(self) -> int:
        """Drop confirmed actions past the retention window; returns how many."""
        cutoff = self._clock() - self._retention
        expired = [
            action_id
            for action_id, action in self._actions.items()
            if action.status is ActionStatus.CONFIRMED and action.created_at <= cutoff
        ]
        for action_id in expired:
            del self._actions[action_id]
        if expired:
            _LOGGER.debug("Purged %d confirmed actions", len(expired))
        return len(expired)

    def pending_snapshot(self) -> tuple[PendingAction, ...]:
        return tuple(a for a in self._actions.values() if a.status is ActionStatus.PENDING)

    def snapshot(self) -> tuple[PendingAction, ...]:
        return tuple(self._actions.values())

    def has_pending(self, kind: ActionKind | None = None) -> bool:
        return any(a.status is ActionStatus.PENDING and (kind is None or a.kind is kind) for a in self._actions.values())

    def optimistic_lines(self) -> tuple[HistoryLine, ...]:
        """History lines for guesses not yet replaced by a server entry."""
        lines = []
        for action in self._actions.values():
            if action.kind is not ActionKind.GUESS or action.absorbed:
                continue
            exact = getattr(action.result, "exact_matches", None)
            partial = getattr(action.result, "partial_matches", None)
            lines.append(
                HistoryLine(
                    actor=action.actor,
                    guess_value=action.payload,
                    exact_matches=exact,
                    partial_matches=partial,
                    pending=action.status is ActionStatus.PENDING,
                    action_id=action.id,
                )
            )
        return tuple(lines)

    def clear(self) -> None:
        self._actions.clear()

    def _find_pending(
        self, action_id: str | None, kind: ActionKind | None, payload: str | None
    ) -> PendingAction | None:
        if action_id is not None:
            action = self._actions.get(action_id)
            if action is not None:
                # Known ids never fall back to payload matching
                return None if action.is_terminal else action
        if kind is None:
            return None
        for action in self._actions.values():
            if action.is_terminal or action.kind is not ActionKind(kind):
                continue
            if payload is None or action.payload == payload:
                return action
        return None
