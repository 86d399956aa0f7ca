"""Signature-gated, append-only merge of the server move history.

The displayed list only grows. An unchanged server list is detected with a
content digest and skipped; otherwise only entries whose identity is not yet
displayed are appended, in server order. Entries that disappear from the
server list stay displayed. A full rebuild happens on the first successful
sync and after an explicit :meth:`HistoryReconciler.reset`.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterable, Sequence

from .models import HistoryEntry

_LOGGER = logging.getLogger(__name__)


def history_signature(history: Iterable[HistoryEntry]) -> str:
    """Return the SHA-256 digest of an ordered history list."""
    digest = hashlib.sha256()
    for index, entry in enumerate(history):
        digest.update(
            f"{index}:{entry.actor}|{entry.guess_value}|{entry.exact_matches}|"
            f"{entry.partial_matches}|{entry.timestamp};".encode()
        )
    return digest.hexdigest()


class HistoryReconciler:
    """Own the displayed history and merge server lists into it."""

    def __init__(self) -> None:
        self._displayed: list[HistoryEntry] = []
        self._identities: set[tuple[str, str, str]] = set()
        self._signature: str | None = None
        self._full_rebuild_pending = True

    @property
    def displayed(self) -> tuple[HistoryEntry, ...]:
        return tuple(self._displayed)

    @property
    def signature(self) -> str | None:
        return self._signature

    @property
    def full_rebuild_pending(self) -> bool:
        return self._full_rebuild_pending

    def __len__(self) -> int:
        return len(self._displayed)

    @staticmethod
    def full_rebuild_signature(history: Sequence[HistoryEntry]) -> str:
        return history_signature(history)

    def reconcile(self, server_history: Sequence[HistoryEntry]) -> list[HistoryEntry]:
        """Merge *server_history*; return the entries that became visible.

        When a full rebuild is pending the whole list is adopted and returned.
        """
        if self._full_rebuild_pending:
            self.rebuild(server_history)
            return list(self._displayed)

        signature = history_signature(server_history)
        if signature == self._signature:
            return []

        new_entries: list[HistoryEntry] = []
        for entry in server_history:
            if entry.identity in self._identities:
                continue
            self._identities.add(entry.identity)
            new_entries.append(entry)

        self._displayed.extend(new_entries)
        self._signature = signature
        if new_entries:
            _LOGGER.debug("History: %d new entries (%d displayed)", len(new_entries), len(self._displayed))
        return new_entries

    def rebuild(self, server_history: Sequence[HistoryEntry]) -> None:
        """Replace the displayed list with *server_history*."""
        self._displayed = []
        self._identities = set()
        for entry in server_history:
            if entry.identity in self._identities:
                continue
            self._identities.add(entry.identity)
            self._displayed.append(entry)
        self._signature = history_signature(server_history)
        self._full_rebuild_pending = False
        _LOGGER.debug("History rebuilt with %d entries", len(self._displayed))

    def reset(self) -> None:
        """Clear everything; the next reconcile performs a full rebuild."""
        self._displayed = []
        self._identities = set()
        self._signature = None
        self._full_rebuild_pending = True
