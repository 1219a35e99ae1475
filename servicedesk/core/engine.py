"""Desk engine: composes the waiting queue, served history and action ledger.

Every successful ``register`` / ``remove_waiting`` / ``serve`` pushes exactly
one ledger entry; ``undo_last`` pops one and applies its inverse:

    REGISTER → take the requester back out of the waiting queue
    REMOVE   → put the requester back at the end of the waiting queue
    SERVE    → take it out of the history, clear ``service_time`` and put it
               at the *front* of the waiting queue (served next)

Failed operations raise a :class:`~servicedesk.core.errors.DeskError` and
leave all three containers untouched.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, TypeVar

from servicedesk.core.action_ledger import Action, ActionKind, ActionLedger
from servicedesk.core.errors import (
    EmptyLedgerError,
    EmptyQueueError,
    NotFoundError,
    ValidationError,
)
from servicedesk.core.requester import (
    Category,
    IdGenerator,
    PriorityClass,
    Requester,
    utc_now,
)
from servicedesk.core.served_history import ServedHistory
from servicedesk.core.waiting_queue import WaitingQueue

logger = logging.getLogger(__name__)

_E = TypeVar("_E", bound=Enum)


@dataclass(frozen=True)
class DeskStatistics:
    """Read-only snapshot of the desk's counters."""
    waiting_count: int
    served_count: int
    avg_service_minutes: float
    ledger_depth: int


@dataclass(frozen=True)
class UndoResult:
    action: Action
    success: bool


def _coerce(enum_cls: type[_E], value: _E | str, label: str) -> _E:
    """Accept an enum member or its (case-insensitive) string value."""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().upper())
        except ValueError:
            pass
    allowed = ", ".join(m.value for m in enum_cls)
    raise ValidationError(f"Invalid {label} {value!r}; expected one of: {allowed}")


class DeskEngine:
    """Single-level-undo service desk.

    Parameters
    ----------
    clock : callable, optional
        Returns the current timezone-aware datetime.  Used for arrival,
        service and ledger timestamps.  Defaults to UTC wall-clock time.
    id_generator : IdGenerator, optional
        Source of requester ids.  Each engine gets its own by default.

    All public methods are serialised on one lock per instance, so the
    engine can sit behind a threaded HTTP server.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] | None = None,
        id_generator: IdGenerator | None = None,
    ) -> None:
        self._clock = clock or utc_now
        self._ids = id_generator or IdGenerator()
        self._queue = WaitingQueue()
        self._history = ServedHistory()
        self._ledger = ActionLedger(clock=self._clock)
        self._lock = threading.Lock()

    # ── Mutations ────────────────────────────────────────────────────

    def register(
        self,
        name: str,
        category: Category | str,
        priority_class: PriorityClass | str,
    ) -> Requester:
        """Create a requester, queue it and record REGISTER."""
        if name is None or not str(name).strip():
            logger.debug("Register rejected: empty name")
            raise ValidationError("Requester name must not be empty")
        if len(str(name).strip().splitlines()) > 1:
            logger.debug("Register rejected: multi-line name")
            raise ValidationError("Requester name must be a single line")
        cat = _coerce(Category, category, "category")
        prio = _coerce(PriorityClass, priority_class, "priority class")

        with self._lock:
            requester = Requester(
                id=self._ids.next_id(),
                name=str(name).strip(),
                category=cat,
                priority_class=prio,
                arrival_time=self._clock(),
            )
            self._queue.insert(requester)
            self._ledger.record(ActionKind.REGISTER, requester)

        logger.info(
            "Registered %s (id=%s, %s, %s)",
            requester.name, requester.id, cat.value, prio.value,
        )
        return requester

    def serve(self) -> Requester:
        """Serve the highest-ranked waiting requester and record SERVE."""
        with self._lock:
            requester = self._queue.select_next_to_serve()
            if requester is None:
                logger.debug("Serve rejected: queue empty")
                raise EmptyQueueError("No requesters waiting to be served")
            served_at = self._clock()
            self._queue.remove_requester(requester)
            requester.service_time = served_at
            self._history.append(requester)
            self._ledger.record(ActionKind.SERVE, requester)

        logger.info(
            "Served %s (id=%s, %s) after %d min",
            requester.name, requester.id, requester.priority_class.value,
            requester.service_minutes(),
        )
        return requester

    def remove_waiting(self, requester_id: str) -> Requester:
        """Drop a waiting requester and record REMOVE."""
        with self._lock:
            requester = self._queue.remove_by_id(requester_id)
            if requester is None:
                logger.debug("Remove rejected: %s not waiting", requester_id)
                raise NotFoundError(requester_id, "waiting queue")
            self._ledger.record(ActionKind.REMOVE, requester)

        logger.info("Removed %s (id=%s) from queue", requester.name, requester.id)
        return requester

    def undo_last(self) -> bool:
        """Pop the most recent action and apply its inverse.

        Returns ``True`` on success, ``False`` if the inverse could not be
        applied (the entry is consumed either way).  Raises
        :class:`EmptyLedgerError` if there is nothing to undo.
        """
        return self.undo().success

    def undo(self) -> UndoResult:
        """Like :meth:`undo_last`, but also reports which action was undone."""
        with self._lock:
            action = self._ledger.pop_top()
            if action is None:
                logger.debug("Undo rejected: ledger empty")
                raise EmptyLedgerError("Nothing to undo")
            ok = self._undo(action)

        if ok:
            logger.info("Undid %s of id=%s", action.kind.value, action.requester_id)
        else:
            logger.warning(
                "Could not undo %s of id=%s; entry discarded",
                action.kind.value, action.requester_id,
            )
        return UndoResult(action=action, success=ok)

    # ── Undo dispatch ────────────────────────────────────────────────

    def _undo(self, action: Action) -> bool:
        if action.kind is ActionKind.REGISTER:
            return self._undo_register(action)
        if action.kind is ActionKind.REMOVE:
            return self._undo_remove(action)
        if action.kind is ActionKind.SERVE:
            return self._undo_serve(action)
        return False

    def _undo_register(self, action: Action) -> bool:
        return self._queue.remove_by_id(action.requester_id) is not None

    def _undo_remove(self, action: Action) -> bool:
        if self._queue.contains_id(action.requester_id):
            return False
        if self._history.contains_id(action.requester_id):
            return False
        return self._queue.reinsert_at_back(action.requester)

    def _undo_serve(self, action: Action) -> bool:
        requester = self._history.remove_by_id(action.requester_id)
        if requester is None:
            return False
        requester.service_time = None
        return self._queue.reinsert_at_front(requester)

    # ── Queries ──────────────────────────────────────────────────────

    def search_served(self, requester_id: str) -> Requester:
        with self._lock:
            requester = self._history.find_by_id(requester_id)
        if requester is None:
            raise NotFoundError(requester_id, "served history")
        return requester

    def next_to_serve(self) -> Requester:
        """Preview who ``serve()`` would pick, without serving."""
        with self._lock:
            requester = self._queue.select_next_to_serve()
        if requester is None:
            raise EmptyQueueError("No requesters waiting to be served")
        return requester

    def last_action(self) -> Action | None:
        with self._lock:
            return self._ledger.peek_top()

    def can_undo(self) -> bool:
        with self._lock:
            return self._ledger.has_entries()

    def statistics(self) -> DeskStatistics:
        with self._lock:
            return DeskStatistics(
                waiting_count=self._queue.size(),
                served_count=self._history.count(),
                avg_service_minutes=float(self._history.average_service_duration()),
                ledger_depth=self._ledger.count(),
            )

    def render_statistics(self) -> str:
        stats = self.statistics()
        return "\n".join([
            f"Waiting requesters: {stats.waiting_count}",
            f"Served requesters: {stats.served_count}",
            f"Average service time: {stats.avg_service_minutes:.2f} minutes",
            f"Recorded actions: {stats.ledger_depth}",
        ])

    # ── Snapshots (copies, never the live containers) ────────────────

    def snapshot_waiting(self) -> list[Requester]:
        with self._lock:
            return self._queue.snapshot()

    def waiting_ranking(self) -> list[tuple[Requester, int]]:
        with self._lock:
            return self._queue.ranking()

    def snapshot_served(self) -> list[Requester]:
        with self._lock:
            return self._history.snapshot()

    def snapshot_ledger(self) -> list[Action]:
        with self._lock:
            return self._ledger.snapshot()

    def render_ledger(self) -> str:
        with self._lock:
            return self._ledger.render_chronological()
