"""Waiting queue with hybrid ranking.

Requesters are kept in *arrival* order.  The next one to serve is picked by
a score that mixes the priority class with a decaying positional bonus::

    score = base_points(priority) + max(0, 4 - position)

    base_points(URGENT) = 8
    base_points(NORMAL) = 6

Urgency dominates by 2 points, but a normal requester that arrived at least
2 positions earlier ties or beats an urgent one.  Ties go to the earliest
arrival.

The ranking is recomputed from scratch on every call: the positional bonus
depends on live arrival order, which shifts after every insert/remove, so a
heap would have to be re-keyed on every mutation anyway.
"""

from __future__ import annotations

from servicedesk.config import POSITION_BONUS_CAP, PRIORITY_BASE_POINTS
from servicedesk.core.requester import PriorityClass, Requester


def rank_score(priority_class: PriorityClass, position: int) -> int:
    """Score of a requester of *priority_class* at zero-based *position*."""
    base = PRIORITY_BASE_POINTS[priority_class.value]
    return base + max(0, POSITION_BONUS_CAP - position)


class WaitingQueue:
    """Not-yet-served requesters, in arrival order."""

    def __init__(self) -> None:
        self._items: list[Requester] = []

    # ── Public API ───────────────────────────────────────────────────

    def insert(self, requester: Requester) -> None:
        self._items.append(requester)

    def select_next_to_serve(self) -> Requester | None:
        """Return the highest-ranked requester without removing it.

        Returns ``None`` if the queue is empty.
        """
        best: Requester | None = None
        best_score = -1
        for position, requester in enumerate(self._items):
            score = rank_score(requester.priority_class, position)
            # strict > keeps the earliest arrival on ties
            if score > best_score:
                best, best_score = requester, score
        return best

    def ranking(self) -> list[tuple[Requester, int]]:
        """``(requester, score)`` pairs in arrival order, for display."""
        return [
            (requester, rank_score(requester.priority_class, position))
            for position, requester in enumerate(self._items)
        ]

    def remove_by_id(self, requester_id: str) -> Requester | None:
        for idx, requester in enumerate(self._items):
            if requester.id == requester_id:
                return self._items.pop(idx)
        return None

    def remove_requester(self, requester: Requester) -> bool:
        """Remove *requester* by identity.  ``False`` if it is not waiting."""
        for idx, item in enumerate(self._items):
            if item is requester:
                del self._items[idx]
                return True
        return False

    # ── Undo support ─────────────────────────────────────────────────

    def reinsert_at_front(self, requester: Requester | None) -> bool:
        if requester is None:
            return False
        self._items.insert(0, requester)
        return True

    def reinsert_at_back(self, requester: Requester | None) -> bool:
        if requester is None:
            return False
        self._items.append(requester)
        return True

    # ── Introspection ────────────────────────────────────────────────

    def contains_id(self, requester_id: str) -> bool:
        return any(r.id == requester_id for r in self._items)

    def peek_front(self) -> Requester | None:
        """Head of the arrival order (not necessarily the next one served)."""
        return self._items[0] if self._items else None

    def snapshot(self) -> list[Requester]:
        return list(self._items)

    def size(self) -> int:
        return len(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def __len__(self) -> int:
        return self.size()
