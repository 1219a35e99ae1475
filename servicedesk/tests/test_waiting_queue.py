"""Tests for the waiting queue and its hybrid ranking rule.

score = base(priority) + max(0, 4 - position),  base(URGENT)=8, base(NORMAL)=6
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from servicedesk.core.requester import Category, PriorityClass, Requester
from servicedesk.core.waiting_queue import WaitingQueue, rank_score

N = PriorityClass.NORMAL
U = PriorityClass.URGENT
T0 = datetime(2025, 3, 1, 10, 0, tzinfo=timezone.utc)


# ── Helpers ──────────────────────────────────────────────────────────────

def _make(rid: str, prio: PriorityClass) -> Requester:
    return Requester(
        id=rid,
        name=f"R{rid}",
        category=Category.MAINTENANCE,
        priority_class=prio,
        arrival_time=T0,
    )


def _queue(*prios: PriorityClass) -> WaitingQueue:
    q = WaitingQueue()
    for i, p in enumerate(prios, start=1):
        q.insert(_make(str(i), p))
    return q


def _ids(q: WaitingQueue) -> list[str]:
    return [r.id for r in q.snapshot()]


# ── Ranking ──────────────────────────────────────────────────────────────

class TestRankScore:
    @pytest.mark.parametrize(
        "prio, position, expected",
        [
            (U, 0, 12), (U, 1, 11), (U, 4, 8), (U, 9, 8),
            (N, 0, 10), (N, 3, 7), (N, 4, 6), (N, 20, 6),
        ],
    )
    def test_scores(self, prio, position, expected):
        assert rank_score(prio, position) == expected


class TestSelectNextToServe:
    def test_empty_queue_returns_none(self):
        assert WaitingQueue().select_next_to_serve() is None

    def test_urgent_second_beats_normal_first(self):
        # A(N)=10, B(U)=11, C(N)=8
        q = _queue(N, U, N)
        assert q.select_next_to_serve().id == "2"

    def test_exact_tie_goes_to_earliest_arrival(self):
        # N@0 = 6+4 = 10, N@1 = 9, U@2 = 8+2 = 10 → tie, first wins
        q = _queue(N, N, U)
        assert q.select_next_to_serve().id == "1"

    def test_normal_two_ahead_ties_urgent(self):
        q = _queue(N, N, U)
        scores = [s for _, s in q.ranking()]
        assert scores == [10, 9, 10]

    def test_urgent_far_back_still_beats_normals_past_bonus(self):
        # N@0=10, N@1=9, N@2=8, N@3=7, U@4=8 → first normal still wins
        q = _queue(N, N, N, N, U)
        assert q.select_next_to_serve().id == "1"

    def test_first_urgent_wins_among_urgents(self):
        # N@0=10, U@1=11, U@2=10
        q = _queue(N, U, U)
        assert q.select_next_to_serve().id == "2"

    def test_all_urgent_is_fifo(self):
        q = _queue(U, U, U)
        assert q.select_next_to_serve().id == "1"

    def test_selection_does_not_remove(self):
        q = _queue(N, U)
        q.select_next_to_serve()
        assert q.size() == 2

    def test_ranking_recomputed_after_removal(self):
        # Removing the head shifts everyone forward one position.
        q = _queue(N, N, N, U)       # scores 10, 9, 8, 9 → "1"
        assert q.select_next_to_serve().id == "1"
        q.remove_by_id("1")          # now N@0=10, N@1=9, U@2=10 → "2"
        assert q.select_next_to_serve().id == "2"


# ── Removal ──────────────────────────────────────────────────────────────

class TestRemoval:
    def test_remove_by_id_returns_requester(self):
        q = _queue(N, U, N)
        removed = q.remove_by_id("2")
        assert removed.id == "2"
        assert _ids(q) == ["1", "3"]

    def test_remove_by_unknown_id(self):
        q = _queue(N)
        assert q.remove_by_id("42") is None
        assert q.size() == 1

    def test_remove_requester_by_identity(self):
        q = _queue(N, U)
        target = q.snapshot()[1]
        assert q.remove_requester(target) is True
        assert q.remove_requester(target) is False
        assert _ids(q) == ["1"]

    def test_remove_requester_ignores_lookalike(self):
        q = _queue(N)
        lookalike = _make("1", N)
        assert q.remove_requester(lookalike) is False
        assert q.size() == 1


# ── Undo support ─────────────────────────────────────────────────────────

class TestReinsert:
    def test_reinsert_at_front(self):
        q = _queue(N, N)
        back = _make("9", N)
        assert q.reinsert_at_front(back) is True
        assert _ids(q) == ["9", "1", "2"]
        assert q.peek_front() is back

    def test_reinsert_at_back(self):
        q = _queue(N, N)
        assert q.reinsert_at_back(_make("9", U)) is True
        assert _ids(q) == ["1", "2", "9"]

    def test_reinsert_none_fails(self):
        q = _queue(N)
        assert q.reinsert_at_front(None) is False
        assert q.reinsert_at_back(None) is False
        assert q.size() == 1

    def test_front_reinsert_gets_full_bonus(self):
        q = _queue(U, U)
        q.reinsert_at_front(_make("9", N))   # N@0=10 < U@1=11
        assert q.select_next_to_serve().id == "1"
        q2 = _queue(N, N)
        q2.reinsert_at_front(_make("9", N))  # N@0=10 wins outright
        assert q2.select_next_to_serve().id == "9"


# ── Introspection ────────────────────────────────────────────────────────

class TestIntrospection:
    def test_empty(self):
        q = WaitingQueue()
        assert q.is_empty()
        assert len(q) == 0
        assert q.peek_front() is None
        assert q.snapshot() == []

    def test_contains_id(self):
        q = _queue(N, U)
        assert q.contains_id("2")
        assert not q.contains_id("3")

    def test_snapshot_is_a_copy(self):
        q = _queue(N, U)
        snap = q.snapshot()
        snap.clear()
        assert q.size() == 2
