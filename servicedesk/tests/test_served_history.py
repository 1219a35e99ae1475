"""Tests for the served history store."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from servicedesk.core.errors import ValidationError
from servicedesk.core.requester import Category, PriorityClass, Requester
from servicedesk.core.served_history import ServedHistory

T0 = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


def _served(rid: str, wait: timedelta) -> Requester:
    r = Requester(
        id=rid,
        name=f"R{rid}",
        category=Category.COMPLAINT,
        priority_class=PriorityClass.URGENT,
        arrival_time=T0,
    )
    r.service_time = T0 + wait
    return r


class TestServedHistory:
    def test_append_and_find(self):
        h = ServedHistory()
        r = _served("1", timedelta(minutes=5))
        h.append(r)
        assert h.find_by_id("1") is r
        assert h.find_by_id("2") is None
        assert h.count() == 1
        assert len(h) == 1

    def test_append_requires_service_time(self):
        h = ServedHistory()
        waiting = Requester(
            id="1", name="x", category=Category.SUPPORT,
            priority_class=PriorityClass.NORMAL, arrival_time=T0,
        )
        with pytest.raises(ValidationError):
            h.append(waiting)
        assert h.count() == 0

    def test_service_order_preserved(self):
        h = ServedHistory()
        for rid in ("3", "1", "2"):
            h.append(_served(rid, timedelta(minutes=1)))
        assert [r.id for r in h.snapshot()] == ["3", "1", "2"]

    def test_remove_by_id(self):
        h = ServedHistory()
        h.append(_served("1", timedelta(minutes=1)))
        h.append(_served("2", timedelta(minutes=1)))
        removed = h.remove_by_id("1")
        assert removed.id == "1"
        assert not h.contains_id("1")
        assert h.contains_id("2")
        assert h.remove_by_id("1") is None

    def test_snapshot_is_a_copy(self):
        h = ServedHistory()
        h.append(_served("1", timedelta(minutes=1)))
        h.snapshot().clear()
        assert h.count() == 1


class TestAverageServiceDuration:
    def test_zero_when_empty(self):
        assert ServedHistory().average_service_duration() == 0

    def test_whole_minutes(self):
        h = ServedHistory()
        h.append(_served("1", timedelta(minutes=10)))
        h.append(_served("2", timedelta(minutes=20)))
        assert h.average_service_duration() == 15

    def test_rounds_toward_zero(self):
        h = ServedHistory()
        h.append(_served("1", timedelta(minutes=4)))
        h.append(_served("2", timedelta(minutes=5)))
        # mean is 4.5 min
        assert h.average_service_duration() == 4

    def test_sub_minute_waits(self):
        h = ServedHistory()
        h.append(_served("1", timedelta(seconds=30)))
        assert h.average_service_duration() == 0
