"""Served history: requesters that have already been attended, in service order."""

from __future__ import annotations

from servicedesk.core.errors import ValidationError
from servicedesk.core.requester import Requester


class ServedHistory:
    """Append-only store of served requesters (undo may take one back out)."""

    def __init__(self) -> None:
        self._items: list[Requester] = []

    def append(self, requester: Requester) -> None:
        if requester.service_time is None:
            raise ValidationError(
                f"Requester {requester.id!r} has no service time; serve it first"
            )
        self._items.append(requester)

    def find_by_id(self, requester_id: str) -> Requester | None:
        for requester in self._items:
            if requester.id == requester_id:
                return requester
        return None

    def remove_by_id(self, requester_id: str) -> Requester | None:
        for idx, requester in enumerate(self._items):
            if requester.id == requester_id:
                return self._items.pop(idx)
        return None

    def contains_id(self, requester_id: str) -> bool:
        return self.find_by_id(requester_id) is not None

    def snapshot(self) -> list[Requester]:
        return list(self._items)

    def count(self) -> int:
        return len(self._items)

    def __len__(self) -> int:
        return self.count()

    def average_service_duration(self) -> int:
        """Mean time from arrival to service, in whole minutes.

        Rounded toward zero.  Returns ``0`` when nobody has been served.
        """
        durations = [
            (r.service_time - r.arrival_time).total_seconds()
            for r in self._items
            if r.service_time is not None and r.arrival_time is not None
        ]
        if not durations:
            return 0
        return int(sum(durations) / len(durations) / 60)
