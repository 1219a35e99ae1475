"""Requester entity: someone waiting for (or having received) service."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from servicedesk.config import TIMESTAMP_FORMAT


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Category(Enum):
    SUPPORT = "SUPPORT"            # Technical support
    MAINTENANCE = "MAINTENANCE"    # Maintenance request
    COMPLAINT = "COMPLAINT"        # Claim or complaint


class PriorityClass(Enum):
    NORMAL = "NORMAL"
    URGENT = "URGENT"


class IdGenerator:
    """Hands out ``"1"``, ``"2"``, … unique for one engine lifetime.

    Each engine owns its own generator, so several engines in the same
    process (e.g. in tests) never share a counter.
    """

    def __init__(self, start: int = 1) -> None:
        self._counter = itertools.count(start)

    def next_id(self) -> str:
        return str(next(self._counter))


@dataclass(eq=False)
class Requester:
    """A requester in the service desk.

    Equality is identity: two requesters are the same only if they are the
    same object, so containers can remove by identity safely.
    """
    id: str
    name: str
    category: Category
    priority_class: PriorityClass
    arrival_time: datetime
    service_time: datetime | None = field(default=None)

    def __setattr__(self, key, value):
        # ``id`` and ``arrival_time`` are write-once
        if key in ("id", "arrival_time") and key in self.__dict__:
            raise AttributeError(f"Requester.{key} is immutable")
        super().__setattr__(key, value)

    @property
    def is_served(self) -> bool:
        return self.service_time is not None

    def service_minutes(self) -> int | None:
        """Whole minutes between arrival and service, or ``None`` while waiting."""
        if self.service_time is None:
            return None
        seconds = (self.service_time - self.arrival_time).total_seconds()
        return int(seconds / 60)

    def describe(self) -> str:
        info = (
            f"ID: {self.id} | Name: {self.name} | Category: {self.category.value} "
            f"| Priority: {self.priority_class.value} "
            f"| Arrived: {self.arrival_time.strftime(TIMESTAMP_FORMAT)}"
        )
        if self.service_time is not None:
            info += (
                f" | Served: {self.service_time.strftime(TIMESTAMP_FORMAT)}"
                f" | Wait: {self.service_minutes()} min"
            )
        else:
            info += " | Status: waiting"
        return info

    def __str__(self) -> str:
        return self.describe()
