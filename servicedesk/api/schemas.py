"""Pydantic schemas for the Service Desk API."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from servicedesk.core.action_ledger import Action
from servicedesk.core.engine import DeskStatistics
from servicedesk.core.requester import Requester


# ── input ─────────────────────────────────────────────────────────────────────

class RequesterIn(BaseModel):
    name:           str = Field(..., min_length=1, max_length=200, examples=["Ana Torres"])
    category:       Literal["SUPPORT", "MAINTENANCE", "COMPLAINT"]
    priority_class: Literal["NORMAL", "URGENT"] = "NORMAL"


# ── output ────────────────────────────────────────────────────────────────────

class RequesterOut(BaseModel):
    id:              str
    name:            str
    category:        str
    priority_class:  str
    arrival_time:    datetime
    service_time:    Optional[datetime] = None
    service_minutes: Optional[int] = None

    @classmethod
    def from_requester(cls, r: Requester) -> "RequesterOut":
        return cls(
            id=r.id,
            name=r.name,
            category=r.category.value,
            priority_class=r.priority_class.value,
            arrival_time=r.arrival_time,
            service_time=r.service_time,
            service_minutes=r.service_minutes(),
        )


class RankedRequesterOut(RequesterOut):
    """A waiting requester together with its current ranking score."""
    position: int
    score:    int


class WaitingOut(BaseModel):
    count:      int
    requesters: list[RankedRequesterOut]


class ServedOut(BaseModel):
    count:      int
    requesters: list[RequesterOut]


class ActionOut(BaseModel):
    kind:         Literal["REGISTER", "REMOVE", "SERVE"]
    requester_id: str
    name:         str
    timestamp:    datetime

    @classmethod
    def from_action(cls, a: Action) -> "ActionOut":
        return cls(
            kind=a.kind.value,
            requester_id=a.requester_id,
            name=a.requester.name,
            timestamp=a.timestamp,
        )


class LedgerOut(BaseModel):
    """Ledger entries, most recent first, plus the numbered text rendering."""
    depth:    int
    actions:  list[ActionOut]
    rendered: str


class UndoOut(BaseModel):
    success:  bool
    undone:   ActionOut
    message:  str


class StatsOut(BaseModel):
    waiting_count:       int
    served_count:        int
    avg_service_minutes: float
    ledger_depth:        int

    @classmethod
    def from_stats(cls, s: DeskStatistics) -> "StatsOut":
        return cls(
            waiting_count=s.waiting_count,
            served_count=s.served_count,
            avg_service_minutes=s.avg_service_minutes,
            ledger_depth=s.ledger_depth,
        )
