"""Action ledger: LIFO record of mutations, enabling single-level undo.

Only the top entry is ever inspected or popped.  There is no redo and undo
itself is never recorded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable

from servicedesk.config import TIMESTAMP_FORMAT
from servicedesk.core.requester import Requester, utc_now


class ActionKind(Enum):
    REGISTER = "REGISTER"    # New requester joined the waiting queue
    REMOVE = "REMOVE"        # Requester dropped from the waiting queue
    SERVE = "SERVE"          # Requester moved from queue to history


@dataclass(frozen=True)
class Action:
    """One recorded mutation.

    ``requester`` is the live object that was affected.  ``requester_id``
    and ``arrival_time`` are copied at record time; undo looks the requester
    up by the copied id.
    """
    kind: ActionKind
    requester: Requester
    timestamp: datetime
    requester_id: str = field(init=False)
    arrival_time: datetime = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "requester_id", self.requester.id)
        object.__setattr__(self, "arrival_time", self.requester.arrival_time)

    def describe(self) -> str:
        return (
            f"{self.kind.value} - Requester: {self.requester.name} "
            f"(ID: {self.requester_id}) - {self.timestamp.strftime(TIMESTAMP_FORMAT)}"
        )

    def __str__(self) -> str:
        return self.describe()


class ActionLedger:
    """Stack of :class:`Action` entries, most recent on top."""

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._stack: list[Action] = []
        self._clock = clock or utc_now

    def record(self, kind: ActionKind, requester: Requester) -> Action:
        action = Action(kind=kind, requester=requester, timestamp=self._clock())
        self._stack.append(action)
        return action

    def has_entries(self) -> bool:
        return bool(self._stack)

    def count(self) -> int:
        return len(self._stack)

    def __len__(self) -> int:
        return self.count()

    def peek_top(self) -> Action | None:
        return self._stack[-1] if self._stack else None

    def pop_top(self) -> Action | None:
        return self._stack.pop() if self._stack else None

    def snapshot(self) -> list[Action]:
        """Copy of all entries, oldest first."""
        return list(self._stack)

    def render_chronological(self) -> str:
        """Render every entry, most recent first, numbered from 1.

        Example::

            1. SERVE - Requester: Ana (ID: 2) - 2025-03-01 10:42
            2. REGISTER - Requester: Ana (ID: 2) - 2025-03-01 10:15

        An empty ledger renders as ``""``.
        """
        newest_first = list(reversed(self._stack))
        return "\n".join(
            f"{n}. {action.describe()}" for n, action in enumerate(newest_first, start=1)
        )
