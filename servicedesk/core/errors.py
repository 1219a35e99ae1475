"""Error kinds raised by the desk engine.

Every error leaves the waiting queue, the served history and the action
ledger exactly as they were before the failing call.
"""

from __future__ import annotations


class DeskError(Exception):
    """Base class for all service-desk errors."""


class ValidationError(DeskError):
    """Empty or invalid input."""


class NotFoundError(DeskError):
    """Lookup by id failed."""

    def __init__(self, requester_id: str, where: str) -> None:
        super().__init__(f"Requester {requester_id!r} not found in {where}")
        self.requester_id = requester_id
        self.where = where


class EmptyQueueError(DeskError):
    """Nothing is waiting to be served."""


class EmptyLedgerError(DeskError):
    """No recorded action is left to undo."""
