"""
Collaborator interfaces for the daily balance feature.

The remote balance store is the single source of truth; actor and notifier
providers supply attribution and user-visible feedback.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date

from ..schemas.entries import BalanceFields, DailyEntry, HistoryEntry


@dataclass(frozen=True)
class BalancePayload:
    """
    Values submitted for one day on create or update.

    Attributes:
        date: Calendar day the values belong to
        values: Buffer values as submitted
        workflow_status: Remote workflow status ("DRAFT" or "FINAL")
        actor_id: Acting user, recorded as creator on create
        reason: Optional change reason stored with the update history
    """
    date: date
    values: BalanceFields
    workflow_status: str = "DRAFT"
    actor_id: int | None = None
    reason: str | None = None


class BalanceStore(ABC):
    """Remote store of persisted daily entries."""

    @abstractmethod
    async def list_range(self, start: date, end: date) -> list[DailyEntry]:
        """Return persisted entries with start <= date <= end."""
        pass

    @abstractmethod
    async def create(self, payload: BalancePayload) -> DailyEntry:
        """Create the entry for payload.date and return it with its new id."""
        pass

    @abstractmethod
    async def update(self, entry_id: int, payload: BalancePayload) -> DailyEntry:
        """Overwrite an existing entry (last write wins)."""
        pass

    @abstractmethod
    async def history(self, entry_id: int) -> list[HistoryEntry]:
        """Return prior snapshots of an entry, newest first."""
        pass

    async def close(self) -> None:
        pass
