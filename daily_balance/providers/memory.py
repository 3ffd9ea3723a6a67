from __future__ import annotations

import itertools
from collections import Counter
from datetime import date, datetime, timezone

from loguru import logger

from ..core.exceptions import EntryNotFoundError, MissingActorError, StoreError
from ..schemas.entries import DailyEntry, HistoryEntry
from .base import BalancePayload, BalanceStore


class InMemoryBalanceStore(BalanceStore):
    """
    In-process BalanceStore with the remote API's rules.

    Keeps at most one entry per date, snapshots the previous state into the
    history on every update and counts calls per operation.
    """

    def __init__(self, entries: list[DailyEntry] | None = None):
        self._entries: dict[int, DailyEntry] = {}
        self._history: dict[int, list[HistoryEntry]] = {}
        self._ids = itertools.count(1)
        self._history_ids = itertools.count(1)
        self.calls: Counter[str] = Counter()
        for entry in entries or []:
            self._entries[entry.id] = entry
        if self._entries:
            self._ids = itertools.count(max(self._entries) + 1)

    @property
    def entries(self) -> list[DailyEntry]:
        return sorted(self._entries.values(), key=lambda e: e.date)

    def by_date(self, day: date) -> DailyEntry | None:
        for entry in self._entries.values():
            if entry.date == day:
                return entry
        return None

    async def list_range(self, start: date, end: date) -> list[DailyEntry]:
        self.calls["list_range"] += 1
        items = [e for e in self._entries.values() if start <= e.date <= end]
        return sorted(items, key=lambda e: (e.date, e.id), reverse=True)

    async def create(self, payload: BalancePayload) -> DailyEntry:
        self.calls["create"] += 1
        if payload.actor_id is None:
            raise MissingActorError("No authenticated user found")
        if self.by_date(payload.date) is not None:
            raise StoreError(
                f"Balance for {payload.date.isoformat()} already exists",
                status_code=409,
            )

        now = datetime.now(timezone.utc)
        entry = DailyEntry(
            id=next(self._ids),
            date=payload.date,
            balance=payload.values,
            workflow_status=payload.workflow_status,
            created_by=payload.actor_id,
            updated_by=payload.actor_id,
            created_at=now,
            updated_at=now,
        )
        self._entries[entry.id] = entry
        logger.debug("Balance created in memory", entry_id=entry.id, date=entry.date.isoformat())
        return entry

    async def update(self, entry_id: int, payload: BalancePayload) -> DailyEntry:
        self.calls["update"] += 1
        existing = self._entries.get(entry_id)
        if existing is None:
            raise EntryNotFoundError("Balance not found")

        self._history.setdefault(entry_id, []).insert(
            0,
            HistoryEntry(
                id=next(self._history_ids),
                balance_id=entry_id,
                snapshot=existing,
                change_reason=payload.reason,
                changed_by=payload.actor_id,
                created_at=datetime.now(timezone.utc),
            ),
        )
        updated = existing.model_copy(
            update={
                "date": payload.date,
                "balance": payload.values,
                "workflow_status": payload.workflow_status,
                "updated_by": payload.actor_id or existing.updated_by,
                "updated_at": datetime.now(timezone.utc),
            }
        )
        self._entries[entry_id] = updated
        return updated

    async def history(self, entry_id: int) -> list[HistoryEntry]:
        self.calls["history"] += 1
        if entry_id not in self._entries:
            raise EntryNotFoundError("Balance not found")
        return list(self._history.get(entry_id, []))
