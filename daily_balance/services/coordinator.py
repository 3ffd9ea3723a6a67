"""
Save coordination for daily entries.

Saves are single-flight per date: a save requested while another one for the
same date is in flight either joins it (buffer unchanged since that request
started) or waits for it and then submits the newer values. No two requests
for the same date are ever on the wire at once, so the identifier adopted by
a create is always visible to the next save and a date is never created
twice.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timezone

from loguru import logger

from ..core.exceptions import BalanceError, MissingActorError, ValidationGateError
from ..providers.base import BalancePayload, BalanceStore
from ..providers.session import ActorProvider, Notifier
from ..schemas.entries import BalanceFields, DailyEntry
from .buffer import EntryBuffer
from .summary import compute_summary


SAVED_MESSAGE = "Balance saved"
FINALIZED_MESSAGE = "Day finalized"
SAVE_FAILED_MESSAGE = "Error saving balance"
UNBALANCED_MESSAGE = "The balance does not add up"
NO_INCOME_MESSAGE = "No income recorded for the day"


@dataclass
class _InFlight:
    buffer: EntryBuffer
    snapshot: BalanceFields
    task: asyncio.Future


class SaveCoordinator:
    """
    Create-or-update of entry buffers against the remote balance store.

    Attributes:
        last_saved_at: Time of the last successful save, None before any
        tolerance: Largest absolute difference finalize still accepts
    """

    def __init__(
        self,
        store: BalanceStore,
        actors: ActorProvider,
        notifier: Notifier,
        tolerance: int = 0,
        clock: Callable[[], datetime] | None = None,
        on_saved: Callable[[EntryBuffer, DailyEntry], None] | None = None,
        on_change: Callable[[], None] | None = None,
    ):
        self._store = store
        self._actors = actors
        self._notifier = notifier
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._on_saved = on_saved
        self._on_change = on_change
        self._inflight: dict[date, _InFlight] = {}
        self._locks: dict[date, asyncio.Lock] = {}
        self._lock_users: Counter[date] = Counter()
        self._known_ids: dict[date, int] = {}
        self.tolerance = tolerance
        self.last_saved_at: datetime | None = None

    @property
    def is_saving(self) -> bool:
        return bool(self._inflight)

    def is_saving_for(self, day: date) -> bool:
        return day in self._inflight

    def known_id(self, day: date) -> int | None:
        return self._known_ids.get(day)

    def forget_ids_outside(self, start: date, end: date) -> None:
        """Drop remembered ids of dates outside [start, end] with no save pending."""
        for day in list(self._known_ids):
            if not start <= day <= end and day not in self._locks:
                del self._known_ids[day]

    async def save(
        self,
        buffer: EntryBuffer,
        *,
        silent: bool = False,
        success_message: str = SAVED_MESSAGE,
    ) -> DailyEntry | None:
        """
        Persist the buffer if it is dirty.

        Args:
            buffer: Buffer to save
            silent: Autosave mode; failures are logged instead of notified
                and never raised
            success_message: Message notified on success of an explicit save

        Returns:
            The persisted entry, or None when there was nothing to save
            (or a silent save failed)

        Raises:
            BalanceError: Explicit save failed; the buffer stays dirty
        """
        try:
            entry = await self._save_once(buffer)
        except BalanceError as e:
            if silent:
                logger.warning(
                    "Autosave failed",
                    date=buffer.date.isoformat(),
                    error=e.message,
                )
                return None
            logger.warning("Save failed", date=buffer.date.isoformat(), error=e.message)
            self._notifier.error(e.message or SAVE_FAILED_MESSAGE)
            raise

        if entry is not None and not silent:
            self._notifier.success(success_message)
        return entry

    async def finalize(self, buffer: EntryBuffer) -> DailyEntry | None:
        """
        Close the day: requires a balanced buffer with method income.

        A clean buffer is already persisted, so finalize reports success
        without touching the network.

        Raises:
            ValidationGateError: Unbalanced or zero method total
            BalanceError: The save needed to finalize failed
        """
        summary = compute_summary(buffer.current, self.tolerance)
        if not summary.balanced or summary.total_by_method <= 0:
            message = UNBALANCED_MESSAGE if not summary.balanced else NO_INCOME_MESSAGE
            logger.info(
                "Finalize refused",
                date=buffer.date.isoformat(),
                difference=summary.difference,
                total_by_method=summary.total_by_method,
            )
            self._notifier.error(message)
            raise ValidationGateError(message)

        if not buffer.is_dirty:
            self._notifier.success(FINALIZED_MESSAGE)
            return None

        return await self.save(buffer, success_message=FINALIZED_MESSAGE)

    async def wait_idle(self, exclude: date | None = None) -> None:
        """Wait until saves for every date other than exclude have settled."""
        pending = [f.task for day, f in self._inflight.items() if day != exclude]
        if pending:
            await asyncio.wait(pending)

    async def _save_once(self, buffer: EntryBuffer) -> DailyEntry | None:
        key = buffer.date
        inflight = self._inflight.get(key)
        if inflight is not None and inflight.snapshot == buffer.current:
            logger.debug("Joining in-flight save", date=key.isoformat())
            entry = await asyncio.shield(inflight.task)
            if buffer is not inflight.buffer:
                buffer.mark_saved(inflight.snapshot, entry)
            return entry

        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] += 1
        try:
            async with lock:
                if not buffer.is_dirty:
                    return None

                snapshot = buffer.current
                task = asyncio.ensure_future(self._submit(buffer, snapshot))
                current = _InFlight(buffer=buffer, snapshot=snapshot, task=task)
                self._inflight[key] = current
                self._changed()
                try:
                    return await asyncio.shield(task)
                finally:
                    if self._inflight.get(key) is current:
                        del self._inflight[key]
                    self._changed()
        finally:
            self._lock_users[key] -= 1
            if self._lock_users[key] <= 0:
                del self._lock_users[key]
                del self._locks[key]

    async def _submit(self, buffer: EntryBuffer, snapshot: BalanceFields) -> DailyEntry:
        entry_id = buffer.entry_id or self._known_ids.get(buffer.date)
        actor_id = self._actors.current_actor_id()
        payload = BalancePayload(
            date=buffer.date,
            values=snapshot,
            workflow_status=buffer.workflow_status,
            actor_id=actor_id,
        )

        if entry_id is not None:
            entry = await self._store.update(entry_id, payload)
            logger.info("Balance updated", date=buffer.date.isoformat(), entry_id=entry.id)
        else:
            if actor_id is None:
                raise MissingActorError("No authenticated user found")
            entry = await self._store.create(payload)
            logger.info("Balance created", date=buffer.date.isoformat(), entry_id=entry.id)

        self._known_ids[buffer.date] = entry.id
        buffer.mark_saved(snapshot, entry)
        self.last_saved_at = self._clock()
        if self._on_saved is not None:
            self._on_saved(buffer, entry)
        return entry

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()
