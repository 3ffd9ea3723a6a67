"""
Daily balance form: the state container behind the balance entry screen.

One instance per actor. It owns the date selection, the entry buffer of the
selected date, the week cache, the autosave debouncer and the save
coordinator, and notifies subscribers with an immutable snapshot after every
transition.

Every week fetch is tagged with the week it was issued for and the cache
generation at issue time. A result for a week that is no longer selected is
discarded; one that predates a save is fetched again.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from collections.abc import Awaitable, Callable
from datetime import date, datetime
from typing import Any

from loguru import logger

from ..core.config import Settings, get_settings
from ..core.exceptions import StoreError
from ..providers.base import BalanceStore
from ..providers.session import ActorProvider, Notifier
from ..schemas.entries import BalanceField, DailyEntry, HistoryEntry
from ..schemas.summary import DailyBalanceState
from .buffer import EntryBuffer
from .coordinator import SaveCoordinator
from .scheduler import AsyncioScheduler, AutosaveScheduler, Scheduler
from .selection import DateSelection, WeekKey, local_today
from .summary import compute_summary, derive_status
from .week import project_week


Listener = Callable[[DailyBalanceState], None]


class DailyBalanceForm:
    def __init__(
        self,
        store: BalanceStore,
        actors: ActorProvider,
        notifier: Notifier,
        *,
        settings: Settings | None = None,
        scheduler: Scheduler | None = None,
        today: Callable[[], date] | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        settings = settings or get_settings()
        self._store = store
        self._notifier = notifier
        self.tolerance = settings.balance_tolerance
        self.selection = DateSelection(
            today or local_today(settings.timezone),
            week_start=settings.week_start,
        )
        self.buffer = EntryBuffer(self.selection.selected)
        self.autosave = AutosaveScheduler(scheduler or AsyncioScheduler(), settings.autosave_delay)
        self.coordinator = SaveCoordinator(
            store,
            actors,
            notifier,
            tolerance=self.tolerance,
            clock=clock,
            on_saved=self._on_saved,
            on_change=self._emit,
        )
        self._week_cache: dict[WeekKey, list[DailyEntry]] = {}
        self._generation = 0
        self._shown: tuple[WeekKey, list[DailyEntry]] | None = None
        self._loading: Counter[WeekKey] = Counter()
        self._stale = False
        self._listeners: list[Listener] = []
        self._background: set[asyncio.Task] = set()
        self._closed = False

    # State

    def state(self) -> DailyBalanceState:
        values = self.buffer.current
        summary = compute_summary(values, self.tolerance)
        week_key = self.selection.week
        entries = self._shown[1] if self._shown and self._shown[0] == week_key else []

        return DailyBalanceState(
            selected_date=self.selection.selected,
            week_start=week_key[0],
            week_end=week_key[1],
            values=values,
            summary=summary,
            status=derive_status(values, summary),
            week=project_week(
                self.selection.selected,
                entries,
                today=self.selection.today,
                week_start=self.selection.week_start,
            ),
            entry_id=self.buffer.entry_id,
            is_dirty=self.buffer.is_dirty,
            is_saving=self.coordinator.is_saving_for(self.buffer.date),
            is_loading=self._loading[week_key] > 0,
            last_saved_at=self.coordinator.last_saved_at,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns the function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self) -> None:
        if not self._listeners:
            return
        snapshot = self.state()
        for listener in list(self._listeners):
            listener(snapshot)

    # Loading

    async def load(self) -> DailyBalanceState:
        await self._load_selected()
        return self.state()

    async def refresh_week(self) -> DailyBalanceState:
        self._invalidate()
        await self._load_selected()
        return self.state()

    async def _load_selected(self) -> None:
        key = self.selection.week
        while True:
            generation = self._generation
            entries = self._week_cache.get(key)
            if entries is not None:
                break

            entries = await self._fetch(key)
            if self.selection.week != key:
                logger.warning(
                    "Discarding stale week response",
                    week_start=key[0].isoformat(),
                    selected=self.selection.selected.isoformat(),
                )
                self._emit()
                return
            if self._generation == generation:
                self._week_cache[key] = entries
                break
            # a save landed while the request was out; its result may predate it
            logger.debug("Week changed during fetch, fetching again", week_start=key[0].isoformat())

        await self._apply_week(key, entries)
        self._emit()

    async def _fetch(self, key: WeekKey) -> list[DailyEntry]:
        self._loading[key] += 1
        self._emit()
        try:
            return await self._store.list_range(*key)
        except StoreError as e:
            logger.warning(
                "Week fetch failed",
                week_start=key[0].isoformat(),
                error=e.message,
            )
            raise
        finally:
            self._loading[key] -= 1
            if self._loading[key] <= 0:
                del self._loading[key]

    async def _apply_week(self, key: WeekKey, entries: list[DailyEntry]) -> None:
        self._shown = (key, entries)
        buffer = self.buffer
        match = next((e for e in entries if e.date == buffer.date), None)

        if match is not None:
            _merge(buffer, match)
            return

        if buffer.hydrated or buffer.is_dirty:
            buffer.hydrated = True
            return

        if self.coordinator.is_saving and not self.coordinator.is_saving_for(buffer.date):
            await self.coordinator.wait_idle(exclude=buffer.date)
            if self.buffer is not buffer or buffer.hydrated or buffer.is_dirty:
                return
        buffer.reset_form()

    async def _reconcile(self, buffer: EntryBuffer) -> None:
        """
        Resolve whether a buffer's date is already persisted before saving it.

        Only needed when no week fetch ever resolved for the buffer; a create
        is never sent for a date whose persisted state is unknown.

        Raises:
            StoreError: The lookup failed; nothing is saved
        """
        if not buffer.is_dirty or buffer.hydrated or buffer.entry_id is not None:
            return
        if self.coordinator.known_id(buffer.date) is not None:
            return

        entries = await self._store.list_range(buffer.date, buffer.date)
        match = next((e for e in entries if e.date == buffer.date), None)
        if match is not None:
            logger.info(
                "Found persisted entry for unloaded date",
                date=buffer.date.isoformat(),
                entry_id=match.id,
            )
            _merge(buffer, match)
        else:
            buffer.hydrated = True

    def _invalidate(self) -> None:
        self._week_cache.clear()
        self._generation += 1

    def _on_saved(self, buffer: EntryBuffer, entry: DailyEntry) -> None:
        self._invalidate()
        self._stale = True

    async def _refresh_if_stale(self) -> None:
        if not self._stale or self._closed:
            return
        self._stale = False
        try:
            await self._load_selected()
        except StoreError:
            self._stale = True

    # Navigation

    async def select_date(self, day: date) -> DailyBalanceState:
        if self.selection.select(day):
            await self._switch_buffer()
        return self.state()

    async def next_week(self) -> DailyBalanceState:
        if self.selection.next_week():
            await self._switch_buffer()
        return self.state()

    async def prev_week(self) -> DailyBalanceState:
        if self.selection.prev_week():
            await self._switch_buffer()
        return self.state()

    async def go_to_today(self) -> DailyBalanceState:
        if self.selection.go_to_today():
            await self._switch_buffer()
        return self.state()

    async def _switch_buffer(self) -> None:
        self.autosave.cancel()
        previous = self.buffer
        if previous.is_dirty:
            logger.info("Flushing unsaved edits before leaving date", date=previous.date.isoformat())
            self._spawn(self._autosave_buffer(previous))

        self.buffer = EntryBuffer(self.selection.selected)
        self.coordinator.forget_ids_outside(*self.selection.week)
        logger.info("Date selected", date=self.buffer.date.isoformat())
        self._emit()
        await self._load_selected()

    # Editing and saving

    def update_field(self, field: BalanceField, value: Any) -> DailyBalanceState:
        """Apply one edit and restart the autosave idle window."""
        buffer = self.buffer
        buffer.update_field(field, value)
        self.autosave.touch(lambda: buffer.is_dirty, lambda: self._autosave_buffer(buffer))
        self._emit()
        return self.state()

    async def save(self) -> DailyEntry | None:
        """Explicit save; failures are notified and raised."""
        return await self._explicit(self.coordinator.save)

    async def finalize(self) -> DailyEntry | None:
        return await self._explicit(self.coordinator.finalize)

    async def _explicit(
        self, action: Callable[[EntryBuffer], Awaitable[DailyEntry | None]]
    ) -> DailyEntry | None:
        buffer = self.buffer
        self.autosave.cancel()
        await self._refresh_if_stale()
        try:
            await self._reconcile(buffer)
        except StoreError as e:
            logger.warning(
                "Save aborted, entry lookup failed",
                date=buffer.date.isoformat(),
                error=e.message,
            )
            self._notifier.error(e.message)
            self._emit()
            raise

        try:
            entry = await action(buffer)
        finally:
            self._emit()
        await self._refresh_if_stale()
        return entry

    async def _autosave_buffer(self, buffer: EntryBuffer) -> None:
        try:
            await self._reconcile(buffer)
        except StoreError as e:
            logger.warning(
                "Autosave skipped, entry lookup failed",
                date=buffer.date.isoformat(),
                error=e.message,
            )
            return
        await self.coordinator.save(buffer, silent=True)
        await self._refresh_if_stale()
        self._emit()

    async def history(self) -> list[HistoryEntry]:
        entry_id = self.buffer.entry_id
        if entry_id is None:
            return []
        return await self._store.history(entry_id)

    # Lifecycle

    def _spawn(self, coro: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def close(self) -> None:
        """Cancel pending autosave and let flushes already started settle."""
        self._closed = True
        self.autosave.cancel()
        if self._background:
            await asyncio.gather(*list(self._background))
        self._listeners.clear()


def _merge(buffer: EntryBuffer, entry: DailyEntry) -> None:
    if buffer.is_dirty:
        # keep unsaved edits, only learn where they must be saved
        buffer.adopt(entry)
        buffer.hydrated = True
    else:
        buffer.hydrate(entry)
