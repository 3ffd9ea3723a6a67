from __future__ import annotations

import asyncio
from datetime import date, datetime, timezone

import pytest

from daily_balance.core.config import Settings
from daily_balance.core.exceptions import StoreError
from daily_balance.providers.base import BalancePayload
from daily_balance.providers.memory import InMemoryBalanceStore
from daily_balance.providers.session import StaticActorProvider
from daily_balance.services.form import DailyBalanceForm
from daily_balance.services.scheduler import VirtualScheduler

# Wednesday
TODAY = date(2025, 3, 12)
FIXED_NOW = datetime(2025, 3, 12, 15, 30, tzinfo=timezone.utc)


class RecordingNotifier:
    def __init__(self):
        self.successes: list[str] = []
        self.errors: list[str] = []

    def success(self, message: str) -> None:
        self.successes.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)


class ControlledStore(InMemoryBalanceStore):
    """In-memory store whose calls can be held open or made to fail."""

    def __init__(self, entries=None):
        super().__init__(entries)
        self.gate: asyncio.Event | None = None
        self.list_gate: asyncio.Event | None = None
        self.started = 0
        self.failures: list[Exception] = []
        self.list_failures: list[Exception | None] = []
        self.payloads: list[BalancePayload] = []

    def hold(self) -> asyncio.Event:
        self.gate = asyncio.Event()
        return self.gate

    def hold_lists(self) -> asyncio.Event:
        self.list_gate = asyncio.Event()
        return self.list_gate

    async def _enter(self) -> None:
        self.started += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.failures:
            raise self.failures.pop(0)

    async def create(self, payload):
        self.payloads.append(payload)
        await self._enter()
        return await super().create(payload)

    async def update(self, entry_id, payload):
        self.payloads.append(payload)
        await self._enter()
        return await super().update(entry_id, payload)

    async def list_range(self, start, end):
        if self.list_gate is not None:
            gate = self.list_gate
            await gate.wait()
        if self.list_failures:
            failure = self.list_failures.pop(0)
            if failure is not None:
                raise failure
        return await super().list_range(start, end)

    @property
    def network_calls(self) -> int:
        return self.calls["create"] + self.calls["update"]


async def settle() -> None:
    """Let tasks spawned on the loop run until they block."""
    for _ in range(20):
        await asyncio.sleep(0)


def network_error(message: str = "Balance API timed out after 10.0s") -> StoreError:
    return StoreError(message, retryable=True)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        autosave_delay_ms=2000,
        week_start="monday",
        balance_tolerance=0,
        timezone="UTC",
        default_actor_id=None,
    )


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def store() -> ControlledStore:
    return ControlledStore()


@pytest.fixture
def scheduler() -> VirtualScheduler:
    return VirtualScheduler()


@pytest.fixture
def make_form(store, notifier, scheduler, settings):
    def factory(actor_id: int | None = 7, **overrides) -> DailyBalanceForm:
        return DailyBalanceForm(
            overrides.get("store", store),
            StaticActorProvider(actor_id),
            overrides.get("notifier", notifier),
            settings=overrides.get("settings", settings),
            scheduler=overrides.get("scheduler", scheduler),
            today=lambda: TODAY,
            clock=lambda: FIXED_NOW,
        )

    return factory
