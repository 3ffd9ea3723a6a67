from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field

from loguru import logger

from ..core.config import Settings
from ..providers.base import BalanceStore
from ..providers.session import QueueNotifier, StaticActorProvider
from ..services.form import DailyBalanceForm


@dataclass
class FormSession:
    actor_id: int | None
    form: DailyBalanceForm
    notifier: QueueNotifier
    loaded: bool = False
    load_lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class FormRegistry:
    """One isolated balance form per actor."""

    def __init__(
        self,
        store: BalanceStore,
        settings: Settings,
        form_factory: Callable[..., DailyBalanceForm] = DailyBalanceForm,
    ):
        self.store = store
        self.settings = settings
        self._form_factory = form_factory
        self._sessions: dict[int | None, FormSession] = {}
        self._lock = asyncio.Lock()

    async def get(self, actor_id: int | None) -> FormSession:
        async with self._lock:
            session = self._sessions.get(actor_id)
            if session is None:
                notifier = QueueNotifier()
                form = self._form_factory(
                    self.store,
                    StaticActorProvider(actor_id),
                    notifier,
                    settings=self.settings,
                )
                session = FormSession(actor_id=actor_id, form=form, notifier=notifier)
                self._sessions[actor_id] = session
                logger.info("Balance form opened", actor_id=actor_id)

        async with session.load_lock:
            if not session.loaded:
                await session.form.load()
                session.loaded = True
        return session

    async def close_all(self) -> None:
        sessions = list(self._sessions.values())
        self._sessions.clear()
        for session in sessions:
            await session.form.close()
        await self.store.close()
        logger.info("Balance forms closed", count=len(sessions))
