"""
Actor and notification collaborators.

The notifier is the user-visible feedback surface: only explicit actions
(save, finalize) report through it, autosave stays silent.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Literal, Protocol

from loguru import logger

from ..schemas.api import Notification


class ActorProvider(Protocol):
    def current_actor_id(self) -> int | None:
        raise NotImplementedError


class StaticActorProvider:
    """Actor fixed at construction (one form per authenticated user)."""

    def __init__(self, actor_id: int | None):
        self.actor_id = actor_id

    def current_actor_id(self) -> int | None:
        return self.actor_id


class Notifier(Protocol):
    def success(self, message: str) -> None:
        raise NotImplementedError

    def error(self, message: str) -> None:
        raise NotImplementedError


class QueueNotifier:
    """Keeps recent notifications until the UI drains them."""

    def __init__(
        self,
        maxlen: int = 50,
        clock: Callable[[], datetime] | None = None,
    ):
        self._queue: deque[Notification] = deque(maxlen=maxlen)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def success(self, message: str) -> None:
        self._push("success", message)

    def error(self, message: str) -> None:
        self._push("error", message)

    def _push(self, level: Literal["success", "error"], message: str) -> None:
        logger.debug("Queue notification", level=level, message=message)
        self._queue.append(Notification(level=level, message=message, created_at=self._clock()))

    def drain(self) -> list[Notification]:
        items = list(self._queue)
        self._queue.clear()
        return items
