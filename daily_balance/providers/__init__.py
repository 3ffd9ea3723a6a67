"""
Collaborators of the daily balance form: the remote balance store, actor
provider and notification surface.
"""

from .base import BalancePayload, BalanceStore
from .http_store import HttpBalanceStore
from .memory import InMemoryBalanceStore
from .session import (
    ActorProvider,
    Notifier,
    QueueNotifier,
    StaticActorProvider,
)

__all__ = [
    "ActorProvider",
    "BalancePayload",
    "BalanceStore",
    "HttpBalanceStore",
    "InMemoryBalanceStore",
    "Notifier",
    "QueueNotifier",
    "StaticActorProvider",
]
