"""
Daily balance entry services.

Pure derivations (summary, status, week grid) plus the stateful pieces
behind the entry screen: buffer, autosave scheduler, save coordinator and
the form that ties them to the date selection.
"""

from .buffer import EntryBuffer
from .coordinator import SaveCoordinator
from .form import DailyBalanceForm
from .scheduler import AsyncioScheduler, AutosaveScheduler, Scheduler, VirtualScheduler
from .selection import DateSelection
from .summary import compute_summary, derive_status
from .week import project_week, shift_week, week_bounds

__all__ = [
    "AsyncioScheduler",
    "AutosaveScheduler",
    "DailyBalanceForm",
    "DateSelection",
    "EntryBuffer",
    "SaveCoordinator",
    "Scheduler",
    "VirtualScheduler",
    "compute_summary",
    "derive_status",
    "project_week",
    "shift_week",
    "week_bounds",
]
