from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .entries import BalanceFields


class DayStatus(str, Enum):
    EMPTY = "empty"
    # Part of the status domain, not produced by any derivation yet
    DRAFT = "draft"
    BALANCED = "balanced"
    UNBALANCED = "unbalanced"


class BalanceSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_by_method: int
    total_by_service: int
    expenses: int
    difference: int
    balanced: bool


class DayCell(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: date
    label: str
    day_number: int
    total: int
    status: DayStatus
    is_selected: bool
    is_today: bool


class DailyBalanceState(BaseModel):
    """Snapshot of everything the UI layer renders for the balance screen."""

    model_config = ConfigDict(frozen=True)

    selected_date: date
    week_start: date
    week_end: date
    values: BalanceFields
    summary: BalanceSummary
    status: DayStatus
    week: list[DayCell]
    entry_id: Optional[int] = None
    is_dirty: bool = False
    is_saving: bool = False
    is_loading: bool = False
    last_saved_at: Optional[datetime] = None
