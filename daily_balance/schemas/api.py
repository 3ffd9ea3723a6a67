from datetime import date, datetime
from typing import Literal, Optional, Union

from pydantic import BaseModel

from .entries import BalanceField, DailyEntry
from .summary import DailyBalanceState


class FieldUpdate(BaseModel):
    field: BalanceField
    value: Union[int, str]


class DateSelectionRequest(BaseModel):
    date: date


class Notification(BaseModel):
    level: Literal["success", "error"]
    message: str
    created_at: datetime


class SaveResponse(BaseModel):
    saved: bool
    entry: Optional[DailyEntry] = None
    state: DailyBalanceState
