from .entries import (
    AMOUNT_FIELDS,
    METHOD_FIELDS,
    SERVICE_FIELDS,
    BalanceField,
    BalanceFields,
    DailyEntry,
    HistoryEntry,
)
from .summary import BalanceSummary, DailyBalanceState, DayCell, DayStatus

__all__ = [
    "AMOUNT_FIELDS",
    "METHOD_FIELDS",
    "SERVICE_FIELDS",
    "BalanceField",
    "BalanceFields",
    "BalanceSummary",
    "DailyBalanceState",
    "DailyEntry",
    "DayCell",
    "DayStatus",
    "HistoryEntry",
]
