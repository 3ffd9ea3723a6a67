from __future__ import annotations

from collections.abc import Iterable
from datetime import date, timedelta

from ..core.config import WeekStart
from ..schemas.entries import DailyEntry
from ..schemas.summary import DayCell, DayStatus


DAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

DAYS_IN_WEEK = 7


def week_bounds(anchor: date, week_start: WeekStart = "monday") -> tuple[date, date]:
    """Return the first and last day of the calendar week containing anchor."""
    if week_start == "sunday":
        offset = (anchor.weekday() + 1) % DAYS_IN_WEEK
    else:
        offset = anchor.weekday()
    start = anchor - timedelta(days=offset)
    return start, start + timedelta(days=DAYS_IN_WEEK - 1)


def shift_week(anchor: date, weeks: int) -> date:
    return anchor + timedelta(days=DAYS_IN_WEEK * weeks)


def daily_totals(entries: Iterable[DailyEntry]) -> dict[date, int]:
    """Map each date to the sum of its payment-method incomes."""
    totals: dict[date, int] = {}
    for entry in entries:
        totals[entry.date] = totals.get(entry.date, 0) + entry.method_total
    return totals


def project_week(
    anchor: date,
    entries: Iterable[DailyEntry],
    today: date,
    week_start: WeekStart = "monday",
) -> list[DayCell]:
    """
    Build the 7-day navigation grid for the week containing anchor.

    Per-day status is Balanced when any method income exists, else Empty;
    it only drives the week strip.

    Args:
        anchor: Selected date
        entries: Persisted entries fetched for the week (others are ignored)
        today: Current local date, for the is_today flag
        week_start: Week boundary convention

    Returns:
        Exactly seven DayCells, first day of the week first
    """
    start, _ = week_bounds(anchor, week_start)
    totals = daily_totals(entries)

    cells = []
    for offset in range(DAYS_IN_WEEK):
        day = start + timedelta(days=offset)
        total = totals.get(day, 0)
        cells.append(
            DayCell(
                date=day,
                label=DAY_LABELS[day.weekday()],
                day_number=day.day,
                total=total,
                status=DayStatus.BALANCED if total > 0 else DayStatus.EMPTY,
                is_selected=day == anchor,
                is_today=day == today,
            )
        )
    return cells
