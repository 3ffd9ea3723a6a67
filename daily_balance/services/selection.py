from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime
from zoneinfo import ZoneInfo

from ..core.config import WeekStart
from .week import shift_week, week_bounds


WeekKey = tuple[date, date]


def local_today(timezone: str) -> Callable[[], date]:
    tz = ZoneInfo(timezone)

    def today() -> date:
        return datetime.now(tz).date()

    return today


class DateSelection:
    """Focused date plus the bounds of its calendar week."""

    def __init__(
        self,
        today: Callable[[], date],
        week_start: WeekStart = "monday",
        selected: date | None = None,
    ) -> None:
        self._today = today
        self.week_start = week_start
        self.selected = selected or today()

    @property
    def week(self) -> WeekKey:
        return week_bounds(self.selected, self.week_start)

    @property
    def today(self) -> date:
        return self._today()

    def select(self, day: date) -> bool:
        """Focus a date. Returns False when it was already selected."""
        if day == self.selected:
            return False
        self.selected = day
        return True

    def next_week(self) -> bool:
        return self.select(shift_week(self.selected, 1))

    def prev_week(self) -> bool:
        return self.select(shift_week(self.selected, -1))

    def go_to_today(self) -> bool:
        return self.select(self._today())
