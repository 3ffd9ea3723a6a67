from __future__ import annotations

from ..schemas.entries import METHOD_FIELDS, SERVICE_FIELDS, BalanceFields
from ..schemas.summary import BalanceSummary, DayStatus


def compute_summary(values: BalanceFields, tolerance: int = 0) -> BalanceSummary:
    """
    Aggregate a day's fields into totals and a balanced verdict.

    Pure function: the same buffer always yields the same summary.

    Args:
        values: Current buffer values
        tolerance: Largest absolute difference still considered balanced
            (0 keeps exact equality)

    Returns:
        BalanceSummary with per-group totals and the difference
        total_by_method - total_by_service
    """
    total_by_method = sum(values.get(field) for field in METHOD_FIELDS)
    total_by_service = sum(values.get(field) for field in SERVICE_FIELDS)
    difference = total_by_method - total_by_service

    return BalanceSummary(
        total_by_method=total_by_method,
        total_by_service=total_by_service,
        expenses=values.expenses,
        difference=difference,
        balanced=abs(difference) <= tolerance,
    )


def has_method_income(values: BalanceFields) -> bool:
    return any(values.get(field) > 0 for field in METHOD_FIELDS)


def derive_status(values: BalanceFields, summary: BalanceSummary) -> DayStatus:
    """Classify a day from its buffer and summary."""
    if not has_method_income(values):
        return DayStatus.EMPTY
    if summary.balanced:
        return DayStatus.BALANCED
    return DayStatus.UNBALANCED
