from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class BalanceField(str, Enum):
    """Editable fields of a daily entry."""

    CARD = "card"
    TRANSFER = "transfer"
    CASH = "cash"
    CONSULTATIONS = "consultations"
    CONTROLS = "controls"
    TESTS = "tests"
    VACCINES = "vaccines"
    LICENSES = "licenses"
    OTHER_TREATMENT = "other_treatment"
    MISC = "misc"
    EXPENSES = "expenses"
    NOTE = "note"


METHOD_FIELDS: tuple[BalanceField, ...] = (
    BalanceField.CARD,
    BalanceField.TRANSFER,
    BalanceField.CASH,
)

SERVICE_FIELDS: tuple[BalanceField, ...] = (
    BalanceField.CONSULTATIONS,
    BalanceField.CONTROLS,
    BalanceField.TESTS,
    BalanceField.VACCINES,
    BalanceField.LICENSES,
    BalanceField.OTHER_TREATMENT,
    BalanceField.MISC,
)

AMOUNT_FIELDS: tuple[BalanceField, ...] = METHOD_FIELDS + SERVICE_FIELDS + (BalanceField.EXPENSES,)


class BalanceFields(BaseModel):
    """Editable values of one day. Amounts are whole currency units."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    card: int = Field(0, ge=0)
    transfer: int = Field(0, ge=0)
    cash: int = Field(0, ge=0)
    consultations: int = Field(0, ge=0)
    controls: int = Field(0, ge=0)
    tests: int = Field(0, ge=0)
    vaccines: int = Field(0, ge=0)
    licenses: int = Field(0, ge=0)
    other_treatment: int = Field(0, ge=0)
    misc: int = Field(0, ge=0)
    expenses: int = Field(0, ge=0)
    note: str = ""

    def get(self, field: BalanceField) -> Any:
        return getattr(self, field.value)

    def with_value(self, field: BalanceField, value: Any) -> "BalanceFields":
        """Return a validated copy with one field replaced."""
        data = self.model_dump()
        data[field.value] = value
        return BalanceFields.model_validate(data)


class DailyEntry(BaseModel):
    """A persisted day as returned by the remote balance store."""

    id: int
    date: date
    balance: BalanceFields = Field(default_factory=BalanceFields)
    workflow_status: str = "DRAFT"
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def method_total(self) -> int:
        return sum(self.balance.get(field) for field in METHOD_FIELDS)


class HistoryEntry(BaseModel):
    id: int
    balance_id: int
    snapshot: Optional[DailyEntry] = None
    change_reason: Optional[str] = None
    changed_by: Optional[int] = None
    created_at: Optional[datetime] = None
