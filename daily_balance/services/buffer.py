from __future__ import annotations

from datetime import date
from typing import Any

from loguru import logger
from pydantic import ValidationError

from ..core.exceptions import InvalidFieldError
from ..schemas.entries import BalanceField, BalanceFields, DailyEntry


DEFAULT_WORKFLOW_STATUS = "DRAFT"


class EntryBuffer:
    """
    Editable copy of one day's entry plus the last snapshot known to be synced.

    The buffer is bound to a single date for its whole life; navigating to
    another date creates a new buffer instead of re-pointing this one, so a
    late save or fetch result can only ever touch the date it was issued for.

    Attributes:
        date: Calendar day this buffer edits
        current: Values as edited by the user
        original: Values last synced with the remote store
        entry_id: Persisted identifier, None until the first successful create
        workflow_status: Remote workflow status, sent back unchanged on update
        hydrated: True once a fetch for this date has resolved
    """

    def __init__(self, day: date):
        self.date = day
        self.current = BalanceFields()
        self.original = BalanceFields()
        self.entry_id: int | None = None
        self.workflow_status = DEFAULT_WORKFLOW_STATUS
        self.hydrated = False

    @property
    def is_dirty(self) -> bool:
        return self.current != self.original

    def update_field(self, field: BalanceField, value: Any) -> None:
        """Set one field on the current values; the original snapshot is never touched."""
        try:
            self.current = self.current.with_value(field, value)
        except ValidationError as e:
            raise InvalidFieldError(
                f"Invalid value for {field.value}: {value!r}",
                field=field.value,
            ) from e

    def set_original_data(
        self,
        snapshot: BalanceFields,
        entry_id: int | None = None,
        workflow_status: str | None = None,
    ) -> None:
        """Replace both current and original with a synced snapshot."""
        self.current = snapshot
        self.original = snapshot
        self.entry_id = entry_id
        self.workflow_status = workflow_status or DEFAULT_WORKFLOW_STATUS
        self.hydrated = True

    def hydrate(self, entry: DailyEntry) -> None:
        self.set_original_data(entry.balance, entry.id, entry.workflow_status)

    def reset_form(self) -> None:
        self.set_original_data(BalanceFields())

    def mark_saved(self, submitted: BalanceFields, entry: DailyEntry) -> None:
        """
        Record a successful save of the submitted values.

        Edits made while the request was in flight stay in current, so the
        buffer remains dirty for them.
        """
        self.original = submitted
        self.adopt(entry)

    def adopt(self, entry: DailyEntry) -> None:
        if self.entry_id is not None and self.entry_id != entry.id:
            logger.warning(
                "Persisted id changed for date",
                date=self.date.isoformat(),
                previous_id=self.entry_id,
                entry_id=entry.id,
            )
        self.entry_id = entry.id
        self.workflow_status = entry.workflow_status
