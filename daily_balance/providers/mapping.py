"""
Field mapping between local names and the remote balance schema.

Responses use snake_case column names, request bodies use camelCase; both
are a straight 1:1 rename of the local fields.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from ..schemas.entries import AMOUNT_FIELDS, BalanceField, BalanceFields, DailyEntry, HistoryEntry
from .base import BalancePayload


REMOTE_FIELD_NAMES: dict[BalanceField, str] = {
    BalanceField.CARD: "ingreso_tarjetas",
    BalanceField.TRANSFER: "ingreso_transferencias",
    BalanceField.CASH: "ingreso_efectivo",
    BalanceField.CONSULTATIONS: "consultas_count",
    BalanceField.CONTROLS: "controles_count",
    BalanceField.TESTS: "tests_count",
    BalanceField.VACCINES: "vacunas_count",
    BalanceField.LICENSES: "licencias_count",
    BalanceField.OTHER_TREATMENT: "roxair_count",
    BalanceField.MISC: "otros_abonos",
    BalanceField.EXPENSES: "gastos_diarios",
    BalanceField.NOTE: "comentarios",
}

PAYLOAD_FIELD_NAMES: dict[BalanceField, str] = {
    BalanceField.CARD: "ingresoTarjetas",
    BalanceField.TRANSFER: "ingresoTransferencias",
    BalanceField.CASH: "ingresoEfectivo",
    BalanceField.CONSULTATIONS: "consultas",
    BalanceField.CONTROLS: "controles",
    BalanceField.TESTS: "tests",
    BalanceField.VACCINES: "vacunas",
    BalanceField.LICENSES: "licencias",
    BalanceField.OTHER_TREATMENT: "roxair",
    BalanceField.MISC: "otrosAbonos",
    BalanceField.EXPENSES: "gastosDiarios",
    BalanceField.NOTE: "comentarios",
}


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _lookup(item: dict[str, Any], name: str) -> Any:
    """Read a snake_case key, falling back to its camelCase spelling."""
    if name in item:
        return item[name]
    return item.get(_camel(name))


def _as_int(value: Any) -> int:
    if value is None or value == "":
        return 0
    return int(round(float(value)))


def _parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def fields_from_remote(item: dict[str, Any]) -> BalanceFields:
    data: dict[str, Any] = {
        field.value: _as_int(_lookup(item, REMOTE_FIELD_NAMES[field])) for field in AMOUNT_FIELDS
    }
    data[BalanceField.NOTE.value] = _lookup(item, REMOTE_FIELD_NAMES[BalanceField.NOTE]) or ""
    return BalanceFields.model_validate(data)


def entry_from_remote(item: dict[str, Any]) -> DailyEntry:
    """Build a DailyEntry from one remote item (balance_date or date key)."""
    raw_date = _lookup(item, "balance_date") or item.get("date")
    if raw_date is None:
        raise ValueError("Remote balance item has no date")

    return DailyEntry(
        id=int(item["id"]),
        date=_parse_date(raw_date),
        balance=fields_from_remote(item),
        workflow_status=item.get("status") or "DRAFT",
        created_by=_lookup(item, "created_by"),
        updated_by=_lookup(item, "updated_by"),
        created_at=_lookup(item, "created_at"),
        updated_at=_lookup(item, "updated_at"),
    )


def history_from_remote(item: dict[str, Any], balance_id: int | None = None) -> HistoryEntry:
    """
    Build a HistoryEntry from one remote history item.

    The history route may send only id, change_reason and created_at; the
    owning entry id then comes from the request and the snapshot stays None.
    """
    raw_balance_id = _lookup(item, "balance_id")
    if raw_balance_id is None:
        raw_balance_id = balance_id
    if raw_balance_id is None:
        raise ValueError("Remote history item has no balance id")

    snapshot = item.get("snapshot")
    return HistoryEntry(
        id=int(item["id"]),
        balance_id=int(raw_balance_id),
        snapshot=entry_from_remote(snapshot) if isinstance(snapshot, dict) else None,
        change_reason=_lookup(item, "change_reason"),
        changed_by=_lookup(item, "changed_by") or _lookup(item, "created_by"),
        created_at=_lookup(item, "created_at"),
    )


def payload_to_remote(payload: BalancePayload) -> dict[str, Any]:
    """Serialize a payload as the remote request body."""
    body: dict[str, Any] = {"date": payload.date.isoformat()}
    for field, remote_name in PAYLOAD_FIELD_NAMES.items():
        body[remote_name] = payload.values.get(field)
    body["status"] = payload.workflow_status
    if payload.actor_id is not None:
        body["createdBy"] = payload.actor_id
    if payload.reason:
        body["reason"] = payload.reason
    return body
