"""Custom field store: validation and persistence for user-defined vessel columns.

A custom field document has the wire shape::

    {"header": str, "headertype": str,
     "customData": [{"imoNumber": str, "data": str}, ...]}

Every write goes through ``validate_custom_field`` first. A document with any
violation is rejected whole; nothing is flushed to the session.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from shipradar.models.custom_field import CustomField, CustomFieldEntry

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("header", "headertype")
REQUIRED_ENTRY_FIELDS = ("imoNumber", "data")


@dataclass(frozen=True)
class FieldViolation:
    field: str
    message: str


class CustomFieldValidationError(ValueError):
    """Raised when a custom field write is missing required attributes."""

    def __init__(self, violations: list[FieldViolation]):
        self.violations = violations
        fields = ", ".join(v.field for v in violations)
        super().__init__(f"CustomField validation failed: {fields}")


def _check_required(value: Any, path: str) -> Optional[FieldViolation]:
    """Stricter than a plain presence check: blank strings count as missing
    and numbers are not cast to strings, they are rejected.
    """
    if value is None:
        return FieldViolation(path, f"Path `{path}` is required.")
    if not isinstance(value, str):
        return FieldViolation(path, f"must be a string, got {type(value).__name__}")
    if not value.strip():
        return FieldViolation(path, f"Path `{path}` is required.")
    return None


def validate_entries(entries: Any, offset: int = 0, required: bool = False) -> list[FieldViolation]:
    """Validate a customData list. ``offset`` shifts reported indexes for appends.

    A missing list is allowed on create and rejected when ``required`` is set.
    """
    if entries is None:
        return [FieldViolation("customData", "Path `customData` is required.")] if required else []
    if not isinstance(entries, list):
        return [FieldViolation("customData", "must be a list")]

    violations: list[FieldViolation] = []
    for i, entry in enumerate(entries, start=offset):
        if not isinstance(entry, Mapping):
            violations.append(FieldViolation(f"customData.{i}", "must be an object"))
            continue
        for key in REQUIRED_ENTRY_FIELDS:
            violation = _check_required(entry.get(key), f"customData.{i}.{key}")
            if violation:
                violations.append(violation)
    return violations


def validate_custom_field(document: Any) -> list[FieldViolation]:
    """Return every violated constraint of ``document``; empty list means valid."""
    if not isinstance(document, Mapping):
        return [FieldViolation("document", "must be an object")]

    violations: list[FieldViolation] = []
    for key in REQUIRED_FIELDS:
        violation = _check_required(document.get(key), key)
        if violation:
            violations.append(violation)
    violations.extend(validate_entries(document.get("customData")))
    return violations


def ensure_valid_custom_field(document: Any) -> None:
    violations = validate_custom_field(document)
    if violations:
        raise CustomFieldValidationError(violations)


def _utcnow() -> datetime:
    # Stored naive, in UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _touch(field: CustomField) -> None:
    field.updated_at = _utcnow()


def _append(field: CustomField, entries: Iterable[Mapping]) -> None:
    position = len(field.entries)
    for entry in entries:
        field.entries.append(CustomFieldEntry(
            position=position,
            imo_number=entry["imoNumber"],
            data=entry["data"],
        ))
        position += 1


def create_custom_field(db: Session, document: Mapping) -> CustomField:
    """Validate and insert a new custom field. createdAt == updatedAt on insert."""
    ensure_valid_custom_field(document)

    now = _utcnow()
    field = CustomField(
        header=document["header"],
        headertype=document["headertype"],
        created_at=now,
        updated_at=now,
    )
    _append(field, document.get("customData") or [])
    db.add(field)
    db.commit()
    db.refresh(field)
    logger.info("Created custom field %d (%s) with %d entries",
                field.custom_field_id, field.header, len(field.entries))
    return field


def get_custom_field(db: Session, custom_field_id: int) -> Optional[CustomField]:
    return db.query(CustomField).filter(CustomField.custom_field_id == custom_field_id).first()


def list_custom_fields(db: Session, skip: int = 0, limit: int = 50) -> tuple[list[CustomField], int]:
    q = db.query(CustomField)
    total = q.count()
    fields = q.order_by(CustomField.custom_field_id).offset(skip).limit(limit).all()
    return fields, total


def list_fields_for_imo(db: Session, imo_number: str) -> list[tuple[str, str]]:
    """(header, data) pairs attached to one vessel, in header order."""
    rows = (
        db.query(CustomField.header, CustomFieldEntry.data)
        .join(CustomFieldEntry, CustomFieldEntry.custom_field_id == CustomField.custom_field_id)
        .filter(func.trim(CustomFieldEntry.imo_number) == imo_number.strip())
        .order_by(CustomField.custom_field_id, CustomFieldEntry.position)
        .all()
    )
    return [(header, data) for header, data in rows]


def update_custom_field(db: Session, field: CustomField, changes: Mapping) -> CustomField:
    """Apply header/headertype changes. updatedAt moves only if a value changed."""
    merged = {
        "header": changes.get("header", field.header),
        "headertype": changes.get("headertype", field.headertype),
    }
    ensure_valid_custom_field(merged)

    changed = False
    for key, value in merged.items():
        if getattr(field, key) != value:
            setattr(field, key, value)
            changed = True
    if changed:
        _touch(field)
        db.commit()
        db.refresh(field)
    return field


def append_entries(db: Session, field: CustomField, entries: Any) -> CustomField:
    """Append (imoNumber, data) entries after the existing ones."""
    violations = validate_entries(entries, offset=len(field.entries), required=True)
    if violations:
        raise CustomFieldValidationError(violations)
    if not entries:
        return field

    _append(field, entries)
    _touch(field)
    db.commit()
    db.refresh(field)
    return field


def replace_entry(db: Session, field: CustomField, index: int, entry: Any) -> CustomField:
    """Edit the entry at ``index``. Raises IndexError if there is no such entry."""
    if index < 0 or index >= len(field.entries):
        raise IndexError(f"custom field {field.custom_field_id} has no entry {index}")
    violations = validate_entries([entry], offset=index)
    if violations:
        raise CustomFieldValidationError(violations)

    target = field.entries[index]
    if target.imo_number == entry["imoNumber"] and target.data == entry["data"]:
        return field
    target.imo_number = entry["imoNumber"]
    target.data = entry["data"]
    _touch(field)
    db.commit()
    db.refresh(field)
    return field
