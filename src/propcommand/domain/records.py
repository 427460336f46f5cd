"""Helpers shared by the record manager services."""

from dataclasses import fields, replace
from typing import Any, Mapping, TypeVar

from propcommand.database.collections import RecordCollection
from propcommand.domain.errors import NotFoundError, ValidationError, record_not_found

T = TypeVar("T")


def require_record(collection: RecordCollection[T], kind: str, record_id: str) -> T:
    """Get a record by id.

    Raises:
        NotFoundError: If the record does not exist
    """
    record = collection.get(record_id)
    if record is None:
        raise NotFoundError(record_not_found(kind, record_id))
    return record


def apply_changes(record: T, changes: Mapping[str, Any], immutable: tuple[str, ...] = ("id",)) -> T:
    """Return a copy of record with the non-None changes applied.

    Raises:
        ValidationError: If a change names an unknown or immutable field
    """
    known = {f.name for f in fields(record)}
    updates = {}
    for name, value in changes.items():
        if name not in known or name in immutable:
            raise ValidationError(f"Cannot update field '{name}'")
        if value is not None:
            updates[name] = value
    return replace(record, **updates)
