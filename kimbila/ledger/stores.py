"""
Record Stores

One RecordStore per collection, mapping id -> record in insertion order.
Stores know nothing about each other; cross-collection rules live in
LedgerService.
"""

import json
from typing import Any, Generic, Iterator, Mapping, Optional, Type, TypeVar, Union
from uuid import UUID

from pydantic import BaseModel, ValidationError as PydanticValidationError

from kimbila.errors import DuplicateIdError, NotFoundError
from kimbila.services.storage.interface import CorruptDataError


RecordT = TypeVar("RecordT", bound=BaseModel)


class RecordStore(Generic[RecordT]):
    """
    An ordered id -> record mapping for one collection.

    Records must have an `id: UUID` field. Deleting an unknown id is a
    no-op; updating one raises NotFoundError.
    """

    def __init__(self, name: str, model: Type[RecordT]):
        self.name = name
        self.model = model
        self._records: dict[UUID, RecordT] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records

    def __iter__(self) -> Iterator[RecordT]:
        return iter(list(self._records.values()))

    def values(self) -> list[RecordT]:
        """Records in insertion order."""
        return list(self._records.values())

    def insert(self, record: RecordT) -> RecordT:
        if record.id in self._records:
            raise DuplicateIdError(f"{self.name} already has id {record.id}")
        self._records[record.id] = record
        return record

    def get(self, record_id: UUID) -> Optional[RecordT]:
        return self._records.get(record_id)

    def require(self, record_id: UUID) -> RecordT:
        record = self._records.get(record_id)
        if record is None:
            raise NotFoundError(self.name, record_id)
        return record

    def update(
        self,
        record_id: UUID,
        replacement: Union[RecordT, Mapping[str, Any]],
    ) -> RecordT:
        """
        Replace a record, fully or by field.

        A model replaces the record outright (its id must match).
        A mapping changes only the named fields and is re-validated.
        The position in insertion order is kept.
        """
        current = self.require(record_id)

        if isinstance(replacement, BaseModel):
            if replacement.id != record_id:
                raise ValueError(
                    f"Replacement id {replacement.id} does not match {record_id}"
                )
            updated = replacement
        else:
            if "id" in replacement and replacement["id"] != record_id:
                raise ValueError("Record id is immutable")
            merged = current.model_dump()
            merged.update(replacement)
            updated = self.model.model_validate(merged)

        self._records[record_id] = updated
        return updated

    def delete(self, record_id: UUID) -> Optional[RecordT]:
        """Remove a record; returns it, or None if it was not there."""
        return self._records.pop(record_id, None)

    def clear(self) -> None:
        self._records.clear()

    # -------------------------------------------------------------------------
    # Serialization: an ordered JSON array of field-tagged records
    # -------------------------------------------------------------------------

    def dumps(self) -> str:
        return json.dumps(
            [record.model_dump(mode="json") for record in self._records.values()],
            ensure_ascii=False,
        )

    def loads(self, data: Optional[str]) -> None:
        """
        Replace the contents with a serialized collection.

        None (key never saved) means empty. Anything unreadable raises
        CorruptDataError and leaves the store unchanged.
        """
        if data is None or not data.strip():
            self._records = {}
            return

        try:
            raw = json.loads(data)
        except json.JSONDecodeError as e:
            raise CorruptDataError(self.name, f"invalid JSON ({e})")
        if not isinstance(raw, list):
            raise CorruptDataError(self.name, "expected a list of records")

        records: dict[UUID, RecordT] = {}
        for index, item in enumerate(raw):
            try:
                record = self.model.model_validate(item)
            except PydanticValidationError as e:
                raise CorruptDataError(self.name, f"record {index}: {e.error_count()} errors")
            if record.id in records:
                raise CorruptDataError(self.name, f"duplicate id {record.id}")
            records[record.id] = record

        self._records = records
