"""
In-memory record store.
"""

from typing import List, Optional

from margincalc.models.record import CalculatorRecord
from margincalc.storage.base import DEFAULT_LIST_LIMIT, RecordStore, newest_first


class InMemoryRecordStore(RecordStore):
    """
    Record store backed by a list.

    Args:
        max_records: Oldest records are dropped beyond this many (None = unbounded)
    """

    def __init__(self, max_records: Optional[int] = None):
        if max_records is not None and max_records < 1:
            raise ValueError(f"max_records must be >= 1, got {max_records}")
        self.max_records = max_records
        self._records: List[CalculatorRecord] = []

    def save(self, record: CalculatorRecord) -> str:
        self._records.append(record)
        if self.max_records is not None and len(self._records) > self.max_records:
            self._records = newest_first(self._records)[: self.max_records][::-1]
        return record.id

    def list(self, limit: int = DEFAULT_LIST_LIMIT) -> List[CalculatorRecord]:
        return newest_first(self._records)[:limit]

    def delete(self, record_id: str) -> bool:
        remaining = [record for record in self._records if record.id != record_id]
        removed = len(remaining) != len(self._records)
        self._records = remaining
        return removed

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)
