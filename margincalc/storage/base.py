"""
History record store contract.

The calculation core never depends on a store: records are saved after a
result exists, and a failing store never changes that result.
"""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from margincalc.models.record import CalculatorRecord

DEFAULT_LIST_LIMIT = 20


def newest_first(records: Iterable[CalculatorRecord]) -> List[CalculatorRecord]:
    """
    Order records by calculated_at, newest first.

    Records with equal timestamps keep reverse insertion order.
    """
    return sorted(reversed(list(records)), key=lambda r: r.calculated_at, reverse=True)


class RecordStore(ABC):
    """
    Abstract base class for calculation history stores.

    Implementations raise StorageError for any I/O or decoding failure.
    """

    @abstractmethod
    def save(self, record: CalculatorRecord) -> str:
        """
        Persist a record.

        Returns:
            The record id
        """
        pass

    @abstractmethod
    def list(self, limit: int = DEFAULT_LIST_LIMIT) -> List[CalculatorRecord]:
        """Return at most `limit` records, newest first."""
        pass

    @abstractmethod
    def delete(self, record_id: str) -> bool:
        """
        Remove one record.

        Returns:
            True if a record was removed, False if the id was unknown
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove every record."""
        pass

    def get(self, record_id: str) -> Optional[CalculatorRecord]:
        """Look up one record by id."""
        for record in self.list(limit=len(self)):
            if record.id == record_id:
                return record
        return None

    @abstractmethod
    def __len__(self) -> int:
        pass
