"""
Calculation history stores.
"""

from margincalc.storage.base import RecordStore
from margincalc.storage.jsonl import JsonLinesRecordStore
from margincalc.storage.memory import InMemoryRecordStore
from margincalc.utils.config import StorageConfig


def create_store(config: StorageConfig) -> RecordStore:
    """Build the record store selected by the [storage] configuration."""
    if config.backend == "jsonl":
        return JsonLinesRecordStore(config.path)
    return InMemoryRecordStore()


__all__ = ["RecordStore", "InMemoryRecordStore", "JsonLinesRecordStore", "create_store"]
