"""
JSON Lines record store.

Records are written one JSON object per line so the history file can be
inspected with tools like jq or grep. Appends are cheap; delete and clear
rewrite the file.

Example line:
    {"id": "3f2a...", "calculator": "liquidation_price",
     "params": {"side": "LONG", "leverage": 10, "entry_price": 50000},
     "result": {"liquidation_price": 45250.0, "maintenance_margin_rate": 0.005},
     "calculated_at": "2025-12-17T10:30:45.123456"}
"""

import json
import logging
from pathlib import Path
from typing import List, Union

from margincalc.core.exceptions import StorageError
from margincalc.models.record import CalculatorRecord
from margincalc.storage.base import DEFAULT_LIST_LIMIT, RecordStore, newest_first


class JsonLinesRecordStore(RecordStore):
    """
    Record store persisted to a .jsonl file.

    Args:
        path: History file. Relative paths resolve against the project root.
    """

    def __init__(self, path: Union[str, Path]):
        project_root = Path(__file__).resolve().parent.parent.parent
        self.path = Path(path)
        if not self.path.is_absolute():
            self.path = project_root / self.path

        self.logger = logging.getLogger(__name__)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create history directory {self.path.parent}: {e}") from e

    def _read_all(self) -> List[CalculatorRecord]:
        if not self.path.exists():
            return []

        records = []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                for line_number, line in enumerate(f, start=1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        records.append(CalculatorRecord.from_dict(json.loads(line)))
                    except (ValueError, KeyError, TypeError) as e:
                        raise StorageError(
                            f"Corrupt history record at {self.path}:{line_number}: {e}"
                        ) from e
        except OSError as e:
            raise StorageError(f"Failed to read history file {self.path}: {e}") from e
        return records

    def _write_all(self, records: List[CalculatorRecord]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                for record in records:
                    f.write(json.dumps(record.to_dict()) + "\n")
            tmp_path.replace(self.path)
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to rewrite history file {self.path}: {e}") from e

    def save(self, record: CalculatorRecord) -> str:
        try:
            line = json.dumps(record.to_dict())
        except (TypeError, ValueError) as e:
            raise StorageError(f"Record {record.id} is not JSON serializable: {e}") from e

        try:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError as e:
            raise StorageError(f"Failed to append to history file {self.path}: {e}") from e

        self.logger.debug(f"Saved {record.calculator} record {record.id} to {self.path}")
        return record.id

    def list(self, limit: int = DEFAULT_LIST_LIMIT) -> List[CalculatorRecord]:
        return newest_first(self._read_all())[:limit]

    def delete(self, record_id: str) -> bool:
        records = self._read_all()
        remaining = [record for record in records if record.id != record_id]
        if len(remaining) == len(records):
            return False
        self._write_all(remaining)
        return True

    def clear(self) -> None:
        self._write_all([])

    def __len__(self) -> int:
        return len(self._read_all())
