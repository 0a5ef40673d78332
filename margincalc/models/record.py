"""
History record model and plain-data conversion
"""

import dataclasses
import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict


def to_primitive(value: Any) -> Any:
    """
    Convert dataclasses, enums and containers into JSON-compatible values.

    Non-finite floats become None so that records always serialize.
    """
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_primitive(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): to_primitive(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_primitive(v) for v in value]
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


@dataclass
class CalculatorRecord:
    """
    One saved calculation.

    The core builds records but never reads them back for computation;
    stores keep them for display only.

    Attributes:
        calculator: Registered calculator name
        params: Validated input parameters (plain data)
        result: Calculation result (plain data)
        calculated_at: Calculation time
        id: Record identifier (assigned on creation)
    """

    calculator: str
    params: Dict[str, Any]
    result: Dict[str, Any]
    calculated_at: datetime = field(default_factory=datetime.now)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @classmethod
    def build(cls, calculator: str, params: Any, result: Any) -> "CalculatorRecord":
        """Create a record from arbitrary parameter/result objects."""
        return cls(
            calculator=calculator,
            params=to_primitive(params),
            result=to_primitive(result),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "calculator": self.calculator,
            "params": self.params,
            "result": self.result,
            "calculated_at": self.calculated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CalculatorRecord":
        return cls(
            calculator=data["calculator"],
            params=data.get("params", {}),
            result=data.get("result", {}),
            calculated_at=datetime.fromisoformat(data["calculated_at"]),
            id=data["id"],
        )
