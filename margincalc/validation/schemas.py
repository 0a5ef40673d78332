"""
Pydantic input schemas: the parse/coerce step in front of every calculator.

Raw form values (numbers or numeric strings) are coerced to strict numbers.
Empty strings, NaN and infinities are rejected here so that the domain
validators and formulas only ever see finite floats.
"""

from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from margincalc.models.kelly import TradeRecord
from margincalc.models.ledger import LedgerEntry, LedgerEntryType
from margincalc.models.position import Fill, Position, PositionSide, PositionStatus
from margincalc.models.results import ExitOrder
from margincalc.validation.validators import FieldError

FiniteFloat = Annotated[float, Field(allow_inf_nan=False)]


def upper_text(value: Any) -> Any:
    """Case-insensitive enum input for values stored upper-case."""
    return value.strip().upper() if isinstance(value, str) else value


def lower_text(value: Any) -> Any:
    return value.strip().lower() if isinstance(value, str) else value


def blank_to_none(value: Any) -> Any:
    """Optional numeric fields left empty in a form mean 'not set'."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


def errors_from_validation_error(exc: ValidationError) -> List[FieldError]:
    """Flatten a pydantic ValidationError into field-tagged errors."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())) or "params"
        errors.append(FieldError(field, error.get("msg", "invalid value")))
    return errors


class InputModel(BaseModel):
    """Base for calculator inputs."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")


class PositionInput(InputModel):
    symbol: str
    side: PositionSide
    leverage: FiniteFloat
    entry_price: FiniteFloat
    quantity: FiniteFloat
    margin: FiniteFloat
    status: PositionStatus = PositionStatus.ACTIVE
    stop_loss: Optional[FiniteFloat] = None
    take_profit: Optional[FiniteFloat] = None
    id: Optional[str] = None

    normalize_side = field_validator("side", mode="before")(upper_text)
    normalize_status = field_validator("status", mode="before")(lower_text)
    normalize_optional_prices = field_validator("stop_loss", "take_profit", mode="before")(blank_to_none)

    def to_position(self) -> Position:
        return Position(
            symbol=self.symbol.upper(),
            side=self.side,
            leverage=self.leverage,
            entry_price=self.entry_price,
            quantity=self.quantity,
            margin=self.margin,
            status=self.status,
            stop_loss=self.stop_loss,
            take_profit=self.take_profit,
            id=self.id,
        )


class FillInput(InputModel):
    price: FiniteFloat
    quantity: FiniteFloat
    margin: FiniteFloat = 0.0

    def to_fill(self) -> Fill:
        return Fill(price=self.price, quantity=self.quantity, margin=self.margin)


class ExitOrderInput(InputModel):
    price: FiniteFloat
    quantity: FiniteFloat
    enabled: bool = True
    id: Optional[str] = None

    def to_exit_order(self) -> ExitOrder:
        return ExitOrder(price=self.price, quantity=self.quantity, enabled=self.enabled, id=self.id)


class TradeInput(InputModel):
    profit: FiniteFloat
    enabled: bool = True
    id: Optional[int] = None

    def to_trade(self) -> TradeRecord:
        return TradeRecord(profit=self.profit, enabled=self.enabled, id=self.id)


class LedgerEntryInput(InputModel):
    type: LedgerEntryType
    price: FiniteFloat
    quantity: FiniteFloat = 0.0
    margin: FiniteFloat = 0.0
    enabled: bool = True
    id: Optional[str] = None

    normalize_type = field_validator("type", mode="before")(lower_text)

    def to_entry(self) -> LedgerEntry:
        return LedgerEntry(
            type=self.type,
            price=self.price,
            quantity=self.quantity,
            margin=self.margin,
            enabled=self.enabled,
            id=self.id,
        )
