"""
Position and fill models
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional


class PositionSide(Enum):
    """Position direction"""
    LONG = "LONG"
    SHORT = "SHORT"

    @classmethod
    def parse(cls, value) -> "PositionSide":
        """Accept an enum member or a case-insensitive 'long'/'short' string."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Side must be 'LONG' or 'SHORT', got {value!r}") from None


class PositionStatus(Enum):
    """Position lifecycle status"""
    ACTIVE = "active"
    CLOSED = "closed"


@dataclass(frozen=True)
class Fill:
    """
    One entry or exit event.

    Attributes:
        price: Fill price
        quantity: Base-asset units filled
        margin: Collateral added with the fill (used when averaging in)
    """

    price: float
    quantity: float
    margin: float = 0.0

    @property
    def value(self) -> float:
        """Notional value of the fill (price * quantity)."""
        return self.price * self.quantity


@dataclass(frozen=True)
class Position:
    """
    Leveraged futures position.

    Derived values (liquidation price, PnL, ROE, risk) are never stored here;
    they are computed by margincalc.calculations from these fields.

    Attributes:
        symbol: Trading pair (e.g. 'BTCUSDT' or 'BTC/USDT')
        side: LONG or SHORT
        leverage: Leverage multiplier (1-125)
        entry_price: Volume-weighted average entry price
        quantity: Position size in base asset units
        margin: Quote-asset collateral backing the position
        status: ACTIVE or CLOSED
        stop_loss: Optional stop loss price
        take_profit: Optional take profit price
        id: Optional identifier assigned by the caller
    """

    symbol: str
    side: PositionSide
    leverage: float
    entry_price: float
    quantity: float
    margin: float
    status: PositionStatus = PositionStatus.ACTIVE
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    id: Optional[str] = None

    def __post_init__(self) -> None:
        # Frozen dataclass: normalize enums through object.__setattr__
        object.__setattr__(self, "side", PositionSide.parse(self.side))
        if not isinstance(self.status, PositionStatus):
            object.__setattr__(self, "status", PositionStatus(str(self.status).lower()))

    @property
    def notional_value(self) -> float:
        """Position value at entry (quantity * entry_price)."""
        return self.quantity * self.entry_price

    @property
    def is_closed(self) -> bool:
        return self.status == PositionStatus.CLOSED

    def as_fill(self) -> Fill:
        """View the position as a single fill for averaging."""
        return Fill(price=self.entry_price, quantity=self.quantity, margin=self.margin)

    def with_updates(self, **changes) -> "Position":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)
