"""
Position ledger models: a sequence of opens and closes on one side.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

# Float tolerance for holdings comparisons
LEDGER_EPSILON = 1e-4


class LedgerEntryType(Enum):
    """
    Ledger row kind.

    CLOSE closes a fixed quantity; CLOSE_25..CLOSE_100 close that percent
    of whatever is held when the row is reached.
    """
    OPEN = "open"
    CLOSE = "close"
    CLOSE_25 = "close_25"
    CLOSE_50 = "close_50"
    CLOSE_75 = "close_75"
    CLOSE_100 = "close_100"

    @property
    def is_open(self) -> bool:
        return self is LedgerEntryType.OPEN

    @property
    def close_fraction(self) -> Optional[float]:
        """Fraction of holdings closed, None for OPEN and fixed CLOSE rows."""
        return _CLOSE_FRACTIONS.get(self)


_CLOSE_FRACTIONS = {
    LedgerEntryType.CLOSE_25: 0.25,
    LedgerEntryType.CLOSE_50: 0.5,
    LedgerEntryType.CLOSE_75: 0.75,
    LedgerEntryType.CLOSE_100: 1.0,
}


@dataclass(frozen=True)
class LedgerEntry:
    """
    One ledger row.

    Attributes:
        type: OPEN or one of the CLOSE kinds
        price: Fill price
        quantity: Base units; unused by percentage closes
        margin: Collateral committed by an OPEN row
        enabled: Disabled rows are skipped entirely
        id: Optional caller identifier
    """

    type: LedgerEntryType
    price: float
    quantity: float = 0.0
    margin: float = 0.0
    enabled: bool = True
    id: Optional[str] = None

    @property
    def is_active(self) -> bool:
        """Enabled rows with a positive price (and quantity, unless a percentage close) take part."""
        if not self.enabled or self.price <= 0:
            return False
        return self.quantity > 0 or self.type.close_fraction is not None

    def close_quantity(self, holdings: float) -> float:
        """Quantity this close row asks for when holdings are open."""
        fraction = self.type.close_fraction
        if fraction is not None:
            return abs(holdings) * fraction
        return self.quantity


@dataclass(frozen=True)
class LedgerRowStat:
    """
    Running state after one ledger row.

    Attributes:
        id: Row id, or its index when the row has none
        holdings: Open quantity, negative for SHORT
        average_price: Cost basis of the holdings, None when flat
        cumulative_pnl: Realized PnL so far, priced against the running basis
        is_active: Whether the row took part
        executed_quantity: Quantity actually opened or closed by the row
        used_capital: Margin still committed
        capital_usage_rate: used_capital / capital (0-1), 0 without capital
        price_change: Percent move from the previous active row's price
        liquidation_price: Liquidation price of an OPEN row at its own price
        position_value: |holdings| x row price
    """

    id: str
    holdings: float
    average_price: Optional[float]
    cumulative_pnl: float
    is_active: bool
    executed_quantity: float = 0.0
    used_capital: float = 0.0
    capital_usage_rate: float = 0.0
    price_change: Optional[float] = None
    liquidation_price: Optional[float] = None
    position_value: float = 0.0


@dataclass(frozen=True)
class LedgerPnlResult:
    """
    Summary of a position ledger.

    total_pnl prices the closed quantity against the overall average open
    cost; it matches the last row's cumulative_pnl whenever every open
    precedes the first close.
    """

    total_pnl: float
    total_investment: float
    total_return: float
    total_margin: float
    roe: float
    total_open_quantity: float
    total_close_quantity: float
    remaining_quantity: float
    capital_usage: float = 0.0
    rows: Tuple[LedgerRowStat, ...] = ()
