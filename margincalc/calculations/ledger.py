"""
Position ledger PnL.

A ledger is an ordered list of OPEN and CLOSE rows on one side. Closes may
be a fixed quantity or a percentage of the holdings at that row. Rows are
folded in order; disabled rows and rows without a price take no part.
"""

from typing import Iterable, List, Optional, Sequence

from margincalc.calculations.basic import (
    DEFAULT_MAINTENANCE_MARGIN_RATE,
    calculate_liquidation_price,
    calculate_roe,
    calculate_unrealized_pnl,
)
from margincalc.models.ledger import (
    LEDGER_EPSILON,
    LedgerEntry,
    LedgerPnlResult,
    LedgerRowStat,
)
from margincalc.models.position import PositionSide


def _snap(value: float) -> float:
    return 0.0 if abs(value) < LEDGER_EPSILON else value


def active_entries(entries: Iterable[LedgerEntry]) -> List[LedgerEntry]:
    return [entry for entry in entries if entry.is_active]


def calculate_capital_usage(entries: Iterable[LedgerEntry], capital: Optional[float]) -> float:
    """Margin committed by active OPEN rows as a percent of capital; 0 without capital."""
    if not capital or capital <= 0:
        return 0.0
    committed = sum(entry.margin for entry in active_entries(entries) if entry.type.is_open)
    return committed / capital * 100


def calculate_ledger_rows(
    side: PositionSide,
    entries: Sequence[LedgerEntry],
    capital: Optional[float] = None,
    leverage: Optional[float] = None,
    maintenance_margin_rate: float = DEFAULT_MAINTENANCE_MARGIN_RATE,
) -> List[LedgerRowStat]:
    """
    Running holdings, cost basis and realized PnL after every row.

    A close realizes PnL against the running average price and releases
    margin in proportion to the open quantity it removes. Closes never
    remove more than is held. Residues below LEDGER_EPSILON snap to 0.

    Args:
        side: LONG or SHORT
        entries: Ledger rows in order
        capital: Wallet capital for capital_usage_rate
        leverage: When given, OPEN rows report a liquidation price
        maintenance_margin_rate: Used for those liquidation prices

    Returns:
        One LedgerRowStat per input row, inactive rows included
    """
    side = PositionSide.parse(side)
    sign = -1 if side == PositionSide.SHORT else 1

    holdings = 0.0
    cost = 0.0
    cumulative_pnl = 0.0
    used_capital = 0.0
    open_quantity = 0.0
    open_margin = 0.0
    last_price: Optional[float] = None
    rows: List[LedgerRowStat] = []

    for index, entry in enumerate(entries):
        executed = 0.0
        price_change = None
        liquidation_price = None

        if entry.is_active:
            if last_price:
                price_change = (entry.price - last_price) / last_price * 100
            last_price = entry.price

            if entry.type.is_open:
                executed = entry.quantity
                cost += entry.price * entry.quantity
                holdings += entry.quantity
                used_capital += entry.margin
                open_quantity += entry.quantity
                open_margin += entry.margin
                if leverage:
                    liquidation_price = calculate_liquidation_price(
                        side, leverage, entry.price, maintenance_margin_rate
                    )
            else:
                average = cost / holdings if holdings > 0 else entry.price
                executed = max(0.0, min(entry.close_quantity(holdings), holdings))
                if executed > 0:
                    cumulative_pnl += calculate_unrealized_pnl(side, average, entry.price, executed)
                    cost -= average * executed
                    holdings = _snap(holdings - executed)
                    if holdings == 0:
                        cost = 0.0
                    if open_quantity > 0:
                        released = open_margin * executed / open_quantity
                        used_capital = _snap(used_capital - released)
                        open_quantity = _snap(open_quantity - executed)
                        open_margin = _snap(open_margin - released)

        rows.append(LedgerRowStat(
            id=entry.id if entry.id is not None else str(index),
            holdings=sign * holdings,
            average_price=cost / holdings if holdings > 0 else None,
            cumulative_pnl=cumulative_pnl,
            is_active=entry.is_active,
            executed_quantity=executed,
            used_capital=used_capital,
            capital_usage_rate=used_capital / capital if capital and capital > 0 else 0.0,
            price_change=price_change,
            liquidation_price=liquidation_price,
            position_value=holdings * entry.price,
        ))

    return rows


def calculate_ledger_pnl(
    side: PositionSide,
    entries: Sequence[LedgerEntry],
    capital: Optional[float] = None,
    leverage: Optional[float] = None,
    maintenance_margin_rate: float = DEFAULT_MAINTENANCE_MARGIN_RATE,
) -> LedgerPnlResult:
    """
    Realized PnL of a ledger.

    Formula:
        ratio     = closed quantity / opened quantity
        LONG PnL  = close value − open cost × ratio
        SHORT PnL = open cost × ratio − close value
        ROE       = PnL / Σ open margin × 100

    Percentage closes are sized from the holdings at their row and every
    close is capped at what is held.

    Example:
        Open 1 @ 100 (margin 10), open 1 @ 80 (margin 8), CLOSE_50 @ 120
        → closes 1 unit, PnL = 120 − 180 × 0.5 = 30, ROE = 30 / 18 × 100
    """
    side = PositionSide.parse(side)

    holdings = 0.0
    total_open_cost = 0.0
    total_open_quantity = 0.0
    total_margin = 0.0
    total_close_value = 0.0
    total_close_quantity = 0.0

    for entry in active_entries(entries):
        if entry.type.is_open:
            holdings += entry.quantity
            total_open_cost += entry.price * entry.quantity
            total_open_quantity += entry.quantity
            total_margin += entry.margin
        else:
            quantity = max(0.0, min(entry.close_quantity(holdings), holdings))
            holdings = _snap(holdings - quantity)
            total_close_value += entry.price * quantity
            total_close_quantity += quantity

    ratio = total_close_quantity / total_open_quantity if total_open_quantity else 0.0
    if side == PositionSide.LONG:
        total_pnl = total_close_value - total_open_cost * ratio
    else:
        total_pnl = total_open_cost * ratio - total_close_value

    return LedgerPnlResult(
        total_pnl=total_pnl,
        total_investment=total_open_cost,
        total_return=total_open_cost + total_pnl,
        total_margin=total_margin,
        roe=calculate_roe(total_pnl, total_margin),
        total_open_quantity=total_open_quantity,
        total_close_quantity=total_close_quantity,
        remaining_quantity=holdings,
        capital_usage=calculate_capital_usage(entries, capital),
        rows=tuple(calculate_ledger_rows(
            side, entries, capital, leverage, maintenance_margin_rate
        )),
    )
