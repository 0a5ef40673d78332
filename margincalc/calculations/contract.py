"""
Contract calculators: target price, entry price averaging, max position,
trade PnL with partial exits and break-even fee rate.
"""

import math
from typing import Iterable, List, Optional, Sequence

from margincalc.calculations.basic import (
    calculate_average_price,
    calculate_roe,
    calculate_unrealized_pnl,
)
from margincalc.core.exceptions import InvalidParameterError
from margincalc.models.position import Fill, PositionSide
from margincalc.models.results import (
    BreakEvenResult,
    CostBreakdown,
    EntryPriceResult,
    ExitOrder,
    ExitOrderResult,
    MaxPositionResult,
    TargetPriceResult,
    TradePnlResult,
)

# Cost breakdown reference principal, in quote currency
BREAK_EVEN_PRINCIPAL = 1000.0
RATE_DECIMALS = 4
COST_DECIMALS = 2


def round_half_up(value: float, decimals: int) -> float:
    """Round halves toward +inf: round_half_up(0.125, 2) == 0.13, unlike round()."""
    scale = 10 ** decimals
    return math.floor(value * scale + 0.5) / scale


def calculate_target_price(
    side: PositionSide,
    entry_price: float,
    target_roe: float,
    leverage: float = 1,
) -> TargetPriceResult:
    """
    Price at which the position reaches target_roe (percent of margin).

    Formula:
        LONG:  entry × (1 + roe / 100 / leverage)
        SHORT: entry × (1 − roe / 100 / leverage)

    Example:
        >>> calculate_target_price('LONG', 50000, 50, 10).target_price
        52500.0
    """
    if leverage <= 0:
        raise InvalidParameterError(f"Leverage must be greater than 0, got {leverage}")

    adjustment = target_roe / leverage / 100
    if PositionSide.parse(side) == PositionSide.LONG:
        return TargetPriceResult(target_price=entry_price * (1 + adjustment))
    return TargetPriceResult(target_price=entry_price * (1 - adjustment))


def calculate_entry_price(fills: Iterable[Fill]) -> EntryPriceResult:
    """Volume-weighted entry over a list of fills; all zero when empty."""
    fills = list(fills)
    return EntryPriceResult(
        average_entry_price=calculate_average_price(fills),
        total_quantity=sum(fill.quantity for fill in fills),
        total_value=sum(fill.price * fill.quantity for fill in fills),
    )


def calculate_max_position(
    wallet_balance: float,
    leverage: float,
    entry_price: float,
) -> MaxPositionResult:
    """
    Largest position the wallet can open.

        max_position_value = wallet × leverage
        max_quantity       = max_position_value / entry_price
    """
    if entry_price <= 0:
        raise InvalidParameterError(f"Entry price must be greater than 0, got {entry_price}")

    max_position_value = wallet_balance * leverage
    return MaxPositionResult(
        max_quantity=max_position_value / entry_price,
        max_position_value=max_position_value,
    )


def calculate_trade_pnl(
    side: PositionSide,
    leverage: float,
    entry_price: float,
    exit_price: float,
    quantity: float,
    exit_orders: Optional[Sequence[ExitOrder]] = None,
) -> TradePnlResult:
    """
    Realized PnL of a trade closed at exit_price or through partial exits.

    With exit_orders, enabled orders fill in sequence, each capped by the
    quantity still open; exit_price is then ignored and any unfilled
    quantity is reported as remaining_quantity.

    Raises:
        InvalidParameterError: leverage <= 0
    """
    if leverage <= 0:
        raise InvalidParameterError(f"Leverage must be greater than 0, got {leverage}")

    position_value = entry_price * quantity
    initial_margin = position_value / leverage

    if not exit_orders:
        pnl = calculate_unrealized_pnl(side, entry_price, exit_price, quantity)
        return TradePnlResult(
            initial_margin=initial_margin,
            pnl=pnl,
            roe=calculate_roe(pnl, initial_margin),
            position_value=position_value,
            total_exit_quantity=quantity,
            remaining_quantity=0.0,
        )

    total_pnl = 0.0
    total_exit_quantity = 0.0
    results: List[ExitOrderResult] = []

    for order in exit_orders:
        if not order.enabled:
            continue

        filled = min(order.quantity, quantity - total_exit_quantity)
        if filled <= 0:
            continue

        order_pnl = calculate_unrealized_pnl(side, entry_price, order.price, filled)
        order_margin = entry_price * filled / leverage

        total_pnl += order_pnl
        total_exit_quantity += filled
        results.append(ExitOrderResult(
            id=order.id,
            price=order.price,
            quantity=filled,
            pnl=order_pnl,
            roe=calculate_roe(order_pnl, order_margin),
            margin=order_margin,
        ))

    return TradePnlResult(
        initial_margin=initial_margin,
        pnl=total_pnl,
        roe=calculate_roe(total_pnl, initial_margin),
        position_value=position_value,
        total_exit_quantity=total_exit_quantity,
        remaining_quantity=quantity - total_exit_quantity,
        exit_order_results=tuple(results),
    )


def calculate_break_even_rate(
    leverage: float,
    open_fee_rate: float,
    close_fee_rate: float,
    funding_rate: float,
    funding_period: float,
    holding_time: float,
) -> BreakEvenResult:
    """
    ROE (percent of margin) a trade must earn to cover fees and funding.

    Fee and funding rates are percentages of position value; relative to
    margin they scale by leverage:

        open_cost_rate    = open_fee_rate × leverage
        close_cost_rate   = close_fee_rate × leverage
        funding_cost_rate = funding_rate × leverage × holding_time / funding_period

    Args:
        leverage: Position leverage
        open_fee_rate: Opening fee, percent (0.05 means 0.05%)
        close_fee_rate: Closing fee, percent
        funding_rate: Funding rate per period, percent (may be negative)
        funding_period: Hours between funding settlements
        holding_time: Expected holding time in hours

    Returns:
        BreakEvenResult with rates rounded to 4 decimals and a cost
        breakdown on a 1000 principal rounded to 2 decimals

    Raises:
        InvalidParameterError: leverage <= 0, negative fee rates,
            funding_period <= 0 or holding_time < 0

    Example:
        >>> calculate_break_even_rate(100, 0.05, 0.05, 0.01, 8, 24).total_break_even_rate
        13.0
    """
    if leverage <= 0:
        raise InvalidParameterError(f"Leverage must be greater than 0, got {leverage}")
    if open_fee_rate < 0 or close_fee_rate < 0:
        raise InvalidParameterError("Fee rates cannot be negative")
    if funding_period <= 0:
        raise InvalidParameterError(
            f"Funding period must be greater than 0, got {funding_period}"
        )
    if holding_time < 0:
        raise InvalidParameterError(f"Holding time cannot be negative, got {holding_time}")

    funding_periods = holding_time / funding_period

    open_cost_rate = open_fee_rate * leverage
    close_cost_rate = close_fee_rate * leverage
    funding_cost_rate = funding_rate * leverage * funding_periods
    total_fee_rate = open_cost_rate + close_cost_rate
    total_break_even_rate = total_fee_rate + funding_cost_rate

    position_value = BREAK_EVEN_PRINCIPAL * leverage
    open_cost = position_value * open_fee_rate / 100
    close_cost = position_value * close_fee_rate / 100
    funding_cost = position_value * funding_rate / 100 * funding_periods

    return BreakEvenResult(
        total_break_even_rate=round_half_up(total_break_even_rate, RATE_DECIMALS),
        open_cost_rate=round_half_up(open_cost_rate, RATE_DECIMALS),
        close_cost_rate=round_half_up(close_cost_rate, RATE_DECIMALS),
        funding_cost_rate=round_half_up(funding_cost_rate, RATE_DECIMALS),
        total_fee_rate=round_half_up(total_fee_rate, RATE_DECIMALS),
        cost_breakdown=CostBreakdown(
            open_cost=round_half_up(open_cost, COST_DECIMALS),
            close_cost=round_half_up(close_cost, COST_DECIMALS),
            funding_cost=round_half_up(funding_cost, COST_DECIMALS),
            total_cost=round_half_up(open_cost + close_cost + funding_cost, COST_DECIMALS),
        ),
    )
