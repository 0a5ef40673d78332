"""
Basic financial primitives for leveraged positions.

Every function is pure and deterministic. Legitimate "no position" states
(zero quantity, zero margin, zero value) return 0 instead of raising; the
only hard failures are the contract guards on leverage and price, which
indicate that a caller skipped validation.
"""

from typing import Iterable

from margincalc.core.exceptions import InvalidParameterError
from margincalc.models.position import Fill, PositionSide

DEFAULT_MAINTENANCE_MARGIN_RATE = 0.005  # 0.5%


def calculate_average_price(fills: Iterable[Fill]) -> float:
    """
    Volume-weighted average price.

    Formula:
        avg = Σ(price × quantity) / Σ(quantity)

    Args:
        fills: Objects exposing price and quantity (Fill, or anything alike)

    Returns:
        Average price, or 0 when the total quantity is 0

    Example:
        >>> calculate_average_price([Fill(100, 2), Fill(200, 2)])
        150.0
    """
    total_value = 0.0
    total_quantity = 0.0
    for fill in fills:
        total_value += fill.price * fill.quantity
        total_quantity += fill.quantity

    if total_quantity == 0:
        return 0.0
    return total_value / total_quantity


def calculate_liquidation_price(
    side: PositionSide,
    leverage: float,
    average_price: float,
    maintenance_margin_rate: float = DEFAULT_MAINTENANCE_MARGIN_RATE,
) -> float:
    """
    Price at which the position is force-closed.

    Formula:
        LONG:  avg × (1 − 1/leverage + mmr)
        SHORT: avg × (1 + 1/leverage − mmr)

    Higher leverage moves the liquidation price closer to the average price.

    Raises:
        InvalidParameterError: leverage <= 0 or average_price <= 0

    Example:
        >>> calculate_liquidation_price(PositionSide.LONG, 10, 50000)
        45250.0
    """
    if leverage <= 0:
        raise InvalidParameterError(f"Leverage must be greater than 0, got {leverage}")
    if average_price <= 0:
        raise InvalidParameterError(
            f"Average price must be greater than 0, got {average_price}"
        )

    if PositionSide.parse(side) == PositionSide.LONG:
        return average_price * (1 - 1 / leverage + maintenance_margin_rate)
    return average_price * (1 + 1 / leverage - maintenance_margin_rate)


def calculate_unrealized_pnl(
    side: PositionSide,
    average_price: float,
    current_price: float,
    quantity: float,
) -> float:
    """
    Unrealized profit/loss.

    LONG: (current − avg) × qty, SHORT: (avg − current) × qty
    """
    if PositionSide.parse(side) == PositionSide.LONG:
        return (current_price - average_price) * quantity
    return (average_price - current_price) * quantity


def calculate_roe(pnl: float, margin: float) -> float:
    """Return on equity in percent; 0 when there is no margin."""
    if margin == 0:
        return 0.0
    return pnl / margin * 100


def calculate_margin_ratio(margin: float, total_value: float) -> float:
    """margin / total_value; 0 when total_value <= 0."""
    if total_value <= 0:
        return 0.0
    return margin / total_value


def calculate_total_value(quantity: float, price: float) -> float:
    return quantity * price


def calculate_required_margin(price: float, quantity: float, leverage: float) -> float:
    """
    Initial margin for a fill: price × quantity / leverage.

    Raises:
        InvalidParameterError: leverage <= 0
    """
    if leverage <= 0:
        raise InvalidParameterError(f"Leverage must be greater than 0, got {leverage}")
    return price * quantity / leverage


def calculate_distance_to_liquidation(
    current_price: float,
    liquidation_price: float,
    side: PositionSide,
) -> float:
    """
    Percent price move from current price to liquidation.

    LONG: (current − liq) / current × 100
    SHORT: (liq − current) / current × 100

    Returns 0 when either price is <= 0.
    """
    if current_price <= 0 or liquidation_price <= 0:
        return 0.0

    if PositionSide.parse(side) == PositionSide.LONG:
        return (current_price - liquidation_price) / current_price * 100
    return (liquidation_price - current_price) / current_price * 100
