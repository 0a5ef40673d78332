"""
Position snapshot aggregation and add-position (averaging in).
"""

from typing import Optional

from margincalc.calculations.basic import (
    DEFAULT_MAINTENANCE_MARGIN_RATE,
    calculate_average_price,
    calculate_distance_to_liquidation,
    calculate_liquidation_price,
    calculate_margin_ratio,
    calculate_roe,
    calculate_total_value,
    calculate_unrealized_pnl,
)
from margincalc.calculations.risk import DEFAULT_THRESHOLDS, calculate_risk_level
from margincalc.models.position import Fill, Position, PositionSide
from margincalc.models.results import AddPositionResult, CalculationResult
from margincalc.utils.config import RiskThresholds


def _snapshot(
    side: PositionSide,
    leverage: float,
    average_price: float,
    quantity: float,
    margin: float,
    price: float,
    maintenance_margin_rate: float,
    thresholds: RiskThresholds,
) -> dict:
    """Shared derivation of every CalculationResult field."""
    liquidation_price = calculate_liquidation_price(
        side, leverage, average_price, maintenance_margin_rate
    )
    unrealized_pnl = calculate_unrealized_pnl(side, average_price, price, quantity)
    total_value = calculate_total_value(quantity, price)
    margin_ratio = calculate_margin_ratio(margin, total_value)
    distance = calculate_distance_to_liquidation(price, liquidation_price, side)

    return dict(
        average_price=average_price,
        total_quantity=quantity,
        total_margin=margin,
        liquidation_price=liquidation_price,
        unrealized_pnl=unrealized_pnl,
        roe=calculate_roe(unrealized_pnl, margin),
        total_value=total_value,
        margin_ratio=margin_ratio,
        risk_level=calculate_risk_level(margin_ratio, leverage, distance, thresholds),
        distance_to_liquidation=distance,
    )


def calculate_position_result(
    position: Position,
    current_price: Optional[float] = None,
    maintenance_margin_rate: float = DEFAULT_MAINTENANCE_MARGIN_RATE,
    thresholds: RiskThresholds = DEFAULT_THRESHOLDS,
) -> CalculationResult:
    """
    Full snapshot of a validated position.

    Args:
        position: Position to evaluate
        current_price: Market price; defaults to the entry price (zero PnL)
        maintenance_margin_rate: Rate used for the liquidation price
        thresholds: Risk level boundaries

    Returns:
        CalculationResult
    """
    price = current_price if current_price else position.entry_price
    return CalculationResult(**_snapshot(
        position.side,
        position.leverage,
        position.entry_price,
        position.quantity,
        position.margin,
        price,
        maintenance_margin_rate,
        thresholds,
    ))


def calculate_add_position(
    original: Position,
    fill: Fill,
    current_price: Optional[float] = None,
    maintenance_margin_rate: float = DEFAULT_MAINTENANCE_MARGIN_RATE,
    thresholds: RiskThresholds = DEFAULT_THRESHOLDS,
) -> AddPositionResult:
    """
    Average a new fill into an existing position.

    Steps:
        1. New average price = weighted mean of [original, fill]
        2. Quantities and margins add up
        3. Liquidation price, PnL, ROE and risk are recomputed on the aggregate

    Args:
        original: Existing position
        fill: New fill (price, quantity, margin all > 0)
        current_price: Market price; defaults to the new average price

    Returns:
        AddPositionResult with the merged position and its snapshot

    Example:
        >>> result = calculate_add_position(
        ...     Position('BTCUSDT', 'LONG', 10, 50000, 1, 5000),
        ...     Fill(price=40000, quantity=1, margin=4000),
        ... )
        >>> result.average_price
        45000.0
    """
    new_average_price = calculate_average_price([original.as_fill(), fill])
    new_quantity = original.quantity + fill.quantity
    new_margin = original.margin + fill.margin

    new_position = original.with_updates(
        entry_price=new_average_price,
        quantity=new_quantity,
        margin=new_margin,
    )

    price = current_price if current_price else new_average_price
    snapshot = _snapshot(
        original.side,
        original.leverage,
        new_average_price,
        new_quantity,
        new_margin,
        price,
        maintenance_margin_rate,
        thresholds,
    )

    if original.side == PositionSide.LONG:
        price_improvement = (new_average_price - original.entry_price) / original.entry_price * 100
    else:
        price_improvement = (original.entry_price - new_average_price) / original.entry_price * 100
    margin_increase = (new_margin - original.margin) / original.margin * 100

    return AddPositionResult(
        **snapshot,
        original_position=original,
        fill=fill,
        new_position=new_position,
        price_improvement=price_improvement,
        margin_increase=margin_increase,
    )
