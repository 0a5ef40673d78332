"""
Portfolio-level PnL and risk aggregation.
"""

from typing import Dict, List, Mapping, Optional, Sequence

from margincalc.calculations.basic import DEFAULT_MAINTENANCE_MARGIN_RATE
from margincalc.calculations.position import calculate_position_result
from margincalc.calculations.risk import DEFAULT_THRESHOLDS
from margincalc.models.position import Position
from margincalc.models.results import (
    DetailedPnl,
    PnlAnalysisResult,
    PortfolioRisk,
    PositionRisk,
    RiskLevel,
)
from margincalc.utils.config import RiskThresholds, normalize_symbol

HIGH_RISK_LEVELS = (RiskLevel.HIGH, RiskLevel.EXTREME)


def _normalized(current_prices: Optional[Mapping[str, float]]) -> Dict[str, float]:
    """Key prices so that 'BTC/USDT' and 'btcusdt' find the same entry."""
    return {normalize_symbol(symbol): price for symbol, price in (current_prices or {}).items()}


def _price_for(position: Position, current_prices: Mapping[str, float]) -> float:
    """Market price for a position; falls back to its entry price."""
    return current_prices.get(normalize_symbol(position.symbol)) or position.entry_price


def calculate_pnl_analysis(
    positions: Sequence[Position],
    current_prices: Optional[Mapping[str, float]] = None,
    maintenance_margin_rate: float = DEFAULT_MAINTENANCE_MARGIN_RATE,
    thresholds: RiskThresholds = DEFAULT_THRESHOLDS,
) -> PnlAnalysisResult:
    """
    Aggregate PnL statistics over a set of positions.

    Closed positions are realized and count toward win/loss (PnL > 0 is a
    win, anything else a loss); active positions only add unrealized PnL.

    Args:
        positions: Positions to analyse
        current_prices: Market price per symbol; missing symbols use entry price

    Returns:
        PnlAnalysisResult. max_drawdown is the magnitude of the worst single
        position PnL, not a time-series drawdown.
    """
    current_prices = _normalized(current_prices)

    total_pnl = 0.0
    realized_pnl = 0.0
    unrealized_pnl = 0.0
    total_margin = 0.0
    win_count = 0
    loss_count = 0
    total_win = 0.0
    total_loss = 0.0
    worst_pnl = 0.0

    for position in positions:
        result = calculate_position_result(
            position,
            _price_for(position, current_prices),
            maintenance_margin_rate,
            thresholds,
        )
        pnl = result.unrealized_pnl
        total_margin += position.margin

        if position.is_closed:
            realized_pnl += pnl
            if pnl > 0:
                win_count += 1
                total_win += pnl
            else:
                loss_count += 1
                total_loss += abs(pnl)
        else:
            unrealized_pnl += pnl

        total_pnl += pnl
        worst_pnl = min(worst_pnl, pnl)

    total_trades = win_count + loss_count

    return PnlAnalysisResult(
        total_pnl=total_pnl,
        realized_pnl=realized_pnl,
        unrealized_pnl=unrealized_pnl,
        total_roe=total_pnl / total_margin * 100 if total_margin > 0 else 0.0,
        win_rate=win_count / total_trades * 100 if total_trades > 0 else 0.0,
        avg_win=total_win / win_count if win_count > 0 else 0.0,
        avg_loss=total_loss / loss_count if loss_count > 0 else 0.0,
        profit_factor=total_win / total_loss if total_loss > 0 else 0.0,
        max_drawdown=abs(worst_pnl),
    )


def calculate_detailed_pnl(
    position: Position,
    current_price: Optional[float] = None,
    maintenance_margin_rate: float = DEFAULT_MAINTENANCE_MARGIN_RATE,
    thresholds: RiskThresholds = DEFAULT_THRESHOLDS,
) -> DetailedPnl:
    """Per-position PnL view at current_price (entry price when omitted)."""
    price = current_price or position.entry_price
    result = calculate_position_result(position, price, maintenance_margin_rate, thresholds)

    return DetailedPnl(
        position=position,
        current_price=price,
        unrealized_pnl=result.unrealized_pnl,
        roe=result.roe,
        is_profit=result.unrealized_pnl > 0,
        risk_level=result.risk_level,
        liquidation_price=result.liquidation_price,
        distance_to_liquidation=result.distance_to_liquidation,
    )


def calculate_portfolio_risk(
    positions: Sequence[Position],
    current_prices: Optional[Mapping[str, float]] = None,
    maintenance_margin_rate: float = DEFAULT_MAINTENANCE_MARGIN_RATE,
    thresholds: RiskThresholds = DEFAULT_THRESHOLDS,
) -> PortfolioRisk:
    """
    Exposure summary of a set of positions.

    Average leverage is weighted by position value at the current price.
    high_risk_ratio is the percent of positions rated HIGH or EXTREME.
    """
    current_prices = _normalized(current_prices)

    total_value = 0.0
    total_margin = 0.0
    leverage_weighted_sum = 0.0
    high_risk_positions = 0
    position_risks: List[PositionRisk] = []

    for position in positions:
        price = _price_for(position, current_prices)
        result = calculate_position_result(position, price, maintenance_margin_rate, thresholds)
        position_value = position.quantity * price

        total_value += position_value
        total_margin += position.margin
        leverage_weighted_sum += position.leverage * position_value

        if result.risk_level in HIGH_RISK_LEVELS:
            high_risk_positions += 1

        position_risks.append(PositionRisk(
            symbol=position.symbol,
            risk_level=result.risk_level,
            leverage=position.leverage,
            margin_ratio=result.margin_ratio,
            distance_to_liquidation=result.distance_to_liquidation,
        ))

    count = len(positions)
    return PortfolioRisk(
        total_value=total_value,
        total_margin=total_margin,
        portfolio_margin_ratio=total_margin / total_value if total_value > 0 else 0.0,
        avg_leverage=leverage_weighted_sum / total_value if total_value > 0 else 0.0,
        high_risk_positions=high_risk_positions,
        high_risk_ratio=high_risk_positions / count * 100 if count > 0 else 0.0,
        position_count=count,
        position_risks=tuple(position_risks),
    )
