"""
Calculation result models

All results are immutable plain data. Callers decide whether to format,
display or persist them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from margincalc.models.position import Fill, Position


class RiskLevel(Enum):
    """Four-tier risk classification"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EXTREME = "extreme"


@dataclass(frozen=True)
class CalculationResult:
    """
    Full snapshot of one position at a given price.

    Attributes:
        average_price: Cost basis
        total_quantity: Position size
        total_margin: Collateral
        liquidation_price: Forced-close price
        unrealized_pnl: PnL at the evaluation price
        roe: Return on margin, percent
        total_value: quantity * evaluation price
        margin_ratio: margin / total_value
        risk_level: Tier derived from the risk score
        distance_to_liquidation: Percent move to liquidation
    """

    average_price: float
    total_quantity: float
    total_margin: float
    liquidation_price: float
    unrealized_pnl: float
    roe: float
    total_value: float
    margin_ratio: float
    risk_level: RiskLevel
    distance_to_liquidation: float


@dataclass(frozen=True)
class RiskAnalysisResult:
    """Risk breakdown and recommendations for one position."""

    risk_level: RiskLevel
    risk_score: float
    margin_ratio: float
    leverage_risk: float
    concentration_risk: float
    liquidation_distance: float
    recommendations: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AddPositionResult(CalculationResult):
    """
    Result of averaging a fill into an existing position.

    price_improvement is the side-oriented percent change of the cost basis;
    a negative value means the basis moved in the holder's favour (a LONG
    averaging down, a SHORT averaging up). margin_increase is the percent
    growth of margin.
    """

    original_position: Optional[Position] = None
    fill: Optional[Fill] = None
    new_position: Optional[Position] = None
    price_improvement: float = 0.0
    margin_increase: float = 0.0


@dataclass(frozen=True)
class PnlAnalysisResult:
    """Aggregate PnL statistics over a set of positions."""

    total_pnl: float
    realized_pnl: float
    unrealized_pnl: float
    total_roe: float
    win_rate: float
    avg_win: float
    avg_loss: float
    profit_factor: float
    max_drawdown: float


@dataclass(frozen=True)
class DetailedPnl:
    """Per-position PnL view."""

    position: Position
    current_price: float
    unrealized_pnl: float
    roe: float
    is_profit: bool
    risk_level: RiskLevel
    liquidation_price: float
    distance_to_liquidation: float


@dataclass(frozen=True)
class PositionRisk:
    """One row of a portfolio risk report."""

    symbol: str
    risk_level: RiskLevel
    leverage: float
    margin_ratio: float
    distance_to_liquidation: float


@dataclass(frozen=True)
class PortfolioRisk:
    """Portfolio-level exposure summary."""

    total_value: float
    total_margin: float
    portfolio_margin_ratio: float
    avg_leverage: float
    high_risk_positions: int
    high_risk_ratio: float
    position_count: int
    position_risks: Tuple[PositionRisk, ...] = ()


@dataclass(frozen=True)
class LiquidationPriceResult:
    liquidation_price: float
    maintenance_margin_rate: float


@dataclass(frozen=True)
class TargetPriceResult:
    target_price: float


@dataclass(frozen=True)
class EntryPriceResult:
    average_entry_price: float
    total_quantity: float
    total_value: float


@dataclass(frozen=True)
class MaxPositionResult:
    max_quantity: float
    max_position_value: float


@dataclass(frozen=True)
class ExitOrder:
    """Partial exit order; disabled orders are ignored."""

    price: float
    quantity: float
    enabled: bool = True
    id: Optional[str] = None


@dataclass(frozen=True)
class ExitOrderResult:
    id: Optional[str]
    price: float
    quantity: float
    pnl: float
    roe: float
    margin: float


@dataclass(frozen=True)
class TradePnlResult:
    """Realized PnL of a trade closed in one or more exits."""

    initial_margin: float
    pnl: float
    roe: float
    position_value: float
    total_exit_quantity: float
    remaining_quantity: float
    exit_order_results: Tuple[ExitOrderResult, ...] = ()


@dataclass(frozen=True)
class CostBreakdown:
    """Fee and funding costs on a reference principal, in quote currency."""

    open_cost: float
    close_cost: float
    funding_cost: float
    total_cost: float


@dataclass(frozen=True)
class BreakEvenResult:
    """Rates are percentages of margin; see calculate_break_even_rate."""

    total_break_even_rate: float
    open_cost_rate: float
    close_cost_rate: float
    funding_cost_rate: float
    total_fee_rate: float
    cost_breakdown: CostBreakdown = field(
        default_factory=lambda: CostBreakdown(0.0, 0.0, 0.0, 0.0)
    )
