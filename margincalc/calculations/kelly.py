"""
Kelly criterion position sizing.

All fractions are of total capital (0-1). Every variant is floored at 0:
a non-positive edge means "do not bet", never a negative size.
"""

import math
from typing import Iterable, List, Optional, Tuple

from margincalc.models.kelly import (
    RISK_TOLERANCE_SCALE,
    KellyResult,
    RiskAdjustment,
    TradeRecord,
)

DEFAULT_FRACTIONAL_FACTOR = 0.5
MIN_RELIABLE_TRADES = 30

# Kelly fraction above which full Kelly is considered too aggressive
HIGH_KELLY = 0.25
MEDIUM_KELLY = 0.1
LOW_KELLY = 0.05


def _valid_probability(win_rate: float) -> bool:
    return 0 < win_rate < 1


def calculate_basic_kelly(win_rate: float, odds: float) -> float:
    """
    Classic Kelly: f* = (b·p − q) / b

    Args:
        win_rate: Probability of winning p, strictly between 0 and 1
        odds: Net odds b received on a win

    Returns:
        Optimal fraction, 0 for invalid input or non-positive edge

    Example:
        >>> calculate_basic_kelly(0.6, 1)
        0.19999999999999996
    """
    if not _valid_probability(win_rate) or odds <= 0:
        return 0.0

    loss_rate = 1 - win_rate
    return max(0.0, (odds * win_rate - loss_rate) / odds)


def calculate_kelly_fraction(win_rate: float, win_loss_ratio: float) -> float:
    """f = p − (1 − p) / R, floored at 0."""
    if not _valid_probability(win_rate) or win_loss_ratio <= 0:
        return 0.0
    return max(0.0, win_rate - (1 - win_rate) / win_loss_ratio)


def calculate_trading_kelly(win_rate: float, avg_win: float, avg_loss: float) -> float:
    """
    Trading Kelly: f* = (p·W − q·L) / W

    avg_loss is a positive magnitude.
    """
    if not _valid_probability(win_rate) or avg_win <= 0 or avg_loss <= 0:
        return 0.0

    loss_rate = 1 - win_rate
    return max(0.0, (win_rate * avg_win - loss_rate * avg_loss) / avg_win)


def _risk_of_ruin(kelly: float) -> float:
    """Coarse risk-of-ruin bucket."""
    if kelly > HIGH_KELLY:
        return 0.1
    if kelly > MEDIUM_KELLY:
        return 0.05
    return 0.01


def _assess(kelly: float, trade_count: Optional[int] = None) -> Tuple[str, List[str]]:
    """Recommendation and warnings for a Kelly fraction."""
    warnings: List[str] = []
    if trade_count is not None and trade_count < MIN_RELIABLE_TRADES:
        warnings.append(
            f"At least {MIN_RELIABLE_TRADES} trades are recommended for a reliable result"
        )

    if kelly > HIGH_KELLY:
        warnings.append("Kelly fraction is high, use fractional Kelly to reduce risk")
        recommendation = "Use 25% fractional Kelly"
    elif kelly > MEDIUM_KELLY:
        recommendation = "Use 50% fractional Kelly"
    elif kelly > LOW_KELLY:
        recommendation = "75% fractional Kelly is acceptable"
    elif kelly > 0:
        recommendation = "Full Kelly is acceptable"
    else:
        recommendation = "Kelly sizing is not suitable for this strategy"
        warnings.append("Non-positive Kelly fraction means the strategy has negative expectancy")

    return recommendation, warnings


def calculate_historical_kelly(
    trades: Iterable[TradeRecord],
    fractional_factor: float = DEFAULT_FRACTIONAL_FACTOR,
) -> KellyResult:
    """
    Kelly analysis of a trade history.

    Only enabled trades are used. Trades with zero profit count toward the
    total but are neither wins nor losses.

    Args:
        trades: Trade history
        fractional_factor: Multiplier for fractional_kelly

    Returns:
        KellyResult; is_valid is False when there is no usable edge.
        profit_factor is math.inf when there are wins but no losses.
    """
    enabled = [trade for trade in trades if trade.enabled]

    if not enabled:
        return KellyResult(
            kelly_percentage=0.0,
            fractional_kelly=0.0,
            win_rate=0.0,
            avg_win=0.0,
            avg_loss=0.0,
            profit_factor=0.0,
            expected_return=0.0,
            risk_of_ruin=1.0,
            recommendation="No usable trade data",
            is_valid=False,
            warnings=("Add at least one enabled trade",),
        )

    wins = [trade.profit for trade in enabled if trade.profit > 0]
    losses = [trade.profit for trade in enabled if trade.profit < 0]

    total_trades = len(enabled)
    win_rate = len(wins) / total_trades
    total_profit = sum(wins)
    total_loss = abs(sum(losses))
    avg_win = total_profit / len(wins) if wins else 0.0
    avg_loss = total_loss / len(losses) if losses else 0.0

    kelly = 0.0
    if avg_win > 0 and avg_loss > 0:
        kelly = calculate_trading_kelly(win_rate, avg_win, avg_loss)

    if total_loss > 0:
        profit_factor = total_profit / total_loss
    else:
        profit_factor = math.inf if total_profit > 0 else 0.0

    expected_return = (win_rate * avg_win - (1 - win_rate) * avg_loss) / 100
    recommendation, warnings = _assess(kelly, total_trades)

    return KellyResult(
        kelly_percentage=kelly,
        fractional_kelly=kelly * fractional_factor,
        win_rate=win_rate,
        avg_win=avg_win,
        avg_loss=avg_loss,
        profit_factor=profit_factor,
        expected_return=expected_return,
        risk_of_ruin=_risk_of_ruin(kelly),
        recommendation=recommendation,
        is_valid=kelly > 0,
        warnings=tuple(warnings),
    )


def calculate_kelly_from_stats(
    win_rate: float,
    avg_win: float,
    avg_loss: float,
    fractional_factor: float = DEFAULT_FRACTIONAL_FACTOR,
) -> KellyResult:
    """
    Kelly analysis from summary statistics instead of a trade list.

    Args:
        win_rate: Fraction of winning trades (0-1, exclusive)
        avg_win: Average profit of a winning trade
        avg_loss: Average loss of a losing trade, as a positive magnitude
        fractional_factor: Multiplier for fractional_kelly

    profit_factor is the payoff ratio avg_win / avg_loss, inf without losses.
    """
    kelly = calculate_trading_kelly(win_rate, avg_win, avg_loss)
    loss_rate = 1 - win_rate
    expected_loss = loss_rate * avg_loss
    profit_factor = avg_win / avg_loss if avg_loss > 0 else math.inf

    recommendation, warnings = _assess(kelly)

    return KellyResult(
        kelly_percentage=kelly,
        fractional_kelly=kelly * fractional_factor,
        win_rate=win_rate,
        avg_win=avg_win,
        avg_loss=avg_loss,
        profit_factor=profit_factor,
        expected_return=(win_rate * avg_win - expected_loss) / 100,
        risk_of_ruin=_risk_of_ruin(kelly),
        recommendation=recommendation,
        is_valid=kelly > 0,
        warnings=tuple(warnings),
    )


def apply_risk_adjustment(kelly_percentage: float, adjustment: RiskAdjustment) -> float:
    """
    Scale a raw Kelly fraction to a position size.

    fraction → × fractional_factor → min(max_position) → × tolerance scale,
    floored at 0.
    """
    adjusted = kelly_percentage * adjustment.fractional_factor
    adjusted = min(adjusted, adjustment.max_position)
    adjusted *= RISK_TOLERANCE_SCALE[adjustment.risk_tolerance]
    return max(0.0, adjusted)
