"""
Risk scoring and risk analysis.

Score composition (0-100):
    leverage risk     0-40  min(leverage / 125 × 40, 40)
    margin risk       0-30  max(0, (1 − margin_ratio) × 30)
    liquidation risk  0-30  max(0, (1 − distance / 100) × 30)
"""

from typing import List, Optional

from margincalc.calculations.basic import (
    DEFAULT_MAINTENANCE_MARGIN_RATE,
    calculate_distance_to_liquidation,
    calculate_liquidation_price,
    calculate_margin_ratio,
    calculate_total_value,
)
from margincalc.models.position import Position
from margincalc.models.results import RiskAnalysisResult, RiskLevel
from margincalc.utils.config import RiskThresholds

MAX_LEVERAGE = 125
LEVERAGE_RISK_WEIGHT = 40
MARGIN_RISK_WEIGHT = 30
LIQUIDATION_RISK_WEIGHT = 30

# Recommendation triggers
CLOSE_TO_LIQUIDATION_PERCENT = 10
HIGH_LEVERAGE = 20
CONCENTRATION_RISK_PLACEHOLDER = 50.0

DEFAULT_THRESHOLDS = RiskThresholds()


def calculate_risk_score(
    margin_ratio: float,
    leverage: float,
    distance_to_liquidation: float,
) -> float:
    """
    Combine leverage, margin ratio and liquidation distance into 0-100.

    Example:
        >>> round(calculate_risk_score(0.1, 10, 9.5), 2)
        57.35
    """
    leverage_risk = min(leverage / MAX_LEVERAGE * LEVERAGE_RISK_WEIGHT, LEVERAGE_RISK_WEIGHT)
    margin_risk = max(0.0, (1 - margin_ratio) * MARGIN_RISK_WEIGHT)
    liquidation_risk = max(0.0, (1 - distance_to_liquidation / 100) * LIQUIDATION_RISK_WEIGHT)

    return max(0.0, min(leverage_risk + margin_risk + liquidation_risk, 100.0))


def classify_risk_score(
    score: float,
    thresholds: RiskThresholds = DEFAULT_THRESHOLDS,
) -> RiskLevel:
    """Map a score to LOW / MEDIUM / HIGH / EXTREME."""
    if score < thresholds.low:
        return RiskLevel.LOW
    if score < thresholds.medium:
        return RiskLevel.MEDIUM
    if score < thresholds.high:
        return RiskLevel.HIGH
    return RiskLevel.EXTREME


def calculate_risk_level(
    margin_ratio: float,
    leverage: float,
    distance_to_liquidation: float,
    thresholds: RiskThresholds = DEFAULT_THRESHOLDS,
) -> RiskLevel:
    """Risk level straight from the three risk inputs."""
    score = calculate_risk_score(margin_ratio, leverage, distance_to_liquidation)
    return classify_risk_score(score, thresholds)


def perform_risk_analysis(
    position: Position,
    current_price: Optional[float] = None,
    maintenance_margin_rate: float = DEFAULT_MAINTENANCE_MARGIN_RATE,
    thresholds: RiskThresholds = DEFAULT_THRESHOLDS,
) -> RiskAnalysisResult:
    """
    Full risk breakdown for a validated position.

    Args:
        position: Position to analyse
        current_price: Evaluation price (defaults to the entry price)
        maintenance_margin_rate: Rate used for the liquidation price
        thresholds: Risk level boundaries

    Returns:
        RiskAnalysisResult with score, level and recommendations
    """
    price = current_price if current_price else position.entry_price

    total_value = calculate_total_value(position.quantity, price)
    margin_ratio = calculate_margin_ratio(position.margin, total_value)
    liquidation_price = calculate_liquidation_price(
        position.side, position.leverage, position.entry_price, maintenance_margin_rate
    )
    distance = calculate_distance_to_liquidation(price, liquidation_price, position.side)

    risk_score = calculate_risk_score(margin_ratio, position.leverage, distance)
    risk_level = classify_risk_score(risk_score, thresholds)

    leverage_risk = min(position.leverage / MAX_LEVERAGE * 100, 100.0)

    recommendations: List[str] = []
    if risk_level in (RiskLevel.HIGH, RiskLevel.EXTREME):
        recommendations.append("Reduce leverage")
        recommendations.append("Consider setting a stop loss")
    if distance < CLOSE_TO_LIQUIDATION_PERCENT:
        recommendations.append("Price is close to liquidation, consider adding margin")
    if position.leverage > HIGH_LEVERAGE:
        recommendations.append("Leverage is high, keep risk under control")

    return RiskAnalysisResult(
        risk_level=risk_level,
        risk_score=risk_score,
        margin_ratio=margin_ratio,
        leverage_risk=leverage_risk,
        concentration_risk=CONCENTRATION_RISK_PLACEHOLDER,
        liquidation_distance=distance,
        recommendations=tuple(recommendations),
    )
