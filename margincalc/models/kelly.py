"""
Kelly criterion models
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class RiskTolerance(Enum):
    """Risk appetite applied on top of fractional Kelly"""
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


# Scale applied after the fractional factor and position cap
RISK_TOLERANCE_SCALE = {
    RiskTolerance.CONSERVATIVE: 0.5,
    RiskTolerance.MODERATE: 0.75,
    RiskTolerance.AGGRESSIVE: 1.0,
}


@dataclass(frozen=True)
class TradeRecord:
    """
    Historical trade outcome.

    Attributes:
        profit: Realized profit (negative for a loss)
        enabled: Whether the trade participates in the analysis
        id: Optional caller identifier
    """

    profit: float
    enabled: bool = True
    id: Optional[int] = None


@dataclass(frozen=True)
class RiskAdjustment:
    """
    Risk adjustment applied to a raw Kelly fraction.

    Attributes:
        fractional_factor: Fractional Kelly multiplier (0-1)
        max_position: Hard cap on the fraction of capital (0-1)
        risk_tolerance: Further scaling by risk appetite
    """

    fractional_factor: float = 0.5
    max_position: float = 0.25
    risk_tolerance: RiskTolerance = RiskTolerance.MODERATE

    def __post_init__(self) -> None:
        if not isinstance(self.risk_tolerance, RiskTolerance):
            object.__setattr__(
                self, "risk_tolerance", RiskTolerance(str(self.risk_tolerance).lower())
            )


@dataclass(frozen=True)
class KellyResult:
    """
    Kelly sizing outcome.

    kelly_percentage and fractional_kelly are fractions of capital (0-1),
    win_rate is a fraction (0-1). adjusted_position is set when a
    RiskAdjustment was applied.
    """

    kelly_percentage: float
    fractional_kelly: float
    win_rate: float
    avg_win: float
    avg_loss: float
    profit_factor: float
    expected_return: float
    risk_of_ruin: float
    recommendation: str
    is_valid: bool
    warnings: Tuple[str, ...] = ()
    adjusted_position: Optional[float] = None
