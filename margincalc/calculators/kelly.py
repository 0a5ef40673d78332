"""
Kelly criterion calculators.

Both calculators report the raw Kelly fraction and a risk-adjusted
position size. Adjustment parameters left out of the input fall back to
the [kelly] section of the configuration.
"""

import dataclasses
from typing import List, Optional

from pydantic import Field, field_validator

from margincalc.calculations.kelly import (
    apply_risk_adjustment,
    calculate_historical_kelly,
    calculate_kelly_from_stats,
)
from margincalc.calculators.base import Calculator
from margincalc.calculators.decorators import register_calculator
from margincalc.models.kelly import KellyResult, RiskAdjustment, RiskTolerance
from margincalc.validation.schemas import FiniteFloat, InputModel, TradeInput, lower_text
from margincalc.validation.validators import FieldError, validate_kelly_params


class RiskAdjustmentInput(InputModel):
    """Optional risk adjustment overrides."""

    fractional_factor: Optional[FiniteFloat] = Field(None, gt=0, le=1)
    max_position: Optional[FiniteFloat] = Field(None, gt=0, le=1)
    risk_tolerance: Optional[RiskTolerance] = None

    normalize_tolerance = field_validator("risk_tolerance", mode="before")(lower_text)


class _KellyCalculator(Calculator):

    def _adjustment(self, params: RiskAdjustmentInput) -> RiskAdjustment:
        settings = self.config.kelly
        return RiskAdjustment(
            fractional_factor=(
                params.fractional_factor
                if params.fractional_factor is not None
                else settings.fractional_factor
            ),
            max_position=(
                params.max_position if params.max_position is not None else settings.max_position
            ),
            risk_tolerance=params.risk_tolerance or settings.risk_tolerance,
        )

    @staticmethod
    def _with_adjustment(result: KellyResult, adjustment: RiskAdjustment) -> KellyResult:
        return dataclasses.replace(
            result,
            adjusted_position=apply_risk_adjustment(result.kelly_percentage, adjustment),
        )


@register_calculator("kelly", description="Kelly sizing from win rate and average win/loss")
class KellyCalculator(_KellyCalculator):

    class ParamSchema(RiskAdjustmentInput):
        win_rate: FiniteFloat = Field(description="Fraction of winning trades, 0-1")
        avg_win: FiniteFloat
        avg_loss: FiniteFloat = Field(description="Average loss as a positive amount")

    def validate(self, params: ParamSchema) -> List[FieldError]:
        return validate_kelly_params(params.win_rate, params.avg_win, params.avg_loss)

    def calculate(self, params: ParamSchema) -> KellyResult:
        adjustment = self._adjustment(params)
        result = calculate_kelly_from_stats(
            params.win_rate, params.avg_win, params.avg_loss, adjustment.fractional_factor
        )
        return self._with_adjustment(result, adjustment)


@register_calculator("historical_kelly", description="Kelly sizing from a trade history")
class HistoricalKellyCalculator(_KellyCalculator):
    """An empty or losing history is a valid input; the result says so."""

    class ParamSchema(RiskAdjustmentInput):
        trades: List[TradeInput] = Field(default_factory=list)

    def calculate(self, params: ParamSchema) -> KellyResult:
        adjustment = self._adjustment(params)
        result = calculate_historical_kelly(
            [trade.to_trade() for trade in params.trades], adjustment.fractional_factor
        )
        return self._with_adjustment(result, adjustment)
