"""
Position calculators: liquidation price, position snapshot, risk analysis,
add-position, portfolio PnL and portfolio risk.
"""

from typing import Dict, List, Optional

from pydantic import Field, field_validator

from margincalc.calculations.basic import calculate_liquidation_price
from margincalc.calculations.pnl_analysis import calculate_pnl_analysis, calculate_portfolio_risk
from margincalc.calculations.position import calculate_add_position, calculate_position_result
from margincalc.calculations.risk import perform_risk_analysis
from margincalc.calculators.base import Calculator
from margincalc.calculators.decorators import register_calculator
from margincalc.models.position import Fill, PositionSide
from margincalc.models.results import (
    AddPositionResult,
    CalculationResult,
    LiquidationPriceResult,
    PnlAnalysisResult,
    PortfolioRisk,
    RiskAnalysisResult,
)
from margincalc.utils.config import normalize_symbol
from margincalc.validation.schemas import FiniteFloat, InputModel, PositionInput, upper_text
from margincalc.validation.validators import (
    FieldError,
    validate_add_position,
    validate_leverage,
    validate_position,
    validate_price,
    validate_symbol,
)


def _prefixed(prefix: str, errors: List[FieldError]) -> List[FieldError]:
    return [FieldError(f"{prefix}{error.field}", error.message, error.level) for error in errors]


class _PositionCalculator(Calculator):
    """Shared validation for calculators whose input is one position."""

    def _validate_position(self, params: PositionInput) -> List[FieldError]:
        position = params.to_position()
        errors = validate_position(position, self.bounds, self.max_leverage(position.symbol))
        current_price = getattr(params, "current_price", None)
        if current_price is not None:
            error = validate_price(current_price, "current_price", self.bounds.max_price)
            if error:
                errors.append(error)
        return errors


@register_calculator("liquidation_price", description="Liquidation price of a position")
class LiquidationPriceCalculator(Calculator):
    """Canonical liquidation price with an optional per-symbol maintenance margin rate."""

    class ParamSchema(InputModel):
        side: PositionSide
        leverage: FiniteFloat
        entry_price: FiniteFloat
        symbol: Optional[str] = None
        maintenance_margin_rate: Optional[FiniteFloat] = Field(None, ge=0, lt=0.5)

        normalize_side = field_validator("side", mode="before")(upper_text)

    def validate(self, params: ParamSchema) -> List[FieldError]:
        errors = []
        if params.symbol is not None:
            errors.append(validate_symbol(params.symbol, max_length=self.bounds.max_symbol_length))
        errors.append(validate_leverage(params.leverage, max_leverage=self.max_leverage(params.symbol)))
        errors.append(validate_price(params.entry_price, "entry_price", self.bounds.max_price))
        return [error for error in errors if error is not None]

    def calculate(self, params: ParamSchema) -> LiquidationPriceResult:
        mmr = params.maintenance_margin_rate
        if mmr is None:
            mmr = self.maintenance_margin_rate(params.symbol)
        return LiquidationPriceResult(
            liquidation_price=calculate_liquidation_price(
                params.side, params.leverage, params.entry_price, mmr
            ),
            maintenance_margin_rate=mmr,
        )


@register_calculator("position_result", description="Full snapshot of one position")
class PositionResultCalculator(_PositionCalculator):

    class ParamSchema(PositionInput):
        current_price: Optional[FiniteFloat] = None

    def validate(self, params: ParamSchema) -> List[FieldError]:
        return self._validate_position(params)

    def calculate(self, params: ParamSchema) -> CalculationResult:
        position = params.to_position()
        return calculate_position_result(
            position,
            params.current_price,
            self.maintenance_margin_rate(position.symbol),
            self.thresholds,
        )


@register_calculator("risk_analysis", description="Risk score, level and recommendations")
class RiskAnalysisCalculator(_PositionCalculator):

    class ParamSchema(PositionInput):
        current_price: Optional[FiniteFloat] = None

    def validate(self, params: ParamSchema) -> List[FieldError]:
        return self._validate_position(params)

    def calculate(self, params: ParamSchema) -> RiskAnalysisResult:
        position = params.to_position()
        return perform_risk_analysis(
            position,
            params.current_price,
            self.maintenance_margin_rate(position.symbol),
            self.thresholds,
        )


@register_calculator("add_position", description="Average a new fill into a position")
class AddPositionCalculator(_PositionCalculator):

    class ParamSchema(InputModel):
        position: PositionInput
        add_price: FiniteFloat
        add_quantity: FiniteFloat
        add_margin: FiniteFloat
        current_price: Optional[FiniteFloat] = None

    def validate(self, params: ParamSchema) -> List[FieldError]:
        original = params.position.to_position()
        errors = validate_add_position(
            original,
            self._fill(params),
            self.bounds,
            self.max_leverage(original.symbol),
        )
        if params.current_price is not None:
            error = validate_price(params.current_price, "current_price", self.bounds.max_price)
            if error:
                errors.append(error)
        return errors

    @staticmethod
    def _fill(params: ParamSchema) -> Fill:
        return Fill(price=params.add_price, quantity=params.add_quantity, margin=params.add_margin)

    def calculate(self, params: ParamSchema) -> AddPositionResult:
        original = params.position.to_position()
        return calculate_add_position(
            original,
            self._fill(params),
            params.current_price,
            self.maintenance_margin_rate(original.symbol),
            self.thresholds,
        )


class PortfolioInput(InputModel):
    """Positions plus market prices keyed by symbol."""

    positions: List[PositionInput]
    current_prices: Dict[str, FiniteFloat] = Field(default_factory=dict)


class _PortfolioCalculator(Calculator):

    ParamSchema = PortfolioInput

    def validate(self, params: PortfolioInput) -> List[FieldError]:
        errors: List[FieldError] = []
        for index, item in enumerate(params.positions):
            position = item.to_position()
            errors.extend(_prefixed(
                f"positions.{index}.",
                validate_position(position, self.bounds, self.max_leverage(position.symbol)),
            ))
        for symbol, price in params.current_prices.items():
            error = validate_price(price, f"current_prices.{symbol}", self.bounds.max_price)
            if error:
                errors.append(error)
        return errors

    @staticmethod
    def _prices(params: PortfolioInput) -> Dict[str, float]:
        return {normalize_symbol(symbol): price for symbol, price in params.current_prices.items()}


@register_calculator("pnl_analysis", description="Aggregate PnL over several positions")
class PnlAnalysisCalculator(_PortfolioCalculator):

    def calculate(self, params: PortfolioInput) -> PnlAnalysisResult:
        return calculate_pnl_analysis(
            [item.to_position() for item in params.positions],
            self._prices(params),
            self.maintenance_margin_rate(),
            self.thresholds,
        )


@register_calculator("portfolio_risk", description="Exposure summary of several positions")
class PortfolioRiskCalculator(_PortfolioCalculator):

    def calculate(self, params: PortfolioInput) -> PortfolioRisk:
        return calculate_portfolio_risk(
            [item.to_position() for item in params.positions],
            self._prices(params),
            self.maintenance_margin_rate(),
            self.thresholds,
        )
