"""
Pyramid (scaled entry) plan calculator.
"""

from typing import List

from pydantic import Field, field_validator

from margincalc.calculations.pyramid import calculate_pyramid_plan
from margincalc.calculators.base import Calculator
from margincalc.calculators.decorators import register_calculator
from margincalc.models.position import PositionSide
from margincalc.models.pyramid import PyramidParams, PyramidPlan, PyramidStrategy
from margincalc.validation.schemas import FiniteFloat, InputModel, lower_text, upper_text
from margincalc.validation.validators import FieldError, validate_pyramid_params


@register_calculator("pyramid", description="Scaled entry plan with per-level liquidation prices")
class PyramidCalculator(Calculator):
    """
    Plans N adds, each one step further against the position.

    Invalid parameters return errors and no plan; a plan is never partial.
    """

    class ParamSchema(InputModel):
        symbol: str
        side: PositionSide
        leverage: FiniteFloat
        initial_price: FiniteFloat
        initial_quantity: FiniteFloat
        initial_margin: FiniteFloat
        pyramid_levels: int = Field(description="Total number of levels, including the initial fill")
        strategy: PyramidStrategy = PyramidStrategy.EQUAL_RATIO
        price_drop_percent: FiniteFloat = Field(description="Adverse move between levels, percent")
        ratio_multiplier: FiniteFloat = 2.0

        normalize_side = field_validator("side", mode="before")(upper_text)
        normalize_strategy = field_validator("strategy", mode="before")(lower_text)

        def to_params(self) -> PyramidParams:
            return PyramidParams(
                symbol=self.symbol.upper(),
                side=self.side,
                leverage=self.leverage,
                initial_price=self.initial_price,
                initial_quantity=self.initial_quantity,
                initial_margin=self.initial_margin,
                pyramid_levels=self.pyramid_levels,
                strategy=self.strategy,
                price_drop_percent=self.price_drop_percent,
                ratio_multiplier=self.ratio_multiplier,
            )

    def validate(self, params: ParamSchema) -> List[FieldError]:
        pyramid_params = params.to_params()
        return validate_pyramid_params(
            pyramid_params, self.bounds, self.max_leverage(pyramid_params.symbol)
        )

    def calculate(self, params: ParamSchema) -> PyramidPlan:
        pyramid_params = params.to_params()
        return calculate_pyramid_plan(
            pyramid_params, self.maintenance_margin_rate(pyramid_params.symbol)
        )
