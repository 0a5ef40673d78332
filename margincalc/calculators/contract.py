"""
Contract calculators: target price, entry price, max position, trade PnL,
position ledger PnL and break-even rate.
"""

from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from margincalc.calculations.contract import (
    calculate_break_even_rate,
    calculate_entry_price,
    calculate_max_position,
    calculate_target_price,
    calculate_trade_pnl,
)
from margincalc.calculations.ledger import calculate_ledger_pnl
from margincalc.calculators.base import Calculator
from margincalc.calculators.decorators import register_calculator
from margincalc.models.ledger import LedgerPnlResult
from margincalc.models.position import PositionSide
from margincalc.models.results import (
    BreakEvenResult,
    EntryPriceResult,
    MaxPositionResult,
    TargetPriceResult,
    TradePnlResult,
)
from margincalc.validation.schemas import (
    ExitOrderInput,
    FiniteFloat,
    FillInput,
    InputModel,
    LedgerEntryInput,
    upper_text,
)
from margincalc.validation.validators import (
    FieldError,
    validate_break_even_inputs,
    validate_fill,
    validate_ledger,
    validate_leverage,
    validate_price,
    validate_quantity,
    validate_symbol,
    validate_target_price,
)


def _collect(*errors: Optional[FieldError]) -> List[FieldError]:
    return [error for error in errors if error is not None]


@register_calculator("target_price", description="Price that yields a target ROE")
class TargetPriceCalculator(Calculator):

    class ParamSchema(InputModel):
        side: PositionSide
        entry_price: FiniteFloat
        target_roe: FiniteFloat = Field(description="Target return on margin, percent")
        leverage: FiniteFloat = 1

        normalize_side = field_validator("side", mode="before")(upper_text)

    def validate(self, params: ParamSchema) -> List[FieldError]:
        return validate_target_price(
            params.entry_price,
            params.target_roe,
            params.leverage,
            self.bounds,
            self.max_leverage(),
        )

    def calculate(self, params: ParamSchema) -> TargetPriceResult:
        return calculate_target_price(
            params.side, params.entry_price, params.target_roe, params.leverage
        )


@register_calculator("entry_price", description="Average entry price over several fills")
class EntryPriceCalculator(Calculator):

    class ParamSchema(InputModel):
        fills: List[FillInput] = Field(min_length=1)

    def validate(self, params: ParamSchema) -> List[FieldError]:
        errors: List[FieldError] = []
        for index, item in enumerate(params.fills):
            errors.extend(validate_fill(item.to_fill(), f"fills.{index}.", bounds=self.bounds))
        return errors

    def calculate(self, params: ParamSchema) -> EntryPriceResult:
        return calculate_entry_price(item.to_fill() for item in params.fills)


@register_calculator("max_position", description="Largest position a wallet can open")
class MaxPositionCalculator(Calculator):

    class ParamSchema(InputModel):
        wallet_balance: FiniteFloat
        leverage: FiniteFloat
        entry_price: FiniteFloat
        side: Optional[PositionSide] = None

        normalize_side = field_validator("side", mode="before")(upper_text)

    def validate(self, params: ParamSchema) -> List[FieldError]:
        errors = _collect(
            validate_leverage(params.leverage, max_leverage=self.max_leverage()),
            validate_price(params.entry_price, "entry_price", self.bounds.max_price),
        )
        if params.wallet_balance <= 0:
            errors.append(FieldError("wallet_balance", "must be greater than 0"))
        return errors

    def calculate(self, params: ParamSchema) -> MaxPositionResult:
        return calculate_max_position(params.wallet_balance, params.leverage, params.entry_price)


@register_calculator("trade_pnl", description="Realized PnL with optional partial exits")
class TradePnlCalculator(Calculator):

    class ParamSchema(InputModel):
        side: PositionSide
        leverage: FiniteFloat
        entry_price: FiniteFloat
        quantity: FiniteFloat
        exit_price: Optional[FiniteFloat] = None
        exit_orders: List[ExitOrderInput] = Field(default_factory=list)

        normalize_side = field_validator("side", mode="before")(upper_text)

        @model_validator(mode="after")
        def check_exit(self):
            if self.exit_price is None and not self.exit_orders:
                raise ValueError("either exit_price or exit_orders is required")
            return self

    def validate(self, params: ParamSchema) -> List[FieldError]:
        errors = _collect(
            validate_leverage(params.leverage, max_leverage=self.max_leverage()),
            validate_price(params.entry_price, "entry_price", self.bounds.max_price),
            validate_quantity(params.quantity, max_quantity=self.bounds.max_quantity),
        )
        if params.exit_price is not None:
            error = validate_price(params.exit_price, "exit_price", self.bounds.max_price)
            if error:
                errors.append(error)
        for index, order in enumerate(params.exit_orders):
            errors.extend(_collect(
                validate_price(order.price, f"exit_orders.{index}.price", self.bounds.max_price),
                validate_quantity(
                    order.quantity, f"exit_orders.{index}.quantity", self.bounds.max_quantity
                ),
            ))
        return errors

    def calculate(self, params: ParamSchema) -> TradePnlResult:
        exit_orders = [order.to_exit_order() for order in params.exit_orders]
        return calculate_trade_pnl(
            params.side,
            params.leverage,
            params.entry_price,
            params.exit_price if params.exit_price is not None else params.entry_price,
            params.quantity,
            exit_orders or None,
        )


@register_calculator("position_ledger_pnl", description="PnL of a ledger of opens and partial closes")
class PositionLedgerCalculator(Calculator):
    """
    Closes are fixed quantities (CLOSE) or a percent of current holdings
    (CLOSE_25, CLOSE_50, CLOSE_75, CLOSE_100).
    """

    class ParamSchema(InputModel):
        side: PositionSide
        entries: List[LedgerEntryInput] = Field(min_length=1)
        capital: Optional[FiniteFloat] = None
        leverage: Optional[FiniteFloat] = None
        symbol: Optional[str] = None

        normalize_side = field_validator("side", mode="before")(upper_text)

    def validate(self, params: ParamSchema) -> List[FieldError]:
        errors = validate_ledger(
            [item.to_entry() for item in params.entries], params.capital, self.bounds
        )
        if params.capital is not None and params.capital <= 0:
            errors.append(FieldError("capital", "must be greater than 0"))
        if params.symbol is not None:
            errors.extend(_collect(
                validate_symbol(params.symbol, max_length=self.bounds.max_symbol_length)
            ))
        if params.leverage is not None:
            errors.extend(_collect(
                validate_leverage(params.leverage, max_leverage=self.max_leverage(params.symbol))
            ))
        return errors

    def calculate(self, params: ParamSchema) -> LedgerPnlResult:
        return calculate_ledger_pnl(
            params.side,
            [item.to_entry() for item in params.entries],
            params.capital,
            params.leverage,
            self.maintenance_margin_rate(params.symbol),
        )


@register_calculator("break_even", description="ROE needed to cover fees and funding")
class BreakEvenCalculator(Calculator):
    """Rates are percentages (0.05 means 0.05%); times are hours."""

    class ParamSchema(InputModel):
        leverage: FiniteFloat
        open_fee_rate: FiniteFloat = 0.05
        close_fee_rate: FiniteFloat = 0.05
        funding_rate: FiniteFloat = 0.01
        funding_period: FiniteFloat = 8
        holding_time: FiniteFloat = 24

    def validate(self, params: ParamSchema) -> List[FieldError]:
        return validate_break_even_inputs(
            params.leverage,
            params.open_fee_rate,
            params.close_fee_rate,
            params.funding_rate,
            params.funding_period,
            params.holding_time,
        )

    def calculate(self, params: ParamSchema) -> BreakEvenResult:
        return calculate_break_even_rate(
            params.leverage,
            params.open_fee_rate,
            params.close_fee_rate,
            params.funding_rate,
            params.funding_period,
            params.holding_time,
        )
