"""
Input-domain validators shared by all calculators.

Validators never raise for bad input. Scalar validators return a single
FieldError or None; aggregate validators return a list that is empty when
the input is acceptable. Only ERROR-level issues block a calculation;
WARNING-level issues are advisories shown next to the result.
"""

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from margincalc.models.ledger import LEDGER_EPSILON, LedgerEntry
from margincalc.models.position import Fill, Position, PositionSide
from margincalc.models.pyramid import PyramidParams, PyramidStrategy
from margincalc.utils.config import ValidationBounds

MIN_LEVERAGE = 1
MAX_LEVERAGE = 125

MIN_PYRAMID_LEVELS = 2
MAX_PYRAMID_LEVELS = 10
MAX_PRICE_DROP_PERCENT = 50
MIN_RATIO_MULTIPLIER = 1
MAX_RATIO_MULTIPLIER = 5

# Break-even sanity bounds
MAX_BREAK_EVEN_LEVERAGE = 1000
MAX_FEE_RATE_PERCENT = 10
MAX_FUNDING_RATE_PERCENT = 1
MAX_FUNDING_PERIOD_HOURS = 24
MAX_HOLDING_TIME_HOURS = 24 * 365

# BTCUSDT or BTC/USDT
SYMBOL_PATTERN = re.compile(r"^[A-Z0-9]+(/[A-Z0-9]+)?$")

DEFAULT_BOUNDS = ValidationBounds()


class ValidationLevel(Enum):
    """Severity of a validation issue."""

    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class FieldError:
    """A validation message tagged with the offending input field."""

    field: str
    message: str
    level: ValidationLevel = ValidationLevel.ERROR

    @property
    def is_blocking(self) -> bool:
        return self.level == ValidationLevel.ERROR

    def __str__(self) -> str:
        return f"[{self.level.value.upper()}] [{self.field}] {self.message}"


def has_blocking_errors(errors: Sequence[FieldError]) -> bool:
    return any(error.is_blocking for error in errors)


def _is_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _collect(*results: Optional[FieldError]) -> List[FieldError]:
    return [result for result in results if result is not None]


# ---------------------------------------------------------------------------
# Scalar validators
# ---------------------------------------------------------------------------


def validate_price(
    price: float,
    field: str = "price",
    max_price: float = DEFAULT_BOUNDS.max_price,
) -> Optional[FieldError]:
    if not _is_number(price):
        return FieldError(field, "must be a valid number")
    if price <= 0:
        return FieldError(field, "must be greater than 0")
    if price > max_price:
        return FieldError(field, f"must not exceed {max_price:g}")
    return None


def validate_quantity(
    quantity: float,
    field: str = "quantity",
    max_quantity: float = DEFAULT_BOUNDS.max_quantity,
) -> Optional[FieldError]:
    if not _is_number(quantity):
        return FieldError(field, "must be a valid number")
    if quantity <= 0:
        return FieldError(field, "must be greater than 0")
    if quantity > max_quantity:
        return FieldError(field, f"must not exceed {max_quantity:g}")
    return None


def validate_leverage(
    leverage: float,
    field: str = "leverage",
    max_leverage: float = MAX_LEVERAGE,
) -> Optional[FieldError]:
    if not _is_number(leverage):
        return FieldError(field, "must be a valid number")
    if leverage < MIN_LEVERAGE or leverage > max_leverage:
        return FieldError(field, f"must be between {MIN_LEVERAGE} and {max_leverage:g}")
    return None


def validate_margin(
    margin: float,
    position_value: Optional[float] = None,
    field: str = "margin",
) -> Optional[FieldError]:
    """Margin must be positive and, when position_value is given, not above it."""
    if not _is_number(margin):
        return FieldError(field, "must be a valid number")
    if margin <= 0:
        return FieldError(field, "must be greater than 0")
    if position_value and margin > position_value:
        return FieldError(field, "must not exceed the position value")
    return None


def validate_percentage(
    percentage: float,
    field: str = "percentage",
    minimum: float = 0,
    maximum: float = 100,
) -> Optional[FieldError]:
    if not _is_number(percentage):
        return FieldError(field, "must be a valid number")
    if percentage < minimum:
        return FieldError(field, f"must not be below {minimum:g}%")
    if percentage > maximum:
        return FieldError(field, f"must not exceed {maximum:g}%")
    return None


def validate_symbol(
    symbol: str,
    field: str = "symbol",
    max_length: int = DEFAULT_BOUNDS.max_symbol_length,
) -> Optional[FieldError]:
    if not symbol or not symbol.strip():
        return FieldError(field, "must not be empty")
    if len(symbol) > max_length:
        return FieldError(field, f"must be at most {max_length} characters")
    if not SYMBOL_PATTERN.match(symbol.strip().upper()):
        return FieldError(field, "must look like BTCUSDT or BTC/USDT")
    return None


# ---------------------------------------------------------------------------
# Aggregate validators
# ---------------------------------------------------------------------------


def validate_position(
    position: Position,
    bounds: ValidationBounds = DEFAULT_BOUNDS,
    max_leverage: float = MAX_LEVERAGE,
) -> List[FieldError]:
    """
    Validate a position including stop-loss/take-profit direction.

    LONG requires stop_loss < entry_price < take_profit, SHORT the reverse.
    """
    errors = _collect(
        validate_symbol(position.symbol, max_length=bounds.max_symbol_length),
        validate_leverage(position.leverage, max_leverage=max_leverage),
        validate_price(position.entry_price, "entry_price", bounds.max_price),
        validate_quantity(position.quantity, max_quantity=bounds.max_quantity),
        validate_margin(position.margin),
    )

    is_long = position.side == PositionSide.LONG
    entry_ok = _is_number(position.entry_price) and position.entry_price > 0

    if position.stop_loss is not None:
        error = validate_price(position.stop_loss, "stop_loss", bounds.max_price)
        if error:
            errors.append(error)
        elif entry_ok:
            if is_long and position.stop_loss >= position.entry_price:
                errors.append(FieldError("stop_loss", "LONG stop loss must be below the entry price"))
            elif not is_long and position.stop_loss <= position.entry_price:
                errors.append(FieldError("stop_loss", "SHORT stop loss must be above the entry price"))

    if position.take_profit is not None:
        error = validate_price(position.take_profit, "take_profit", bounds.max_price)
        if error:
            errors.append(error)
        elif entry_ok:
            if is_long and position.take_profit <= position.entry_price:
                errors.append(FieldError("take_profit", "LONG take profit must be above the entry price"))
            elif not is_long and position.take_profit >= position.entry_price:
                errors.append(FieldError("take_profit", "SHORT take profit must be below the entry price"))

    return errors


def validate_fill(
    fill: Fill,
    prefix: str = "",
    require_margin: bool = False,
    bounds: ValidationBounds = DEFAULT_BOUNDS,
) -> List[FieldError]:
    errors = _collect(
        validate_price(fill.price, f"{prefix}price", bounds.max_price),
        validate_quantity(fill.quantity, f"{prefix}quantity", bounds.max_quantity),
    )
    if require_margin:
        error = validate_margin(fill.margin, field=f"{prefix}margin")
        if error:
            errors.append(error)
    return errors


def validate_add_position(
    original: Position,
    fill: Fill,
    bounds: ValidationBounds = DEFAULT_BOUNDS,
    max_leverage: float = MAX_LEVERAGE,
) -> List[FieldError]:
    """
    Validate an add-position request.

    Adding above the entry on a LONG (below on a SHORT) raises the cost
    basis; it is reported as a WARNING and does not block the calculation.
    """
    errors = validate_position(original, bounds, max_leverage)
    fill_errors = validate_fill(fill, "add_", require_margin=True, bounds=bounds)
    errors.extend(fill_errors)

    if not fill_errors and _is_number(original.entry_price):
        if original.side == PositionSide.LONG and fill.price >= original.entry_price:
            errors.append(FieldError(
                "add_price",
                "LONG positions are usually added below the entry price",
                ValidationLevel.WARNING,
            ))
        elif original.side == PositionSide.SHORT and fill.price <= original.entry_price:
            errors.append(FieldError(
                "add_price",
                "SHORT positions are usually added above the entry price",
                ValidationLevel.WARNING,
            ))

    return errors


def validate_pyramid_params(
    params: PyramidParams,
    bounds: ValidationBounds = DEFAULT_BOUNDS,
    max_leverage: float = MAX_LEVERAGE,
) -> List[FieldError]:
    """ratio_multiplier is only checked for EQUAL_RATIO; DOUBLE_DOWN always doubles."""
    errors = _collect(
        validate_symbol(params.symbol, max_length=bounds.max_symbol_length),
        validate_leverage(params.leverage, max_leverage=max_leverage),
        validate_price(params.initial_price, "initial_price", bounds.max_price),
        validate_quantity(params.initial_quantity, "initial_quantity", bounds.max_quantity),
        validate_margin(params.initial_margin, field="initial_margin"),
    )

    if not MIN_PYRAMID_LEVELS <= params.pyramid_levels <= MAX_PYRAMID_LEVELS:
        errors.append(FieldError(
            "pyramid_levels",
            f"must be between {MIN_PYRAMID_LEVELS} and {MAX_PYRAMID_LEVELS}",
        ))

    drop = params.price_drop_percent
    if not _is_number(drop) or drop <= 0 or drop > MAX_PRICE_DROP_PERCENT:
        errors.append(FieldError(
            "price_drop_percent",
            f"must be greater than 0 and at most {MAX_PRICE_DROP_PERCENT}%",
        ))

    if params.strategy == PyramidStrategy.EQUAL_RATIO:
        ratio = params.ratio_multiplier
        if not _is_number(ratio) or ratio <= MIN_RATIO_MULTIPLIER or ratio > MAX_RATIO_MULTIPLIER:
            errors.append(FieldError(
                "ratio_multiplier",
                f"must be greater than {MIN_RATIO_MULTIPLIER} and at most {MAX_RATIO_MULTIPLIER}",
            ))

    return errors


def validate_target_price(
    entry_price: float,
    target_roe: float,
    leverage: float,
    bounds: ValidationBounds = DEFAULT_BOUNDS,
    max_leverage: float = MAX_LEVERAGE,
) -> List[FieldError]:
    errors = _collect(
        validate_price(entry_price, "entry_price", bounds.max_price),
        validate_leverage(leverage, max_leverage=max_leverage),
    )
    if not _is_number(target_roe):
        errors.append(FieldError("target_roe", "must be a valid number"))
    elif target_roe == 0:
        errors.append(FieldError("target_roe", "must not be 0"))
    elif abs(target_roe) > bounds.max_target_roe:
        errors.append(FieldError("target_roe", f"must be within ±{bounds.max_target_roe:g}%"))
    return errors


def validate_kelly_params(win_rate: float, avg_win: float, avg_loss: float) -> List[FieldError]:
    """win_rate is a fraction strictly between 0 and 1; avg_loss is a magnitude."""
    errors: List[FieldError] = []
    if not _is_number(win_rate) or not 0 < win_rate < 1:
        errors.append(FieldError("win_rate", "must be between 0 and 1 (exclusive)"))
    if not _is_number(avg_win) or avg_win <= 0:
        errors.append(FieldError("avg_win", "must be greater than 0"))
    if not _is_number(avg_loss) or avg_loss <= 0:
        errors.append(FieldError("avg_loss", "must be greater than 0"))
    return errors


def validate_break_even_inputs(
    leverage: float,
    open_fee_rate: float,
    close_fee_rate: float,
    funding_rate: float,
    funding_period: float,
    holding_time: float,
) -> List[FieldError]:
    """All rates are percentages (0.05 means 0.05%); times are hours."""
    errors: List[FieldError] = []

    if not _is_number(leverage) or leverage <= 0:
        errors.append(FieldError("leverage", "must be greater than 0"))
    elif leverage > MAX_BREAK_EVEN_LEVERAGE:
        errors.append(FieldError("leverage", f"must not exceed {MAX_BREAK_EVEN_LEVERAGE}"))

    errors.extend(_collect(
        validate_percentage(open_fee_rate, "open_fee_rate", 0, MAX_FEE_RATE_PERCENT),
        validate_percentage(close_fee_rate, "close_fee_rate", 0, MAX_FEE_RATE_PERCENT),
        validate_percentage(
            funding_rate, "funding_rate", -MAX_FUNDING_RATE_PERCENT, MAX_FUNDING_RATE_PERCENT
        ),
    ))

    if not _is_number(funding_period) or funding_period <= 0:
        errors.append(FieldError("funding_period", "must be greater than 0"))
    elif funding_period > MAX_FUNDING_PERIOD_HOURS:
        errors.append(FieldError(
            "funding_period", f"must not exceed {MAX_FUNDING_PERIOD_HOURS} hours"
        ))

    if not _is_number(holding_time) or holding_time < 0:
        errors.append(FieldError("holding_time", "must not be negative"))
    elif holding_time > MAX_HOLDING_TIME_HOURS:
        errors.append(FieldError("holding_time", "must not exceed one year"))

    return errors


def validate_ledger(
    entries: Sequence[LedgerEntry],
    capital: Optional[float] = None,
    bounds: ValidationBounds = DEFAULT_BOUNDS,
) -> List[FieldError]:
    """
    Check a position ledger row by row.

    Disabled rows are skipped. A close may not exceed the holdings at its
    row (LEDGER_EPSILON tolerance); with capital, the cumulative margin of
    OPEN rows may not exceed it.
    """
    errors: List[FieldError] = []
    holdings = 0.0
    used_capital = 0.0
    active = 0

    for index, entry in enumerate(entries):
        if not entry.enabled:
            continue
        prefix = f"entries.{index}."

        row_errors = _collect(validate_price(entry.price, f"{prefix}price", bounds.max_price))
        if entry.type.close_fraction is None:
            row_errors.extend(_collect(
                validate_quantity(entry.quantity, f"{prefix}quantity", bounds.max_quantity)
            ))
        if not _is_number(entry.margin) or entry.margin < 0:
            row_errors.append(FieldError(f"{prefix}margin", "must not be negative"))
        if row_errors:
            errors.extend(row_errors)
            continue
        active += 1

        if entry.type.is_open:
            holdings += entry.quantity
            used_capital += entry.margin
            if capital and capital > 0 and used_capital > capital:
                errors.append(FieldError(
                    f"{prefix}margin",
                    f"cumulative margin {used_capital:.2f} exceeds capital {capital:.2f} "
                    f"by {used_capital - capital:.2f}",
                ))
        else:
            requested = entry.close_quantity(holdings)
            if requested > holdings + LEDGER_EPSILON:
                errors.append(FieldError(
                    f"{prefix}quantity",
                    f"close quantity {requested:.4f} exceeds holdings {holdings:.4f} "
                    f"by {requested - holdings:.4f}",
                ))
            holdings -= min(requested, holdings)

    if active == 0:
        errors.append(FieldError(
            "entries", "at least one enabled row with a price and quantity is required"
        ))
    return errors
