"""
Input parsing (pydantic schemas) and domain validation.
"""

from margincalc.validation.schemas import (
    ExitOrderInput,
    FiniteFloat,
    FillInput,
    InputModel,
    PositionInput,
    TradeInput,
    errors_from_validation_error,
)
from margincalc.validation.validators import (
    FieldError,
    ValidationLevel,
    has_blocking_errors,
    validate_add_position,
    validate_break_even_inputs,
    validate_fill,
    validate_kelly_params,
    validate_leverage,
    validate_margin,
    validate_percentage,
    validate_position,
    validate_price,
    validate_pyramid_params,
    validate_quantity,
    validate_symbol,
    validate_target_price,
)

__all__ = [
    "ExitOrderInput",
    "FiniteFloat",
    "FillInput",
    "InputModel",
    "PositionInput",
    "TradeInput",
    "errors_from_validation_error",
    "FieldError",
    "ValidationLevel",
    "has_blocking_errors",
    "validate_add_position",
    "validate_break_even_inputs",
    "validate_fill",
    "validate_kelly_params",
    "validate_leverage",
    "validate_margin",
    "validate_percentage",
    "validate_position",
    "validate_price",
    "validate_pyramid_params",
    "validate_quantity",
    "validate_symbol",
    "validate_target_price",
]
