"""
Abstract base class for calculators.

A calculator binds one family of formulas to the configuration in effect:
ParamSchema parses raw input, validate() applies domain rules and
calculate() produces an immutable result. Calculators hold no per-call
state, so one instance can serve any number of calculations.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Type

from margincalc.utils.config import CalculatorConfig, RiskThresholds, ValidationBounds
from margincalc.validation.schemas import InputModel
from margincalc.validation.validators import FieldError


class Calculator(ABC):
    """
    Abstract base class for registered calculators.

    Subclasses define:
        ParamSchema: InputModel subclass describing the raw input
        calculate(params): Result for already-validated params
        validate(params): Optional domain checks (default: none)
    """

    name: str = ""
    ParamSchema: Type[InputModel] = InputModel

    def __init__(self, config: Optional[CalculatorConfig] = None):
        self.config = config or CalculatorConfig()

    @classmethod
    def from_config(cls, config: Optional[CalculatorConfig] = None) -> "Calculator":
        """Create instance bound to a configuration."""
        return cls(config)

    @property
    def bounds(self) -> ValidationBounds:
        return self.config.validation

    @property
    def thresholds(self) -> RiskThresholds:
        return self.config.risk

    def maintenance_margin_rate(self, symbol: Optional[str] = None) -> float:
        return self.config.maintenance_margin_rate_for(symbol)

    def max_leverage(self, symbol: Optional[str] = None) -> int:
        return self.config.max_leverage_for(symbol)

    def validate(self, params: InputModel) -> List[FieldError]:
        """Domain validation beyond parsing. Never raises for bad input."""
        return []

    @abstractmethod
    def calculate(self, params: InputModel) -> Any:
        """
        Compute the result for validated params.

        Raises:
            InvalidParameterError: If params reach a formula outside its domain
        """
        pass
