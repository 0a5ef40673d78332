"""
Registered calculators and the service that runs them.

Importing this package registers every built-in calculator.
"""

from margincalc.calculators.base import Calculator
from margincalc.calculators.decorators import register_calculator
from margincalc.calculators.registry import CalculatorInfo, CalculatorRegistry

# Import calculator modules so their @register_calculator decorators run
from margincalc.calculators import contract, kelly, position, pyramid  # noqa: F401

from margincalc.calculators.service import CalculationOutcome, CalculatorService

__all__ = [
    "Calculator",
    "CalculatorInfo",
    "CalculatorRegistry",
    "CalculationOutcome",
    "CalculatorService",
    "register_calculator",
]
