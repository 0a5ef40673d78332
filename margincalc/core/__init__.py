"""
Core infrastructure: exceptions and result caching.
"""

from margincalc.core.cache import ResultCache
from margincalc.core.exceptions import (
    CalculatorError,
    CalculatorNotFoundError,
    ConfigurationError,
    InvalidParameterError,
    StorageError,
)

__all__ = [
    "ResultCache",
    "CalculatorError",
    "CalculatorNotFoundError",
    "ConfigurationError",
    "InvalidParameterError",
    "StorageError",
]
