"""
Custom exceptions for the calculator toolkit
"""


class CalculatorError(Exception):
    """Base exception for calculator toolkit errors"""


class ConfigurationError(CalculatorError):
    """Configuration related errors"""


class InvalidParameterError(CalculatorError):
    """
    A formula received values that validation should have rejected.

    Raised only for contract violations (e.g. non-positive leverage reaching
    the liquidation formula). User input problems are reported as FieldError
    lists instead.
    """


class CalculatorNotFoundError(CalculatorError):
    """Unknown calculator name"""


class StorageError(CalculatorError):
    """History record store errors"""
