"""
Calculator registration decorator.

Provides @register_calculator decorator that registers calculator classes
into the CalculatorRegistry singleton at import time.

Requirements for decorated classes:
- Must define ParamSchema inner class (Pydantic BaseModel)
- Must define from_config(cls, config) classmethod
- Must define calculate(self, params)
"""

from pydantic import BaseModel


def register_calculator(name: str, description: str = ""):
    """
    Class decorator: auto-register a calculator into CalculatorRegistry.

    Usage:
        @register_calculator('max_position', description='Max position size')
        class MaxPositionCalculator(Calculator):
            class ParamSchema(InputModel):
                wallet_balance: FiniteFloat

            def calculate(self, params):
                ...

    Args:
        name: Unique calculator name
        description: Human-readable description for UI
    """
    def decorator(cls):
        if not hasattr(cls, 'ParamSchema'):
            raise AttributeError(
                f"{cls.__name__} must define 'ParamSchema' inner class "
                f"(Pydantic BaseModel) for @register_calculator"
            )
        if not issubclass(cls.ParamSchema, BaseModel):
            raise TypeError(
                f"{cls.__name__}.ParamSchema must inherit from pydantic.BaseModel"
            )

        for method in ('from_config', 'calculate'):
            if not callable(getattr(cls, method, None)):
                raise AttributeError(
                    f"{cls.__name__} must define '{method}' for @register_calculator"
                )

        cls.name = name

        # Lazy import to avoid circular deps
        from margincalc.calculators.registry import CalculatorRegistry
        CalculatorRegistry.get_instance().register(
            name=name,
            cls_type=cls,
            param_schema=cls.ParamSchema,
            description=description,
        )

        return cls

    return decorator
