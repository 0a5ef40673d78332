"""
Calculator Registry - Singleton registry for calculator discovery and creation.

Provides:
- CalculatorInfo: Registered calculator metadata
- CalculatorRegistry: Singleton for registration, discovery, parsing and instantiation

Design Principles:
- Registration happens at import time via @register_calculator (single-threaded)
- Queries are read-only dict lookups
- Pydantic parsing only in parse_params()
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel

from margincalc.core.exceptions import CalculatorNotFoundError


@dataclass(frozen=True)
class CalculatorInfo:
    """Registered calculator metadata."""
    name: str
    cls: Type
    param_schema: Type[BaseModel]
    description: str = ""


class CalculatorRegistry:
    """
    Singleton calculator registry.

    Calculators self-register via @register_calculator at import time.
    Front ends query available calculators and their JSON schemas;
    CalculatorService parses raw input and creates instances.
    """
    _instance: Optional[CalculatorRegistry] = None

    def __init__(self):
        self._calculators: Dict[str, CalculatorInfo] = {}

    @classmethod
    def get_instance(cls) -> CalculatorRegistry:
        """Get or create singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset singleton for testing."""
        cls._instance = None

    def register(
        self,
        name: str,
        cls_type: Type,
        param_schema: Type[BaseModel],
        description: str = "",
    ) -> None:
        """Register a calculator. Overwrites if duplicate."""
        if not name:
            raise ValueError("Calculator name must not be empty")
        self._calculators[name] = CalculatorInfo(
            name=name,
            cls=cls_type,
            param_schema=param_schema,
            description=description,
        )

    def get_available_calculators(self) -> List[CalculatorInfo]:
        """List registered calculators in registration order."""
        return list(self._calculators.values())

    def get_calculator_info(self, name: str) -> Optional[CalculatorInfo]:
        return self._calculators.get(name)

    def require(self, name: str) -> CalculatorInfo:
        """
        Get calculator info or fail.

        Raises:
            CalculatorNotFoundError: If no calculator has this name
        """
        info = self.get_calculator_info(name)
        if info is None:
            available = sorted(self._calculators)
            raise CalculatorNotFoundError(
                f"Calculator '{name}' not found. Available: {available}"
            )
        return info

    def get_param_schema(self, name: str) -> Optional[Type[BaseModel]]:
        """Get Pydantic param schema for a calculator."""
        info = self.get_calculator_info(name)
        return info.param_schema if info else None

    def parse_params(self, name: str, raw_params: Dict[str, Any]) -> BaseModel:
        """
        Parse raw input with the calculator's Pydantic schema.

        Raises:
            CalculatorNotFoundError: If calculator not found
            ValidationError: If params fail Pydantic validation
        """
        return self.require(name).param_schema.model_validate(raw_params)

    def create_calculator(self, name: str, config: Any) -> Any:
        """Instantiate a calculator bound to a configuration."""
        return self.require(name).cls.from_config(config)

    def get_all_calculators_summary(self) -> List[Dict[str, Any]]:
        """UI-friendly summary of all calculators with JSON schemas."""
        return [
            {
                "name": info.name,
                "description": info.description,
                "schema": info.param_schema.model_json_schema(),
            }
            for info in self._calculators.values()
        ]
