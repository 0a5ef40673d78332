"""
CalculatorService - single entry point for running calculators.

Pipeline per call:
    raw params → pydantic parse → domain validation → (cache) → calculate
    → structured calculation log → optional history record

Invalid input never produces a result: the outcome carries the field
errors and result=None. History store failures are logged and never
change the outcome.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from pydantic import ValidationError

from margincalc.calculators.base import Calculator
from margincalc.calculators.registry import CalculatorRegistry
from margincalc.core.cache import ResultCache
from margincalc.core.exceptions import StorageError
from margincalc.models.record import CalculatorRecord, to_primitive
from margincalc.storage.base import RecordStore
from margincalc.utils.config import CalculatorConfig
from margincalc.utils.logger import CalculatorLogger, log_execution_time
from margincalc.validation.schemas import errors_from_validation_error
from margincalc.validation.validators import FieldError, ValidationLevel


@dataclass(frozen=True)
class CalculationOutcome:
    """
    Result of one service call.

    Attributes:
        calculator: Calculator name
        errors: Field errors and advisories (WARNING level) in input order
        result: Calculation result, None when input was rejected
        record_id: History record id when the result was saved
    """

    calculator: str
    errors: Tuple[FieldError, ...] = ()
    result: Any = None
    record_id: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.result is not None

    @property
    def warnings(self) -> Tuple[FieldError, ...]:
        return tuple(e for e in self.errors if e.level == ValidationLevel.WARNING)


class CalculatorService:
    """
    Runs registered calculators against one configuration.

    Args:
        config: Calculator configuration (defaults when None)
        store: Optional history store; results are saved when present
        cache: Optional result cache keyed by (calculator, full params, settings);
            may be shared between services
        registry: Calculator registry (the global singleton by default)
    """

    def __init__(
        self,
        config: Optional[CalculatorConfig] = None,
        store: Optional[RecordStore] = None,
        cache: Optional[ResultCache] = None,
        registry: Optional[CalculatorRegistry] = None,
    ):
        self.config = config or CalculatorConfig()
        self.store = store
        self.cache = cache
        self.registry = registry or CalculatorRegistry.get_instance()
        self.logger = logging.getLogger(__name__)
        self._calculators: Dict[str, Calculator] = {}

    def get_calculator(self, name: str) -> Calculator:
        """
        Calculator instance bound to this service's configuration.

        Raises:
            CalculatorNotFoundError: If no calculator has this name
        """
        if name not in self._calculators:
            self._calculators[name] = self.registry.create_calculator(name, self.config)
        return self._calculators[name]

    def run(
        self,
        name: str,
        raw_params: Dict[str, Any],
        save: bool = True,
    ) -> CalculationOutcome:
        """
        Parse, validate and compute one calculation.

        Args:
            name: Registered calculator name
            raw_params: Raw input (numbers or numeric strings)
            save: Save a history record when a store is configured

        Returns:
            CalculationOutcome

        Raises:
            CalculatorNotFoundError: If no calculator has this name
            InvalidParameterError: If a formula receives out-of-domain input
                that validation did not catch
        """
        calculator = self.get_calculator(name)

        try:
            params = self.registry.parse_params(name, raw_params)
        except ValidationError as e:
            errors = tuple(errors_from_validation_error(e))
            self.logger.info(f"{name}: rejected input ({len(errors)} parse errors)")
            return CalculationOutcome(calculator=name, errors=errors)

        errors = tuple(calculator.validate(params))
        if any(error.is_blocking for error in errors):
            self.logger.info(
                f"{name}: rejected input: " + "; ".join(str(e) for e in errors if e.is_blocking)
            )
            return CalculationOutcome(calculator=name, errors=errors)

        plain_params = params.model_dump(mode="json")
        result = None
        cache_key = None
        if self.cache is not None:
            cache_key = ResultCache.make_key(name, {
                "params": plain_params,
                "config": self._config_key(),
            })
            result = self.cache.get(cache_key)
            if result is not None:
                self.logger.debug(f"{name}: cache hit")

        if result is None:
            with log_execution_time(f"calculate {name}"):
                result = calculator.calculate(params)
            if cache_key is not None:
                self.cache.put(cache_key, result)

        CalculatorLogger.log_calculation(name, {
            "params": plain_params,
            "result": to_primitive(result),
        })

        record_id = None
        if save and self.store is not None:
            record_id = self._save(CalculatorRecord.build(name, plain_params, result))

        return CalculationOutcome(
            calculator=name,
            errors=errors,
            result=result,
            record_id=record_id,
        )

    def _config_key(self) -> Dict[str, Any]:
        """Settings a result depends on; a shared cache must not mix configurations."""
        return {
            "calculator": to_primitive(self.config.calculator),
            "risk": to_primitive(self.config.risk),
            "kelly": to_primitive(self.config.kelly),
            "symbols": to_primitive(self.config.symbols),
        }

    def _save(self, record: CalculatorRecord) -> Optional[str]:
        try:
            return self.store.save(record)
        except StorageError as e:
            self.logger.warning(f"Failed to save {record.calculator} record: {e}")
            return None

    def history(self, limit: Optional[int] = None) -> list:
        """Saved records, newest first; empty without a store."""
        if self.store is None:
            return []
        return self.store.list(limit or self.config.storage.list_limit)

    def available_calculators(self) -> list:
        return self.registry.get_all_calculators_summary()
