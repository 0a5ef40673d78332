"""
Configuration management with INI files, YAML symbol overrides and
environment overrides

Files (all optional, defaults apply when missing):
- configs/calculator_config.ini: [calculator], [risk], [kelly],
  [validation], [logging], [storage] sections
- configs/symbols.yaml: per-symbol maintenance margin rate and leverage cap
"""

import logging
import os
from configparser import ConfigParser
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from margincalc.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
VALID_STORAGE_BACKENDS = ["memory", "jsonl"]
VALID_RISK_TOLERANCES = ["conservative", "moderate", "aggressive"]


@dataclass
class CalculatorSettings:
    """
    Exchange-like constants used by the formulas.

    Attributes:
        maintenance_margin_rate: Fraction of notional kept as maintenance margin
        default_leverage: Leverage assumed by forms that omit it
        max_leverage: Upper leverage bound accepted by validation
    """

    maintenance_margin_rate: float = 0.005
    default_leverage: int = 10
    max_leverage: int = 125

    def __post_init__(self):
        if self.maintenance_margin_rate < 0 or self.maintenance_margin_rate >= 0.5:
            raise ConfigurationError(
                f"Maintenance margin rate must be 0-0.5, got {self.maintenance_margin_rate}"
            )
        if self.max_leverage < 1 or self.max_leverage > 125:
            raise ConfigurationError(f"Max leverage must be 1-125, got {self.max_leverage}")
        if self.default_leverage < 1 or self.default_leverage > self.max_leverage:
            raise ConfigurationError(
                f"Default leverage must be 1-{self.max_leverage}, got {self.default_leverage}"
            )


@dataclass(frozen=True)
class RiskThresholds:
    """
    Risk score boundaries between risk levels.

    score < low -> LOW, < medium -> MEDIUM, < high -> HIGH, else EXTREME.
    """

    low: float = 25.0
    medium: float = 50.0
    high: float = 75.0

    def __post_init__(self):
        if not 0 < self.low < self.medium < self.high <= 100:
            raise ConfigurationError(
                "Risk thresholds must satisfy 0 < low < medium < high <= 100, "
                f"got low={self.low}, medium={self.medium}, high={self.high}"
            )


@dataclass
class KellySettings:
    """Default risk adjustment for Kelly sizing."""

    fractional_factor: float = 0.5
    max_position: float = 0.25
    risk_tolerance: str = "moderate"

    def __post_init__(self):
        if self.fractional_factor <= 0 or self.fractional_factor > 1:
            raise ConfigurationError(
                f"Fractional Kelly factor must be 0-1, got {self.fractional_factor}"
            )
        if self.max_position <= 0 or self.max_position > 1:
            raise ConfigurationError(
                f"Kelly max position must be 0-1, got {self.max_position}"
            )
        if self.risk_tolerance.lower() not in VALID_RISK_TOLERANCES:
            raise ConfigurationError(
                f"Invalid risk tolerance: {self.risk_tolerance}. "
                f"Must be one of {VALID_RISK_TOLERANCES}"
            )
        self.risk_tolerance = self.risk_tolerance.lower()


@dataclass
class ValidationBounds:
    """Sanity bounds that catch input-parsing mistakes, not exchange limits."""

    max_price: float = 1e10
    max_quantity: float = 1e12
    max_target_roe: float = 1000.0
    max_symbol_length: int = 20

    def __post_init__(self):
        for name in ("max_price", "max_quantity", "max_target_roe"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be > 0, got {getattr(self, name)}")


@dataclass
class LoggingConfig:
    """Logging system configuration"""

    log_level: str = "INFO"
    log_dir: str = "logs"

    def __post_init__(self):
        if self.log_level.upper() not in VALID_LOG_LEVELS:
            raise ConfigurationError(
                f"Invalid log level: {self.log_level}. "
                f"Must be one of {VALID_LOG_LEVELS}"
            )


@dataclass
class StorageConfig:
    """History record store configuration"""

    backend: str = "memory"
    path: str = "data/history.jsonl"
    list_limit: int = 20

    def __post_init__(self):
        if self.backend not in VALID_STORAGE_BACKENDS:
            raise ConfigurationError(
                f"Invalid storage backend: {self.backend}. "
                f"Must be one of {VALID_STORAGE_BACKENDS}"
            )
        if self.list_limit < 1:
            raise ConfigurationError(f"List limit must be >= 1, got {self.list_limit}")


@dataclass
class SymbolOverride:
    """
    Per-symbol overrides loaded from symbols.yaml.

    Example YAML:
    ```yaml
    symbols:
      BTCUSDT:
        maintenance_margin_rate: 0.004
        max_leverage: 125
      DOGEUSDT:
        maintenance_margin_rate: 0.01
        max_leverage: 50
    ```
    """

    symbol: str
    maintenance_margin_rate: Optional[float] = None
    max_leverage: Optional[int] = None

    def __post_init__(self):
        if not self.symbol or not isinstance(self.symbol, str):
            raise ConfigurationError(f"Invalid symbol override: {self.symbol!r}")
        self.symbol = self.symbol.upper()
        if self.maintenance_margin_rate is not None and not (
            0 <= self.maintenance_margin_rate < 0.5
        ):
            raise ConfigurationError(
                f"{self.symbol}: maintenance margin rate must be 0-0.5, "
                f"got {self.maintenance_margin_rate}"
            )
        if self.max_leverage is not None and not 1 <= self.max_leverage <= 125:
            raise ConfigurationError(
                f"{self.symbol}: max leverage must be 1-125, got {self.max_leverage}"
            )

    @classmethod
    def from_dict(cls, symbol: str, data: Optional[Dict[str, Any]]) -> "SymbolOverride":
        data = data or {}
        unknown = set(data) - {"maintenance_margin_rate", "max_leverage"}
        if unknown:
            raise ConfigurationError(
                f"{symbol}: unknown override keys {sorted(unknown)}"
            )
        return cls(
            symbol=symbol,
            maintenance_margin_rate=data.get("maintenance_margin_rate"),
            max_leverage=data.get("max_leverage"),
        )


@dataclass
class CalculatorConfig:
    """Bundle of all settings handed to calculators and the service."""

    calculator: CalculatorSettings = field(default_factory=CalculatorSettings)
    risk: RiskThresholds = field(default_factory=RiskThresholds)
    kelly: KellySettings = field(default_factory=KellySettings)
    validation: ValidationBounds = field(default_factory=ValidationBounds)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    symbols: Dict[str, SymbolOverride] = field(default_factory=dict)

    def maintenance_margin_rate_for(self, symbol: Optional[str] = None) -> float:
        """Maintenance margin rate for a symbol, falling back to the default."""
        if symbol:
            override = self.symbols.get(normalize_symbol(symbol))
            if override and override.maintenance_margin_rate is not None:
                return override.maintenance_margin_rate
        return self.calculator.maintenance_margin_rate

    def max_leverage_for(self, symbol: Optional[str] = None) -> int:
        """Leverage cap for a symbol, never above the global cap."""
        if symbol:
            override = self.symbols.get(normalize_symbol(symbol))
            if override and override.max_leverage is not None:
                return min(override.max_leverage, self.calculator.max_leverage)
        return self.calculator.max_leverage


def normalize_symbol(symbol: str) -> str:
    """'btc/usdt' and 'BTCUSDT' share one override entry."""
    return symbol.strip().upper().replace("/", "")


class ConfigManager:
    """
    Loads calculator configuration from INI/YAML files with environment overrides

    Priority: ENV > INI/YAML file > dataclass defaults

    Environment variables:
        MARGINCALC_MAINTENANCE_MARGIN_RATE: overrides [calculator] maintenance_margin_rate
        MARGINCALC_LOG_LEVEL: overrides [logging] log_level
        MARGINCALC_STORAGE_BACKEND: overrides [storage] backend
    """

    INI_FILE = "calculator_config.ini"
    SYMBOLS_FILE = "symbols.yaml"

    def __init__(self, config_dir: Union[str, Path, None] = None):
        # Relative paths resolve against the project root (parent of the package)
        project_root = Path(__file__).resolve().parent.parent.parent
        if config_dir is None:
            self.config_dir = project_root / "configs"
        else:
            self.config_dir = Path(config_dir)
            if not self.config_dir.is_absolute():
                self.config_dir = project_root / self.config_dir

        self._config: Optional[CalculatorConfig] = None
        self._load_configs()

    @property
    def config(self) -> CalculatorConfig:
        """Get the full calculator configuration"""
        return self._config

    def _load_configs(self) -> None:
        parser = self._read_ini()
        self._config = CalculatorConfig(
            calculator=self._load_calculator_settings(parser),
            risk=self._load_risk_thresholds(parser),
            kelly=self._load_kelly_settings(parser),
            validation=self._load_validation_bounds(parser),
            logging=self._load_logging_config(parser),
            storage=self._load_storage_config(parser),
            symbols=self._load_symbol_overrides(),
        )
        logger.debug(
            f"Configuration loaded from {self.config_dir} "
            f"(mmr={self._config.calculator.maintenance_margin_rate}, "
            f"symbol overrides={len(self._config.symbols)})"
        )

    def _read_ini(self) -> ConfigParser:
        parser = ConfigParser()
        config_file = self.config_dir / self.INI_FILE
        if config_file.exists():
            parser.read(config_file, encoding="utf-8")
        else:
            logger.info(f"{config_file} not found, using default configuration")
        return parser

    def _load_calculator_settings(self, parser: ConfigParser) -> CalculatorSettings:
        section = parser["calculator"] if "calculator" in parser else {}
        mmr = _get_float(section, "maintenance_margin_rate", 0.005)

        mmr_env = os.getenv("MARGINCALC_MAINTENANCE_MARGIN_RATE")
        if mmr_env:
            try:
                mmr = float(mmr_env)
            except ValueError:
                raise ConfigurationError(
                    f"MARGINCALC_MAINTENANCE_MARGIN_RATE must be numeric, got {mmr_env!r}"
                ) from None

        return CalculatorSettings(
            maintenance_margin_rate=mmr,
            default_leverage=_get_int(section, "default_leverage", 10),
            max_leverage=_get_int(section, "max_leverage", 125),
        )

    def _load_risk_thresholds(self, parser: ConfigParser) -> RiskThresholds:
        section = parser["risk"] if "risk" in parser else {}
        return RiskThresholds(
            low=_get_float(section, "low_threshold", 25.0),
            medium=_get_float(section, "medium_threshold", 50.0),
            high=_get_float(section, "high_threshold", 75.0),
        )

    def _load_kelly_settings(self, parser: ConfigParser) -> KellySettings:
        section = parser["kelly"] if "kelly" in parser else {}
        return KellySettings(
            fractional_factor=_get_float(section, "fractional_factor", 0.5),
            max_position=_get_float(section, "max_position", 0.25),
            risk_tolerance=section.get("risk_tolerance", "moderate"),
        )

    def _load_validation_bounds(self, parser: ConfigParser) -> ValidationBounds:
        section = parser["validation"] if "validation" in parser else {}
        return ValidationBounds(
            max_price=_get_float(section, "max_price", 1e10),
            max_quantity=_get_float(section, "max_quantity", 1e12),
            max_target_roe=_get_float(section, "max_target_roe", 1000.0),
            max_symbol_length=_get_int(section, "max_symbol_length", 20),
        )

    def _load_logging_config(self, parser: ConfigParser) -> LoggingConfig:
        section = parser["logging"] if "logging" in parser else {}
        return LoggingConfig(
            log_level=os.getenv("MARGINCALC_LOG_LEVEL") or section.get("log_level", "INFO"),
            log_dir=section.get("log_dir", "logs"),
        )

    def _load_storage_config(self, parser: ConfigParser) -> StorageConfig:
        section = parser["storage"] if "storage" in parser else {}
        return StorageConfig(
            backend=os.getenv("MARGINCALC_STORAGE_BACKEND") or section.get("backend", "memory"),
            path=section.get("path", "data/history.jsonl"),
            list_limit=_get_int(section, "list_limit", 20),
        )

    def _load_symbol_overrides(self) -> Dict[str, SymbolOverride]:
        """
        Load per-symbol overrides from symbols.yaml.

        Returns an empty mapping when the file is absent. A malformed file is
        a configuration error rather than a silent fallback.
        """
        yaml_file = self.config_dir / self.SYMBOLS_FILE
        if not yaml_file.exists():
            return {}

        try:
            with open(yaml_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse YAML config {yaml_file}: {e}") from e

        if not data or "symbols" not in data:
            logger.warning(f"YAML config {yaml_file} missing 'symbols' section, ignoring")
            return {}

        symbols = data["symbols"] or {}
        if not isinstance(symbols, dict):
            raise ConfigurationError(f"'symbols' in {yaml_file} must be a mapping")

        overrides = {}
        for symbol, values in symbols.items():
            override = SymbolOverride.from_dict(str(symbol), values)
            overrides[normalize_symbol(override.symbol)] = override
        return overrides


def _get_float(section, key: str, default: float) -> float:
    raw = section.get(key)
    if raw is None or str(raw).strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be numeric, got {raw!r}") from None


def _get_int(section, key: str, default: int) -> int:
    raw = section.get(key)
    if raw is None or str(raw).strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from None
