"""
Unit tests for configuration dataclasses and ConfigManager

Test Coverage:
- Dataclass defaults and __post_init__ range validation
- INI loading with missing files and sections
- Environment overrides
- YAML per-symbol overrides
"""

import pytest

from margincalc.core.exceptions import ConfigurationError
from margincalc.utils.config import (
    CalculatorConfig,
    CalculatorSettings,
    ConfigManager,
    KellySettings,
    LoggingConfig,
    RiskThresholds,
    StorageConfig,
    SymbolOverride,
)

ENV_VARS = (
    "MARGINCALC_MAINTENANCE_MARGIN_RATE",
    "MARGINCALC_LOG_LEVEL",
    "MARGINCALC_STORAGE_BACKEND",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestConfigDefaults:
    """Test dataclass defaults"""

    def test_defaults(self):
        config = CalculatorConfig()

        assert config.calculator.maintenance_margin_rate == 0.005
        assert config.calculator.max_leverage == 125
        assert (config.risk.low, config.risk.medium, config.risk.high) == (25, 50, 75)
        assert config.kelly.fractional_factor == 0.5
        assert config.kelly.risk_tolerance == "moderate"
        assert config.validation.max_price == 1e10
        assert config.storage.backend == "memory"
        assert config.storage.list_limit == 20


class TestConfigValidation:
    """Test __post_init__ range checks"""

    @pytest.mark.parametrize("mmr", [-0.1, 0.5, 1.0])
    def test_invalid_maintenance_margin_rate(self, mmr):
        with pytest.raises(ConfigurationError, match="Maintenance margin rate"):
            CalculatorSettings(maintenance_margin_rate=mmr)

    def test_default_leverage_above_max(self):
        with pytest.raises(ConfigurationError, match="Default leverage"):
            CalculatorSettings(default_leverage=50, max_leverage=20)

    def test_thresholds_must_increase(self):
        with pytest.raises(ConfigurationError, match="thresholds"):
            RiskThresholds(low=50, medium=40, high=75)

    def test_invalid_risk_tolerance(self):
        with pytest.raises(ConfigurationError, match="risk tolerance"):
            KellySettings(risk_tolerance="reckless")

    def test_risk_tolerance_is_lowercased(self):
        assert KellySettings(risk_tolerance="Conservative").risk_tolerance == "conservative"

    def test_invalid_log_level(self):
        with pytest.raises(ConfigurationError, match="log level"):
            LoggingConfig(log_level="LOUD")

    def test_invalid_storage_backend(self):
        with pytest.raises(ConfigurationError, match="storage backend"):
            StorageConfig(backend="sqlite")

    def test_symbol_override_range(self):
        with pytest.raises(ConfigurationError, match="max leverage"):
            SymbolOverride("BTCUSDT", max_leverage=200)

    def test_symbol_override_unknown_key(self):
        with pytest.raises(ConfigurationError, match="unknown override keys"):
            SymbolOverride.from_dict("BTCUSDT", {"fee": 0.1})


class TestSymbolLookups:
    """Test per-symbol maintenance margin rate and leverage cap"""

    def test_override_and_fallback(self):
        config = CalculatorConfig(symbols={
            "BTCUSDT": SymbolOverride("BTCUSDT", maintenance_margin_rate=0.004, max_leverage=50),
        })

        assert config.maintenance_margin_rate_for("BTCUSDT") == 0.004
        assert config.maintenance_margin_rate_for("btc/usdt") == 0.004
        assert config.maintenance_margin_rate_for("ETHUSDT") == 0.005
        assert config.maintenance_margin_rate_for() == 0.005
        assert config.max_leverage_for("BTCUSDT") == 50
        assert config.max_leverage_for("ETHUSDT") == 125

    def test_symbol_cap_never_exceeds_global(self):
        config = CalculatorConfig(
            calculator=CalculatorSettings(max_leverage=20),
            symbols={"BTCUSDT": SymbolOverride("BTCUSDT", max_leverage=100)},
        )
        assert config.max_leverage_for("BTCUSDT") == 20


class TestConfigManager:
    """Test loading from files and environment"""

    def test_missing_files_use_defaults(self, tmp_path):
        config = ConfigManager(tmp_path).config

        assert config.calculator.maintenance_margin_rate == 0.005
        assert config.symbols == {}

    def test_ini_values(self, tmp_path):
        (tmp_path / "calculator_config.ini").write_text(
            "[calculator]\n"
            "maintenance_margin_rate = 0.01\n"
            "max_leverage = 50\n"
            "[risk]\n"
            "low_threshold = 20\n"
            "medium_threshold = 40\n"
            "high_threshold = 60\n"
            "[kelly]\n"
            "risk_tolerance = aggressive\n"
            "[storage]\n"
            "backend = jsonl\n"
            "list_limit = 5\n",
            encoding="utf-8",
        )
        config = ConfigManager(tmp_path).config

        assert config.calculator.maintenance_margin_rate == 0.01
        assert config.calculator.max_leverage == 50
        assert config.risk.low == 20
        assert config.kelly.risk_tolerance == "aggressive"
        assert config.storage.backend == "jsonl"
        assert config.storage.list_limit == 5

    def test_non_numeric_ini_value(self, tmp_path):
        (tmp_path / "calculator_config.ini").write_text(
            "[calculator]\nmax_leverage = lots\n", encoding="utf-8"
        )
        with pytest.raises(ConfigurationError, match="max_leverage"):
            ConfigManager(tmp_path)

    def test_environment_overrides(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MARGINCALC_MAINTENANCE_MARGIN_RATE", "0.004")
        monkeypatch.setenv("MARGINCALC_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("MARGINCALC_STORAGE_BACKEND", "jsonl")
        config = ConfigManager(tmp_path).config

        assert config.calculator.maintenance_margin_rate == 0.004
        assert config.logging.log_level == "DEBUG"
        assert config.storage.backend == "jsonl"

    def test_invalid_environment_value(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MARGINCALC_MAINTENANCE_MARGIN_RATE", "half a percent")
        with pytest.raises(ConfigurationError, match="numeric"):
            ConfigManager(tmp_path)

    def test_symbol_overrides_from_yaml(self, tmp_path):
        (tmp_path / "symbols.yaml").write_text(
            "symbols:\n"
            "  dogeusdt:\n"
            "    maintenance_margin_rate: 0.01\n"
            "    max_leverage: 50\n",
            encoding="utf-8",
        )
        config = ConfigManager(tmp_path).config

        assert config.maintenance_margin_rate_for("DOGEUSDT") == 0.01
        assert config.max_leverage_for("DOGE/USDT") == 50

    def test_malformed_yaml(self, tmp_path):
        (tmp_path / "symbols.yaml").write_text("symbols: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="YAML"):
            ConfigManager(tmp_path)

    def test_yaml_without_symbols_section(self, tmp_path, caplog):
        (tmp_path / "symbols.yaml").write_text("other: 1\n", encoding="utf-8")
        config = ConfigManager(tmp_path).config

        assert config.symbols == {}
        assert "missing 'symbols' section" in caplog.text

    def test_shipped_configuration(self):
        """The configs/ directory in the project root loads cleanly"""
        config = ConfigManager().config

        assert config.calculator.maintenance_margin_rate == 0.005
        assert config.maintenance_margin_rate_for("BTCUSDT") == 0.004
