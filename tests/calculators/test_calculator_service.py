"""
Unit tests for CalculatorService: parse, validate, cache, log and record
"""

import json
import logging

import pytest

from margincalc.calculators import CalculatorService
from margincalc.core.cache import ResultCache
from margincalc.core.exceptions import CalculatorNotFoundError, StorageError
from margincalc.models.results import RiskLevel
from margincalc.storage import InMemoryRecordStore
from margincalc.utils.config import CalculatorConfig, CalculatorSettings, SymbolOverride
from margincalc.validation.validators import ValidationLevel

LIQUIDATION_INPUT = {"side": "long", "leverage": "10", "entry_price": "50000"}

POSITION_INPUT = {
    "symbol": "BTCUSDT",
    "side": "LONG",
    "leverage": 10,
    "entry_price": 50000,
    "quantity": 1,
    "margin": 5000,
}


class FailingStore(InMemoryRecordStore):
    def save(self, record):
        raise StorageError("disk full")


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def service(store):
    return CalculatorService(store=store, cache=ResultCache())


class TestRun:
    """Test the happy path for representative calculators"""

    def test_liquidation_price(self, service):
        outcome = service.run("liquidation_price", LIQUIDATION_INPUT)

        assert outcome.ok
        assert outcome.errors == ()
        assert outcome.result.liquidation_price == pytest.approx(45250)
        assert outcome.result.maintenance_margin_rate == 0.005

    def test_explicit_maintenance_margin_rate(self, service):
        outcome = service.run(
            "liquidation_price", {**LIQUIDATION_INPUT, "maintenance_margin_rate": 0.01}
        )
        assert outcome.result.liquidation_price == pytest.approx(45500)

    def test_symbol_override(self):
        config = CalculatorConfig(symbols={
            "BTCUSDT": SymbolOverride("BTCUSDT", maintenance_margin_rate=0.004),
        })
        outcome = CalculatorService(config).run(
            "liquidation_price", {**LIQUIDATION_INPUT, "symbol": "BTCUSDT"}
        )
        assert outcome.result.liquidation_price == pytest.approx(45200)

    def test_position_result(self, service):
        outcome = service.run("position_result", {**POSITION_INPUT, "current_price": 55000})

        assert outcome.result.unrealized_pnl == pytest.approx(5000)
        assert outcome.result.roe == pytest.approx(100)

    def test_risk_analysis(self, service):
        outcome = service.run("risk_analysis", POSITION_INPUT)

        assert outcome.result.risk_level == RiskLevel.HIGH
        assert outcome.result.risk_score == pytest.approx(57.35)

    def test_pyramid(self, service):
        outcome = service.run("pyramid", {
            "symbol": "BTCUSDT",
            "side": "long",
            "leverage": 10,
            "initial_price": 50000,
            "initial_quantity": 1,
            "initial_margin": 5000,
            "pyramid_levels": 3,
            "strategy": "EQUAL_RATIO",
            "price_drop_percent": 5,
            "ratio_multiplier": 1.5,
        })

        assert len(outcome.result.levels) == 3
        assert outcome.result.levels[1].price == pytest.approx(47500)
        assert outcome.result.levels[1].quantity == pytest.approx(1.5)

    def test_portfolio(self, service):
        closed = {**POSITION_INPUT, "status": "closed"}
        outcome = service.run("pnl_analysis", {
            "positions": [closed],
            "current_prices": {"btcusdt": 55000},
        })

        assert outcome.result.realized_pnl == pytest.approx(5000)
        assert outcome.result.win_rate == pytest.approx(100)

    def test_portfolio_price_matches_either_symbol_spelling(self, service):
        outcome = service.run("pnl_analysis", {
            "positions": [{**POSITION_INPUT, "symbol": "BTC/USDT"}],
            "current_prices": {"BTCUSDT": 55000},
        })

        assert outcome.result.unrealized_pnl == pytest.approx(5000)

    def test_entry_price(self, service):
        outcome = service.run("entry_price", {"fills": [
            {"price": 100, "quantity": 2},
            {"price": "200", "quantity": "2"},
        ]})
        assert outcome.result.average_entry_price == pytest.approx(150)

    def test_trade_pnl_with_exit_orders(self, service):
        outcome = service.run("trade_pnl", {
            "side": "LONG",
            "leverage": 10,
            "entry_price": 50000,
            "quantity": 1,
            "exit_orders": [{"price": 52000, "quantity": 0.5}],
        })

        assert outcome.result.pnl == pytest.approx(1000)
        assert outcome.result.remaining_quantity == pytest.approx(0.5)

    def test_position_ledger(self, service):
        outcome = service.run("position_ledger_pnl", {
            "side": "long",
            "capital": "100",
            "entries": [
                {"type": "open", "price": "100", "quantity": "1", "margin": 10},
                {"type": "OPEN", "price": 80, "quantity": 1, "margin": 8},
                {"type": "close_50", "price": 120},
            ],
        })

        assert outcome.ok
        assert outcome.result.total_pnl == pytest.approx(30)
        assert outcome.result.capital_usage == pytest.approx(18)
        assert len(outcome.result.rows) == 3

    def test_break_even_defaults(self, service):
        outcome = service.run("break_even", {"leverage": 100})
        assert outcome.result.total_break_even_rate == pytest.approx(13.0)

    def test_kelly_adjusted_position_uses_config(self, service):
        outcome = service.run("kelly", {"win_rate": 0.6, "avg_win": 200, "avg_loss": 100})

        assert outcome.result.kelly_percentage == pytest.approx(0.4)
        assert outcome.result.adjusted_position == pytest.approx(0.15)

    def test_kelly_adjustment_overrides(self, service):
        outcome = service.run("kelly", {
            "win_rate": 0.6, "avg_win": 200, "avg_loss": 100,
            "fractional_factor": 1, "max_position": 1, "risk_tolerance": "AGGRESSIVE",
        })

        assert outcome.result.fractional_kelly == pytest.approx(0.4)
        assert outcome.result.adjusted_position == pytest.approx(0.4)

    def test_historical_kelly_empty_history_is_a_result(self, service):
        outcome = service.run("historical_kelly", {"trades": []})

        assert outcome.ok
        assert outcome.result.is_valid is False


class TestRejectedInput:
    """Invalid input yields errors and no result"""

    def test_parse_error(self, service, store):
        outcome = service.run("liquidation_price", {**LIQUIDATION_INPUT, "entry_price": "abc"})

        assert not outcome.ok
        assert outcome.result is None
        assert [e.field for e in outcome.errors] == ["entry_price"]
        assert len(store) == 0

    def test_domain_error(self, service, store):
        outcome = service.run("liquidation_price", {**LIQUIDATION_INPUT, "leverage": 0})

        assert outcome.result is None
        assert [e.field for e in outcome.errors] == ["leverage"]
        assert len(store) == 0

    def test_symbol_leverage_cap(self):
        config = CalculatorConfig(symbols={"DOGEUSDT": SymbolOverride("DOGEUSDT", max_leverage=50)})
        outcome = CalculatorService(config).run(
            "position_result", {**POSITION_INPUT, "symbol": "DOGEUSDT", "leverage": 75}
        )

        assert outcome.result is None
        assert [e.field for e in outcome.errors] == ["leverage"]

    def test_trade_pnl_requires_an_exit(self, service):
        outcome = service.run("trade_pnl", {
            "side": "LONG", "leverage": 10, "entry_price": 50000, "quantity": 1,
        })
        assert outcome.result is None
        assert outcome.errors

    def test_ledger_close_above_holdings(self, service):
        outcome = service.run("position_ledger_pnl", {
            "side": "SHORT",
            "entries": [
                {"type": "open", "price": 100, "quantity": 1},
                {"type": "close", "price": 90, "quantity": 3},
            ],
        })

        assert outcome.result is None
        assert [e.field for e in outcome.errors] == ["entries.1.quantity"]

    def test_portfolio_errors_are_prefixed(self, service):
        outcome = service.run("portfolio_risk", {"positions": [{**POSITION_INPUT, "margin": -1}]})
        assert [e.field for e in outcome.errors] == ["positions.0.margin"]

    def test_rejection_is_logged(self, service, caplog):
        with caplog.at_level(logging.INFO):
            service.run("liquidation_price", {**LIQUIDATION_INPUT, "leverage": 0})
        assert "rejected input" in caplog.text

    def test_unknown_calculator(self, service):
        with pytest.raises(CalculatorNotFoundError):
            service.run("margin_call", {})


class TestWarnings:

    def test_add_position_advisory_does_not_block(self, service):
        outcome = service.run("add_position", {
            "position": POSITION_INPUT,
            "add_price": 55000,
            "add_quantity": 1,
            "add_margin": 5500,
        })

        assert outcome.ok
        assert outcome.result.average_price == pytest.approx(52500)
        assert [w.field for w in outcome.warnings] == ["add_price"]
        assert outcome.warnings[0].level == ValidationLevel.WARNING


class TestHistoryAndCache:

    def test_results_are_recorded(self, service, store):
        outcome = service.run("liquidation_price", LIQUIDATION_INPUT)

        records = service.history()
        assert len(records) == 1
        assert records[0].id == outcome.record_id
        assert records[0].calculator == "liquidation_price"
        assert records[0].params["side"] == "LONG"
        assert records[0].result["liquidation_price"] == pytest.approx(45250)

    def test_save_can_be_skipped(self, service, store):
        outcome = service.run("liquidation_price", LIQUIDATION_INPUT, save=False)

        assert outcome.record_id is None
        assert len(store) == 0

    def test_history_without_store(self):
        assert CalculatorService().history() == []

    def test_history_limit_defaults_to_config(self, store):
        config = CalculatorConfig()
        config.storage.list_limit = 2
        service = CalculatorService(config, store=store)
        for leverage in (5, 10, 20):
            service.run("liquidation_price", {**LIQUIDATION_INPUT, "leverage": leverage})

        assert len(service.history()) == 2
        assert len(service.history(limit=10)) == 3

    def test_store_failure_keeps_result(self, caplog):
        service = CalculatorService(store=FailingStore())
        with caplog.at_level(logging.WARNING):
            outcome = service.run("liquidation_price", LIQUIDATION_INPUT)

        assert outcome.ok
        assert outcome.record_id is None
        assert "disk full" in caplog.text

    def test_cache_hit_returns_same_result(self, service):
        first = service.run("liquidation_price", LIQUIDATION_INPUT)
        second = service.run("liquidation_price", {"side": "LONG", "leverage": 10, "entry_price": 50000})

        assert second.result is first.result
        assert service.cache.hits == 1

    def test_shared_cache_keeps_configurations_apart(self):
        cache = ResultCache()
        default = CalculatorService(cache=cache)
        custom = CalculatorService(
            CalculatorConfig(calculator=CalculatorSettings(maintenance_margin_rate=0.01)),
            cache=cache,
        )

        first = default.run("liquidation_price", LIQUIDATION_INPUT)
        second = custom.run("liquidation_price", LIQUIDATION_INPUT)

        assert first.result.liquidation_price == pytest.approx(45250)
        assert second.result.liquidation_price == pytest.approx(45500)
        assert second.result.maintenance_margin_rate == 0.01
        assert cache.hits == 0
        assert len(cache) == 2

    def test_calculator_instances_are_reused(self, service):
        assert service.get_calculator("pyramid") is service.get_calculator("pyramid")

    def test_calculation_is_logged_as_json(self, service, caplog):
        with caplog.at_level(logging.INFO, logger="calculations"):
            service.run("liquidation_price", LIQUIDATION_INPUT)

        records = [r for r in caplog.records if r.name == "calculations"]
        payload = json.loads(records[-1].getMessage())
        assert payload["calculator"] == "liquidation_price"
        assert payload["result"]["liquidation_price"] == pytest.approx(45250)

    def test_available_calculators(self, service):
        names = [item["name"] for item in service.available_calculators()]
        assert "pyramid" in names
