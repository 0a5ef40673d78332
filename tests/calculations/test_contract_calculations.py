"""
Unit tests for target price, entry price, max position, trade PnL and
break-even rate
"""

import pytest

from margincalc.calculations.basic import calculate_roe, calculate_unrealized_pnl
from margincalc.calculations.contract import (
    calculate_break_even_rate,
    calculate_entry_price,
    calculate_max_position,
    calculate_target_price,
    calculate_trade_pnl,
    round_half_up,
)
from margincalc.core.exceptions import InvalidParameterError
from margincalc.models.position import Fill, PositionSide
from margincalc.models.results import ExitOrder


class TestTargetPrice:
    """Test calculate_target_price"""

    def test_long_target(self):
        assert calculate_target_price(PositionSide.LONG, 50000, 50, 10).target_price == pytest.approx(52500)

    def test_short_target(self):
        assert calculate_target_price(PositionSide.SHORT, 50000, 50, 10).target_price == pytest.approx(47500)

    def test_negative_roe_is_a_stop(self):
        assert calculate_target_price("LONG", 50000, -50, 10).target_price == pytest.approx(47500)

    def test_default_leverage_is_spot(self):
        assert calculate_target_price("LONG", 100, 10).target_price == pytest.approx(110)

    def test_zero_leverage_raises(self):
        with pytest.raises(InvalidParameterError):
            calculate_target_price("LONG", 50000, 50, 0)

    @pytest.mark.parametrize("side", [PositionSide.LONG, PositionSide.SHORT])
    @pytest.mark.parametrize("target_roe", [-80, 0.5, 750])
    @pytest.mark.parametrize("leverage", [1, 20, 125])
    def test_target_price_earns_target_roe(self, side, target_roe, leverage):
        """Closing at the target price realizes exactly the target ROE"""
        entry, quantity = 50000, 0.3
        target = calculate_target_price(side, entry, target_roe, leverage).target_price

        pnl = calculate_unrealized_pnl(side, entry, target, quantity)
        assert calculate_roe(pnl, entry * quantity / leverage) == pytest.approx(target_roe)


class TestEntryPrice:
    """Test calculate_entry_price"""

    def test_weighted_entry(self):
        result = calculate_entry_price([Fill(100, 2), Fill(200, 2)])

        assert result.average_entry_price == pytest.approx(150)
        assert result.total_quantity == pytest.approx(4)
        assert result.total_value == pytest.approx(600)

    def test_accepts_any_iterable(self):
        fills = (Fill(price, 1) for price in (100, 110, 120))
        result = calculate_entry_price(fills)

        assert result.average_entry_price == pytest.approx(110)
        assert result.total_quantity == pytest.approx(3)
        assert result.total_value == pytest.approx(330)

    def test_empty_fills(self):
        result = calculate_entry_price([])

        assert result.average_entry_price == 0
        assert result.total_quantity == 0
        assert result.total_value == 0


class TestMaxPosition:
    """Test calculate_max_position"""

    def test_max_position(self):
        result = calculate_max_position(1000, 10, 50000)

        assert result.max_position_value == pytest.approx(10000)
        assert result.max_quantity == pytest.approx(0.2)

    def test_zero_entry_raises(self):
        with pytest.raises(InvalidParameterError):
            calculate_max_position(1000, 10, 0)


class TestTradePnl:
    """Test calculate_trade_pnl with single and partial exits"""

    def test_single_exit(self):
        result = calculate_trade_pnl(PositionSide.LONG, 10, 50000, 55000, 1)

        assert result.initial_margin == pytest.approx(5000)
        assert result.position_value == pytest.approx(50000)
        assert result.pnl == pytest.approx(5000)
        assert result.roe == pytest.approx(100)
        assert result.total_exit_quantity == pytest.approx(1)
        assert result.remaining_quantity == 0
        assert result.exit_order_results == ()

    def test_short_single_exit(self):
        result = calculate_trade_pnl(PositionSide.SHORT, 10, 50000, 55000, 1)
        assert result.pnl == pytest.approx(-5000)

    def test_partial_exits_skip_disabled_and_cap_quantity(self):
        orders = [
            ExitOrder(price=52000, quantity=0.5, id="tp1"),
            ExitOrder(price=54000, quantity=0.3, enabled=False, id="tp2"),
            ExitOrder(price=56000, quantity=1.0, id="tp3"),
        ]
        result = calculate_trade_pnl(PositionSide.LONG, 10, 50000, 0, 1, orders)

        assert [r.id for r in result.exit_order_results] == ["tp1", "tp3"]
        assert result.exit_order_results[0].pnl == pytest.approx(1000)
        assert result.exit_order_results[0].margin == pytest.approx(2500)
        assert result.exit_order_results[0].roe == pytest.approx(40)
        assert result.exit_order_results[1].quantity == pytest.approx(0.5)
        assert result.exit_order_results[1].pnl == pytest.approx(3000)
        assert result.pnl == pytest.approx(4000)
        assert result.roe == pytest.approx(80)
        assert result.total_exit_quantity == pytest.approx(1)
        assert result.remaining_quantity == pytest.approx(0)

    def test_unfilled_quantity_remains(self):
        result = calculate_trade_pnl(
            PositionSide.LONG, 10, 50000, 0, 1, [ExitOrder(price=52000, quantity=0.5)]
        )
        assert result.remaining_quantity == pytest.approx(0.5)
        assert result.pnl == pytest.approx(1000)

    def test_zero_leverage_raises(self):
        with pytest.raises(InvalidParameterError):
            calculate_trade_pnl(PositionSide.LONG, 0, 50000, 55000, 1)


class TestBreakEvenRate:
    """Test calculate_break_even_rate"""

    def test_reference_rates(self):
        """100x, 0.05% fees both ways, 0.01% funding every 8h held 24h"""
        result = calculate_break_even_rate(100, 0.05, 0.05, 0.01, 8, 24)

        assert result.open_cost_rate == pytest.approx(5.0)
        assert result.close_cost_rate == pytest.approx(5.0)
        assert result.funding_cost_rate == pytest.approx(3.0)
        assert result.total_fee_rate == pytest.approx(10.0)
        assert result.total_break_even_rate == pytest.approx(13.0)

    def test_cost_breakdown_on_1000_principal(self):
        breakdown = calculate_break_even_rate(100, 0.05, 0.05, 0.01, 8, 24).cost_breakdown

        assert breakdown.open_cost == pytest.approx(50.0)
        assert breakdown.close_cost == pytest.approx(50.0)
        assert breakdown.funding_cost == pytest.approx(30.0)
        assert breakdown.total_cost == pytest.approx(130.0)

    def test_negative_funding_reduces_break_even(self):
        result = calculate_break_even_rate(10, 0.05, 0.05, -0.01, 8, 24)
        assert result.funding_cost_rate == pytest.approx(-0.3)
        assert result.total_break_even_rate == pytest.approx(0.7)

    def test_rates_are_rounded(self):
        result = calculate_break_even_rate(3, 0.0333333, 0, 0, 8, 0)
        assert result.open_cost_rate == 0.1

    def test_halves_round_up(self):
        """0.125 rounds to 0.13, not to the even 0.12"""
        breakdown = calculate_break_even_rate(1, 0.0125, 0, 0, 8, 0).cost_breakdown
        assert breakdown.open_cost == 0.13

    @pytest.mark.parametrize("value, decimals, expected", [
        (0.125, 2, 0.13),
        (2.5, 0, 3.0),
        (-0.125, 2, -0.12),
        (1.23456, 4, 1.2346),
    ])
    def test_round_half_up(self, value, decimals, expected):
        assert round_half_up(value, decimals) == pytest.approx(expected)

    @pytest.mark.parametrize("args", [
        (0, 0.05, 0.05, 0.01, 8, 24),
        (10, -0.05, 0.05, 0.01, 8, 24),
        (10, 0.05, 0.05, 0.01, 0, 24),
        (10, 0.05, 0.05, 0.01, 8, -1),
    ])
    def test_invalid_inputs_raise(self, args):
        with pytest.raises(InvalidParameterError):
            calculate_break_even_rate(*args)
