"""
Unit tests for pydantic input schemas
"""

import pytest
from pydantic import ValidationError

from margincalc.models.position import PositionSide, PositionStatus
from margincalc.validation.schemas import (
    ExitOrderInput,
    FillInput,
    PositionInput,
    TradeInput,
    errors_from_validation_error,
)

RAW_POSITION = {
    "symbol": " btcusdt ",
    "side": "long",
    "leverage": "10",
    "entry_price": "50000",
    "quantity": "1",
    "margin": 5000,
}


class TestPositionInput:
    """Test parsing of loosely typed form input"""

    def test_numeric_strings_are_coerced(self):
        parsed = PositionInput.model_validate(RAW_POSITION)

        assert parsed.leverage == 10.0
        assert parsed.entry_price == 50000.0
        assert parsed.side == PositionSide.LONG
        assert parsed.status == PositionStatus.ACTIVE

    def test_to_position(self):
        position = PositionInput.model_validate(RAW_POSITION).to_position()

        assert position.symbol == "BTCUSDT"
        assert position.margin == 5000

    def test_blank_optional_prices_are_unset(self):
        parsed = PositionInput.model_validate({**RAW_POSITION, "stop_loss": "", "take_profit": " "})

        assert parsed.stop_loss is None
        assert parsed.take_profit is None

    def test_status_is_case_insensitive(self):
        parsed = PositionInput.model_validate({**RAW_POSITION, "status": "CLOSED"})
        assert parsed.status == PositionStatus.CLOSED

    @pytest.mark.parametrize("value", ["nan", "inf", "-inf", "", "ten"])
    def test_non_finite_and_blank_numbers_are_rejected(self, value):
        with pytest.raises(ValidationError):
            PositionInput.model_validate({**RAW_POSITION, "leverage": value})

    def test_unknown_fields_are_rejected(self):
        with pytest.raises(ValidationError):
            PositionInput.model_validate({**RAW_POSITION, "levrage": 10})

    def test_invalid_side(self):
        with pytest.raises(ValidationError):
            PositionInput.model_validate({**RAW_POSITION, "side": "up"})


class TestOtherInputs:

    def test_fill_defaults_margin(self):
        fill = FillInput.model_validate({"price": "100", "quantity": 2}).to_fill()
        assert (fill.price, fill.quantity, fill.margin) == (100.0, 2.0, 0.0)

    def test_exit_order(self):
        order = ExitOrderInput.model_validate(
            {"price": 52000, "quantity": 0.5, "enabled": False, "id": "tp1"}
        ).to_exit_order()

        assert order.enabled is False
        assert order.id == "tp1"

    def test_trade(self):
        trade = TradeInput.model_validate({"profit": "-12.5", "id": 3}).to_trade()

        assert trade.profit == -12.5
        assert trade.enabled is True
        assert trade.id == 3


class TestErrorsFromValidationError:

    def test_field_paths(self):
        with pytest.raises(ValidationError) as exc_info:
            PositionInput.model_validate({**RAW_POSITION, "leverage": "abc", "margin": "nan"})

        errors = errors_from_validation_error(exc_info.value)
        assert sorted(error.field for error in errors) == ["leverage", "margin"]
        assert all(error.is_blocking for error in errors)

    def test_missing_field(self):
        raw = dict(RAW_POSITION)
        del raw["quantity"]
        with pytest.raises(ValidationError) as exc_info:
            PositionInput.model_validate(raw)

        assert [e.field for e in errors_from_validation_error(exc_info.value)] == ["quantity"]
