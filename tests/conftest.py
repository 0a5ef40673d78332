"""
Shared fixtures for margincalc tests
"""

import pytest

from margincalc.calculators.registry import CalculatorRegistry
from margincalc.models.position import Position, PositionSide, PositionStatus
from margincalc.utils.config import CalculatorConfig


@pytest.fixture
def config():
    """Default configuration (no files, no environment)."""
    return CalculatorConfig()


@pytest.fixture
def long_position():
    """BTCUSDT LONG 10x at 50000, 1 BTC, 5000 USDT margin."""
    return Position(
        symbol="BTCUSDT",
        side=PositionSide.LONG,
        leverage=10,
        entry_price=50000,
        quantity=1,
        margin=5000,
    )


@pytest.fixture
def short_position():
    """BTCUSDT SHORT 10x at 50000, 1 BTC, 5000 USDT margin."""
    return Position(
        symbol="BTCUSDT",
        side=PositionSide.SHORT,
        leverage=10,
        entry_price=50000,
        quantity=1,
        margin=5000,
    )


@pytest.fixture
def closed_positions():
    """One winning and one losing closed position, plus an open one."""
    return [
        Position("BTCUSDT", PositionSide.LONG, 10, 50000, 1, 5000, PositionStatus.CLOSED),
        Position("ETHUSDT", PositionSide.SHORT, 10, 3000, 10, 3000, PositionStatus.CLOSED),
        Position("SOLUSDT", PositionSide.LONG, 5, 100, 10, 200),
    ]


@pytest.fixture
def isolated_registry():
    """
    Swap in an empty registry singleton for the duration of a test.

    Built-in calculators stay registered in the saved instance, which is
    restored afterwards.
    """
    saved = CalculatorRegistry._instance
    CalculatorRegistry.reset_instance()
    yield CalculatorRegistry.get_instance()
    CalculatorRegistry._instance = saved
