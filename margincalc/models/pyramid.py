"""
Pyramid (scaled entry) plan models
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from margincalc.models.position import PositionSide


class PyramidStrategy(Enum):
    """Quantity growth strategy for pyramid levels"""
    EQUAL_RATIO = "equal_ratio"
    DOUBLE_DOWN = "double_down"


@dataclass(frozen=True)
class PyramidParams:
    """
    Numeric pyramid plan parameters.

    Attributes:
        symbol: Trading pair
        side: LONG adds below the initial price, SHORT adds above it
        leverage: Leverage applied to every level (1-125)
        initial_price: Price of level 1
        initial_quantity: Quantity of level 1
        initial_margin: Margin of level 1 (taken verbatim)
        pyramid_levels: Number of levels including the first (2-10)
        strategy: EQUAL_RATIO or DOUBLE_DOWN
        price_drop_percent: Adverse move between consecutive levels, percent (0-50]
        ratio_multiplier: Quantity growth per level for EQUAL_RATIO (1-5]
    """

    symbol: str
    side: PositionSide
    leverage: float
    initial_price: float
    initial_quantity: float
    initial_margin: float
    pyramid_levels: int
    strategy: PyramidStrategy
    price_drop_percent: float
    ratio_multiplier: float = 2.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "side", PositionSide.parse(self.side))
        if not isinstance(self.strategy, PyramidStrategy):
            object.__setattr__(self, "strategy", PyramidStrategy(str(self.strategy).lower()))


@dataclass(frozen=True)
class PyramidLevel:
    """One rung of a pyramid plan; cumulative fields cover levels 1..level."""

    level: int
    price: float
    quantity: float
    margin: float
    cumulative_quantity: float
    cumulative_margin: float
    average_price: float
    liquidation_price: float
    price_drop_from_previous: float


@dataclass(frozen=True)
class PyramidPlan:
    """
    Complete pyramid plan.

    Summary fields are taken from the last level. max_drawdown is the
    side-oriented percentage move from the initial price to the last
    level's price.
    """

    params: PyramidParams
    levels: Tuple[PyramidLevel, ...]
    final_average_price: float
    final_liquidation_price: float
    total_quantity: float
    total_margin: float
    max_drawdown: float
