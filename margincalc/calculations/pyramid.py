"""
Pyramid (scaled entry) planner.

The plan models one continuously averaged position built in N levels:
each level adds at a price one step further in the adverse direction
(down for LONG, up for SHORT), and the cumulative fields of level k cover
levels 1..k.

Level rules:
    level 1      price = initial_price, quantity = initial_quantity,
                 margin = initial_margin
    level k > 1  price    = previous × (1 ∓ drop% / 100)
                 quantity = q0 × r^(k−1)   (EQUAL_RATIO)
                          = q0 × 2^(k−1)   (DOUBLE_DOWN)
                 margin   = price × quantity / leverage

Plans are rebuilt from scratch for every parameter set; levels are
immutable.
"""

import csv
import io
from pathlib import Path
from typing import IO, List, Union

from margincalc.calculations.basic import (
    DEFAULT_MAINTENANCE_MARGIN_RATE,
    calculate_liquidation_price,
    calculate_required_margin,
)
from margincalc.models.position import PositionSide
from margincalc.models.pyramid import PyramidLevel, PyramidParams, PyramidPlan, PyramidStrategy

DOUBLE_DOWN_MULTIPLIER = 2.0

CSV_HEADER = [
    "level",
    "price",
    "quantity",
    "margin",
    "cumulative_quantity",
    "cumulative_margin",
    "average_price",
    "liquidation_price",
    "price_drop_from_previous_percent",
]


def _level_multiplier(params: PyramidParams) -> float:
    if params.strategy == PyramidStrategy.DOUBLE_DOWN:
        return DOUBLE_DOWN_MULTIPLIER
    return params.ratio_multiplier


def calculate_pyramid_levels(
    params: PyramidParams,
    maintenance_margin_rate: float = DEFAULT_MAINTENANCE_MARGIN_RATE,
) -> List[PyramidLevel]:
    """
    Build the ordered levels 1..N of a pyramid plan.

    Args:
        params: Validated pyramid parameters
        maintenance_margin_rate: Rate used for each level's liquidation price

    Returns:
        List of N PyramidLevel objects in level order

    Example:
        >>> levels = calculate_pyramid_levels(PyramidParams(
        ...     symbol='BTCUSDT', side='LONG', leverage=10,
        ...     initial_price=50000, initial_quantity=1, initial_margin=5000,
        ...     pyramid_levels=3, strategy='equal_ratio',
        ...     price_drop_percent=5, ratio_multiplier=1.5,
        ... ))
        >>> levels[1].price, levels[1].quantity
        (47500.0, 1.5)
    """
    step = params.price_drop_percent / 100
    direction = -1 if params.side == PositionSide.LONG else 1
    multiplier = _level_multiplier(params)

    levels: List[PyramidLevel] = []
    cumulative_quantity = 0.0
    cumulative_margin = 0.0
    cumulative_value = 0.0

    for level in range(1, params.pyramid_levels + 1):
        if level == 1:
            price = params.initial_price
            quantity = params.initial_quantity
            margin = params.initial_margin
            drop_from_previous = 0.0
        else:
            previous_price = levels[-1].price
            price = previous_price * (1 + direction * step)
            quantity = params.initial_quantity * multiplier ** (level - 1)
            margin = calculate_required_margin(price, quantity, params.leverage)
            # Positive when the price moved in the adverse (averaging) direction
            drop_from_previous = direction * (price - previous_price) / previous_price * 100

        cumulative_quantity += quantity
        cumulative_margin += margin
        cumulative_value += price * quantity
        average_price = cumulative_value / cumulative_quantity

        levels.append(PyramidLevel(
            level=level,
            price=price,
            quantity=quantity,
            margin=margin,
            cumulative_quantity=cumulative_quantity,
            cumulative_margin=cumulative_margin,
            average_price=average_price,
            liquidation_price=calculate_liquidation_price(
                params.side, params.leverage, average_price, maintenance_margin_rate
            ),
            price_drop_from_previous=drop_from_previous,
        ))

    return levels


def calculate_pyramid_plan(
    params: PyramidParams,
    maintenance_margin_rate: float = DEFAULT_MAINTENANCE_MARGIN_RATE,
) -> PyramidPlan:
    """
    Build a pyramid plan with its summary fields.

    Summary values come from the last level; max_drawdown is the
    side-oriented percent move from initial_price to the last level price.
    """
    levels = calculate_pyramid_levels(params, maintenance_margin_rate)
    final = levels[-1]

    if params.side == PositionSide.LONG:
        max_drawdown = (params.initial_price - final.price) / params.initial_price * 100
    else:
        max_drawdown = (final.price - params.initial_price) / params.initial_price * 100

    return PyramidPlan(
        params=params,
        levels=tuple(levels),
        final_average_price=final.average_price,
        final_liquidation_price=final.liquidation_price,
        total_quantity=final.cumulative_quantity,
        total_margin=final.cumulative_margin,
        max_drawdown=max_drawdown,
    )


def pyramid_plan_rows(plan: PyramidPlan) -> List[List[str]]:
    """Levels as display rows (header excluded), rounded like the plan table."""
    return [
        [
            str(level.level),
            f"{level.price:.4f}",
            f"{level.quantity:.4f}",
            f"{level.margin:.2f}",
            f"{level.cumulative_quantity:.4f}",
            f"{level.cumulative_margin:.2f}",
            f"{level.average_price:.4f}",
            f"{level.liquidation_price:.4f}",
            f"{level.price_drop_from_previous:.2f}",
        ]
        for level in plan.levels
    ]


def export_pyramid_csv(
    plan: PyramidPlan,
    destination: Union[str, Path, IO[str], None] = None,
) -> str:
    """
    Write a plan as CSV.

    Args:
        plan: Plan to export
        destination: File path or text stream; None only returns the text

    Returns:
        The CSV content
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    writer.writerows(pyramid_plan_rows(plan))
    content = buffer.getvalue()

    if destination is None:
        return content
    if isinstance(destination, (str, Path)):
        Path(destination).write_text(content, encoding="utf-8")
    else:
        destination.write(content)
    return content
