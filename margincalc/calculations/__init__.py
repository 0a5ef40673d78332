"""
Pure trading-math functions.

Nothing in this package logs, caches or performs I/O except the explicit
CSV export of a pyramid plan.
"""

from margincalc.calculations.basic import (
    DEFAULT_MAINTENANCE_MARGIN_RATE,
    calculate_average_price,
    calculate_distance_to_liquidation,
    calculate_liquidation_price,
    calculate_margin_ratio,
    calculate_required_margin,
    calculate_roe,
    calculate_total_value,
    calculate_unrealized_pnl,
)
from margincalc.calculations.contract import (
    calculate_break_even_rate,
    calculate_entry_price,
    calculate_max_position,
    calculate_target_price,
    calculate_trade_pnl,
    round_half_up,
)
from margincalc.calculations.formatters import (
    format_currency,
    format_large_number,
    format_number,
    format_percentage,
    format_price,
    format_quantity,
)
from margincalc.calculations.kelly import (
    apply_risk_adjustment,
    calculate_basic_kelly,
    calculate_historical_kelly,
    calculate_kelly_fraction,
    calculate_kelly_from_stats,
    calculate_trading_kelly,
)
from margincalc.calculations.ledger import (
    calculate_capital_usage,
    calculate_ledger_pnl,
    calculate_ledger_rows,
)
from margincalc.calculations.pnl_analysis import (
    calculate_detailed_pnl,
    calculate_pnl_analysis,
    calculate_portfolio_risk,
)
from margincalc.calculations.position import calculate_add_position, calculate_position_result
from margincalc.calculations.pyramid import (
    calculate_pyramid_levels,
    calculate_pyramid_plan,
    export_pyramid_csv,
    pyramid_plan_rows,
)
from margincalc.calculations.risk import (
    calculate_risk_level,
    calculate_risk_score,
    classify_risk_score,
    perform_risk_analysis,
)

__all__ = [
    "DEFAULT_MAINTENANCE_MARGIN_RATE",
    "calculate_average_price",
    "calculate_distance_to_liquidation",
    "calculate_liquidation_price",
    "calculate_margin_ratio",
    "calculate_required_margin",
    "calculate_roe",
    "calculate_total_value",
    "calculate_unrealized_pnl",
    "calculate_break_even_rate",
    "calculate_entry_price",
    "calculate_max_position",
    "calculate_target_price",
    "calculate_trade_pnl",
    "round_half_up",
    "format_currency",
    "format_large_number",
    "format_number",
    "format_percentage",
    "format_price",
    "format_quantity",
    "apply_risk_adjustment",
    "calculate_basic_kelly",
    "calculate_historical_kelly",
    "calculate_kelly_fraction",
    "calculate_kelly_from_stats",
    "calculate_trading_kelly",
    "calculate_capital_usage",
    "calculate_ledger_pnl",
    "calculate_ledger_rows",
    "calculate_detailed_pnl",
    "calculate_pnl_analysis",
    "calculate_portfolio_risk",
    "calculate_add_position",
    "calculate_position_result",
    "calculate_pyramid_levels",
    "calculate_pyramid_plan",
    "export_pyramid_csv",
    "pyramid_plan_rows",
    "calculate_risk_level",
    "calculate_risk_score",
    "classify_risk_score",
    "perform_risk_analysis",
]
