"""
Display formatting for calculation results.

Non-finite values (NaN, +/-inf) never reach the output; each formatter
degrades them to its zero representation.
"""

import math


def _is_finite(value) -> bool:
    try:
        return math.isfinite(value)
    except TypeError:
        return False


def format_number(value: float, decimals: int = 4) -> str:
    """Fixed-decimal string, e.g. format_number(1.5, 2) -> '1.50'."""
    if not _is_finite(value):
        return "0"
    return f"{value:.{decimals}f}"


def format_percentage(value: float, decimals: int = 2) -> str:
    """Value already in percent, e.g. format_percentage(12.345) -> '12.35%'."""
    if not _is_finite(value):
        return f"{0:.{decimals}f}%"
    return f"{value:.{decimals}f}%"


def format_currency(value: float, currency: str = "USDT", decimals: int = 2) -> str:
    if not _is_finite(value):
        return f"{0:.{decimals}f} {currency}"
    return f"{value:.{decimals}f} {currency}"


def format_large_number(value: float, decimals: int = 2) -> str:
    """
    Abbreviate with K/M/B suffixes at 1e3/1e6/1e9, keeping the sign.

    Examples:
        >>> format_large_number(1500)
        '1.50K'
        >>> format_large_number(-2_500_000)
        '-2.50M'
    """
    if not _is_finite(value):
        return "0"

    abs_value = abs(value)
    sign = "-" if value < 0 else ""

    if abs_value >= 1e9:
        return f"{sign}{abs_value / 1e9:.{decimals}f}B"
    if abs_value >= 1e6:
        return f"{sign}{abs_value / 1e6:.{decimals}f}M"
    if abs_value >= 1e3:
        return f"{sign}{abs_value / 1e3:.{decimals}f}K"
    return f"{sign}{abs_value:.{decimals}f}"


def format_price(value: float) -> str:
    """Price with precision chosen by magnitude: >=1000 -> 2, >=1 -> 4, else 6."""
    if not _is_finite(value):
        return "0.0000"
    if value >= 1000:
        return f"{value:.2f}"
    if value >= 1:
        return f"{value:.4f}"
    return f"{value:.6f}"


def format_quantity(value: float, decimals: int = 8) -> str:
    """Quantity with trailing zeros stripped, e.g. 0.50000000 -> '0.5'."""
    if not _is_finite(value):
        return "0"
    formatted = f"{value:.{decimals}f}"
    if "." in formatted:
        formatted = formatted.rstrip("0").rstrip(".")
    return formatted
