"""
margincalc - futures margin and position sizing calculators.

Liquidation prices, PnL and ROE, risk scoring, pyramid (scaled entry)
plans, break-even rates and Kelly sizing, behind a validated service
with optional calculation history.
"""

__version__ = "0.1.0"
