"""
Data models package
"""

from .kelly import KellyResult, RiskAdjustment, RiskTolerance, TradeRecord
from .ledger import LedgerEntry, LedgerEntryType, LedgerPnlResult, LedgerRowStat
from .position import Fill, Position, PositionSide, PositionStatus
from .pyramid import PyramidLevel, PyramidParams, PyramidPlan, PyramidStrategy
from .record import CalculatorRecord, to_primitive
from .results import (
    AddPositionResult,
    BreakEvenResult,
    CalculationResult,
    CostBreakdown,
    DetailedPnl,
    EntryPriceResult,
    ExitOrder,
    ExitOrderResult,
    LiquidationPriceResult,
    MaxPositionResult,
    PnlAnalysisResult,
    PortfolioRisk,
    PositionRisk,
    RiskAnalysisResult,
    RiskLevel,
    TargetPriceResult,
    TradePnlResult,
)

__all__ = [
    "Fill",
    "Position",
    "PositionSide",
    "PositionStatus",
    "PyramidLevel",
    "PyramidParams",
    "PyramidPlan",
    "PyramidStrategy",
    "KellyResult",
    "RiskAdjustment",
    "RiskTolerance",
    "TradeRecord",
    "LedgerEntry",
    "LedgerEntryType",
    "LedgerPnlResult",
    "LedgerRowStat",
    "CalculatorRecord",
    "to_primitive",
    "AddPositionResult",
    "BreakEvenResult",
    "CalculationResult",
    "CostBreakdown",
    "DetailedPnl",
    "EntryPriceResult",
    "ExitOrder",
    "ExitOrderResult",
    "LiquidationPriceResult",
    "MaxPositionResult",
    "PnlAnalysisResult",
    "PortfolioRisk",
    "PositionRisk",
    "RiskAnalysisResult",
    "RiskLevel",
    "TargetPriceResult",
    "TradePnlResult",
]
