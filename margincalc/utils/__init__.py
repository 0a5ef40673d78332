"""
Configuration and logging utilities.
"""

from margincalc.utils.config import CalculatorConfig, ConfigManager
from margincalc.utils.logger import CalculatorLogger, log_execution_time

__all__ = ["CalculatorConfig", "ConfigManager", "CalculatorLogger", "log_execution_time"]
