"""
Logging configuration with multi-handler setup and structured calculation logging
"""

import json
import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Generator

CALCULATION_LOGGER_NAME = "calculations"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"


class CalculationLogFilter(logging.Filter):
    """
    Filter to isolate calculation events from general logging

    Only records from the 'calculations' logger reach the calculation
    handler, keeping its JSON file free of system messages.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        return record.name == CALCULATION_LOGGER_NAME


class CalculatorLogger:
    """
    Centralized logging setup for the calculator toolkit

    Features:
    - Console and size-rotated file handlers
    - Daily-rotated JSON file for calculation events
    - Execution time measurement via log_execution_time
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize logging infrastructure

        Args:
            config: Configuration dictionary with keys:
                - log_level: str (DEBUG, INFO, WARNING, ERROR)
                - log_dir: str (directory path for log files)
                - console: bool (attach a stdout handler, default True)

        Raises:
            OSError: If log directory creation fails
        """
        self.log_level = config.get("log_level", "INFO")
        self.console = config.get("console", True)

        project_root = Path(__file__).resolve().parent.parent.parent
        self.log_dir = Path(config.get("log_dir", "logs"))
        if not self.log_dir.is_absolute():
            self.log_dir = project_root / self.log_dir

        self.log_dir.mkdir(parents=True, exist_ok=True)
        self._setup_logging()

    @classmethod
    def from_config(cls, logging_config, console: bool = True) -> "CalculatorLogger":
        """Build from a LoggingConfig dataclass."""
        return cls({
            "log_level": logging_config.log_level,
            "log_dir": logging_config.log_dir,
            "console": console,
        })

    def _setup_logging(self) -> None:
        """
        Configure root logger with all handlers

        Sets up:
        1. Console handler (INFO+)
        2. Rotating file handler (all levels, 10MB x 5)
        3. Calculation handler (INFO, JSON lines, daily rotation)
        """
        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, self.log_level.upper()))

        # Clear existing handlers to avoid duplicates
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()

        formatter = logging.Formatter(LOG_FORMAT)

        if self.console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(logging.INFO)
            console_handler.setFormatter(formatter)
            root_logger.addHandler(console_handler)

        file_handler = RotatingFileHandler(
            self.log_dir / "margincalc.log",
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

        calculation_handler = TimedRotatingFileHandler(
            self.log_dir / "calculations.log",
            when="midnight",
            backupCount=30,
            encoding="utf-8",
        )
        calculation_handler.setLevel(logging.INFO)
        calculation_handler.addFilter(CalculationLogFilter())
        root_logger.addHandler(calculation_handler)

    @staticmethod
    def log_calculation(calculator: str, data: Dict[str, Any]) -> None:
        """
        Log a calculation event in structured JSON format

        Example:
            CalculatorLogger.log_calculation('liquidation_price', {
                'side': 'LONG',
                'leverage': 10,
                'liquidation_price': 45250.0,
            })
        """
        logger = logging.getLogger(CALCULATION_LOGGER_NAME)
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "calculator": calculator,
            **data,
        }
        logger.info(json.dumps(log_entry, default=str))


@contextmanager
def log_execution_time(operation: str) -> Generator[None, None, None]:
    """
    Context manager for measuring and logging execution time

    Usage:
        with log_execution_time('pyramid_plan'):
            plan = calculate_pyramid_plan(params)

    Logs at DEBUG level: "{operation} completed in {elapsed:.3f}s"
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        logging.getLogger(__name__).debug(f"{operation} completed in {elapsed:.3f}s")
