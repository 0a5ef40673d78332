"""
Unit tests for the logging system (CalculatorLogger, CalculationLogFilter,
log_execution_time)
"""

import json
import logging

from margincalc.utils.config import LoggingConfig
from margincalc.utils.logger import (
    CALCULATION_LOGGER_NAME,
    CalculationLogFilter,
    CalculatorLogger,
    log_execution_time,
)


def make_record(name):
    return logging.LogRecord(
        name=name,
        level=logging.INFO,
        pathname='',
        lineno=0,
        msg='test',
        args=(),
        exc_info=None,
    )


class TestCalculationLogFilter:
    """Test CalculationLogFilter class"""

    def test_accepts_calculations_logger(self):
        assert CalculationLogFilter().filter(make_record(CALCULATION_LOGGER_NAME)) is True

    def test_rejects_other_loggers(self):
        assert CalculationLogFilter().filter(make_record('margincalc.calculators.service')) is False
        assert CalculationLogFilter().filter(make_record('root')) is False


class TestCalculatorLogger:
    """Test CalculatorLogger class"""

    def teardown_method(self):
        """Clean up logging handlers after each test"""
        root_logger = logging.getLogger()
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()

    def test_log_directory_creation(self, tmp_path):
        log_dir = tmp_path / 'nested' / 'logs'
        CalculatorLogger({'log_level': 'INFO', 'log_dir': str(log_dir), 'console': False})

        assert log_dir.exists()

    def test_handlers_are_installed(self, tmp_path):
        CalculatorLogger({'log_level': 'DEBUG', 'log_dir': str(tmp_path)})
        root_logger = logging.getLogger()

        assert root_logger.level == logging.DEBUG
        assert len(root_logger.handlers) == 3

    def test_console_can_be_disabled(self, tmp_path):
        CalculatorLogger({'log_dir': str(tmp_path), 'console': False})
        assert len(logging.getLogger().handlers) == 2

    def test_setup_is_idempotent(self, tmp_path):
        config = {'log_dir': str(tmp_path), 'console': False}
        CalculatorLogger(config)
        CalculatorLogger(config)

        assert len(logging.getLogger().handlers) == 2

    def test_from_config(self, tmp_path):
        logger = CalculatorLogger.from_config(
            LoggingConfig(log_level='WARNING', log_dir=str(tmp_path)), console=False
        )

        assert logger.log_level == 'WARNING'
        assert logger.log_dir == tmp_path

    def test_calculation_events_go_to_json_file(self, tmp_path):
        CalculatorLogger({'log_level': 'INFO', 'log_dir': str(tmp_path), 'console': False})

        logging.getLogger('margincalc.calculators.service').info('system message')
        CalculatorLogger.log_calculation('liquidation_price', {'liquidation_price': 45250.0})
        for handler in logging.getLogger().handlers:
            handler.flush()

        lines = (tmp_path / 'calculations.log').read_text(encoding='utf-8').strip().splitlines()
        assert len(lines) == 1
        assert 'system message' not in lines[0]

        main_log = (tmp_path / 'margincalc.log').read_text(encoding='utf-8')
        assert 'system message' in main_log

    def test_log_calculation_payload(self, tmp_path):
        CalculatorLogger({'log_dir': str(tmp_path), 'console': False})
        CalculatorLogger.log_calculation('pyramid', {'levels': 3})
        for handler in logging.getLogger().handlers:
            handler.flush()

        line = (tmp_path / 'calculations.log').read_text(encoding='utf-8').strip()
        payload = json.loads(line.split(' | ')[-1])

        assert payload['calculator'] == 'pyramid'
        assert payload['levels'] == 3
        assert 'timestamp' in payload


class TestLogExecutionTime:
    """Test log_execution_time context manager"""

    def test_logs_elapsed_time(self, caplog):
        with caplog.at_level(logging.DEBUG, logger='margincalc.utils.logger'):
            with log_execution_time('pyramid_plan'):
                pass

        assert 'pyramid_plan completed in' in caplog.text

    def test_logs_even_when_body_raises(self, caplog):
        with caplog.at_level(logging.DEBUG, logger='margincalc.utils.logger'):
            try:
                with log_execution_time('failing'):
                    raise ValueError('boom')
            except ValueError:
                pass

        assert 'failing completed in' in caplog.text
