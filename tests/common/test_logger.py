# tests/common/test_logger.py
"""
Unit тесты для модуля логирования (src/common/logger.py).
"""

import json
import logging
import pytest
from pathlib import Path
from unittest.mock import Mock, patch, MagicMock

from src.common.logger import (
    DEFAULT_LOGGER_NAME,
    JsonFormatter,
    ColoredFormatter,
    get_logger,
    setup_logging,
    log_info,
    log_debug,
    log_warning,
    log_error,
    _get_caller_info,
    _loggers,
)
from src.common.constants import TypeMsg


def _record(level: int = logging.INFO, msg: str = "Test message", exc_info=None) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test_logger",
        level=level,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )
    record.module = "test_module"
    record.funcName = "test_function"
    return record


class TestJsonFormatter:
    """Тесты для JsonFormatter."""

    def test_format_basic_record(self) -> None:
        """Тест форматирования базовой записи."""
        data = json.loads(JsonFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["message"] == "Test message"
        assert data["module"] == "test_module"
        assert data["function"] == "test_function"
        assert data["line"] == 10
        assert data["timestamp"].endswith("Z")

    def test_format_with_extra_data(self) -> None:
        """Тест форматирования записи с дополнительными данными."""
        record = _record(logging.WARNING, "Order skipped")
        record.extra_data = {"order_id": "order-1", "status": "assigned"}

        data = json.loads(JsonFormatter().format(record))

        assert data["extra"] == {"order_id": "order-1", "status": "assigned"}

    def test_format_keeps_unicode(self) -> None:
        """Кириллица и символ валюты не экранируются."""
        result = JsonFormatter().format(_record(msg="Заказ на ₱360.00"))

        assert "Заказ на ₱360.00" in result

    def test_format_with_exception(self) -> None:
        """Тест форматирования записи с исключением."""
        try:
            raise ValueError("Test exception")
        except ValueError:
            import sys
            exc_info = sys.exc_info()

        result = JsonFormatter().format(_record(logging.ERROR, "Error occurred", exc_info))

        assert '"exception"' in result
        assert "ValueError" in result
        assert "Test exception" in result


class TestColoredFormatter:
    """Тесты для ColoredFormatter."""

    def test_format_basic_record(self) -> None:
        """Тест цветного форматирования базовой записи."""
        result = ColoredFormatter().format(_record())

        assert "INFO" in result
        assert "Test message" in result
        assert "\033[" in result  # ANSI код присутствует

    def test_format_with_caller_info(self) -> None:
        """Тест форматирования с информацией о вызывающей функции."""
        record = _record(logging.DEBUG, "Debug message")
        record.extra_data = {
            "caller_function": "advance",
            "caller_module": "src.core.delivery.workflow",
            "caller_file": "workflow.py",
            "caller_line": 42,
        }

        result = ColoredFormatter().format(record)

        assert "src.core.delivery.workflow.advance()" in result
        assert "workflow.py:42" in result


class TestGetLogger:
    """Тесты для get_logger."""

    def setup_method(self) -> None:
        """Очистка кэша логгеров перед каждым тестом."""
        _loggers.clear()
        for logger in logging.Logger.manager.loggerDict.values():
            if isinstance(logger, logging.Logger):
                logger.handlers.clear()

    def test_get_logger_creates_new_logger(self) -> None:
        """Тест создания нового логгера."""
        logger = get_logger("test_logger")

        assert logger.name == "test_logger"
        assert len(logger.handlers) >= 1
        assert logger.propagate is False

    def test_get_logger_returns_cached_logger(self) -> None:
        """Тест возврата кэшированного логгера."""
        assert get_logger("test_logger") is get_logger("test_logger")

    @patch("src.config.settings")
    def test_get_logger_uses_settings(self, mock_settings: Mock) -> None:
        """Тест использования настроек из конфига."""
        mock_settings.logging.LOG_LEVEL = "WARNING"
        mock_settings.logging.LOG_FORMAT = "json"
        mock_settings.logging.LOG_TO_FILE = False

        logger = get_logger("test_with_settings")

        assert logger.level == logging.WARNING
        assert isinstance(logger.handlers[0].formatter, JsonFormatter)

    @patch("src.config.settings")
    def test_get_logger_writes_to_file_and_error_log(self, mock_settings: Mock, tmp_path: Path) -> None:
        """При LOG_TO_FILE добавляются файловый хендлер и отдельный лог ошибок."""
        mock_settings.logging.LOG_LEVEL = "DEBUG"
        mock_settings.logging.LOG_FORMAT = "json"
        mock_settings.logging.LOG_TO_FILE = True
        mock_settings.logging.LOG_FILE_PATH = str(tmp_path / "app.log")
        mock_settings.logging.LOG_MAX_BYTES = 1024

        with patch("src.common.logger._GLOBAL_FILE_HANDLER", None), \
                patch("src.common.logger._GLOBAL_ERROR_HANDLER", None):
            logger = get_logger("test_file_logger")

            assert len(logger.handlers) == 3
            assert (tmp_path / "app.log").exists()
            assert (tmp_path / "error.log").exists()
            assert logger.handlers[2].level == logging.ERROR

            for handler in logger.handlers[1:]:
                handler.close()

    def test_get_logger_handles_missing_settings(self) -> None:
        """Тест работы при отсутствии настроек."""
        with patch.dict('sys.modules', {'src.config': None}):
            logger = get_logger("test_no_settings")

            assert logger.level == logging.DEBUG


class TestSetupLogging:
    """Тесты для setup_logging."""

    def setup_method(self) -> None:
        """Очистка перед тестом."""
        _loggers.clear()

    def test_setup_logging_initializes_system(self) -> None:
        """Тест инициализации системы логирования."""
        with patch("src.common.logger._LOGGING_INITIALIZED", False):
            setup_logging()

        assert DEFAULT_LOGGER_NAME in _loggers

    def test_setup_logging_sets_third_party_levels(self) -> None:
        """Тест установки уровней для сторонних библиотек."""
        with patch("src.common.logger._LOGGING_INITIALIZED", False):
            setup_logging()

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("websockets").level == logging.WARNING
        assert logging.getLogger("nicegui").level == logging.INFO


class TestGetCallerInfo:
    """Тесты для _get_caller_info."""

    def test_get_caller_info_returns_dict(self) -> None:
        """Тест возврата словаря с информацией о вызывающей функции."""
        assert isinstance(_get_caller_info(), dict)

    @pytest.mark.asyncio
    async def test_log_warning_reports_real_caller(self) -> None:
        """log_warning пропускает свой кадр и указывает на вызывающий код."""
        with patch.object(logging.Logger, "warning") as mock_warning:
            await log_warning("Warning message")

        extra = mock_warning.call_args[1]["extra"]["extra_data"]
        assert extra["caller_function"] == "test_log_warning_reports_real_caller"


class TestLogFunctions:
    """Тесты для асинхронных функций логирования."""

    def setup_method(self) -> None:
        """Очистка перед тестом."""
        _loggers.clear()

    @pytest.mark.asyncio
    async def test_log_info_basic(self) -> None:
        """Тест базового логирования INFO."""
        with patch.object(logging.Logger, "info") as mock_info:
            await log_info("Test message")

            mock_info.assert_called_once()
            assert "Test message" in mock_info.call_args[0]

    @pytest.mark.asyncio
    async def test_log_info_with_type_msg(self) -> None:
        """Тест логирования с разными типами сообщений."""
        with patch.object(logging.Logger, "debug") as mock_debug:
            await log_info("Debug message", type_msg=TypeMsg.DEBUG)
            mock_debug.assert_called_once()

        with patch.object(logging.Logger, "warning") as mock_warning:
            await log_info("Warning message", type_msg=TypeMsg.WARNING)
            mock_warning.assert_called_once()

        with patch.object(logging.Logger, "critical") as mock_critical:
            await log_info("Critical message", type_msg=TypeMsg.CRITICAL)
            mock_critical.assert_called_once()

    @pytest.mark.asyncio
    async def test_log_info_accepts_string_type(self) -> None:
        """Уровень можно передать строкой."""
        with patch.object(logging.Logger, "error") as mock_error:
            await log_info("Error message", type_msg="error")

            mock_error.assert_called_once()

    @pytest.mark.asyncio
    async def test_log_info_with_extra(self) -> None:
        """Тест логирования с дополнительными данными."""
        with patch.object(logging.Logger, "info") as mock_info:
            await log_info("Test message", extra={"order_id": "order-1"})

            extra = mock_info.call_args[1]["extra"]["extra_data"]
            assert extra["order_id"] == "order-1"

    @pytest.mark.asyncio
    async def test_log_debug(self) -> None:
        """Тест функции log_debug."""
        with patch.object(logging.Logger, "debug") as mock_debug:
            await log_debug("Debug message")

            mock_debug.assert_called_once()

    @pytest.mark.asyncio
    async def test_log_error_with_exc_info(self) -> None:
        """Тест логирования ошибки с трейсбеком."""
        with patch.object(logging.Logger, "error") as mock_error:
            await log_error("Error message", exc_info=True)

            mock_error.assert_called_once()
            assert mock_error.call_args[1].get("exc_info") is True

    @pytest.mark.asyncio
    async def test_log_info_with_custom_logger_name(self) -> None:
        """Тест логирования с пользовательским именем логгера."""
        with patch("src.common.logger.get_logger") as mock_get_logger:
            mock_logger = MagicMock()
            mock_get_logger.return_value = mock_logger

            await log_info("Test message", logger_name="ws")

            mock_get_logger.assert_called_once_with("ws")
            mock_logger.info.assert_called_once()
