"""Unit tests for utils/logging.py and utils/console.py."""

import io
import logging
import pytest
from logging.handlers import RotatingFileHandler

from laptop.utils.console import announce, report_failure
from laptop.utils.logging import setup_logger


@pytest.mark.unit
class TestSetupLogger:
    """Test setup_logger function."""

    @pytest.fixture(autouse=True)
    def cleanup_loggers(self):
        """Remove handlers from loggers created by each test."""
        created = []
        yield created
        for name in created:
            lg = logging.getLogger(name)
            for h in list(lg.handlers):
                h.close()
                lg.removeHandler(h)

    def _unique_name(self, suffix: str) -> str:
        return f"test_laptop_logger_{suffix}"

    def _console_handlers(self, logger):
        return [
            h for h in logger.handlers
            if isinstance(h, logging.StreamHandler) and not isinstance(h, RotatingFileHandler)
        ]

    def test_creates_log_directory(self, tmp_path, cleanup_loggers):
        log_dir = tmp_path / "new_logs" / "subdir"
        name = self._unique_name("dir")
        cleanup_loggers.append(name)

        setup_logger(name, str(log_dir / "laptop.log"))

        assert log_dir.exists()

    def test_logger_level_info_by_default(self, tmp_path, cleanup_loggers):
        name = self._unique_name("level_default")
        cleanup_loggers.append(name)

        logger = setup_logger(name, str(tmp_path / "laptop.log"))

        assert logger.level == logging.INFO

    def test_logger_level_custom(self, tmp_path, cleanup_loggers):
        name = self._unique_name("level_debug")
        cleanup_loggers.append(name)

        logger = setup_logger(name, str(tmp_path / "laptop.log"), level=logging.DEBUG)

        assert logger.level == logging.DEBUG

    def test_adds_rotating_file_handler(self, tmp_path, cleanup_loggers):
        name = self._unique_name("file_handler")
        cleanup_loggers.append(name)

        logger = setup_logger(name, str(tmp_path / "laptop.log"), backup_count=5)

        file_handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
        assert file_handlers[0].maxBytes == 10 * 1024 * 1024
        assert file_handlers[0].backupCount == 5

    def test_console_handler_quiet_by_default(self, tmp_path, cleanup_loggers):
        """Console only shows warnings so narration stays readable."""
        name = self._unique_name("console_default")
        cleanup_loggers.append(name)

        logger = setup_logger(name, str(tmp_path / "laptop.log"))

        console = self._console_handlers(logger)
        assert len(console) == 1
        assert console[0].level == logging.WARNING

    def test_console_handler_disabled(self, tmp_path, cleanup_loggers):
        name = self._unique_name("console_off")
        cleanup_loggers.append(name)

        logger = setup_logger(name, str(tmp_path / "laptop.log"), console_level=None)

        assert self._console_handlers(logger) == []

    def test_no_duplicate_handlers_on_second_call(self, tmp_path, cleanup_loggers):
        name = self._unique_name("no_dup")
        cleanup_loggers.append(name)

        logger1 = setup_logger(name, str(tmp_path / "laptop.log"))
        handler_count = len(logger1.handlers)
        logger2 = setup_logger(name, str(tmp_path / "laptop.log"))

        assert logger1 is logger2
        assert len(logger2.handlers) == handler_count

    def test_child_loggers_reach_file(self, tmp_path, cleanup_loggers):
        """Service loggers (name.child) propagate into the rotating file."""
        name = self._unique_name("write")
        cleanup_loggers.append(name)

        logger = setup_logger(name, str(tmp_path / "laptop.log"))
        logging.getLogger(f"{name}.homebrew").info("Installing git")
        for h in logger.handlers:
            h.flush()

        assert "Installing git" in (tmp_path / "laptop.log").read_text()


@pytest.mark.unit
class TestConsole:

    def test_announce_format(self):
        stream = io.StringIO()

        announce("Installing git ...", stream=stream)

        assert stream.getvalue() == "\n==> Installing git ...\n"

    def test_report_failure(self):
        stream = io.StringIO()

        report_failure(stream=stream)

        assert stream.getvalue() == "failed\n\n"
