"""Unit tests for logging setup and the editor event logger."""

import json
import logging
from pathlib import Path

import pytest

from tangramengine.config import LoggingConfig
from tangramengine.utils import EditorLogger, configure_logging


def engine_handlers() -> list[logging.Handler]:
    return [h for h in logging.getLogger().handlers if h.get_name() == "tangramengine"]


class TestConfigureLogging:
    """Tests for configure_logging function."""

    @pytest.fixture(autouse=True)
    def remove_handlers(self):
        """Detach engine handlers after each test."""
        yield
        for handler in engine_handlers():
            logging.getLogger().removeHandler(handler)
            handler.close()

    def test_console_without_file(self) -> None:
        """Test the console level applies without a log file."""
        configure_logging(LoggingConfig(log_level="DEBUG"))

        handlers = engine_handlers()
        assert len(handlers) == 1
        assert handlers[0].level == logging.DEBUG

    def test_quiet_without_file(self) -> None:
        """Test quiet mode with no file installs nothing."""
        configure_logging(LoggingConfig(), quiet=True)
        assert engine_handlers() == []

    def test_reconfigure_replaces_handlers(self, tmp_path: Path) -> None:
        """Test a second call does not stack handlers."""
        config = LoggingConfig(log_file=tmp_path / "logs" / "engine.log")
        configure_logging(config)
        assert len(engine_handlers()) == 2

        configure_logging(config, quiet=True)
        assert len(engine_handlers()) == 1

    def test_file_gets_json_lines(self, tmp_path: Path) -> None:
        """Test standard library records reach the file as JSON."""
        log_file = tmp_path / "engine.log"
        configure_logging(LoggingConfig(log_file=log_file), quiet=True)

        logging.getLogger("tangramengine.core.placement").warning("placement rejected")

        last = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
        assert last["event"] == "placement rejected"
        assert last["logger"] == "tangramengine.core.placement"
        assert last["level"] == "warning"


class TestEditorLogger:
    """Tests for EditorLogger statistics."""

    def test_counts_events(self) -> None:
        """Test every logged outcome updates the stats."""
        editor_logger = EditorLogger()

        editor_logger.log_placement("a", "square", 0)
        editor_logger.log_placement_rejected("square", "already placed")
        editor_logger.log_transition_rejected("idle", "idle")
        editor_logger.log_removal_rejected("a", "base piece")
        editor_logger.log_validation(True, 0)

        stats = editor_logger.stats
        assert stats.placements == 1
        assert stats.validations == 1
        assert stats.total_rejections == 3
        assert stats.errors == [("square", "already placed"), ("a", "base piece")]
