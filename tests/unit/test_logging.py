"""
Unit tests for structured logging.
"""

import json
import logging
import sys

import pytest

from objectfs.common.logging_config import (
    HANDLER_NAME,
    StructuredFormatter,
    PerformanceTracker,
    clear_operation_id,
    configure_logging,
    get_operation_id,
    operation_scope,
    set_operation_id,
    setup_logging,
)
from objectfs.config.settings import Settings


def _record(msg="Test message", level=logging.INFO, exc_info=None):
    return logging.LogRecord(
        name="test.logger",
        level=level,
        pathname="test.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


def _installed_handlers():
    return [h for h in logging.getLogger().handlers if h.get_name() == HANDLER_NAME]


@pytest.fixture(autouse=True)
def no_operation_id():
    clear_operation_id()
    yield
    clear_operation_id()


class TestStructuredFormatter:
    """Tests for StructuredFormatter class."""

    def test_format_creates_json(self):
        """Formatter should create JSON log records."""
        parsed = json.loads(StructuredFormatter().format(_record()))

        assert parsed["message"] == "Test message"
        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "test.logger"
        assert parsed["timestamp"].endswith("Z")
        assert "operation_id" not in parsed

    def test_format_includes_operation_id(self):
        """Formatter should include operation_id if present."""
        set_operation_id("op-123")

        parsed = json.loads(StructuredFormatter().format(_record()))

        assert parsed["operation_id"] == "op-123"

    def test_format_handles_extra_fields(self):
        """Formatter should merge extra_fields into the payload."""
        record = _record()
        record.extra_fields = {"operation": "storage.copy", "src": "a"}

        parsed = json.loads(StructuredFormatter().format(record))

        assert parsed["operation"] == "storage.copy"
        assert parsed["src"] == "a"

    def test_format_handles_exception(self):
        """Formatter should include exception info."""
        try:
            raise ValueError("Test error")
        except ValueError:
            record = _record("Error occurred", logging.ERROR, sys.exc_info())

        parsed = json.loads(StructuredFormatter().format(record))

        assert "ValueError: Test error" in parsed["exception"]


class TestPerformanceTracker:
    """Tests for PerformanceTracker context manager."""

    def test_logs_completion_with_duration(self, caplog):
        logger = logging.getLogger("test.perf")
        caplog.set_level(logging.DEBUG, logger="test.perf")

        with PerformanceTracker("storage.copy", logger, src="a", dst="b") as tracker:
            pass

        completed = [r for r in caplog.records
                     if r.getMessage() == "Operation completed: storage.copy"]
        assert len(completed) == 1
        fields = completed[0].extra_fields
        assert fields["src"] == "a"
        assert fields["dst"] == "b"
        assert fields["duration_ms"] == tracker.duration_ms

    def test_logs_failure_and_propagates(self, caplog):
        logger = logging.getLogger("test.perf")
        caplog.set_level(logging.DEBUG, logger="test.perf")

        with pytest.raises(RuntimeError):
            with PerformanceTracker("storage.move", logger):
                raise RuntimeError("disk gone")

        failed = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(failed) == 1
        assert failed[0].extra_fields["error_type"] == "RuntimeError"
        assert failed[0].extra_fields["error"] == "disk gone"

    def test_includes_operation_id(self, caplog):
        logger = logging.getLogger("test.perf")
        caplog.set_level(logging.DEBUG, logger="test.perf")

        with operation_scope("op-42"):
            with PerformanceTracker("storage.copy", logger):
                pass

        assert [r.extra_fields["operation_id"] for r in caplog.records] == [
            "op-42", "op-42"]

    def test_storage_copy_is_tracked(self, caplog, tmp_path):
        from objectfs.storage.filesystem import FilesystemStorage

        caplog.set_level(logging.DEBUG, logger="objectfs.storage.filesystem")
        storage = FilesystemStorage(str(tmp_path))
        storage.put("a.txt", b"a")

        storage.copy("a.txt", "b.txt")

        messages = [r.getMessage() for r in caplog.records]
        assert "Operation completed: storage.copy" in messages

    def test_storage_move_records_share_one_operation_id(self, caplog, tmp_path):
        from objectfs.storage.filesystem import FilesystemStorage

        caplog.set_level(logging.DEBUG, logger="objectfs.storage.filesystem")
        storage = FilesystemStorage(str(tmp_path))
        storage.put("a.txt", b"a")

        storage.move("a.txt", "b.txt")

        tracked = [r for r in caplog.records if hasattr(r, "extra_fields")]
        ids = {r.extra_fields["operation_id"] for r in tracked}
        assert len(tracked) == 2
        assert len(ids) == 1
        assert get_operation_id() is None

    def test_storage_copy_reuses_caller_operation_id(self, caplog, tmp_path):
        from objectfs.storage.filesystem import FilesystemStorage

        caplog.set_level(logging.DEBUG, logger="objectfs.storage.filesystem")
        storage = FilesystemStorage(str(tmp_path))
        storage.put("a.txt", b"a")
        set_operation_id("caller-op")

        storage.copy("a.txt", "b.txt")

        tracked = [r for r in caplog.records if hasattr(r, "extra_fields")]
        assert {r.extra_fields["operation_id"] for r in tracked} == {"caller-op"}
        assert get_operation_id() == "caller-op"


class TestOperationIdContext:
    """Tests for operation id context management."""

    def test_set_and_get_operation_id(self):
        set_operation_id("ctx-test-789")
        assert get_operation_id() == "ctx-test-789"

    def test_generated_when_not_given(self):
        operation_id = set_operation_id()
        assert operation_id
        assert get_operation_id() == operation_id

    def test_clear_operation_id(self):
        set_operation_id("to-clear")
        clear_operation_id()
        assert get_operation_id() is None

    def test_scope_restores_previous_value(self):
        with operation_scope() as operation_id:
            assert operation_id
            assert get_operation_id() == operation_id
        assert get_operation_id() is None

    def test_explicit_scope_overrides_and_restores(self):
        set_operation_id("outer")

        with operation_scope("inner"):
            assert get_operation_id() == "inner"

        assert get_operation_id() == "outer"


class TestLoggingSetup:
    """Tests for setup_logging and configure_logging."""

    def test_setup_logging_json_format(self):
        setup_logging(log_level="INFO", json_format=True)

        handlers = _installed_handlers()
        assert len(handlers) == 1
        assert isinstance(handlers[0].formatter, StructuredFormatter)
        assert logging.getLogger().level == logging.INFO

    def test_setup_logging_text_format(self):
        setup_logging(log_level="debug", json_format=False)

        handlers = _installed_handlers()
        assert not isinstance(handlers[0].formatter, StructuredFormatter)
        assert logging.getLogger().level == logging.DEBUG

    def test_setup_logging_replaces_only_its_own_handler(self):
        other = logging.NullHandler()
        root_logger = logging.getLogger()
        root_logger.addHandler(other)
        try:
            setup_logging("INFO")
            setup_logging("WARNING")

            assert len(_installed_handlers()) == 1
            assert other in root_logger.handlers
        finally:
            root_logger.removeHandler(other)

    def test_unknown_level_raises(self):
        with pytest.raises(ValueError):
            setup_logging("chatty")

    def test_configure_logging_reads_settings(self, tmp_path):
        settings = Settings(
            storage_path=str(tmp_path), log_level="WARNING", log_json=False)

        handler = configure_logging(settings)

        assert _installed_handlers() == [handler]
        assert handler.level == logging.WARNING
        assert not isinstance(handler.formatter, StructuredFormatter)
        assert logging.getLogger().level == logging.WARNING
