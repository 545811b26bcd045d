"""Unit tests for telemetry module."""

import asyncio
import io
import json
import logging
import sys

import pytest

from video_segments.commons.telemetry.decorators import (
    LogContext,
    failure_fields,
    log_exceptions,
    timed,
)
from video_segments.commons.telemetry.logger import (
    JsonFormatter,
    TextFormatter,
    clear_correlation_id,
    clear_log_context,
    configure_logging,
    get_correlation_id,
    get_log_context,
    set_correlation_id,
    set_log_context,
)
from video_segments.domain.exceptions import FetchError, UploadError


def make_record(msg="Test message", level=logging.INFO, exc_info=None, **extra):
    record = logging.LogRecord(
        name="test.logger",
        level=level,
        pathname="/test/file.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestCorrelationId:
    """Tests for correlation ID management."""

    def teardown_method(self):
        clear_correlation_id()

    def test_set_and_get_correlation_id(self):
        cid = set_correlation_id("video-123")
        assert cid == "video-123"
        assert get_correlation_id() == "video-123"

    def test_auto_generate_correlation_id(self):
        cid = set_correlation_id()
        assert len(cid) == 36  # UUID format

    def test_clear_correlation_id(self):
        set_correlation_id("video-123")
        clear_correlation_id()
        assert get_correlation_id() is None

    def test_correlation_id_isolation(self):
        """Correlation IDs set inside a task do not leak out of it."""
        set_correlation_id("main-context")

        async def async_task():
            set_correlation_id("task-context")
            return get_correlation_id()

        async def runner():
            return await asyncio.create_task(async_task())

        assert asyncio.run(runner()) == "task-context"
        assert get_correlation_id() == "main-context"


class TestLogContext:
    """Tests for logging context management."""

    def setup_method(self):
        clear_log_context()

    def teardown_method(self):
        clear_log_context()

    def test_set_and_get_context(self):
        set_log_context(video_id="v1", stage="fetch")
        assert get_log_context() == {"video_id": "v1", "stage": "fetch"}

    def test_context_is_copied(self):
        set_log_context(key="value")
        ctx = get_log_context()
        ctx["new_key"] = "new_value"
        assert "new_key" not in get_log_context()

    def test_context_manager_restores_previous(self):
        set_log_context(outer="yes")
        with LogContext(video_id="v1"):
            assert get_log_context() == {"outer": "yes", "video_id": "v1"}
        assert get_log_context() == {"outer": "yes"}


class TestJsonFormatter:
    """Tests for JSON log formatter."""

    def teardown_method(self):
        clear_correlation_id()
        clear_log_context()

    def test_basic_format(self):
        data = json.loads(JsonFormatter(include_path=True).format(make_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "test.logger"
        assert data["message"] == "Test message"
        assert "timestamp" in data
        assert data["path"] == "/test/file.py:42"

    def test_correlation_id_and_context(self):
        set_correlation_id("v1")
        set_log_context(source_uri="https://cdn.example/movie.mp4")

        data = json.loads(JsonFormatter().format(make_record()))

        assert data["correlation_id"] == "v1"
        assert data["context"] == {"source_uri": "https://cdn.example/movie.mp4"}

    def test_extra_fields(self):
        record = make_record(segment_idx=3, bucket="test-bucket")
        data = json.loads(JsonFormatter(include_timestamp=False).format(record))

        assert data["segment_idx"] == 3
        assert data["bucket"] == "test-bucket"
        assert "timestamp" not in data

    def test_format_with_exception(self):
        try:
            raise ValueError("Test error")
        except ValueError:
            record = make_record(level=logging.ERROR, exc_info=sys.exc_info())

        data = json.loads(JsonFormatter().format(record))

        assert "ValueError: Test error" in data["exception"]


class TestTextFormatter:
    """Tests for text log formatter."""

    def teardown_method(self):
        clear_correlation_id()

    def test_basic_format(self):
        output = TextFormatter(colors=False).format(make_record())

        assert "INFO" in output
        assert "[test.logger]" in output
        assert "Test message" in output
        assert "\033[" not in output

    def test_extras_and_correlation_id(self):
        set_correlation_id("0123456789abcdef")
        output = TextFormatter(colors=False).format(make_record(segments=2))

        assert "[01234567]" in output
        assert "segments=2" in output


class TestConfigureLogging:
    """Tests for logger configuration."""

    def test_configure_json_logger(self):
        stream = io.StringIO()
        logger = configure_logging(
            level="DEBUG", format_type="json", logger_name="test.json", stream=stream
        )
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, JsonFormatter)

        logger.info("Worker started", extra={"bucket": "b"})
        data = json.loads(stream.getvalue())
        assert data["message"] == "Worker started"
        assert data["bucket"] == "b"

    def test_configure_text_logger(self):
        logger = configure_logging(
            level="INFO",
            format_type="text",
            logger_name="test.text",
            stream=io.StringIO(),
        )
        assert logger.level == logging.INFO
        assert isinstance(logger.handlers[0].formatter, TextFormatter)

    def test_reconfigure_replaces_handlers(self):
        configure_logging(logger_name="test.again", stream=io.StringIO())
        logger = configure_logging(logger_name="test.again", stream=io.StringIO())
        assert len(logger.handlers) == 1


class TestTimed:
    """Tests for the timed decorator."""

    async def test_logs_duration_and_outcome(self, caplog):
        logger = logging.getLogger("test.timed.ok")

        @timed(logger=logger)
        async def work():
            await asyncio.sleep(0)
            return 42

        with caplog.at_level(logging.DEBUG, logger="test.timed.ok"):
            assert await work() == 42

        record = next(r for r in caplog.records if r.name == "test.timed.ok")
        assert "work finished" in record.getMessage()
        assert record.duration_ms >= 0
        assert record.outcome == "ok"

    async def test_logs_failed_runs(self, caplog):
        logger = logging.getLogger("test.timed.failed")

        @timed(logger=logger)
        async def work():
            raise TimeoutError("slow")

        with caplog.at_level(logging.DEBUG, logger="test.timed.failed"):
            with pytest.raises(TimeoutError):
                await work()

        record = next(r for r in caplog.records if r.name == "test.timed.failed")
        assert record.outcome == "TimeoutError"

    async def test_threshold_suppresses_fast_calls(self, caplog):
        logger = logging.getLogger("test.timed.threshold")

        @timed(logger=logger, threshold_ms=10_000)
        async def fast():
            return None

        with caplog.at_level(logging.DEBUG, logger="test.timed.threshold"):
            await fast()

        assert not [r for r in caplog.records if r.name == "test.timed.threshold"]

    def test_bare_decorator_preserves_name(self):
        @timed
        async def named():
            return None

        assert named.__name__ == "named"


class TestLogExceptions:
    """Tests for the log_exceptions decorator."""

    async def test_logs_and_reraises(self, caplog):
        logger = logging.getLogger("test.exceptions.plain")

        @log_exceptions(logger=logger, message="Boom")
        async def fail():
            raise RuntimeError("broken")

        with caplog.at_level(logging.ERROR, logger="test.exceptions.plain"):
            with pytest.raises(RuntimeError):
                await fail()

        record = next(r for r in caplog.records if r.name == "test.exceptions.plain")
        assert record.getMessage() == "Boom"
        assert record.exception_type == "RuntimeError"
        assert not hasattr(record, "fatal")

    async def test_logs_pipeline_classification(self, caplog):
        logger = logging.getLogger("test.exceptions.classified")

        @log_exceptions(logger=logger)
        async def fail():
            raise FetchError("https://cdn.example/movie.mp4", 404)

        with caplog.at_level(logging.ERROR, logger="test.exceptions.classified"):
            with pytest.raises(FetchError):
                await fail()

        record = next(
            r for r in caplog.records if r.name == "test.exceptions.classified"
        )
        assert "fail raised" in record.getMessage()
        assert record.stage == "fetch"
        assert record.fatal is True

    async def test_success_logs_nothing(self, caplog):
        logger = logging.getLogger("test.exceptions.quiet")

        @log_exceptions(logger=logger)
        async def ok():
            return 1

        with caplog.at_level(logging.ERROR, logger="test.exceptions.quiet"):
            assert await ok() == 1

        assert not [r for r in caplog.records if r.name == "test.exceptions.quiet"]


class TestFailureFields:
    """Tests for failure_fields."""

    def test_plain_exception(self):
        assert failure_fields(ValueError("x")) == {"exception_type": "ValueError"}

    def test_transient_error(self):
        assert failure_fields(UploadError("movie/movie_1.jpg", "timeout")) == {
            "exception_type": "UploadError",
            "stage": "upload",
            "fatal": False,
        }
