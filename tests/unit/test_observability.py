"""Tests for observability/logger.py and observability/metrics.py"""
import io
import json
import logging
import sys

from scrapshare.errors import ScrapshareUploadError
from scrapshare.observability import MetricsHook, NoopMetricsHook, StructuredFormatter, get_logger
from scrapshare.observability.logger import LOG_LEVEL_ENV


class TestStructuredFormatter:
    def _get_record(self, msg, level=logging.INFO, exc_info=None, extra_fields=None, name="test"):
        record = logging.LogRecord(
            name=name,
            level=level,
            pathname="",
            lineno=0,
            msg=msg,
            args=(),
            exc_info=exc_info,
        )
        if extra_fields is not None:
            record.extra_fields = extra_fields
        return record

    def test_basic_format(self):
        result = json.loads(StructuredFormatter().format(self._get_record("hello world")))
        assert result["message"] == "hello world"
        assert result["level"] == "INFO"
        assert result["logger"] == "test"
        assert "ts" in result

    def test_extra_fields_merged(self):
        record = self._get_record("msg", extra_fields={"stage": "uploading", "code": "UPLOAD_ERROR"})
        result = json.loads(StructuredFormatter().format(record))
        assert result["stage"] == "uploading"
        assert result["code"] == "UPLOAD_ERROR"

    def test_non_json_values_stringified(self):
        record = self._get_record("msg", extra_fields={"path": object()})
        result = json.loads(StructuredFormatter().format(record))
        assert result["path"].startswith("<object object")

    def test_exception_info_included(self):
        try:
            raise ValueError("test error")
        except ValueError:
            exc_info = sys.exc_info()
        result = json.loads(StructuredFormatter().format(self._get_record("err", exc_info=exc_info)))
        assert "ValueError" in result["exception"]

    def test_component_from_logger_name(self):
        fmt = StructuredFormatter()
        upload = json.loads(fmt.format(self._get_record("m", name="scrapshare.upload")))
        root = json.loads(fmt.format(self._get_record("m", name="scrapshare")))
        other = json.loads(fmt.format(self._get_record("m", name="host.app")))
        assert upload["component"] == "upload"
        assert root["component"] == "core"
        assert other["component"] == "host.app"

    def test_scrapshare_error_code_and_context(self):
        try:
            raise ScrapshareUploadError("rejected", context={"status_code": 401})
        except ScrapshareUploadError:
            exc_info = sys.exc_info()
        result = json.loads(StructuredFormatter().format(self._get_record("failed", exc_info=exc_info)))
        assert result["code"] == "UPLOAD_ERROR"
        assert result["context"] == {"status_code": 401}

    def test_explicit_fields_win_over_error_fields(self):
        try:
            raise ScrapshareUploadError("rejected")
        except ScrapshareUploadError:
            exc_info = sys.exc_info()
        record = self._get_record("failed", exc_info=exc_info, extra_fields={"code": "custom"})
        assert json.loads(StructuredFormatter().format(record))["code"] == "custom"

    def test_single_line(self):
        record = self._get_record("multi\nline", extra_fields={"body": "a\nb"})
        assert "\n" not in StructuredFormatter().format(record)


class TestGetLogger:
    def test_returns_logger_with_handler(self):
        logger = get_logger("test.scrapshare.obs.unique1")
        assert isinstance(logger, logging.Logger)
        assert len(logger.handlers) == 1
        assert logger.propagate is False

    def test_string_level(self):
        logger = get_logger("test.scrapshare.obs.unique2", level="warning")
        assert logger.level == logging.WARNING

    def test_level_from_environment(self, monkeypatch):
        monkeypatch.setenv(LOG_LEVEL_ENV, "debug")
        assert get_logger("test.scrapshare.obs.env").level == logging.DEBUG

    def test_default_level_is_info(self, monkeypatch):
        monkeypatch.delenv(LOG_LEVEL_ENV, raising=False)
        assert get_logger("test.scrapshare.obs.default").level == logging.INFO

    def test_unknown_level_falls_back_to_info(self):
        assert get_logger("test.scrapshare.obs.bogus", level="chatty").level == logging.INFO

    def test_idempotent_no_duplicate_handlers(self):
        name = "test.scrapshare.obs.unique3"
        get_logger(name)
        assert len(get_logger(name).handlers) == 1

    def test_custom_stream(self):
        stream = io.StringIO()
        logger = get_logger("test.scrapshare.obs.stream", stream=stream)
        logger.info("share finished", extra={"extra_fields": {"outcome": "delivered"}})
        record = json.loads(stream.getvalue())
        assert record["message"] == "share finished"
        assert record["outcome"] == "delivered"


class TestMetricsHook:
    def test_noop_satisfies_protocol(self):
        assert isinstance(NoopMetricsHook(), MetricsHook)

    def test_noop_returns_none(self):
        hook = NoopMetricsHook()
        assert hook.increment("scrapshare.share_total", tags={"outcome": "delivered"}) is None
        assert hook.timing("scrapshare.upload_duration_ms", 12.5) is None

    def test_custom_hook_satisfies_protocol(self):
        class Recorder:
            def increment(self, name, value=1, tags=None):
                pass

            def timing(self, name, ms, tags=None):
                pass

        assert isinstance(Recorder(), MetricsHook)
