import json
import logging
from io import StringIO

import pytest

from interview_partner.core.logging import (
    ContextFilter,
    JsonFormatter,
    _coerce_level,
    get_request_id,
    init_logging,
    is_masking,
    log_event,
    mask_text,
    set_masking,
    set_request_id,
    short_uuid,
    span,
)

TEST_REQUEST_ID = "req-123"


@pytest.fixture
def captured_logs():
    """Route the interview_partner logger into a JSON buffer for the test."""
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonFormatter())
    handler.addFilter(ContextFilter())
    logger = logging.getLogger("interview_partner")
    original_level = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    def read() -> list[dict]:
        return [json.loads(line) for line in stream.getvalue().splitlines() if line.strip()]

    yield read

    logger.removeHandler(handler)
    logger.setLevel(original_level)
    set_request_id(None)
    set_masking(False)


class TestCoerceLevel:
    def test_names_and_ints(self):
        assert _coerce_level("debug") == logging.DEBUG
        assert _coerce_level(logging.ERROR) == logging.ERROR

    def test_unknown_or_empty_defaults_to_info(self):
        assert _coerce_level("LOUD") == logging.INFO
        assert _coerce_level(None) == logging.INFO


class TestLogEvent:
    def test_emits_structured_fields(self, captured_logs):
        log_event("interview.test", component="engine", session_id="s1")

        entry = captured_logs()[-1]
        assert entry["event"] == "interview.test"
        assert entry["component"] == "engine"
        assert entry["session_id"] == "s1"
        assert entry["level"] == "info"
        assert entry["timestamp"].endswith("Z")

    def test_includes_request_id_from_context(self, captured_logs):
        set_request_id(TEST_REQUEST_ID)
        log_event("request.inner")

        assert get_request_id() == TEST_REQUEST_ID
        assert captured_logs()[-1]["request_id"] == TEST_REQUEST_ID

    def test_level_is_respected(self, captured_logs):
        log_event("llm.failed", level=logging.WARNING)
        assert captured_logs()[-1]["level"] == "warning"


class TestSpan:
    def test_records_duration_and_status(self, captured_logs):
        with span("llm.complete", component="provider", operation="complete", attempt=1):
            pass

        entry = captured_logs()[-1]
        assert entry["event"] == "llm.complete"
        assert entry["status"] == "ok"
        assert entry["attempt"] == 1
        assert entry["duration_ms"] >= 0

    def test_records_error_and_reraises(self, captured_logs):
        with pytest.raises(RuntimeError):
            with span("llm.complete", component="provider"):
                raise RuntimeError("boom")

        entry = captured_logs()[-1]
        assert entry["status"] == "error"
        assert entry["error_type"] == "RuntimeError"
        assert entry["error_msg"] == "boom"


class TestMasking:
    def test_mask_text(self):
        set_masking(True)
        try:
            assert mask_text("my secret answer") == "[masked len=16]"
        finally:
            set_masking(False)
        assert mask_text("visible") == "visible"


class TestInitLogging:
    def test_env_configures_level_and_masking(self, monkeypatch, tmp_path):
        log_file = tmp_path / "app.log"
        monkeypatch.setenv("INTERVIEW_PARTNER_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("INTERVIEW_PARTNER_LOG_FILE", str(log_file))
        monkeypatch.setenv("INTERVIEW_PARTNER_LOG_MASK", "true")
        root = logging.getLogger()
        original_handlers = list(root.handlers)
        original_level = root.level

        try:
            init_logging()
            assert root.level == logging.WARNING
            assert is_masking()
            log_event("file.check", level=logging.WARNING)
            for handler in root.handlers:
                handler.flush()
            assert json.loads(log_file.read_text().splitlines()[-1])["event"] == "file.check"
        finally:
            for handler in list(root.handlers):
                root.removeHandler(handler)
                handler.close()
            for handler in original_handlers:
                root.addHandler(handler)
            root.setLevel(original_level)
            set_masking(False)


def test_short_uuid_is_twelve_hex_chars():
    value = short_uuid()
    assert len(value) == 12
    int(value, 16)
