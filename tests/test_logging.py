"""Tests for structured logging helpers."""

from src.gdpr.logging import (
    LogContext,
    add_request_id,
    add_service_info,
    get_request_id,
    set_request_id,
    truncate_consent,
)


class TestLogContext:
    """Tests for request-scoped log context."""

    def test_sets_and_restores_request_id(self):
        set_request_id("")
        with LogContext(request_id="req-1") as ctx:
            assert ctx.request_id == "req-1"
            assert get_request_id() == "req-1"
        assert get_request_id() == ""

    def test_generates_request_id(self):
        with LogContext() as ctx:
            assert ctx.request_id
            assert get_request_id() == ctx.request_id


class TestProcessors:

    def test_request_id_added(self):
        with LogContext(request_id="req-2"):
            event = add_request_id(None, "info", {"event": "x"})
        assert event["request_id"] == "req-2"

    def test_request_id_omitted_outside_context(self):
        set_request_id("")
        assert "request_id" not in add_request_id(None, "info", {"event": "x"})

    def test_service_info(self):
        assert add_service_info(None, "info", {})["service"] == "gdpr"

    def test_consent_truncated(self):
        consent = "CPXxRfAPXxRfAAfKABENB-CgAAAAAAAAAAYgAAAAAAAA"
        event = truncate_consent(None, "warning", {"consent": consent})
        assert event["consent"] == f"CPXxRfAPXxRf...({len(consent)} chars)"

    def test_short_consent_kept(self):
        assert truncate_consent(None, "warning", {"consent": "abc"})["consent"] == "abc"

    def test_no_consent_field(self):
        assert truncate_consent(None, "info", {"event": "x"}) == {"event": "x"}
