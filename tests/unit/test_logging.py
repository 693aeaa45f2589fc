"""Tests for logging helpers."""

import structlog
from structlog.testing import capture_logs

from grocersee.common.logging import frame_context, get_logger, setup_logging


class TestLogging:
    """Tests for structured logging setup."""

    def test_frame_context_binds_and_clears(self):
        with frame_context("frame-1", source="camera"):
            bound = structlog.contextvars.get_contextvars()
            assert bound["frame_id"] == "frame-1"
            assert bound["source"] == "camera"

        assert "frame_id" not in structlog.contextvars.get_contextvars()

    def test_get_logger_binds_values(self):
        setup_logging(level="DEBUG")
        with capture_logs() as logs:
            get_logger("grocersee.test", component="decoder").info("decoded", candidates=3)

        assert logs[0]["event"] == "decoded"
        assert logs[0]["component"] == "decoder"
        assert logs[0]["candidates"] == 3

    def test_setup_json_output(self):
        setup_logging(level="WARNING", json_output=True, service_name="grocersee")
        try:
            processors = structlog.get_config()["processors"]
            assert isinstance(processors[0], structlog.processors.CallsiteParameterAdder)
            assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        finally:
            setup_logging(level="INFO")
