"""Tests for logging setup."""

import io
import json
import logging

from wdrgate.auth import AuthorizationEvent, AuthState, LoggingAuditSink
from wdrgate.logger import configure_logging


class TestConfigureLogging:
    def test_json_lines(self):
        stream = io.StringIO()
        configure_logging(level="info", fmt="json", stream=stream)

        logging.getLogger("wdrgate.dispatch.registry").info("Registered contract %s", "IOther")

        entry = json.loads(stream.getvalue().strip())
        assert entry["level"] == "info"
        assert entry["logger"] == "wdrgate.dispatch.registry"
        assert entry["message"] == "Registered contract IOther"

    def test_audit_lines_not_double_encoded(self):
        stream = io.StringIO()
        configure_logging(level="info", fmt="json", stream=stream)

        LoggingAuditSink().record(AuthorizationEvent(auth_state=AuthState.AUTH_REQUIRED))

        entry = json.loads(stream.getvalue().strip())
        assert entry["event"] == "auth.evaluated"
        assert entry["auth_state_code"] == 0

    def test_level_filters(self):
        stream = io.StringIO()
        configure_logging(level="warning", fmt="text", stream=stream)

        logger = logging.getLogger("wdrgate.test")
        logger.info("hidden")
        logger.warning("shown")

        output = stream.getvalue()
        assert "hidden" not in output
        assert "WARNING wdrgate.test: shown" in output

    def test_reconfigure_replaces_handler(self):
        first, second = io.StringIO(), io.StringIO()
        configure_logging(stream=first)
        configure_logging(stream=second)

        logging.getLogger("wdrgate").info("once")

        assert first.getvalue() == ""
        assert second.getvalue().count("once") == 1
