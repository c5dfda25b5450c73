"""
Unit tests for the structlog processors in opsdash.utils.logging.
"""

from opsdash import __version__
from opsdash.utils.logging import SERVICE_NAME, add_service_context, add_severity


class TestLoggingProcessors:
    def test_logging_add_service_context_tags_event(self):
        event = add_service_context(None, "info", {"event": "page_loaded"})
        assert event["service"] == SERVICE_NAME == "opsdash"
        assert event["version"] == __version__

    def test_logging_add_service_context_keeps_bound_values(self):
        event = add_service_context(None, "info", {"event": "x", "service": "worker"})
        assert event["service"] == "worker"

    def test_logging_add_severity_uppercases_method(self):
        assert add_severity(None, "warning", {})["severity"] == "WARNING"
