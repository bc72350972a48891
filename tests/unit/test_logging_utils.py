"""Tests for service layer structured logging utilities."""

import logging

from flexo_orders.services.logging_utils import get_service_logger, log_operation


class TestLoggingUtilities:
    """Tests for logging utility functions."""

    def test_get_service_logger_returns_logger(self):
        """get_service_logger returns a configured Logger instance."""
        logger = get_service_logger("test_module")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "flexo_orders.services.test_module"

    def test_get_service_logger_extracts_module_name(self):
        """get_service_logger extracts module name from full path."""
        logger = get_service_logger("flexo_orders.services.order_service")
        assert logger.name == "flexo_orders.services.order_service"

    def test_log_operation_logs_at_info_level(self, caplog):
        logger = get_service_logger("test")

        with caplog.at_level(logging.INFO):
            log_operation(logger, operation="advance_order", outcome="success", order_id=1)

        assert "advance_order: success" in caplog.text
        assert caplog.records[0].levelno == logging.INFO

    def test_log_operation_logs_at_custom_level(self, caplog):
        logger = get_service_logger("test")

        with caplog.at_level(logging.DEBUG):
            log_operation(
                logger,
                operation="cancel_order",
                outcome="IllegalTransition",
                level=logging.WARNING,
            )

        assert caplog.records[0].levelno == logging.WARNING

    def test_log_operation_includes_extra_context(self, caplog):
        logger = get_service_logger("test")

        with caplog.at_level(logging.INFO):
            log_operation(
                logger,
                operation="context_test",
                outcome="success",
                order_id=42,
                to_status="In Prepress",
            )

        assert len(caplog.records) == 1
        record = caplog.records[0]
        assert record.operation == "context_test"
        assert record.outcome == "success"
        assert record.order_id == 42
        assert record.to_status == "In Prepress"
