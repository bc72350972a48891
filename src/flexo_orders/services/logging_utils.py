"""Service layer logging utilities.

Structured logging for order operations: every log line reads
"<operation>: <outcome>" and carries its context fields in ``extra`` so a
JSON formatter can pick them up.

Usage:
    from flexo_orders.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)

    log_operation(
        logger,
        operation="advance_order",
        outcome="success",
        order_id=42,
        from_status="Design Done",
        to_status="In Prepress",
    )

    log_operation(
        logger,
        operation="advance_order",
        outcome="concurrent_modification",
        level=logging.WARNING,
        order_id=42,
    )
"""

import logging
from typing import Any

LOGGER_PREFIX = "flexo_orders.services"


def get_service_logger(name: str) -> logging.Logger:
    """
    Get a logger configured for service operations.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Logger named 'flexo_orders.services.<module>'.

    Example:
        >>> get_service_logger("flexo_orders.services.order_service").name
        'flexo_orders.services.order_service'
    """
    if "." in name:
        name = name.split(".")[-1]
    return logging.getLogger(f"{LOGGER_PREFIX}.{name}")


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Log a service operation with structured context.

    Args:
        logger: Logger instance to use
        operation: Operation name (e.g., "advance_order", "update_prepress_sub_process")
        outcome: Outcome description (e.g., "success", "illegal_transition")
        level: Log level (default: INFO)
        **context: Additional context fields. Common fields:
            - order_id: Order being operated on
            - from_status / to_status: Transition endpoints
            - error: Error message when the outcome is a failure

    Note:
        Context keys must not collide with LogRecord attributes
        ("message", "args", "name", ...); logging raises KeyError if they do.
    """
    extra = {
        "operation": operation,
        "outcome": outcome,
        **context,
    }
    logger.log(level, f"{operation}: {outcome}", extra=extra)
