"""
Metrics Gate - Structured Logging
Provides JSON-formatted logging so validation decisions can be queried
from log aggregation (CloudWatch Logs Insights, Loki, etc.).
"""

import logging
import sys
from pythonjsonlogger import jsonlogger

from .config import LOG_LEVEL, config


def setup_logger(name: str = __name__) -> logging.Logger:
    """
    Configure structured JSON logger.

    Args:
        name: Logger name (typically __name__ from calling module)

    Returns:
        Configured logger instance

    Example:
        >>> logger = setup_logger(__name__)
        >>> logger.info("Pipeline committed", extra={
        ...     "pipeline_name": "daily-orders",
        ...     "summary": "45.0"
        ... })
    """
    logger = logging.getLogger(name)

    # Prevent duplicate handlers (own handlers only; root handlers do not count)
    if logger.handlers:
        return logger

    level = getattr(logging, LOG_LEVEL.upper(), logging.INFO)
    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    formatter = jsonlogger.JsonFormatter(
        '%(asctime)s %(name)s %(levelname)s %(message)s',
        datefmt='%Y-%m-%dT%H:%M:%S'
    )
    handler.setFormatter(formatter)

    logger.addHandler(handler)

    # Don't propagate to root logger
    logger.propagate = False

    return logger


# Global logger instance
logger = setup_logger('metrics_gate')


def log_validation_decision(entity_type: str, entity_id: str, metric_value, validated: bool):
    """Log the outcome of one validation attempt."""
    logger.info("Validation decision recorded", extra={
        "event_type": "validation_decision",
        "entity_type": entity_type,
        "entity_id": entity_id,
        "metric_value": str(metric_value),
        "validated": validated,
        "environment": config.environment
    })


def log_pipeline_start(pipeline_name: str, source: str, strategy: str):
    """Log the start of an orchestrator run."""
    logger.info("Pipeline run started", extra={
        "event_type": "pipeline_start",
        "pipeline_name": pipeline_name,
        "source": source,
        "strategy": strategy
    })


def log_pipeline_complete(pipeline_name: str, committed: bool, summary, error: str = None):
    """Log the end of an orchestrator run."""
    logger.info("Pipeline run completed", extra={
        "event_type": "pipeline_complete",
        "pipeline_name": pipeline_name,
        "committed": committed,
        "summary": None if summary is None else str(summary),
        "error": error
    })


def log_discard(summary, reason: str):
    """Log a discarded summary."""
    logger.warning("Summary discarded", extra={
        "event_type": "discard",
        "summary": str(summary),
        "reason": reason
    })


def log_commit_fault(entity_type: str, entity_id: str, error: Exception):
    """Log a commit failure that was converted into a fault message."""
    logger.error("Commit failed", extra={
        "event_type": "commit_fault",
        "entity_type": entity_type,
        "entity_id": entity_id,
        "error_type": type(error).__name__,
        "error_message": str(error)
    }, exc_info=True)


def log_delivery_fault(message_type: str, handler: str, attempts: int, error: Exception):
    """Log a message whose handler kept failing after all immediate retries."""
    logger.error("Message delivery faulted", extra={
        "event_type": "delivery_fault",
        "message_type": message_type,
        "handler": handler,
        "attempts": attempts,
        "error_type": type(error).__name__,
        "error_message": str(error)
    }, exc_info=True)


def log_database_error(error: Exception, query_context: str = None):
    """Log database error with context."""
    logger.error("Database error", extra={
        "event_type": "database_error",
        "error_type": type(error).__name__,
        "error_message": str(error),
        "query_context": query_context
    }, exc_info=True)
