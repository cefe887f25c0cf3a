"""
Observability Infrastructure

Structured logging, correlation tracking and Prometheus counters for the
department workflow engine.
"""

import contextvars
import logging
import sys
import uuid
from typing import Any

import structlog
from prometheus_client import Counter

from .config import settings

correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)

# Prometheus metrics
DEPARTMENT_TRANSITIONS = Counter(
    "goldflow_department_transitions_total",
    "Department status transitions",
    ["department", "status"],
)

AUTO_ASSIGNMENTS = Counter(
    "goldflow_auto_assignments_total",
    "Auto-assignment outcomes",
    ["department", "outcome"],
)

NOTIFICATION_FAILURES = Counter(
    "goldflow_notification_failures_total",
    "Notification deliveries that raised",
    ["type"],
)

TRANSACTION_RETRIES = Counter(
    "goldflow_transaction_retries_total",
    "Workflow transactions retried after a store failure",
    ["operation"],
)


class CorrelationIdProcessor:
    """Stamps the workflow operation's correlation id onto each entry."""

    def __call__(self, logger: Any, name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        correlation_id = correlation_id_var.get("")
        if correlation_id:
            event_dict.setdefault("correlation_id", correlation_id)
        return event_dict


def setup_structured_logging() -> None:
    """Configure structlog and stdlib logging from LOG_LEVEL / LOG_FORMAT."""
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    processors = [
        structlog.contextvars.merge_contextvars,
        CorrelationIdProcessor(),
        structlog.processors.TimeStamper(fmt="ISO"),
        structlog.processors.add_log_level,
    ]

    if settings.LOG_FORMAT == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(colors=settings.ENVIRONMENT == "local")
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    if settings.DATABASE_ECHO:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
    else:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.BoundLogger:
    """Structlog logger carrying its module name as the `logger` key."""
    return structlog.get_logger(name).bind(logger=name)


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Bind a correlation id to the current context, generating one if needed."""
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())

    correlation_id_var.set(correlation_id)
    return correlation_id


def get_correlation_id() -> str:
    return correlation_id_var.get("")


def record_transition(department: str, status: str) -> None:
    if settings.ENABLE_METRICS:
        DEPARTMENT_TRANSITIONS.labels(department=department, status=status).inc()


def record_assignment(department: str, outcome: str) -> None:
    if settings.ENABLE_METRICS:
        AUTO_ASSIGNMENTS.labels(department=department, outcome=outcome).inc()


def record_notification_failure(event_type: str) -> None:
    if settings.ENABLE_METRICS:
        NOTIFICATION_FAILURES.labels(type=event_type).inc()


def record_retry(operation: str) -> None:
    if settings.ENABLE_METRICS:
        TRANSACTION_RETRIES.labels(operation=operation).inc()
