"""
Structured Logging Configuration

JSON log lines for the relay, tagged with the request correlation ID.
Token and secret values passed through ``extra`` are masked before they
reach a handler.
"""

import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

LOGGER_NAME = "order_relay"

# Keys in ``extra`` whose values are credentials
SENSITIVE_FIELDS = frozenset(
    {"token", "app_secret", "restaurant_secret", "authorization", "password"}
)

correlation_id_var: ContextVar[Optional[str]] = ContextVar(
    "correlation_id", default=None
)


def mask_secret(value: Optional[str], visible: int = 6) -> Optional[str]:
    """Keep the first few characters of a secret for log correlation"""
    if not value:
        return None
    if len(value) <= visible:
        return "***"
    return value[:visible] + "..."


class CorrelationIdFilter(logging.Filter):
    """Stamp each record with the current request's correlation ID"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get() or "N/A"
        return True


class SensitiveFieldFilter(logging.Filter):
    """Mask credential values attached to a record via ``extra``"""

    def filter(self, record: logging.LogRecord) -> bool:
        for field in SENSITIVE_FIELDS:
            value = record.__dict__.get(field)
            if isinstance(value, str) and not value.endswith("..."):
                setattr(record, field, mask_secret(value))
        return True


class RelayJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter adding level, source location and correlation ID"""

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["location"] = f"{record.module}.{record.funcName}:{record.lineno}"
        log_record["correlation_id"] = getattr(record, "correlation_id", "N/A")

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """
    Configure the ``order_relay`` logger tree with JSON output on stdout.

    Safe to call more than once; existing handlers are replaced.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        The root relay logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)
    logger.propagate = False
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(
        RelayJsonFormatter(
            "%(timestamp)s %(level)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%SZ",
        )
    )
    handler.addFilter(CorrelationIdFilter())
    handler.addFilter(SensitiveFieldFilter())
    logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Child of the relay logger, typically named after the module"""
    if name == LOGGER_NAME or name.startswith(f"{LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """
    Set correlation ID for the current context.
    Generates a new UUID if not provided.

    Returns:
        The correlation ID that was set
    """
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())
    correlation_id_var.set(correlation_id)
    return correlation_id


def get_correlation_id() -> Optional[str]:
    return correlation_id_var.get()
