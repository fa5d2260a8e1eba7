"""Logging module for routekit.

Provides structured logging with JSON format, correlation IDs, and sensitive data redaction.
"""

import json
import logging
import sys
import uuid
from datetime import UTC, datetime
from typing import Any

from routekit.core.config import LoggingConfig

# LogRecord attributes that are not user supplied extras
_RESERVED_ATTRS = frozenset(
    [
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
        "correlation_id",
        "extra_fields",
    ]
)


class CorrelationIdFilter(logging.Filter):
    """Logging filter that adds correlation ID to log records."""

    def __init__(self) -> None:
        super().__init__()
        self._correlation_id: str | None = None

    def set_correlation_id(self, correlation_id: str) -> None:
        self._correlation_id = correlation_id

    def clear_correlation_id(self) -> None:
        self._correlation_id = None

    def filter(self, record: logging.LogRecord) -> bool:
        """Add correlation ID to the log record.

        Args:
            record: The log record to filter

        Returns:
            True to include the record
        """
        record.correlation_id = self._correlation_id or "none"  # type: ignore
        return True


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def __init__(self, redact_patterns: list[str] | None = None):
        """Initialize the JSON formatter.

        Args:
            redact_patterns: List of field names to redact from logs
        """
        super().__init__()
        self.redact_patterns = redact_patterns or []

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON.

        Args:
            record: The log record to format

        Returns:
            JSON-formatted log string
        """
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", "none"),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = getattr(record, "extra_fields", None)
        if isinstance(extra, dict):
            log_data.update(self._redact_sensitive_data(extra))

        custom = {k: v for k, v in record.__dict__.items() if k not in _RESERVED_ATTRS}
        log_data.update(self._redact_sensitive_data(custom))

        return json.dumps(log_data, default=str)

    def _redact_sensitive_data(self, data: dict[str, Any]) -> dict[str, Any]:
        """Redact sensitive data from log fields.

        Args:
            data: Dictionary potentially containing sensitive data

        Returns:
            Dictionary with sensitive fields redacted
        """
        redacted: dict[str, Any] = {}
        for key, value in data.items():
            if any(pattern.lower() in key.lower() for pattern in self.redact_patterns):
                redacted[key] = "***REDACTED***"
            elif isinstance(value, dict):
                redacted[key] = self._redact_sensitive_data(value)
            else:
                redacted[key] = value
        return redacted


class TextFormatter(logging.Formatter):
    """Text formatter for human-readable logs."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(UTC).isoformat()
        correlation_id = getattr(record, "correlation_id", "none")

        base = (
            f"{timestamp} [{record.levelname}] "
            f"[{correlation_id}] "
            f"{record.name}: {record.getMessage()}"
        )

        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)

        return base


class RoutekitLogger:
    """Routekit logger with structured logging and correlation ID support."""

    def __init__(self, config: LoggingConfig):
        """Initialize the routekit logger.

        Args:
            config: Logging configuration
        """
        self.config = config
        self.correlation_filter = CorrelationIdFilter()
        self._setup_logging()

    def _setup_logging(self) -> None:
        """Configure the ``routekit`` logger hierarchy."""
        logger = logging.getLogger("routekit")
        logger.setLevel(getattr(logging, self.config.level))
        logger.handlers.clear()

        handler: logging.Handler
        if self.config.output == "stdout":
            handler = logging.StreamHandler(sys.stdout)
        elif self.config.output == "stderr":
            handler = logging.StreamHandler(sys.stderr)
        else:
            # Assume it's a file path
            handler = logging.FileHandler(self.config.output)

        formatter: logging.Formatter
        if self.config.format == "json":
            formatter = JsonFormatter(redact_patterns=self.config.redact_fields)
        else:
            formatter = TextFormatter()

        handler.setFormatter(formatter)
        handler.addFilter(self.correlation_filter)
        logger.addHandler(handler)

        # Prevent propagation to root logger
        logger.propagate = False

    def set_correlation_id(self, correlation_id: str | None = None) -> str:
        """Set or generate a correlation ID for the current request.

        Args:
            correlation_id: Optional correlation ID. If None, generates a new one.

        Returns:
            The correlation ID that was set
        """
        if correlation_id is None:
            correlation_id = self.generate_correlation_id()
        self.correlation_filter.set_correlation_id(correlation_id)
        return correlation_id

    def clear_correlation_id(self) -> None:
        self.correlation_filter.clear_correlation_id()

    @staticmethod
    def generate_correlation_id() -> str:
        """Generate a unique correlation ID."""
        return f"req-{uuid.uuid4().hex[:16]}"

    def get_logger(self, name: str = "routekit") -> logging.Logger:
        return logging.getLogger(name)

    def log_dispatch(
        self,
        method: str,
        path: str,
        outcome: str,
        status_code: int,
        latency_ms: float,
        route_name: str | None = None,
        **kwargs: Any,
    ) -> None:
        """Log the outcome of dispatching a request.

        Args:
            method: HTTP method
            path: Request path
            outcome: Dispatch outcome (matched, not_found, method_not_allowed, error)
            status_code: HTTP status code of the response
            latency_ms: Request latency in milliseconds
            route_name: Name of the matched route, if any
            **kwargs: Additional fields to log
        """
        logger = self.get_logger()
        extra_fields: dict[str, Any] = {
            "event_type": "request_dispatched",
            "request": {"method": method, "path": path},
            "dispatch": {"outcome": outcome, "route_name": route_name},
            "response": {"status_code": status_code, "latency_ms": latency_ms},
        }
        extra_fields.update(kwargs)

        if status_code >= 500:
            log_level = logging.ERROR
        elif status_code >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            f"{method} {path} -> {status_code} ({latency_ms:.2f}ms)",
            extra={"extra_fields": extra_fields},
        )

    def log_url_generation_failure(self, route_name: str, error: str, **kwargs: Any) -> None:
        """Log a failed attempt to build a URL for a named route.

        Args:
            route_name: Requested route name
            error: Error message
            **kwargs: Additional fields to log
        """
        logger = self.get_logger()
        extra_fields: dict[str, Any] = {
            "event_type": "url_generation_failed",
            "route_name": route_name,
            "error": error,
        }
        extra_fields.update(kwargs)

        logger.warning(
            f"URL generation failed for route {route_name} - {error}",
            extra={"extra_fields": extra_fields},
        )

