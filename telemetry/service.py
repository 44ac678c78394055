"""
Telemetry service for structured logging and observability.

This module provides structured JSON logging with correlation IDs, latency
metrics for Redis commands, and optional OpenTelemetry spans around them.
The session store receives its metrics recorder by injection; the global
instance below is only a convenience for applications that want one.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Any, Optional, Dict, Protocol
from contextvars import ContextVar

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class MetricsRecorder(Protocol):
    """Anything that can record a named metric value with optional tags."""

    def record_metric(
        self,
        name: str,
        value: float,
        tags: Optional[Dict[str, str]] = None
    ) -> None:
        ...


class JSONFormatter(logging.Formatter):
    """
    Log formatter that outputs logs in JSON format.

    Each log entry contains:
    - timestamp: ISO 8601 formatted UTC timestamp
    - level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - message: The log message
    - logger: Name of the logger that produced the entry
    - request_id: Correlation ID of the request being served, if any

    Additional fields can be included via the 'extra_data' attribute
    on the log record.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "request_id": request_id_var.get(""),
        }

        if record.funcName and record.funcName != "<module>":
            log_data["function"] = record.funcName

        if hasattr(record, "extra_data") and record.extra_data:
            log_data.update(record.extra_data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class TelemetryService:
    """
    Centralized telemetry for the session store.

    This service provides:
    - Structured JSON logging with request correlation
    - Latency metrics for Redis commands (satisfies MetricsRecorder)
    - OpenTelemetry spans for Redis commands when an endpoint is configured
    """

    def __init__(self, settings: Optional[Any] = None, configure_logging: bool = True):
        """
        Initialize the telemetry service.

        Args:
            settings: Settings providing log_level, otel_endpoint and
                     otel_service_name
            configure_logging: Install the JSON handler on the root logger.
                     Applications that manage logging themselves pass False.
        """
        self.settings = settings
        self.tracer = None
        self._logger = logging.getLogger("telemetry")
        if configure_logging:
            self._setup_logging()
        self._setup_tracing()

    def _setup_logging(self) -> None:
        """Install a stdout handler with JSONFormatter on the root logger."""
        log_level_str = "INFO"
        if self.settings and hasattr(self.settings, "log_level"):
            log_level_str = self.settings.log_level

        log_level = getattr(logging, log_level_str.upper(), logging.INFO)

        root_logger = logging.getLogger()
        root_logger.setLevel(log_level)

        # Remove existing handlers to avoid duplicate logs
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

        stdout_handler = logging.StreamHandler(sys.stdout)
        stdout_handler.setLevel(log_level)
        stdout_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(stdout_handler)

        self._logger.info("Telemetry service initialized", extra={
            "extra_data": {"log_level": log_level_str}
        })

    def _setup_tracing(self) -> None:
        """
        Configure OpenTelemetry tracing.

        Tracing stays disabled unless an otel_endpoint is configured and the
        OpenTelemetry packages (the ``otel`` extra) are installed.
        """
        if not self.settings:
            return

        otel_endpoint = getattr(self.settings, "otel_endpoint", None)
        if not otel_endpoint:
            self._logger.debug("OpenTelemetry endpoint not configured, tracing disabled")
            return

        try:
            from opentelemetry import trace
            from opentelemetry.sdk.trace import TracerProvider
            from opentelemetry.sdk.trace.export import BatchSpanProcessor
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
            from opentelemetry.sdk.resources import Resource, SERVICE_NAME
        except ImportError as e:
            self._logger.warning(
                "OpenTelemetry packages not installed, tracing disabled",
                extra={"extra_data": {"error": str(e)}}
            )
            return

        service_name = getattr(self.settings, "otel_service_name", "redis-session-store")

        provider = TracerProvider(resource=Resource(attributes={
            SERVICE_NAME: service_name
        }))
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otel_endpoint)))
        trace.set_tracer_provider(provider)

        self.tracer = trace.get_tracer(service_name)

        self._logger.info("OpenTelemetry tracing configured", extra={
            "extra_data": {
                "otel_endpoint": otel_endpoint,
                "service_name": service_name
            }
        })

    def get_logger(self, name: str) -> logging.Logger:
        """Get a logger that writes through the configured JSON handler."""
        return logging.getLogger(name)

    def record_metric(
        self,
        name: str,
        value: float,
        tags: Optional[Dict[str, str]] = None
    ) -> None:
        """
        Record a custom metric.

        Args:
            name: Name of the metric (e.g. "session.redis.get")
            value: Metric value (latencies are in milliseconds)
            tags: Optional tags for metric dimensions
        """
        metric_data: Dict[str, Any] = {
            "metric_name": name,
            "metric_value": value,
        }

        if tags:
            metric_data["tags"] = tags

        self._logger.debug(
            f"Metric: {name}={value}",
            extra={"extra_data": metric_data}
        )

    def create_span(self, name: str, attributes: Optional[Dict[str, Any]] = None):
        """
        Create an OpenTelemetry span.

        Returns:
            A span context manager, or a no-op context manager if tracing is
            not configured
        """
        if self.tracer:
            return self.tracer.start_as_current_span(name, attributes=attributes)
        return _NoOpSpanContextManager()

    def create_external_service_span(
        self,
        service_name: str,
        operation: str,
        attributes: Optional[Dict[str, Any]] = None
    ):
        """
        Create a client span for a call to an external service.

        Args:
            service_name: Name of the external service (e.g., "redis")
            operation: The command being issued (e.g., "get", "setex")
            attributes: Optional additional attributes for the span
        """
        span_attributes: Dict[str, Any] = {
            "service.name": service_name,
            "operation.name": operation,
            "span.kind": "client",
        }

        if attributes:
            span_attributes.update(attributes)

        return self.create_span(f"{service_name}.{operation}", span_attributes)


class _NoOpSpanContextManager:
    """
    No-op context manager for when tracing is not configured.

    This allows code to use span context managers without checking
    if tracing is enabled.
    """

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return False

    def set_attribute(self, key: str, value: Any) -> None:
        pass

    def record_exception(self, exception: BaseException) -> None:
        pass


# Global telemetry service instance
_telemetry_service: Optional[TelemetryService] = None


def get_telemetry_service() -> Optional[TelemetryService]:
    """
    Get the global telemetry service instance.

    Returns:
        The telemetry service instance, or None if not initialized
    """
    return _telemetry_service


def initialize_telemetry(
    settings: Optional[Any] = None,
    configure_logging: bool = True
) -> TelemetryService:
    """Initialize the global telemetry service."""
    global _telemetry_service
    _telemetry_service = TelemetryService(settings, configure_logging=configure_logging)
    return _telemetry_service


def shutdown_telemetry() -> None:
    """Drop the global telemetry service instance."""
    global _telemetry_service
    _telemetry_service = None


def set_request_id(request_id: str) -> None:
    """Set the correlation ID included in log lines for the current context."""
    request_id_var.set(request_id)


def get_request_id() -> str:
    """Get the current correlation ID, or empty string if not set."""
    return request_id_var.get("")
