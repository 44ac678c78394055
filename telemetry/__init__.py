"""
Telemetry module for structured logging and observability.

This module provides:
- JSONFormatter for structured JSON log output
- TelemetryService for logging, Redis command latency metrics and tracing
- MetricsRecorder protocol accepted by the session store
"""

from telemetry.service import (
    JSONFormatter,
    MetricsRecorder,
    TelemetryService,
    get_telemetry_service,
    initialize_telemetry,
    shutdown_telemetry,
    set_request_id,
    get_request_id,
)

__all__ = [
    "JSONFormatter",
    "MetricsRecorder",
    "TelemetryService",
    "get_telemetry_service",
    "initialize_telemetry",
    "shutdown_telemetry",
    "set_request_id",
    "get_request_id",
]
