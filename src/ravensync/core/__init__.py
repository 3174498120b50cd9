"""Core layer providing the infrastructure shared by the sync components.

Depends only on ``ravensync.models`` and is depended upon by
``ravensync.sync``.

Attributes:
    Logger: Structured logger supporting key=value and JSON output modes.
        See [Logger][ravensync.core.logger.Logger].
    CancelableTimer: Single-slot delayed callback used by the poll scheduler.
        See [CancelableTimer][ravensync.core.timer.CancelableTimer].
    MetricsServer: Prometheus ``/metrics`` HTTP endpoint.
        See [MetricsServer][ravensync.core.metrics.MetricsServer].
    load_yaml: Safe YAML loading with ``yaml.safe_load()``.
"""

from .exceptions import ConfigurationError, RavenSyncError, StoreError
from .logger import Logger, StructuredFormatter, format_kv_pairs, setup_logging
from .metrics import (
    CURSOR_SECONDS,
    EVENTS_APPENDED,
    EVENTS_RECEIVED,
    LISTEN_CALLS,
    PROFILE_REQUESTS,
    MetricsConfig,
    MetricsServer,
)
from .timer import CancelableTimer
from .yaml import load_yaml


__all__ = [
    "CURSOR_SECONDS",
    "EVENTS_APPENDED",
    "EVENTS_RECEIVED",
    "LISTEN_CALLS",
    "PROFILE_REQUESTS",
    "CancelableTimer",
    "ConfigurationError",
    "Logger",
    "MetricsConfig",
    "MetricsServer",
    "RavenSyncError",
    "StoreError",
    "StructuredFormatter",
    "format_kv_pairs",
    "load_yaml",
    "setup_logging",
]
