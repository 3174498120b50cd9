"""
Prometheus metrics collection and HTTP exposition.

Defines module-level metric objects (singletons, thread-safe) shared by the
sync components. Recording is gated by ``MetricsConfig.enabled`` at the call
sites so that a disabled configuration costs nothing beyond a flag check.

The ``MetricsServer`` provides an async HTTP endpoint (via aiohttp) for
Prometheus scraping and is started by the orchestrator's async context
manager when enabled.

Architecture:
    EVENTS_RECEIVED:   Entities delivered by the relay client, per event kind.
    EVENTS_APPENDED:   Entities that were new and landed in a collection.
    LISTEN_CALLS:      ``listen`` dispatches issued by the poll scheduler.
    PROFILE_REQUESTS:  Public keys passed to ``load_profiles``.
    CURSOR_SECONDS:    Current ``since`` cursor (seconds) of the scheduler.
"""

from __future__ import annotations

from aiohttp import web
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    generate_latest,
)
from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class MetricsConfig(BaseModel):
    """Configuration for metric recording and the ``/metrics`` endpoint.

    The endpoint is only started when ``enabled`` is True.
    """

    enabled: bool = Field(default=False, description="Enable metrics collection")
    port: int = Field(default=8000, ge=1024, le=65535, description="Metrics HTTP port")
    host: str = Field(default="127.0.0.1", description="Metrics HTTP bind address")
    path: str = Field(default="/metrics", description="Metrics endpoint path")


# ---------------------------------------------------------------------------
# Sync Metrics
# ---------------------------------------------------------------------------

EVENTS_RECEIVED = Counter(
    "ravensync_events_received",
    "Entities delivered by the relay client",
    ["kind"],
)

EVENTS_APPENDED = Counter(
    "ravensync_events_appended",
    "Entities merged into a collection as new or replacing records",
    ["kind"],
)

LISTEN_CALLS = Counter(
    "ravensync_listen_calls",
    "listen() calls dispatched by the poll scheduler",
)

PROFILE_REQUESTS = Counter(
    "ravensync_profile_requests",
    "Public keys requested through load_profiles()",
)

CURSOR_SECONDS = Gauge(
    "ravensync_cursor_seconds",
    "Current since cursor of the poll scheduler, in seconds",
)


# ---------------------------------------------------------------------------
# HTTP Server
# ---------------------------------------------------------------------------


class MetricsServer:
    """Async HTTP server exposing a Prometheus-compatible endpoint.

    Example:
        server = MetricsServer(MetricsConfig(enabled=True, port=8001))
        await server.start()
        # ... sync runs ...
        await server.stop()
    """

    def __init__(self, config: MetricsConfig) -> None:
        self._config = config
        self._runner: web.AppRunner | None = None

    @property
    def is_running(self) -> bool:
        return self._runner is not None

    async def start(self) -> None:
        """Start listening for scrape requests; no-op when metrics are disabled.

        Raises:
            OSError: If the port is already in use or binding fails.
        """
        if not self._config.enabled or self._runner is not None:
            return

        app = web.Application()
        app.router.add_get(self._config.path, self._handle_metrics)

        runner = web.AppRunner(app, access_log=None)
        await runner.setup()
        site = web.TCPSite(runner, self._config.host, self._config.port)
        await site.start()
        self._runner = runner

    async def stop(self) -> None:
        """Stop the HTTP server. Safe to call when never started."""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None

    @staticmethod
    async def _handle_metrics(_request: web.Request) -> web.Response:
        """Serve the latest metrics in Prometheus exposition format."""
        return web.Response(
            body=generate_latest(),
            headers={"Content-Type": CONTENT_TYPE_LATEST},
        )
