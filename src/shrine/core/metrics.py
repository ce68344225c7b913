"""
Prometheus metrics and the ``/metrics`` scrape endpoint.

Metric objects are module-level singletons shared by every component.
[BaseService][shrine.core.base_service.BaseService] records cycle counts and
durations, the gateway counts requests per route and outcome, and the relay
manager counts forwarding outcomes.

Architecture:
    SERVICE_INFO:            Static metadata set once at startup.
    SERVICE_GAUGE:           Point-in-time values (current state).
    SERVICE_COUNTER:         Cumulative totals.
    CYCLE_DURATION_SECONDS:  Histogram of ``run()`` cycle latency.
    REQUESTS_TOTAL:          Gateway requests by route and response code.
    RELAY_FORWARDS_TOTAL:    Per-relay forwarding attempts by outcome.
"""

from __future__ import annotations

from aiohttp import web
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)
from pydantic import BaseModel, Field


class MetricsConfig(BaseModel):
    """Prometheus endpoint settings.

    The scrape server is only started when ``enabled`` is true. Use host
    ``0.0.0.0`` in containers.
    """

    enabled: bool = Field(default=False, description="Enable metrics collection")
    port: int = Field(default=8000, ge=1024, le=65535, description="Metrics HTTP port")
    host: str = Field(default="127.0.0.1", description="Metrics HTTP bind address")
    path: str = Field(default="/metrics", description="Metrics endpoint path")


# ---------------------------------------------------------------------------
# Service metrics
# ---------------------------------------------------------------------------

SERVICE_INFO = Info(
    "service",
    "Service information and metadata",
)

CYCLE_DURATION_SECONDS = Histogram(
    "cycle_duration_seconds",
    "Duration of service cycle in seconds",
    ["service"],
    buckets=(0.1, 0.5, 1, 5, 10, 30, 60, 120, 300),
)

SERVICE_GAUGE = Gauge(
    "service_gauge",
    "Service gauge values (point-in-time state)",
    ["service", "name"],
)

SERVICE_COUNTER = Counter(
    "service_counter",
    "Service counter values (cumulative totals)",
    ["service", "name"],
)


# ---------------------------------------------------------------------------
# Gateway metrics
# ---------------------------------------------------------------------------

REQUESTS_TOTAL = Counter(
    "gateway_requests_total",
    "Gateway requests by route and result code",
    ["route", "code"],
)

RELAY_FORWARDS_TOTAL = Counter(
    "relay_forwards_total",
    "Per-relay forwarding attempts by outcome",
    ["outcome"],
)


# ---------------------------------------------------------------------------
# HTTP Server
# ---------------------------------------------------------------------------


class MetricsServer:
    """aiohttp server exposing the Prometheus exposition format.

    Example:
        server = MetricsServer(MetricsConfig(enabled=True, port=9101))
        await server.start()
        ...
        await server.stop()
    """

    def __init__(self, config: MetricsConfig) -> None:
        self._config = config
        self._runner: web.AppRunner | None = None

    @property
    def is_running(self) -> bool:
        return self._runner is not None

    async def start(self) -> None:
        """Bind the scrape endpoint; no-op when metrics are disabled.

        Raises:
            OSError: If the port is already in use.
        """
        if not self._config.enabled or self._runner is not None:
            return

        app = web.Application()
        app.router.add_get(self._config.path, self._handle_metrics)

        runner = web.AppRunner(app, access_log=None)
        await runner.setup()
        await web.TCPSite(runner, self._config.host, self._config.port).start()
        self._runner = runner

    async def stop(self) -> None:
        """Release the port. Safe to call more than once."""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None

    @staticmethod
    async def _handle_metrics(_request: web.Request) -> web.Response:
        return web.Response(
            body=generate_latest(),
            headers={"Content-Type": CONTENT_TYPE_LATEST},
        )


async def start_metrics_server(config: MetricsConfig | None = None) -> MetricsServer:
    """Create and start a [MetricsServer][shrine.core.metrics.MetricsServer]."""
    server = MetricsServer(config or MetricsConfig())
    await server.start()
    return server
