"""
Abstract base class for long-running Shrine services.

``BaseService[ConfigT]`` owns the service lifecycle: a structured
[Logger][shrine.core.logger.Logger], graceful shutdown through an
``asyncio.Event``, interval-based cycling with
[run_forever()][shrine.core.base_service.BaseService.run_forever], a
consecutive-failure limit, and Prometheus bookkeeping.

The gateway serves requests from a background task; its ``run()`` cycle only
reports statistics, so a failing cycle means the server itself stopped.

See Also:
    [BaseServiceConfig][shrine.core.base_service.BaseServiceConfig]: Fields
        shared by every service configuration.
    [Gateway][shrine.services.gateway.Gateway]: The concrete service.
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from pathlib import Path
from types import TracebackType
from typing import Any, ClassVar, Generic, Self, TypeVar, cast

from pydantic import BaseModel, Field, ValidationError

from shrine.models.constants import ServiceName

from .exceptions import ConfigurationError
from .logger import Logger
from .metrics import (
    CYCLE_DURATION_SECONDS,
    SERVICE_COUNTER,
    SERVICE_GAUGE,
    SERVICE_INFO,
    MetricsConfig,
)
from .yaml import load_yaml


class BaseServiceConfig(BaseModel):
    """Configuration shared by all services that run in a loop.

    Subclass to add service-specific fields.
    """

    interval: float = Field(
        default=60.0,
        ge=1.0,
        description="Seconds between run cycles",
    )
    max_consecutive_failures: int = Field(
        default=5,
        ge=0,
        description="Stop after this many consecutive errors (0 = unlimited)",
    )
    json_logs: bool = Field(
        default=False,
        description="Emit JSON log records instead of key=value pairs",
    )
    metrics: MetricsConfig = Field(
        default_factory=MetricsConfig,
        description="Prometheus metrics configuration",
    )


ConfigT = TypeVar("ConfigT", bound=BaseServiceConfig)


class BaseService(ABC, Generic[ConfigT]):
    """Abstract base class for all Shrine services.

    Subclasses set ``SERVICE_NAME`` and ``CONFIG_CLASS`` and implement
    [run()][shrine.core.base_service.BaseService.run].

    Attributes:
        SERVICE_NAME: Identifier used in logging and metrics labels.
        CONFIG_CLASS: Pydantic model used by the factory methods.
        _config: Typed service configuration.
        _logger: [Logger][shrine.core.logger.Logger] named after the service.
        _shutdown_event: Set once shutdown has been requested.

    Note:
        Lifecycle: ``async with service:`` then
        [run_forever()][shrine.core.base_service.BaseService.run_forever],
        or a single [run()][shrine.core.base_service.BaseService.run] with
        ``--once``.
    """

    SERVICE_NAME: ClassVar[ServiceName]
    CONFIG_CLASS: ClassVar[type[BaseServiceConfig]]

    def __init__(self, config: ConfigT | None = None) -> None:
        self._config: ConfigT = (
            config if config is not None else cast("ConfigT", self.CONFIG_CLASS())
        )
        self._logger = Logger(self.SERVICE_NAME, json_output=self._config.json_logs)
        self._shutdown_event = asyncio.Event()

    @property
    def config(self) -> ConfigT:
        """The typed service configuration (read-only)."""
        return self._config

    @abstractmethod
    async def run(self) -> None:
        """Execute one bounded cycle of the service's work."""
        ...

    def request_shutdown(self) -> None:
        """Request a graceful shutdown; safe to call from signal handlers."""
        self._shutdown_event.set()

    @property
    def is_running(self) -> bool:
        """Whether shutdown has not been requested yet."""
        return not self._shutdown_event.is_set()

    async def wait(self, timeout: float) -> bool:  # noqa: ASYNC109
        """Sleep up to *timeout* seconds; return ``True`` if shutdown interrupted it."""
        try:
            await asyncio.wait_for(self._shutdown_event.wait(), timeout=timeout)
            return True
        except TimeoutError:
            return False

    async def run_forever(self) -> None:
        """Call [run()][shrine.core.base_service.BaseService.run] every ``interval`` seconds.

        Exits on [request_shutdown()][shrine.core.base_service.BaseService.request_shutdown]
        or once ``max_consecutive_failures`` cycles in a row have raised
        (``0`` disables the limit). ``CancelledError``, ``KeyboardInterrupt``
        and ``SystemExit`` propagate without being counted.

        Tracked metrics: ``cycles_success``, ``cycles_failed``,
        ``errors_{ExceptionType}``, ``consecutive_failures``,
        ``last_cycle_timestamp`` and ``cycle_duration_seconds``.
        """
        interval = self._config.interval
        max_failures = self._config.max_consecutive_failures
        metrics_enabled = self._config.metrics.enabled

        if metrics_enabled:
            SERVICE_INFO.info({"service": self.SERVICE_NAME})

        self._logger.info(
            "run_forever_started",
            interval=interval,
            max_consecutive_failures=max_failures,
        )

        consecutive_failures = 0
        while self.is_running:
            cycle_start = time.monotonic()
            try:
                await self.run()
            except (asyncio.CancelledError, KeyboardInterrupt, SystemExit):
                raise
            except Exception as e:  # top-level error boundary for run_forever
                consecutive_failures += 1
                self.inc_counter("cycles_failed")
                self.inc_counter(f"errors_{type(e).__name__}")
                self.set_gauge("consecutive_failures", consecutive_failures)
                self._logger.error(
                    "run_cycle_error",
                    error=str(e),
                    error_type=type(e).__name__,
                    consecutive_failures=consecutive_failures,
                )
                if 0 < max_failures <= consecutive_failures:
                    self._logger.critical(
                        "max_consecutive_failures_reached",
                        failures=consecutive_failures,
                        limit=max_failures,
                    )
                    break
            else:
                consecutive_failures = 0
                self.inc_counter("cycles_success")
                self.set_gauge("consecutive_failures", 0)
                self.set_gauge("last_cycle_timestamp", time.time())
                if metrics_enabled:
                    CYCLE_DURATION_SECONDS.labels(service=self.SERVICE_NAME).observe(
                        time.monotonic() - cycle_start
                    )
                self._logger.debug("cycle_completed", next_cycle_s=interval)

            if await self.wait(interval):
                break

        self._logger.info("run_forever_stopped")

    # -------------------------------------------------------------------------
    # Factory Methods
    # -------------------------------------------------------------------------

    @classmethod
    def from_yaml(cls, config_path: str | Path, **kwargs: Any) -> Self:
        """Build a service from a YAML file via [load_yaml()][shrine.core.yaml.load_yaml]."""
        return cls.from_dict(load_yaml(config_path), **kwargs)

    @classmethod
    def from_dict(cls, data: dict[str, Any], **kwargs: Any) -> Self:
        """Build a service from a configuration mapping.

        Raises:
            ConfigurationError: If *data* does not validate against
                ``CONFIG_CLASS``.
        """
        try:
            config = cast("ConfigT", cls.CONFIG_CLASS(**data))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid {cls.SERVICE_NAME} configuration: {e}") from e
        return cls(config=config, **kwargs)

    # -------------------------------------------------------------------------
    # Context Manager
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> Self:
        self._shutdown_event.clear()
        self._logger.info("service_started")
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> None:
        self._shutdown_event.set()
        self._logger.info("service_stopped")

    # -------------------------------------------------------------------------
    # Custom Metrics
    # -------------------------------------------------------------------------

    def set_gauge(self, name: str, value: float) -> None:
        """Set ``service_gauge{service, name}``; no-op when metrics are disabled."""
        if not self._config.metrics.enabled:
            return
        SERVICE_GAUGE.labels(service=self.SERVICE_NAME, name=name).set(value)

    def inc_counter(self, name: str, value: float = 1) -> None:
        """Increment ``service_counter{service, name}``; no-op when metrics are disabled."""
        if not self._config.metrics.enabled:
            return
        SERVICE_COUNTER.labels(service=self.SERVICE_NAME, name=name).inc(value)
