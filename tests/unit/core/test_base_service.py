"""
Unit tests for core.base_service module.

Tests:
- BaseServiceConfig defaults and validation
- Factory methods (from_yaml, from_dict)
- run_forever() cycling, shutdown and consecutive failure limit
- wait() interruptible sleep
- Context manager support
- Metric helpers are no-ops when metrics are disabled
"""

import asyncio
from unittest.mock import patch

import pytest
from pydantic import Field

from shrine.core.base_service import BaseService, BaseServiceConfig
from shrine.core.exceptions import ConfigurationError
from shrine.core.metrics import MetricsConfig


class ConcreteServiceConfig(BaseServiceConfig):
    """Test configuration inheriting from BaseServiceConfig."""

    max_items: int = Field(default=100, ge=1)


class ConcreteService(BaseService[ConcreteServiceConfig]):
    """Test implementation that stops itself after ``stop_after`` cycles."""

    SERVICE_NAME = "test_service"
    CONFIG_CLASS = ConcreteServiceConfig

    def __init__(self, config: ConcreteServiceConfig | None = None, *, stop_after: int = 1):
        super().__init__(config)
        self.run_count = 0
        self.stop_after = stop_after
        self.should_fail = False

    async def run(self):
        self.run_count += 1
        if self.run_count >= self.stop_after:
            self.request_shutdown()
        if self.should_fail:
            raise RuntimeError("Simulated failure")


class TestBaseServiceConfig:
    """BaseServiceConfig defaults and validation."""

    def test_defaults(self):
        config = BaseServiceConfig()
        assert config.interval == 60.0
        assert config.max_consecutive_failures == 5
        assert config.json_logs is False
        assert config.metrics.enabled is False

    def test_interval_minimum(self):
        with pytest.raises(ValueError):
            BaseServiceConfig(interval=0.5)

    def test_max_consecutive_failures_zero_allowed(self):
        assert BaseServiceConfig(max_consecutive_failures=0).max_consecutive_failures == 0


class TestFactories:
    """from_dict() and from_yaml()."""

    def test_from_dict(self):
        service = ConcreteService.from_dict({"interval": 5, "max_items": 7})
        assert service.config.interval == 5
        assert service.config.max_items == 7

    def test_from_dict_invalid(self):
        with pytest.raises(ConfigurationError, match="test_service"):
            ConcreteService.from_dict({"max_items": 0})

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "service.yaml"
        path.write_text("interval: 2\nmax_items: 3\n")
        service = ConcreteService.from_yaml(path)
        assert service.config.max_items == 3

    def test_from_dict_passes_kwargs(self):
        service = ConcreteService.from_dict({}, stop_after=4)
        assert service.stop_after == 4


class TestLifecycle:
    """Shutdown, waiting and the context manager."""

    def test_default_config(self):
        assert ConcreteService().config.max_items == 100

    def test_request_shutdown(self):
        service = ConcreteService()
        assert service.is_running
        service.request_shutdown()
        assert not service.is_running

    async def test_wait_times_out(self):
        assert await ConcreteService().wait(0.01) is False

    async def test_wait_interrupted(self):
        service = ConcreteService()
        asyncio.get_running_loop().call_later(0.01, service.request_shutdown)
        assert await service.wait(5) is True

    async def test_context_manager(self):
        service = ConcreteService()
        service.request_shutdown()
        async with service as entered:
            assert entered is service
            assert service.is_running
        assert not service.is_running


class TestRunForever:
    """run_forever() cycling."""

    async def test_runs_until_shutdown(self):
        service = ConcreteService(stop_after=3)
        with patch.object(service, "wait", side_effect=[False, False, True]):
            await service.run_forever()
        assert service.run_count == 3

    async def test_stops_after_max_failures(self):
        service = ConcreteService(ConcreteServiceConfig(max_consecutive_failures=2), stop_after=99)
        service.should_fail = True
        with patch.object(service, "wait", return_value=False):
            await service.run_forever()
        assert service.run_count == 2

    async def test_unlimited_failures(self):
        service = ConcreteService(ConcreteServiceConfig(max_consecutive_failures=0), stop_after=4)
        service.should_fail = True
        with patch.object(service, "wait", return_value=False):
            await service.run_forever()
        assert service.run_count == 4

    async def test_cancelled_error_propagates(self):
        service = ConcreteService()
        with (
            patch.object(service, "run", side_effect=asyncio.CancelledError),
            pytest.raises(asyncio.CancelledError),
        ):
            await service.run_forever()


class TestMetricHelpers:
    """set_gauge() and inc_counter()."""

    def test_noop_when_disabled(self):
        service = ConcreteService()
        with patch("shrine.core.base_service.SERVICE_GAUGE") as gauge:
            service.set_gauge("x", 1)
        gauge.labels.assert_not_called()

    def test_records_when_enabled(self):
        service = ConcreteService(ConcreteServiceConfig(metrics=MetricsConfig(enabled=True)))
        with patch("shrine.core.base_service.SERVICE_COUNTER") as counter:
            service.inc_counter("requests_total", 3)
        counter.labels.assert_called_once_with(service="test_service", name="requests_total")
        counter.labels.return_value.inc.assert_called_once_with(3)
