"""Shared fixtures and helpers for services.gateway test package."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from nostr_sdk import Keys

from shrine.core.kvstore import MemoryStore
from shrine.services.common.configs import ForwardingConfig, RateLimitConfig
from shrine.services.common.relay_manager import ForwardOutcome, RelayConnectionManager
from shrine.services.gateway.configs import GatewayConfig
from shrine.services.gateway.service import Gateway
from shrine.utils.keys import ShrineKeysConfig


DEFAULT_RELAY = "wss://default.example.com"


def delivered_to_all(_event, targets):
    return {str(t): ForwardOutcome.delivered(str(t)) for t in targets}


@pytest.fixture
def relay_manager() -> MagicMock:
    """Relay manager mock that reports every target as delivered."""
    manager = MagicMock(spec=RelayConnectionManager)
    manager.forward = AsyncMock(side_effect=delivered_to_all)
    manager.close = AsyncMock()
    manager.live_connections = []
    return manager


@pytest.fixture
def gateway_config(service_keys: Keys) -> GatewayConfig:
    """Keyed gateway config with a small rate ceiling and one default relay."""
    return GatewayConfig(
        host="127.0.0.1",
        port=9999,
        rate_limit=RateLimitConfig(max_events=5),
        forwarding=ForwardingConfig(relays=[DEFAULT_RELAY]),
        keys=ShrineKeysConfig(keys=service_keys),
    )


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def gateway(
    gateway_config: GatewayConfig, relay_manager: MagicMock, store: MemoryStore, now: int
) -> Gateway:
    """Gateway with a fixed clock and mocked relay connections."""
    return Gateway(gateway_config, store=store, relay_manager=relay_manager, clock=lambda: now)


@pytest.fixture
def unkeyed_gateway(relay_manager: MagicMock, now: int) -> Gateway:
    config = GatewayConfig(keys=ShrineKeysConfig(keys=None))
    return Gateway(config, relay_manager=relay_manager, clock=lambda: now)


@pytest.fixture
def test_client(gateway: Gateway) -> TestClient:
    """FastAPI TestClient from the Gateway service."""
    return TestClient(gateway._build_app())
