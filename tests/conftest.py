"""
Pytest configuration and shared fixtures for Shrine tests.

Provides:
- Environment isolation for the service keypair variables
- Real nostr_sdk keypairs and a signed-event factory
- A fixed wall clock for time-window checks
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any

import pytest
from nostr_sdk import EventBuilder, Keys, Kind, Tag, Timestamp

from shrine.utils.keys import ENV_PRIVATE_KEY, ENV_PUBLIC_KEY


NOW = 1_700_000_000

SignEvent = Callable[..., dict[str, Any]]


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)


@pytest.fixture(autouse=True)
def _isolate_key_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's real keypair out of every test."""
    monkeypatch.delenv(ENV_PRIVATE_KEY, raising=False)
    monkeypatch.delenv(ENV_PUBLIC_KEY, raising=False)


# ============================================================================
# Keys and Events
# ============================================================================


def sign_event(
    keys: Keys,
    *,
    kind: int = 1,
    content: str = "hello nostr",
    tags: list[list[str]] | None = None,
    created_at: int = NOW,
) -> dict[str, Any]:
    """Build and sign an event with nostr_sdk, returned as a decoded JSON object."""
    builder = EventBuilder(Kind(kind), content).custom_created_at(Timestamp.from_secs(created_at))
    if tags:
        builder = builder.tags([Tag.parse(tag) for tag in tags])
    return json.loads(builder.sign_with_keys(keys).as_json())


@pytest.fixture
def now() -> int:
    """Fixed wall-clock second shared by events and services under test."""
    return NOW


@pytest.fixture
def client_keys() -> Keys:
    """Keypair of the submitting client."""
    return Keys.generate()


@pytest.fixture
def service_keys() -> Keys:
    """Keypair of the gateway itself."""
    return Keys.generate()


@pytest.fixture
def make_event(client_keys: Keys) -> SignEvent:
    """Factory for events signed by ``client_keys``."""

    def _make(**kwargs: Any) -> dict[str, Any]:
        keys = kwargs.pop("keys", client_keys)
        return sign_event(keys, **kwargs)

    return _make


@pytest.fixture
def signed_event(make_event: SignEvent) -> dict[str, Any]:
    """A valid kind-1 event created at ``NOW``."""
    return make_event()
