"""Unit tests for services.common.configs module."""

import pytest
from pydantic import ValidationError

from shrine.services.common.configs import ForwardingConfig, ValidationConfig


class TestValidationConfig:
    def test_defaults(self):
        config = ValidationConfig()
        assert config.time_tolerance == 300
        assert config.allowed_kinds == frozenset({1, 30023})

    def test_list_coerced(self):
        assert ValidationConfig(allowed_kinds=[1, 1, 7]).allowed_kinds == frozenset({1, 7})

    def test_null_allows_everything(self):
        assert ValidationConfig(allowed_kinds=None).allowed_kinds is None

    def test_empty_rejected(self):
        with pytest.raises(ValidationError, match="must not be empty"):
            ValidationConfig(allowed_kinds=[])

    def test_out_of_range(self):
        with pytest.raises(ValidationError, match="out of range"):
            ValidationConfig(allowed_kinds=[1, 70000])

    def test_negative_tolerance(self):
        with pytest.raises(ValidationError):
            ValidationConfig(time_tolerance=-1)


class TestForwardingConfig:
    def test_defaults(self):
        config = ForwardingConfig()
        assert config.relays == []
        assert config.connect_timeout == 5.0
        assert config.send_timeout == 5.0

    def test_relays_normalized(self):
        assert ForwardingConfig(relays=[" wss://relay.example.com "]).relays == [
            "wss://relay.example.com"
        ]

    def test_plaintext_relay_rejected(self):
        with pytest.raises(ValidationError, match="wss://"):
            ForwardingConfig(relays=["ws://relay.example.com"])

    def test_zero_timeout_rejected(self):
        with pytest.raises(ValidationError):
            ForwardingConfig(connect_timeout=0)
