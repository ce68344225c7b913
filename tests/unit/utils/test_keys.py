"""
Unit tests for utils.keys module.

Tests:
- load_keys_from_env() with hex, bech32, missing and invalid values
- ShrineKeysConfig environment loading and public key cross-check
"""

import pytest
from nostr_sdk import Keys
from pydantic import ValidationError

from shrine.utils.keys import (
    ENV_PRIVATE_KEY,
    ENV_PUBLIC_KEY,
    ShrineKeysConfig,
    load_keys_from_env,
)


@pytest.fixture
def keys():
    return Keys.generate()


class TestLoadKeysFromEnv:
    """load_keys_from_env()."""

    def test_hex(self, monkeypatch, keys):
        monkeypatch.setenv(ENV_PRIVATE_KEY, keys.secret_key().to_hex())
        loaded = load_keys_from_env(ENV_PRIVATE_KEY)
        assert loaded.public_key().to_hex() == keys.public_key().to_hex()

    def test_bech32(self, monkeypatch, keys):
        monkeypatch.setenv(ENV_PRIVATE_KEY, keys.secret_key().to_bech32())
        loaded = load_keys_from_env(ENV_PRIVATE_KEY)
        assert loaded.public_key().to_hex() == keys.public_key().to_hex()

    def test_surrounding_whitespace(self, monkeypatch, keys):
        monkeypatch.setenv(ENV_PRIVATE_KEY, f"  {keys.secret_key().to_hex()}\n")
        assert load_keys_from_env(ENV_PRIVATE_KEY) is not None

    def test_missing_required(self):
        with pytest.raises(ValueError, match=ENV_PRIVATE_KEY):
            load_keys_from_env(ENV_PRIVATE_KEY)

    def test_missing_optional(self):
        assert load_keys_from_env(ENV_PRIVATE_KEY, required=False) is None

    def test_empty_optional(self, monkeypatch):
        monkeypatch.setenv(ENV_PRIVATE_KEY, "   ")
        assert load_keys_from_env(ENV_PRIVATE_KEY, required=False) is None

    def test_invalid(self, monkeypatch):
        monkeypatch.setenv(ENV_PRIVATE_KEY, "not-a-key")
        with pytest.raises(ValueError, match="does not hold a valid private key"):
            load_keys_from_env(ENV_PRIVATE_KEY, required=False)


class TestShrineKeysConfig:
    """ShrineKeysConfig validation."""

    def test_unkeyed(self):
        assert ShrineKeysConfig().keys is None

    def test_loads_from_env(self, monkeypatch, keys):
        monkeypatch.setenv(ENV_PRIVATE_KEY, keys.secret_key().to_hex())
        config = ShrineKeysConfig()
        assert config.keys.public_key().to_hex() == keys.public_key().to_hex()

    def test_custom_env_var(self, monkeypatch, keys):
        monkeypatch.setenv("GATEWAY_NSEC", keys.secret_key().to_bech32())
        config = ShrineKeysConfig(privkey_env="GATEWAY_NSEC")
        assert config.keys is not None

    def test_explicit_keys_skip_env(self, keys):
        assert ShrineKeysConfig(keys=keys).keys is keys

    def test_matching_pubkey(self, monkeypatch, keys):
        monkeypatch.setenv(ENV_PRIVATE_KEY, keys.secret_key().to_hex())
        monkeypatch.setenv(ENV_PUBLIC_KEY, keys.public_key().to_hex().upper())
        assert ShrineKeysConfig().keys is not None

    def test_mismatched_pubkey(self, monkeypatch, keys):
        monkeypatch.setenv(ENV_PRIVATE_KEY, keys.secret_key().to_hex())
        monkeypatch.setenv(ENV_PUBLIC_KEY, Keys.generate().public_key().to_hex())
        with pytest.raises(ValidationError, match="does not match"):
            ShrineKeysConfig()

    def test_pubkey_without_private_key(self, monkeypatch, keys):
        monkeypatch.setenv(ENV_PUBLIC_KEY, keys.public_key().to_hex())
        assert ShrineKeysConfig().keys is None

    def test_invalid_env_value(self, monkeypatch):
        monkeypatch.setenv(ENV_PRIVATE_KEY, "garbage")
        with pytest.raises(ValidationError, match="valid private key"):
            ShrineKeysConfig()

    def test_keys_not_serialized(self, keys):
        dumped = ShrineKeysConfig(keys=keys).model_dump()
        assert "keys" not in dumped
        assert keys.secret_key().to_hex() not in repr(ShrineKeysConfig(keys=keys))
