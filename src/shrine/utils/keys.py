"""Service keypair loading.

The gateway signs wrapped events with its own Nostr identity. The private
key is read from the environment (hex or ``nsec1`` bech32) and never from
configuration files.

Unlike most secrets, the key is optional at startup: a gateway without keys
still serves ``/health``, ``/ingest`` and the relay WebSocket, and answers
``/wrap`` and ``/shrine/pubkey`` with ``SHRINE_NOT_CONFIGURED``.

Warning:
    Never log or serialize a loaded ``Keys`` object.

Examples:
    ```python
    os.environ["SHRINE_PRIVKEY_HEX"] = "5dab08..."  # pragma: allowlist secret
    config = ShrineKeysConfig()
    config.keys.public_key().to_hex()
    ```
"""

from __future__ import annotations

import logging
import os
from typing import Any

from nostr_sdk import Keys, NostrSdkError
from pydantic import BaseModel, ConfigDict, Field, model_validator


ENV_PRIVATE_KEY = "SHRINE_PRIVKEY_HEX"  # pragma: allowlist secret
ENV_PUBLIC_KEY = "SHRINE_PUBKEY_HEX"

logger = logging.getLogger("utils.keys")


def load_keys_from_env(env_var: str, *, required: bool = True) -> Keys | None:
    """Parse the private key held in *env_var*.

    Args:
        env_var: Name of the environment variable.
        required: Raise instead of returning ``None`` when the variable is
            unset or empty.

    Raises:
        ValueError: If the variable is required but missing, or holds a
            value that is not a valid private key.
    """
    value = os.getenv(env_var, "").strip()
    if not value:
        if required:
            raise ValueError(
                f"{env_var} environment variable is required. "
                "Generate one with: openssl rand -hex 32"
            )
        return None

    try:
        return Keys.parse(value)
    except NostrSdkError as e:
        raise ValueError(f"{env_var} does not hold a valid private key") from e


class ShrineKeysConfig(BaseModel):
    """Where to find the service keypair, and the loaded keys.

    ``keys`` is filled from ``privkey_env`` during validation unless passed
    explicitly. When ``pubkey_env`` is set too, it must match the public key
    derived from the private key.

    Attributes:
        privkey_env: Environment variable holding the private key.
        pubkey_env: Environment variable holding the expected public key
            (hex), used only as a consistency check.
        keys: The loaded keypair, or ``None`` if the gateway runs unkeyed.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    privkey_env: str = Field(default=ENV_PRIVATE_KEY, min_length=1)
    pubkey_env: str = Field(default=ENV_PUBLIC_KEY, min_length=1)
    keys: Keys | None = Field(default=None, exclude=True, repr=False)

    @model_validator(mode="before")
    @classmethod
    def _load_keys_from_env(cls, data: Any) -> Any:
        if isinstance(data, dict) and "keys" not in data:
            data = dict(data)
            data["keys"] = load_keys_from_env(
                data.get("privkey_env", ENV_PRIVATE_KEY), required=False
            )
        return data

    @model_validator(mode="after")
    def _check_public_key(self) -> ShrineKeysConfig:
        expected = os.getenv(self.pubkey_env, "").strip().lower()
        if self.keys is None:
            if expected:
                logger.warning(
                    "public_key_without_private_key pubkey_env=%s privkey_env=%s",
                    self.pubkey_env,
                    self.privkey_env,
                )
            return self
        if expected and expected != self.keys.public_key().to_hex():
            raise ValueError(
                f"{self.pubkey_env} does not match the public key derived from {self.privkey_env}"
            )
        return self
