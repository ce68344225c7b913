"""Gateway service configuration models.

See Also:
    [Gateway][shrine.services.gateway.service.Gateway]: The service class that
        consumes these configurations.
    [BaseServiceConfig][shrine.core.base_service.BaseServiceConfig]: Base
        class providing ``interval``, ``max_consecutive_failures``,
        ``json_logs`` and ``metrics``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from shrine.core.base_service import BaseServiceConfig
from shrine.models.constants import EventKind
from shrine.services.common.configs import (
    ForwardingConfig,
    RateLimitConfig,
    ValidationConfig,
)
from shrine.utils.keys import ShrineKeysConfig


class IngestConfig(ValidationConfig):
    """Policy for ``/ingest`` and the relay WebSocket.

    Looser on time and kinds than ``/wrap``, but with size ceilings and a
    duplicate check.

    Attributes:
        max_content_bytes: Largest accepted ``content`` in UTF-8 bytes.
        max_tags: Largest accepted number of tags.
        duplicate_ttl: Seconds an accepted event id is remembered.
    """

    time_tolerance: int = Field(default=600, ge=0, le=86_400)
    allowed_kinds: frozenset[int] | None = Field(
        default=frozenset({EventKind.TEXT_NOTE, EventKind.REPLACEABLE_LIST, EventKind.LONG_FORM}),
    )
    max_content_bytes: int = Field(default=2048, ge=1)
    max_tags: int = Field(default=64, ge=0)
    duplicate_ttl: int = Field(default=86_400, ge=1)


class RelayInfoConfig(BaseModel):
    """Fields of the NIP-11 document served on ``GET /``."""

    name: str = "shrine"
    description: str = "Nostr gateway that validates, re-signs and forwards events"
    contact: str | None = None


class GatewayConfig(BaseServiceConfig):
    """Configuration for the gateway service.

    Attributes:
        host: Bind address for the HTTP server.
        port: Port for the HTTP server.
        cors_origins: Allowed CORS origins; empty disables CORS.
        max_body_bytes: Largest accepted request body or WebSocket frame.
        validation: Policy for ``/wrap``.
        ingest: Policy and limits for ``/ingest`` and WebSocket ``EVENT``.
        rate_limit: Per-sender admission limits.
        forwarding: Default relays and network timeouts.
        info: NIP-11 document fields.
        keys: Service keypair source (environment only).
    """

    host: str = Field(default="0.0.0.0", min_length=1, description="HTTP bind address")  # noqa: S104
    port: int = Field(default=8787, ge=1, le=65535, description="HTTP port")
    cors_origins: list[str] = Field(default_factory=list)
    max_body_bytes: int = Field(default=65_536, ge=1024)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    ingest: IngestConfig = Field(default_factory=IngestConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    forwarding: ForwardingConfig = Field(default_factory=ForwardingConfig)
    info: RelayInfoConfig = Field(default_factory=RelayInfoConfig)
    keys: ShrineKeysConfig = Field(default_factory=ShrineKeysConfig)
