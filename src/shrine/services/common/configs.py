"""Configuration models for the shared gateway components.

Each component takes its own small Pydantic model so that partial YAML
overrides keep the remaining defaults.

Examples:
    ```yaml
    validation:
      time_tolerance: 300
      allowed_kinds: [1, 30023]
    rate_limit:
      max_events: 30
    forwarding:
      relays: [wss://relay.damus.io]
      connect_timeout: 3.0
    ```
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from shrine.models.constants import EVENT_KIND_MAX, EventKind
from shrine.models.relay import RelayTarget


class ValidationConfig(BaseModel):
    """Acceptance policy applied by
    [EventValidator][shrine.services.common.validation.EventValidator].

    Attributes:
        time_tolerance: Largest accepted ``|now - created_at|`` in seconds.
            The window is closed: a skew equal to the tolerance passes.
        allowed_kinds: Accepted event kinds; ``None`` accepts every kind.
    """

    time_tolerance: int = Field(default=300, ge=0, le=86_400)
    allowed_kinds: frozenset[int] | None = Field(
        default=frozenset({EventKind.TEXT_NOTE, EventKind.LONG_FORM}),
    )

    @field_validator("allowed_kinds")
    @classmethod
    def _check_kinds(cls, v: frozenset[int] | None) -> frozenset[int] | None:
        if v is None:
            return v
        if not v:
            raise ValueError("allowed_kinds must not be empty; use null to allow every kind")
        out_of_range = sorted(k for k in v if not 0 <= k <= EVENT_KIND_MAX)
        if out_of_range:
            raise ValueError(f"allowed_kinds out of range 0..{EVENT_KIND_MAX}: {out_of_range}")
        return v


class RateLimitConfig(BaseModel):
    """Fixed-window admission limits per sender public key."""

    enabled: bool = True
    window: int = Field(default=60, ge=1, le=3600, description="Window length in seconds")
    max_events: int = Field(default=60, ge=1, description="Admissions allowed per window")
    bucket_ttl: int = Field(default=90, ge=1, description="Seconds a bucket survives its last write")

    @model_validator(mode="after")
    def _ttl_covers_window(self) -> RateLimitConfig:
        if self.bucket_ttl < self.window:
            raise ValueError(
                f"bucket_ttl ({self.bucket_ttl}) must not be shorter than window ({self.window})"
            )
        return self


class ForwardingConfig(BaseModel):
    """Downstream relays and network timeouts.

    Attributes:
        relays: Targets used by ``/ingest`` and the relay WebSocket when the
            request names none.
        connect_timeout: Seconds allowed for a WebSocket handshake.
        send_timeout: Seconds allowed for a single frame write.
    """

    relays: list[str] = Field(default_factory=list)
    connect_timeout: float = Field(default=5.0, gt=0.0, le=60.0)
    send_timeout: float = Field(default=5.0, gt=0.0, le=60.0)

    @field_validator("relays")
    @classmethod
    def _check_relays(cls, v: list[str]) -> list[str]:
        return [RelayTarget(url).url for url in v]
