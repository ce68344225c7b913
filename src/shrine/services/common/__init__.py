"""Gateway engine components shared by the HTTP and WebSocket surfaces.

Attributes:
    configs: Pydantic models for validation policy, rate limits and
        forwarding.
    validation: [EventValidator][shrine.services.common.validation.EventValidator]
        and [RelayUrlValidator][shrine.services.common.validation.RelayUrlValidator].
    signer: [IdentitySigner][shrine.services.common.signer.IdentitySigner],
        which wraps events under the service identity.
    rate_limit: [RateLimiter][shrine.services.common.rate_limit.RateLimiter],
        fixed-window admission per sender.
    relay_manager: [RelayConnectionManager][shrine.services.common.relay_manager.RelayConnectionManager],
        the single owner of outbound relay connections.
"""

from .configs import ForwardingConfig, RateLimitConfig, ValidationConfig
from .rate_limit import RateLimiter
from .relay_manager import (
    ConnectionState,
    ForwardOutcome,
    RelayConnection,
    RelayConnectionManager,
)
from .signer import IdentitySigner
from .validation import EventValidator, RelayUrlValidator


__all__ = [
    "ConnectionState",
    "EventValidator",
    "ForwardOutcome",
    "ForwardingConfig",
    "IdentitySigner",
    "RateLimitConfig",
    "RateLimiter",
    "RelayConnection",
    "RelayConnectionManager",
    "RelayUrlValidator",
    "ValidationConfig",
]
