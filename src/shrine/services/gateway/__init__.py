"""Nostr gateway service.

See Also:
    [Gateway][shrine.services.gateway.service.Gateway]: The service class.
    [GatewayConfig][shrine.services.gateway.configs.GatewayConfig]: Service
        configuration.
"""

from .configs import GatewayConfig, IngestConfig, RelayInfoConfig
from .service import Gateway, ingest_code


__all__ = ["Gateway", "GatewayConfig", "IngestConfig", "RelayInfoConfig", "ingest_code"]
