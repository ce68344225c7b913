r"""Shrine -- a Nostr gateway that validates, re-signs and forwards events.

Clients submit signed events over HTTP or a relay WebSocket. The gateway
checks their id, signature, freshness, kind and size, optionally wraps them
in a note signed by its own identity, and pushes them to downstream relays
over persistent WebSocket connections.

Architecture follows a **diamond DAG** dependency structure where imports
flow strictly downward:

```text
              services         Gateway and shared engine components
             /   |   \
          core  nips  utils    Infrastructure, protocol, and helpers
             \   |   /
              models           Pure frozen dataclasses
```

Note:
    Top-level imports (``from shrine import Gateway``) use lazy loading and
    resolve on first access.
"""

import importlib
from importlib.metadata import version as _get_version


__version__ = _get_version("shrine")

__all__ = [
    "BaseService",
    "ConfigT",
    "Event",
    "EventValidator",
    "Gateway",
    "GatewayConfig",
    "IdentitySigner",
    "Logger",
    "RateLimiter",
    "RelayConnectionManager",
    "RelayTarget",
    "RelayUrlValidator",
    "ShrineError",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "BaseService": ("shrine.core", "BaseService"),
    "ConfigT": ("shrine.core", "ConfigT"),
    "Logger": ("shrine.core", "Logger"),
    "ShrineError": ("shrine.core", "ShrineError"),
    "Event": ("shrine.models", "Event"),
    "RelayTarget": ("shrine.models", "RelayTarget"),
    "EventValidator": ("shrine.services.common", "EventValidator"),
    "IdentitySigner": ("shrine.services.common", "IdentitySigner"),
    "RateLimiter": ("shrine.services.common", "RateLimiter"),
    "RelayConnectionManager": ("shrine.services.common", "RelayConnectionManager"),
    "RelayUrlValidator": ("shrine.services.common", "RelayUrlValidator"),
    "Gateway": ("shrine.services", "Gateway"),
    "GatewayConfig": ("shrine.services", "GatewayConfig"),
}


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attr_name)
        globals()[name] = value
        return value
    raise AttributeError(f"module 'shrine' has no attribute {name!r}")


def __dir__() -> list[str]:
    return __all__
