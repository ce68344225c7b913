"""Frozen dataclasses for Nostr events and relay targets.

The models layer is the foundation of the diamond DAG. It has no
dependencies on any other Shrine package. Every model uses
``@dataclass(frozen=True, slots=True)`` and validates in ``__post_init__`` or
a ``parse`` classmethod so invalid instances never escape construction.

Attributes:
    Event: Immutable Nostr event with NIP-01 canonical serialization and
        content-address hashing.
    RelayTarget: ``wss://`` relay URL validated against RFC 3986.
    ErrorCode: Stable wire error codes for the gateway.
    IngestError: Lower-case error codes used by ``/ingest``.
    EventKind: Well-known kinds handled by the gateway.
"""

from .constants import (
    EVENT_KIND_MAX,
    INGEST_CODES,
    ErrorCode,
    EventKind,
    IngestError,
    ServiceName,
)
from .event import Event, compact_json
from .relay import RelayTarget


__all__ = [
    "EVENT_KIND_MAX",
    "INGEST_CODES",
    "ErrorCode",
    "Event",
    "EventKind",
    "IngestError",
    "RelayTarget",
    "ServiceName",
    "compact_json",
]
