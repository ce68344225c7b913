"""Nostr protocol pieces used by the gateway.

Attributes:
    nip01: Signature verification through ``nostr_sdk`` and the
        client/relay message frames.
    nip11: The relay information document served on ``GET /``.
"""

from .nip01 import (
    ClientMessage,
    ClientMessageType,
    eose_message,
    event_message,
    notice_message,
    ok_message,
    parse_client_message,
    verify_signature,
)
from .nip11 import NIP11_CONTENT_TYPE, RelayInformation, RelayLimitation, wants_relay_info


__all__ = [
    "NIP11_CONTENT_TYPE",
    "ClientMessage",
    "ClientMessageType",
    "RelayInformation",
    "RelayLimitation",
    "eose_message",
    "event_message",
    "notice_message",
    "ok_message",
    "parse_client_message",
    "verify_signature",
    "wants_relay_info",
]
