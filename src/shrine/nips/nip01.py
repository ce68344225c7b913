"""
NIP-01: signature verification and message frames.

Signature checks go through ``nostr_sdk`` (BIP-340 Schnorr over secp256k1).
The content address itself is recomputed in
[Event.compute_id()][shrine.models.event.Event.compute_id] so that a bad id
can be reported before the SDK ever sees the event.

Frames are JSON arrays whose first element names the message type:

Client to relay:
    ``["EVENT", <event>]``, ``["REQ", <sub_id>, <filter>...]``,
    ``["CLOSE", <sub_id>]``

Relay to client:
    ``["OK", <event_id>, <bool>, <message>]``, ``["EOSE", <sub_id>]``,
    ``["NOTICE", <message>]``
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from nostr_sdk import Event as NostrEvent

from shrine.models.event import Event, compact_json


logger = logging.getLogger("nips.nip01")


def verify_signature(event: Event) -> bool:
    """Return whether ``event.sig`` is a valid signature by ``event.pubkey``.

    Malformed hex, off-curve keys and any other SDK rejection count as an
    invalid signature; this function never raises for bad input.
    """
    try:
        return bool(NostrEvent.from_json(event.to_json()).verify())
    except Exception as e:  # noqa: BLE001  SDK raises NostrSdkError or ValueError variants
        logger.debug("signature_check_rejected id=%s error=%s", event.id[:16], e)
        return False


# ---------------------------------------------------------------------------
# Frames
# ---------------------------------------------------------------------------


class ClientMessageType(StrEnum):
    EVENT = "EVENT"
    REQ = "REQ"
    CLOSE = "CLOSE"


@dataclass(frozen=True, slots=True)
class ClientMessage:
    """A decoded client frame.

    Attributes:
        type: The frame type.
        payload: Remaining array elements after the type, unvalidated.
    """

    type: ClientMessageType
    payload: tuple[Any, ...]

    @property
    def subscription_id(self) -> str:
        """Subscription id of a ``REQ`` or ``CLOSE`` frame."""
        return self.payload[0]


def parse_client_message(raw: str | bytes) -> ClientMessage:
    """Decode a client frame.

    Raises:
        ValueError: If *raw* is not JSON, not a non-empty array, names an
            unknown type, or lacks the elements its type requires.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError("could not parse message as JSON") from e

    if not isinstance(data, list) or not data:
        raise ValueError("message must be a non-empty JSON array")

    head, *rest = data
    try:
        msg_type = ClientMessageType(head)
    except ValueError:
        raise ValueError(f"unsupported message type: {head!r}") from None

    if msg_type is ClientMessageType.EVENT:
        if len(rest) != 1 or not isinstance(rest[0], dict):
            raise ValueError("EVENT frame must carry exactly one event object")
    elif not rest or not isinstance(rest[0], str):
        raise ValueError(f"{msg_type} frame must start with a subscription id")

    return ClientMessage(type=msg_type, payload=tuple(rest))


def event_message(event: Event) -> str:
    """``["EVENT", <event>]`` with the event exactly as received."""
    return f'["EVENT",{event.to_json()}]'


def ok_message(event_id: str, accepted: bool, message: str = "") -> str:
    return compact_json(["OK", event_id, accepted, message])


def eose_message(subscription_id: str) -> str:
    return compact_json(["EOSE", subscription_id])


def notice_message(message: str) -> str:
    return compact_json(["NOTICE", message])
