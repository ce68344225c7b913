"""
NIP-11 relay information document served by the gateway.

Clients that request ``GET /`` with ``Accept: application/nostr+json``
receive a [RelayInformation][shrine.nips.nip11.RelayInformation] document
describing the gateway and the limits its ingest pipeline enforces.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, StrictBool, StrictInt


NIP11_CONTENT_TYPE = "application/nostr+json"


class RelayLimitation(BaseModel):
    """Server-imposed limits advertised in the document.

    Every field is optional and omitted from the output when unset.
    """

    model_config = ConfigDict(frozen=True)

    max_message_length: StrictInt | None = None
    max_content_length: StrictInt | None = None
    max_event_tags: StrictInt | None = None
    created_at_lower_limit: StrictInt | None = None
    created_at_upper_limit: StrictInt | None = None
    auth_required: StrictBool | None = None
    payment_required: StrictBool | None = None
    restricted_writes: StrictBool | None = None


class RelayInformation(BaseModel):
    """A NIP-11 relay information document."""

    model_config = ConfigDict(frozen=True)

    name: str | None = None
    description: str | None = None
    pubkey: str | None = None
    contact: str | None = None
    supported_nips: list[int] = [1, 11]
    software: str | None = None
    version: str | None = None
    limitation: RelayLimitation | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the wire, dropping unset fields."""
        return self.model_dump(exclude_none=True, mode="json")


def wants_relay_info(accept: str | None) -> bool:
    """Whether an ``Accept`` header asks for the NIP-11 document."""
    if not accept:
        return False
    media_types = (part.split(";", 1)[0].strip().lower() for part in accept.split(","))
    return NIP11_CONTENT_TYPE in media_types
