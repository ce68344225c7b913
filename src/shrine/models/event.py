"""
Immutable Nostr event record with canonical serialization.

[Event][shrine.models.event.Event] is built from untrusted JSON via
[parse()][shrine.models.event.Event.parse], which enforces the NIP-01 field
types but does *not* check the id or the signature -- that is the job of
[EventValidator][shrine.services.common.validation.EventValidator]. Keeping
the two steps apart lets the gateway report a malformed request differently
from a policy violation.

The original JSON object is kept alongside the typed fields so that
[to_json()][shrine.models.event.Event.to_json] reproduces the event exactly as
the client sent it (key order and any extra members included). Wrapping embeds
that string verbatim.

See Also:
    [shrine.nips.nip01][]: Signature verification and relay message frames.
    [IdentitySigner][shrine.services.common.signer.IdentitySigner]: Produces
        a new service-owned event embedding ``to_json()``.
"""

from __future__ import annotations

import copy
import hashlib
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar

from ._validation import validate_instance, validate_int, validate_str, validate_tags


def compact_json(obj: Any) -> str:
    """Serialize *obj* as compact UTF-8 JSON (no whitespace, no ASCII escaping)."""
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False)


@dataclass(frozen=True, slots=True)
class Event:
    """Immutable Nostr event.

    Attributes:
        id: Content address claimed by the sender (lowercase hex SHA-256).
        pubkey: Author public key (32-byte x-only key, hex).
        created_at: Unix timestamp in seconds.
        kind: Integer event kind.
        tags: Ordered sequence of ordered string sequences.
        content: Arbitrary payload text.
        sig: Schnorr signature over ``id`` (hex).

    Examples:
        ```python
        event = Event.parse(json.loads(body))
        event.compute_id() == event.id   # content address matches
        event.to_json()                  # exactly what the client sent
        ```

    Note:
        ``tags`` is stored as a tuple of tuples so the instance stays
        hashable; the canonical serialization renders them as JSON arrays.
    """

    REQUIRED_FIELDS: ClassVar[tuple[str, ...]] = (
        "id",
        "pubkey",
        "created_at",
        "kind",
        "tags",
        "content",
        "sig",
    )

    id: str
    pubkey: str
    created_at: int
    kind: int
    tags: tuple[tuple[str, ...], ...]
    content: str
    sig: str
    _raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False, hash=False)

    def __post_init__(self) -> None:
        validate_str(self.id, "id")
        validate_str(self.pubkey, "pubkey")
        validate_int(self.created_at, "created_at")
        validate_int(self.kind, "kind")
        validate_instance(self.tags, tuple, "tags")
        validate_str(self.content, "content")
        validate_str(self.sig, "sig")

        if not self._raw:
            object.__setattr__(self, "_raw", self._fields_dict())

    @classmethod
    def parse(cls, data: Any) -> Event:
        """Build an event from a decoded JSON value.

        Args:
            data: The decoded JSON object received from a client.

        Returns:
            A new [Event][shrine.models.event.Event]; ``data`` is deep-copied
            so later mutation by the caller cannot leak into the record.

        Raises:
            ValueError: If *data* is not an object or a required member is
                missing.
            TypeError: If a member has the wrong JSON type.
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"event must be a JSON object, got {type(data).__name__}")

        missing = [name for name in cls.REQUIRED_FIELDS if name not in data]
        if missing:
            raise ValueError(f"event is missing required fields: {', '.join(missing)}")

        validate_tags(data["tags"], "tags")

        return cls(
            id=data["id"],
            pubkey=data["pubkey"],
            created_at=data["created_at"],
            kind=data["kind"],
            tags=tuple(tuple(tag) for tag in data["tags"]),
            content=data["content"],
            sig=data["sig"],
            _raw=copy.deepcopy(dict(data)),
        )

    def _fields_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "pubkey": self.pubkey,
            "created_at": self.created_at,
            "kind": self.kind,
            "tags": [list(tag) for tag in self.tags],
            "content": self.content,
            "sig": self.sig,
        }

    def canonical_json(self) -> str:
        """Return the NIP-01 serialization that the id commits to.

        ``[0, pubkey, created_at, kind, tags, content]`` as compact UTF-8 JSON.
        """
        return compact_json(
            [0, self.pubkey, self.created_at, self.kind, [list(t) for t in self.tags], self.content]
        )

    def compute_id(self) -> str:
        """Recompute the content address from the signed fields."""
        return hashlib.sha256(self.canonical_json().encode("utf-8")).hexdigest()

    def to_dict(self) -> dict[str, Any]:
        """Return a deep copy of the event object as received."""
        return copy.deepcopy(self._raw)

    def to_json(self) -> str:
        """Return the compact JSON form of the event as received."""
        return compact_json(self._raw)

    @property
    def content_size(self) -> int:
        """Size of ``content`` in UTF-8 bytes."""
        return len(self.content.encode("utf-8"))
