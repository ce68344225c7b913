"""
Re-signing events under the service identity.

[IdentitySigner.wrap()][shrine.services.common.signer.IdentitySigner.wrap]
produces a kind-1 note authored by the gateway whose ``content`` is the
original event serialized exactly as received. A reader recovers the original
with ``json.loads(wrapped.content)`` and can verify it independently.
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable

from nostr_sdk import EventBuilder, Keys, Kind, NostrSdkError, Timestamp

from shrine.core.exceptions import ShrineNotConfiguredError, WrappingFailedError
from shrine.models.constants import EventKind
from shrine.models.event import Event


class IdentitySigner:
    """Wrap events with the gateway's keypair.

    Args:
        keys: The service keypair, or ``None`` for an unkeyed gateway; every
            [wrap()][shrine.services.common.signer.IdentitySigner.wrap] then
            raises [ShrineNotConfiguredError][shrine.core.exceptions.ShrineNotConfiguredError].
        clock: Wall-clock source for ``created_at``.
    """

    def __init__(self, keys: Keys | None, *, clock: Callable[[], float] = time.time) -> None:
        self._keys = keys
        self._clock = clock
        self._public_key = keys.public_key().to_hex() if keys is not None else None

    @property
    def is_configured(self) -> bool:
        return self._keys is not None

    @property
    def public_key(self) -> str | None:
        """Hex public key of the service, ``None`` when unkeyed."""
        return self._public_key

    def require_configured(self) -> str:
        """Return the public key or raise ``ShrineNotConfiguredError``."""
        if self._public_key is None:
            raise ShrineNotConfiguredError()
        return self._public_key

    def wrap(self, event: Event, now: int | None = None) -> Event:
        """Sign a new note embedding *event*.

        The result is checked before it is returned: its id must match its
        contents, its signature must verify, it must be authored by the
        service key and its content must decode back to *event*.

        Raises:
            ShrineNotConfiguredError: No keypair is loaded.
            WrappingFailedError: Signing failed or the result did not pass
                its own checks.
        """
        public_key = self.require_configured()
        content = event.to_json()
        created_at = int(self._clock()) if now is None else now

        try:
            signed = (
                EventBuilder(Kind(int(EventKind.TEXT_NOTE)), content)
                .custom_created_at(Timestamp.from_secs(created_at))
                .sign_with_keys(self._keys)
            )
            verified = signed.verify()
            wrapped = Event.parse(json.loads(signed.as_json()))
        except (NostrSdkError, ValueError, TypeError) as e:
            raise WrappingFailedError() from e

        if (
            not verified
            or wrapped.pubkey != public_key
            or wrapped.compute_id() != wrapped.id
            or wrapped.content != content
            or json.loads(wrapped.content) != event.to_dict()
        ):
            raise WrappingFailedError()
        return wrapped
