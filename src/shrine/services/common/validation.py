"""
Event and relay-target validation.

[EventValidator][shrine.services.common.validation.EventValidator] decides
whether a parsed event is acceptable under a
[ValidationConfig][shrine.services.common.configs.ValidationConfig]; the
checks run in a fixed order and the first failure wins:

1. the claimed id equals the hash of the canonical serialization
2. the signature verifies against the claimed public key
3. ``created_at`` lies within ``time_tolerance`` seconds of now
4. the kind is allowed

[RelayUrlValidator][shrine.services.common.validation.RelayUrlValidator]
turns a client-supplied list of relay URLs into
[RelayTarget][shrine.models.relay.RelayTarget] objects, all or nothing.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

from shrine.core.exceptions import (
    InvalidEventIdError,
    InvalidRelayUrlError,
    InvalidSignatureError,
    KindNotAllowedError,
    TimeLimitExceededError,
)
from shrine.models.event import Event
from shrine.models.relay import RelayTarget
from shrine.nips.nip01 import verify_signature

from .configs import ValidationConfig


class EventValidator:
    """Apply an acceptance policy to events.

    Pure apart from reading the clock; both the clock and the signature
    verifier are injectable.

    Examples:
        ```python
        validator = EventValidator(ValidationConfig(time_tolerance=600))
        validator.validate(event)          # raises on the first failure
        validator.validate(event, now=ts)  # fixed clock
        ```
    """

    def __init__(
        self,
        config: ValidationConfig | None = None,
        *,
        verifier: Callable[[Event], bool] = verify_signature,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config or ValidationConfig()
        self._verifier = verifier
        self._clock = clock

    @property
    def config(self) -> ValidationConfig:
        return self._config

    def validate(self, event: Event, now: int | None = None) -> None:
        """Raise the first policy violation found in *event*.

        Raises:
            InvalidEventIdError: The id does not match the event contents.
            InvalidSignatureError: The signature does not verify.
            TimeLimitExceededError: ``created_at`` is too far from *now*.
            KindNotAllowedError: The kind is not allowed.
        """
        if event.compute_id() != event.id:
            raise InvalidEventIdError()

        if not self._verifier(event):
            raise InvalidSignatureError()

        current = int(self._clock()) if now is None else now
        if abs(current - event.created_at) > self._config.time_tolerance:
            raise TimeLimitExceededError(
                f"Event timestamp is outside the allowed time window "
                f"(±{self._config.time_tolerance}s)"
            )

        allowed = self._config.allowed_kinds
        if allowed is not None and event.kind not in allowed:
            raise KindNotAllowedError(f"Event kind {event.kind} is not allowed")


class RelayUrlValidator:
    """Validate client-supplied forwarding targets.

    ``None`` and the empty list both mean "no targets". Any other value must
    be a list whose every element is a ``wss://`` URL; one bad element
    rejects the whole list. Repeated URLs are collapsed, first occurrence
    kept.
    """

    def validate(self, urls: Any) -> list[RelayTarget]:
        """Return the targets named by *urls*.

        Raises:
            InvalidRelayUrlError: *urls* is not a list or holds an invalid URL.
        """
        if urls is None:
            return []
        if not isinstance(urls, list):
            raise InvalidRelayUrlError()

        targets: dict[str, RelayTarget] = {}
        for url in urls:
            try:
                target = RelayTarget(url)
            except ValueError:
                raise InvalidRelayUrlError() from None
            targets.setdefault(target.url, target)
        return list(targets.values())
