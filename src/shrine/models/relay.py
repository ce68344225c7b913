"""
Validated forwarding target URL.

A [RelayTarget][shrine.models.relay.RelayTarget] is a downstream relay the
gateway may push events to. Only the secure WebSocket scheme is accepted:
the gateway never forwards signed events over plaintext transports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from rfc3986 import uri_reference
from rfc3986.exceptions import UnpermittedComponentError, ValidationError
from rfc3986.validators import Validator


@dataclass(frozen=True, slots=True)
class RelayTarget:
    """Immutable, scheme-restricted relay URL.

    The URL is kept exactly as supplied (after surrounding whitespace is
    stripped) so that responses echo what the caller asked for; it is only
    *checked* against RFC 3986, not rewritten.

    Attributes:
        url: The relay URL, e.g. ``wss://relay.damus.io``.
        host: Host component, brackets stripped for IPv6.
        port: Explicit port or ``None``.

    Raises:
        ValueError: If the URL is not a string, uses another scheme, has no
            host, or carries a query string or fragment.

    Examples:
        ```python
        RelayTarget("wss://relay.damus.io").host   # 'relay.damus.io'
        RelayTarget("ws://relay.damus.io")         # ValueError
        ```
    """

    SCHEME: ClassVar[str] = "wss"

    url: str
    host: str = field(init=False)
    port: int | None = field(init=False)

    def __post_init__(self) -> None:
        if not isinstance(self.url, str):
            raise ValueError(f"Relay URL must be a string, got {type(self.url).__name__}")
        if "\x00" in self.url:
            raise ValueError("Relay URL contains null bytes")

        url = self.url.strip()
        if not url.startswith(f"{self.SCHEME}://"):
            raise ValueError(f"Invalid scheme: only {self.SCHEME}:// is allowed")

        uri = uri_reference(url)
        if not uri.host:
            raise ValueError("Relay URL must include a host")
        validator = (
            Validator()
            .require_presence_of("scheme", "host")
            .allow_schemes(self.SCHEME)
            .check_validity_of("scheme", "host", "port", "path")
        )
        try:
            validator.validate(uri)
        except UnpermittedComponentError:
            raise ValueError(f"Invalid scheme: only {self.SCHEME}:// is allowed") from None
        except ValidationError as e:
            raise ValueError(f"Invalid URL: {e}") from None

        if uri.query:
            raise ValueError(f"Relay URL must not contain a query string: ?{uri.query}")
        if uri.fragment:
            raise ValueError(f"Relay URL must not contain a fragment: #{uri.fragment}")

        # Bypass frozen restriction to set computed fields
        object.__setattr__(self, "url", url)
        object.__setattr__(self, "host", uri.host.strip("[]"))
        object.__setattr__(self, "port", int(uri.port) if uri.port else None)

    def __str__(self) -> str:
        return self.url
