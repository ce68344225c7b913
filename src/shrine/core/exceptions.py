"""Shrine exception hierarchy.

Every user-visible failure carries a stable
[ErrorCode][shrine.models.constants.ErrorCode], an HTTP status and a
human-readable message, so the gateway boundary can translate any
``ShrineError`` without inspecting its type. Anything that is *not* a
``ShrineError`` is an internal fault and is reported as ``INTERNAL_ERROR``.

Exception hierarchy:

```text
ShrineError (base -- never raised directly)
├── ConfigurationError        -- config validation, missing keys, bad YAML
├── RequestError              -- malformed body, missing field (400)
│   └── MalformedJsonError
├── PayloadTooLargeError      -- ingest size ceilings (413)
│   ├── ContentTooLargeError
│   └── TooManyTagsError
├── PolicyError               -- event or target rejected by policy (400)
│   ├── InvalidEventIdError
│   ├── InvalidSignatureError
│   ├── TimeLimitExceededError
│   ├── KindNotAllowedError
│   └── InvalidRelayUrlError
├── ShrineNotConfiguredError  -- service keypair missing (500)
├── WrappingFailedError       -- signed event failed its self-check (500)
├── RateLimitedError          -- sender over its per-window ceiling (429)
├── DuplicateEventError       -- event id already accepted (409)
├── StoreError                -- key-value store failure (500)
└── ConnectivityError         -- relay unreachable, network failures
    ├── RelayTimeoutError     -- connect or send timed out
    └── RelaySSLError         -- certificate issues
```

Note:
    [ConnectivityError][shrine.core.exceptions.ConnectivityError] never
    reaches a client: the
    [RelayConnectionManager][shrine.services.common.relay_manager.RelayConnectionManager]
    folds it into a per-relay
    [ForwardOutcome][shrine.services.common.relay_manager.ForwardOutcome].
"""

from __future__ import annotations

from http import HTTPStatus
from typing import ClassVar

from shrine.models.constants import ErrorCode, IngestError


class ShrineError(Exception):
    """Base exception for all Shrine errors.

    Never raised directly -- always use a specific subclass.

    Attributes:
        code: Stable machine-readable error code.
        status: HTTP status used when the error crosses the HTTP boundary.
        message: Human-readable description, safe to return to clients.
        ingest_code: Lower-case code used by ``/ingest`` when it differs
            from the one derived from ``code``.
    """

    code: ClassVar[ErrorCode] = ErrorCode.INTERNAL_ERROR
    ingest_code: ClassVar[IngestError | None] = None
    status: ClassVar[HTTPStatus] = HTTPStatus.INTERNAL_SERVER_ERROR
    default_message: ClassVar[str] = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(ShrineError):
    """Invalid or missing configuration (YAML, env vars, CLI flags)."""

    default_message = "Invalid configuration"


class ShrineNotConfiguredError(ShrineError):
    """The service keypair is not available.

    An operational misconfiguration, not a client mistake: always a 5xx,
    independent of the submitted event.
    """

    code = ErrorCode.SHRINE_NOT_CONFIGURED
    default_message = "Shrine keys are not configured"


# ---------------------------------------------------------------------------
# Request shape
# ---------------------------------------------------------------------------


class RequestError(ShrineError):
    """Malformed request body or missing required field."""

    code = ErrorCode.INVALID_REQUEST
    status = HTTPStatus.BAD_REQUEST
    default_message = "Invalid request"


class MalformedJsonError(RequestError):
    """The request body is not valid JSON."""

    ingest_code = IngestError.BAD_JSON
    default_message = "Invalid JSON body"


class PayloadTooLargeError(ShrineError):
    """An ingested event exceeds a size ceiling."""

    code = ErrorCode.INVALID_REQUEST
    ingest_code = IngestError.CONTENT_TOO_LARGE
    status = HTTPStatus.REQUEST_ENTITY_TOO_LARGE
    default_message = "Event too large"


class ContentTooLargeError(PayloadTooLargeError):
    default_message = "Event content is too large"


class TooManyTagsError(PayloadTooLargeError):
    ingest_code = IngestError.TOO_MANY_TAGS
    default_message = "Event has too many tags"


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------


class PolicyError(ShrineError):
    """Base for events or relay targets rejected by the gateway policy."""

    status = HTTPStatus.BAD_REQUEST
    default_message = "Rejected by policy"


class InvalidEventIdError(PolicyError):
    """The event id does not match the hash of its canonical form."""

    code = ErrorCode.INVALID_EVENT_ID
    default_message = "Invalid event ID"


class InvalidSignatureError(PolicyError):
    """The signature does not verify (malformed hex and bad points included)."""

    code = ErrorCode.INVALID_SIGNATURE
    default_message = "Invalid signature"


class TimeLimitExceededError(PolicyError):
    """``created_at`` lies outside the accepted clock-skew window."""

    code = ErrorCode.TIME_LIMIT_EXCEEDED
    default_message = "Event timestamp is outside the allowed time window"


class KindNotAllowedError(PolicyError):
    """The event kind is not in the configured allow-list."""

    code = ErrorCode.KIND_NOT_ALLOWED
    default_message = "Event kind is not allowed"


class InvalidRelayUrlError(PolicyError):
    """A forwarding target is not a string or uses a disallowed scheme."""

    code = ErrorCode.INVALID_RELAY_URL
    default_message = "Invalid relay URL. Only wss:// protocol is allowed"


# ---------------------------------------------------------------------------
# Signing
# ---------------------------------------------------------------------------


class WrappingFailedError(ShrineError):
    """The wrapped event did not pass its own verification."""

    code = ErrorCode.WRAPPING_FAILED
    default_message = "Failed to wrap event"


# ---------------------------------------------------------------------------
# Admission
# ---------------------------------------------------------------------------


class RateLimitedError(ShrineError):
    """The sender exceeded its per-window admission ceiling."""

    code = ErrorCode.RATE_LIMITED
    status = HTTPStatus.TOO_MANY_REQUESTS
    default_message = "Rate limit exceeded"


class DuplicateEventError(ShrineError):
    """The event id has already been accepted."""

    code = ErrorCode.DUPLICATE_EVENT
    status = HTTPStatus.CONFLICT
    default_message = "Duplicate event"


class StoreError(ShrineError):
    """The external key-value store failed."""

    default_message = "Internal server error"


# ---------------------------------------------------------------------------
# Connectivity
# ---------------------------------------------------------------------------


class ConnectivityError(ShrineError):
    """Base for all relay/network connectivity errors."""

    status = HTTPStatus.BAD_GATEWAY
    default_message = "Relay unreachable"


class RelayTimeoutError(ConnectivityError):
    """Connection or send timed out."""

    default_message = "timeout"


class RelaySSLError(ConnectivityError):
    """TLS/SSL certificate or handshake failure."""

    default_message = "ssl error"
