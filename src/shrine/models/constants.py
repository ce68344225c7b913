"""Shared constants for the models layer.

Defines enumerations used across multiple layers. Placing them here avoids
circular dependencies between the models, core and services layers.

See Also:
    [shrine.core.exceptions][]: Attaches an
        [ErrorCode][shrine.models.constants.ErrorCode] to every gateway error.
    [shrine.services.gateway][]: Serializes these codes into HTTP responses.
"""

from __future__ import annotations

from enum import IntEnum, StrEnum


class ServiceName(StrEnum):
    """Canonical service identifiers used in logging and metrics."""

    GATEWAY = "gateway"


class EventKind(IntEnum):
    """Well-known Nostr event kinds handled by the gateway.

    Attributes:
        TEXT_NOTE: Kind 1 -- short text note (NIP-01). Wrapped events
            always use this kind.
        REPLACEABLE_LIST: Kind 30011 -- parameterized replaceable list
            accepted by ``/ingest``.
        LONG_FORM: Kind 30023 -- long-form content (NIP-23).
    """

    TEXT_NOTE = 1
    REPLACEABLE_LIST = 30_011
    LONG_FORM = 30_023


class ErrorCode(StrEnum):
    """Stable machine-readable error codes returned by ``/wrap`` and friends.

    The string values are part of the public HTTP contract and must never
    change once released.
    """

    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_RELAY_URL = "INVALID_RELAY_URL"
    INVALID_EVENT_ID = "INVALID_EVENT_ID"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    TIME_LIMIT_EXCEEDED = "TIME_LIMIT_EXCEEDED"
    KIND_NOT_ALLOWED = "KIND_NOT_ALLOWED"
    SHRINE_NOT_CONFIGURED = "SHRINE_NOT_CONFIGURED"
    WRAPPING_FAILED = "WRAPPING_FAILED"
    RATE_LIMITED = "RATE_LIMITED"
    DUPLICATE_EVENT = "DUPLICATE_EVENT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class IngestError(StrEnum):
    """Lower-case error codes used by the raw ``/ingest`` endpoint."""

    BAD_JSON = "bad_json"
    BAD_EVENT_FORMAT = "bad_event_format"
    CONTENT_TOO_LARGE = "content_too_large"
    TOO_MANY_TAGS = "too_many_tags"
    KIND_NOT_ALLOWED = "kind_not_allowed"
    BAD_ID = "bad_id"
    BAD_SIG = "bad_sig"
    BAD_CREATED_AT = "bad_created_at"
    INVALID_RELAY_URL = "invalid_relay_url"
    DUPLICATE = "duplicate"
    RATE_LIMITED = "rate_limited"
    INTERNAL = "internal_error"


# Mapping from the upper-case policy codes to the ingest vocabulary
INGEST_CODES: dict[ErrorCode, IngestError] = {
    ErrorCode.INVALID_REQUEST: IngestError.BAD_EVENT_FORMAT,
    ErrorCode.INVALID_RELAY_URL: IngestError.INVALID_RELAY_URL,
    ErrorCode.INVALID_EVENT_ID: IngestError.BAD_ID,
    ErrorCode.INVALID_SIGNATURE: IngestError.BAD_SIG,
    ErrorCode.TIME_LIMIT_EXCEEDED: IngestError.BAD_CREATED_AT,
    ErrorCode.KIND_NOT_ALLOWED: IngestError.KIND_NOT_ALLOWED,
    ErrorCode.RATE_LIMITED: IngestError.RATE_LIMITED,
    ErrorCode.DUPLICATE_EVENT: IngestError.DUPLICATE,
}


EVENT_KIND_MAX = 65_535
