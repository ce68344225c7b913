"""
Unit tests for core.exceptions module.

Tests:
- Hierarchy relationships used by the gateway error boundaries
- Codes, HTTP statuses and default messages
- Ingest code overrides
"""

from http import HTTPStatus

import pytest

from shrine.core.exceptions import (
    ConfigurationError,
    ConnectivityError,
    ContentTooLargeError,
    DuplicateEventError,
    InvalidEventIdError,
    InvalidRelayUrlError,
    InvalidSignatureError,
    KindNotAllowedError,
    MalformedJsonError,
    PayloadTooLargeError,
    PolicyError,
    RateLimitedError,
    RelaySSLError,
    RelayTimeoutError,
    RequestError,
    ShrineError,
    ShrineNotConfiguredError,
    StoreError,
    TimeLimitExceededError,
    TooManyTagsError,
    WrappingFailedError,
)
from shrine.models.constants import ErrorCode, IngestError


class TestHierarchy:
    """Subclass relationships."""

    @pytest.mark.parametrize(
        "exc",
        [
            InvalidEventIdError,
            InvalidSignatureError,
            TimeLimitExceededError,
            KindNotAllowedError,
            InvalidRelayUrlError,
        ],
    )
    def test_policy_errors(self, exc):
        assert issubclass(exc, PolicyError)
        assert issubclass(exc, ShrineError)

    def test_size_errors(self):
        assert issubclass(ContentTooLargeError, PayloadTooLargeError)
        assert issubclass(TooManyTagsError, PayloadTooLargeError)

    def test_connectivity_errors(self):
        assert issubclass(RelayTimeoutError, ConnectivityError)
        assert issubclass(RelaySSLError, ConnectivityError)

    def test_malformed_json_is_request_error(self):
        assert issubclass(MalformedJsonError, RequestError)


class TestCodesAndStatus:
    """Wire codes and HTTP statuses."""

    @pytest.mark.parametrize(
        ("exc", "code", "status"),
        [
            (RequestError, ErrorCode.INVALID_REQUEST, HTTPStatus.BAD_REQUEST),
            (InvalidRelayUrlError, ErrorCode.INVALID_RELAY_URL, HTTPStatus.BAD_REQUEST),
            (InvalidEventIdError, ErrorCode.INVALID_EVENT_ID, HTTPStatus.BAD_REQUEST),
            (InvalidSignatureError, ErrorCode.INVALID_SIGNATURE, HTTPStatus.BAD_REQUEST),
            (TimeLimitExceededError, ErrorCode.TIME_LIMIT_EXCEEDED, HTTPStatus.BAD_REQUEST),
            (KindNotAllowedError, ErrorCode.KIND_NOT_ALLOWED, HTTPStatus.BAD_REQUEST),
            (
                ShrineNotConfiguredError,
                ErrorCode.SHRINE_NOT_CONFIGURED,
                HTTPStatus.INTERNAL_SERVER_ERROR,
            ),
            (WrappingFailedError, ErrorCode.WRAPPING_FAILED, HTTPStatus.INTERNAL_SERVER_ERROR),
            (RateLimitedError, ErrorCode.RATE_LIMITED, HTTPStatus.TOO_MANY_REQUESTS),
            (DuplicateEventError, ErrorCode.DUPLICATE_EVENT, HTTPStatus.CONFLICT),
            (StoreError, ErrorCode.INTERNAL_ERROR, HTTPStatus.INTERNAL_SERVER_ERROR),
            (ContentTooLargeError, ErrorCode.INVALID_REQUEST, HTTPStatus.REQUEST_ENTITY_TOO_LARGE),
        ],
    )
    def test_code_and_status(self, exc, code, status):
        err = exc()
        assert err.code == code
        assert err.status == status

    def test_ingest_overrides(self):
        assert MalformedJsonError.ingest_code == IngestError.BAD_JSON
        assert ContentTooLargeError.ingest_code == IngestError.CONTENT_TOO_LARGE
        assert TooManyTagsError.ingest_code == IngestError.TOO_MANY_TAGS
        assert InvalidSignatureError.ingest_code is None


class TestMessages:
    """Default and custom messages."""

    def test_default_message(self):
        err = InvalidRelayUrlError()
        assert err.message == "Invalid relay URL. Only wss:// protocol is allowed"
        assert str(err) == err.message

    def test_custom_message(self):
        err = RequestError("Missing nostr_event field")
        assert err.message == "Missing nostr_event field"

    def test_empty_message_falls_back(self):
        assert ConfigurationError("").message == "Invalid configuration"

    def test_timeout_message(self):
        assert RelayTimeoutError().message == "timeout"

    def test_catchable_as_base(self):
        with pytest.raises(ShrineError):
            raise RateLimitedError()
