"""Unit tests for models.constants module."""

from shrine.models import INGEST_CODES, ErrorCode, EventKind, IngestError, ServiceName


class TestErrorCode:
    def test_values_are_stable(self):
        assert ErrorCode.INVALID_REQUEST == "INVALID_REQUEST"
        assert ErrorCode.INVALID_RELAY_URL == "INVALID_RELAY_URL"
        assert ErrorCode.SHRINE_NOT_CONFIGURED == "SHRINE_NOT_CONFIGURED"
        assert ErrorCode.WRAPPING_FAILED == "WRAPPING_FAILED"

    def test_every_client_code_maps_to_ingest(self):
        for code in ErrorCode:
            if code in (
                ErrorCode.SHRINE_NOT_CONFIGURED,
                ErrorCode.WRAPPING_FAILED,
                ErrorCode.INTERNAL_ERROR,
            ):
                assert code not in INGEST_CODES
            else:
                assert isinstance(INGEST_CODES[code], IngestError)


class TestEnums:
    def test_event_kinds(self):
        assert EventKind.TEXT_NOTE == 1
        assert EventKind.REPLACEABLE_LIST == 30011
        assert EventKind.LONG_FORM == 30023

    def test_ingest_codes_lower_case(self):
        assert all(code.value == code.value.lower() for code in IngestError)

    def test_service_name(self):
        assert ServiceName.GATEWAY == "gateway"
