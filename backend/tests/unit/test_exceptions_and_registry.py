# backend/tests/unit/test_exceptions_and_registry.py
from fastapi import HTTPException
import pytest

from courtside.core.enums import ServiceType, SupplierType
from courtside.core.exceptions import (
    InvalidServiceTypeException,
    ServiceException,
    SessionAlreadyFinalizedException,
    SessionNotFoundException,
    SessionRequestAlreadyProcessedException,
    SessionUnavailableException,
)
from courtside.models import (
    AcademyBatchSession,
    CoachSessionRequest,
    TurfGround,
)
from courtside.models.registry import (
    SERVICE_BINDINGS,
    get_binding,
    parse_service_type,
    service_types_for_supplier,
)


class TestExceptionMapping:
    @pytest.mark.parametrize(
        "exc, status, code",
        [
            (SessionNotFoundException("coach", "s1"), 404, "SESSION_NOT_FOUND"),
            (SessionUnavailableException("coach", "s1", "booked"), 409, "SESSION_UNAVAILABLE"),
            (
                SessionRequestAlreadyProcessedException("turf", "s1"),
                409,
                "SESSION_REQUEST_ALREADY_PROCESSED",
            ),
            (
                SessionAlreadyFinalizedException("turf", "s1", "completed"),
                422,
                "SESSION_ALREADY_FINALIZED",
            ),
            (InvalidServiceTypeException("gym"), 400, "INVALID_SERVICE_TYPE"),
        ],
    )
    def test_to_http_exception(self, exc, status, code):
        http_exc = exc.to_http_exception()

        assert isinstance(http_exc, HTTPException)
        assert http_exc.status_code == status
        assert http_exc.detail["code"] == code

    def test_details_identify_the_session(self):
        exc = SessionUnavailableException("coach", "coach_abc", "cancelled")

        assert exc.details == {
            "service_type": "coach",
            "session_id": "coach_abc",
            "state": "cancelled",
        }

    def test_already_processed_message(self):
        exc = SessionRequestAlreadyProcessedException("coach", "s1")

        assert exc.message == "Session request not found or already processed"

    def test_service_exception_is_500(self):
        http_exc = ServiceException("boom", code="X").to_http_exception()

        assert http_exc.status_code == 500
        assert http_exc.detail == {"message": "boom", "code": "X", "details": {}}


class TestRegistry:
    def test_every_service_type_is_bound(self):
        assert set(SERVICE_BINDINGS) == set(ServiceType)

    @pytest.mark.parametrize("raw", ["academy_batch", " ACADEMY_BATCH ", ServiceType.ACADEMY_BATCH])
    def test_parse_service_type(self, raw):
        assert parse_service_type(raw) is ServiceType.ACADEMY_BATCH

    @pytest.mark.parametrize("raw", ["gym", "", None, 3])
    def test_parse_rejects_unknown(self, raw):
        with pytest.raises(InvalidServiceTypeException) as exc_info:
            parse_service_type(raw)

        assert "coach" in exc_info.value.details["allowed"]

    def test_bindings_select_models(self):
        assert get_binding("academy_batch").session_model is AcademyBatchSession
        assert get_binding("coach").request_model is CoachSessionRequest
        assert get_binding("turf").entity_model is TurfGround
        assert get_binding("turf").uses_daily_slots
        assert not get_binding("academy_program").uses_daily_slots

    def test_session_id_prefixes(self):
        prefixes = {st.value: b.session_id_prefix for st, b in SERVICE_BINDINGS.items()}

        assert prefixes == {
            "academy_batch": "acad_batch",
            "academy_program": "acad_prog",
            "coach": "coach",
            "turf": "turf",
        }

    def test_service_types_for_supplier(self):
        assert service_types_for_supplier(SupplierType.ACADEMY) == [
            ServiceType.ACADEMY_BATCH,
            ServiceType.ACADEMY_PROGRAM,
        ]
        assert service_types_for_supplier(SupplierType.TURF) == [ServiceType.TURF]
