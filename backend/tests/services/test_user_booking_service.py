# backend/tests/services/test_user_booking_service.py
"""
Cross-type booking views.

Each store is read on its own thread and session, so these tests use the
file-backed SQLite engine from conftest rather than an in-memory database.
"""

from datetime import date, time
from decimal import Decimal
from types import SimpleNamespace

import pytest

from courtside.core.enums import BookingTimeStatus, ServiceType, SessionState, SupplierType
from courtside.core.exceptions import ServiceException, ValidationException
from courtside.repositories.session_repository import SessionRepository
from courtside.services.user_booking_service import (
    UserBookingService,
    booking_time_status,
    normalize_session,
)

TODAY = date(2026, 7, 1)


@pytest.fixture
def entities(make_entity):
    return {
        ServiceType.ACADEMY_BATCH: make_entity(
            ServiceType.ACADEMY_BATCH,
            owner_id="academy-1",
            name="Cricket Batch",
            sport="cricket",
            location="North Stand",
            price=Decimal("1500.00"),
        ),
        ServiceType.ACADEMY_PROGRAM: make_entity(
            ServiceType.ACADEMY_PROGRAM, owner_id="academy-1", name="Summer Program"
        ),
        ServiceType.COACH: make_entity(ServiceType.COACH, owner_id="coach-1", name="Batting"),
        ServiceType.TURF: make_entity(ServiceType.TURF, owner_id="turf-1", name="Ground 5"),
    }


@pytest.fixture
def bookings(entities, make_session):
    def add(service_type, day, start, end, user_id="user-1", **fields):
        return make_session(
            service_type, entities[service_type], day, start, end, user_id=user_id, **fields
        )

    return {
        "program_past": add(
            ServiceType.ACADEMY_PROGRAM, date(2026, 6, 30), time(16), time(17), is_completed=True
        ),
        "turf_today": add(ServiceType.TURF, TODAY, time(6), time(7)),
        "coach_today": add(ServiceType.COACH, TODAY, time(18), time(19, 30)),
        "batch_later": add(ServiceType.ACADEMY_BATCH, date(2026, 7, 3), time(16), time(17)),
        "turf_cancelled": add(
            ServiceType.TURF, date(2026, 7, 10), time(6), time(7), is_cancelled=True
        ),
        "someone_else": add(ServiceType.COACH, date(2026, 7, 2), time(18), time(19), "user-2"),
        "open": add(ServiceType.ACADEMY_BATCH, date(2026, 7, 8), time(16), time(17), None),
    }


@pytest.fixture
def service(db, session_factory):
    return UserBookingService(db, session_factory=session_factory, clock=lambda: TODAY)


def _ids(rows):
    return [row.booking_id for row in rows]


class TestGetAllUserBookings:
    def test_merges_every_store_in_chronological_order(self, service, bookings):
        rows = service.get_all_user_bookings("user-1")

        assert _ids(rows) == [
            bookings[key].session_id
            for key in (
                "program_past",
                "turf_today",
                "coach_today",
                "batch_later",
                "turf_cancelled",
            )
        ]

    def test_normalized_fields(self, service, bookings):
        rows = {row.booking_id: row for row in service.get_all_user_bookings("user-1")}

        batch = rows[bookings["batch_later"].session_id]
        assert batch.session_type == ServiceType.ACADEMY_BATCH
        assert batch.supplier_type == SupplierType.ACADEMY
        assert batch.supplier_id == "academy-1"
        assert batch.supplier_name == "Cricket Batch"
        assert batch.price == Decimal("1500.00")
        assert (batch.sport, batch.location) == ("cricket", "North Stand")
        assert batch.status == BookingTimeStatus.UPCOMING
        assert batch.session_state == SessionState.BOOKED
        assert batch.duration == 60
        assert batch.original_data["session_id"] == batch.booking_id

        coach = rows[bookings["coach_today"].session_id]
        assert coach.duration == 90
        assert coach.status == BookingTimeStatus.TODAY

        past = rows[bookings["program_past"].session_id]
        assert past.status == BookingTimeStatus.PAST
        assert past.session_state == SessionState.COMPLETED

    def test_upcoming_includes_today(self, service, bookings):
        rows = service.get_all_user_bookings("user-1", {"status": "upcoming"})

        assert _ids(rows) == [
            bookings[key].session_id
            for key in ("turf_today", "coach_today", "batch_later", "turf_cancelled")
        ]

    def test_today_only(self, service, bookings):
        rows = service.get_all_user_bookings("user-1", {"status": "today"})

        assert [row.session_type for row in rows] == [ServiceType.TURF, ServiceType.COACH]

    def test_past_is_newest_first(self, service, entities, make_session, bookings):
        older = make_session(
            ServiceType.TURF,
            entities[ServiceType.TURF],
            date(2026, 6, 12),
            time(6),
            time(7),
            user_id="user-1",
        )

        rows = service.get_all_user_bookings("user-1", {"status": "past"})

        assert _ids(rows) == [bookings["program_past"].session_id, older.session_id]

    def test_supplier_filter(self, service, bookings):
        rows = service.get_all_user_bookings("user-1", {"supplier": "academy"})

        assert {row.session_type for row in rows} == {
            ServiceType.ACADEMY_BATCH,
            ServiceType.ACADEMY_PROGRAM,
        }

    def test_supplier_id_filter(self, service, bookings):
        rows = service.get_all_user_bookings("user-1", {"supplier_id": "coach-1"})

        assert _ids(rows) == [bookings["coach_today"].session_id]

    def test_paging_happens_after_the_merge(self, service, bookings):
        rows = service.get_all_user_bookings("user-1", {"limit": 2, "offset": 1})

        assert _ids(rows) == [
            bookings["turf_today"].session_id,
            bookings["coach_today"].session_id,
        ]

    def test_unknown_user_gets_nothing(self, service, bookings):
        assert service.get_all_user_bookings("nobody") == []

    def test_invalid_filters(self, service):
        with pytest.raises(ValidationException):
            service.get_all_user_bookings("user-1", {"status": "someday"})

    def test_default_session_factory_shares_the_engine(self, db, bookings):
        service = UserBookingService(db, clock=lambda: TODAY)

        assert len(service.get_all_user_bookings("user-1")) == 5

    def test_one_failing_store_fails_the_whole_view(self, service, bookings, monkeypatch):
        original = SessionRepository.find_bookings_for_user
        queried = []

        def flaky(self, user_id, owner_id=None):
            queried.append(self.service_type)
            if self.service_type == ServiceType.COACH:
                raise RuntimeError("coach store offline")
            return original(self, user_id, owner_id=owner_id)

        monkeypatch.setattr(SessionRepository, "find_bookings_for_user", flaky)

        with pytest.raises(ServiceException) as exc_info:
            service.get_all_user_bookings("user-1")

        assert exc_info.value.code == "BOOKING_AGGREGATION_FAILED"
        assert exc_info.value.details == {"service_types": ["coach"]}
        assert sorted(queried) == sorted(ServiceType)


class TestDashboardViews:
    def test_upcoming_sessions_skip_finalized(self, service, bookings):
        rows = service.get_upcoming_sessions("user-1")

        assert _ids(rows) == [
            bookings[key].session_id for key in ("turf_today", "coach_today", "batch_later")
        ]

    def test_upcoming_limit_and_scope(self, service, bookings):
        assert len(service.get_upcoming_sessions("user-1", limit=2)) == 2
        scoped = service.get_upcoming_sessions("user-1", scope_id="academy-1")
        assert _ids(scoped) == [bookings["batch_later"].session_id]

    @pytest.mark.parametrize("limit", [0, -3, True, "5"])
    def test_invalid_limit(self, service, limit):
        with pytest.raises(ValidationException) as exc_info:
            service.get_upcoming_sessions("user-1", limit=limit)

        assert exc_info.value.code == "INVALID_LIMIT"

    def test_latest_completed_is_most_recent_first(self, service, entities, make_session):
        def done(service_type, day, start, end):
            return make_session(
                service_type,
                entities[service_type],
                day,
                start,
                end,
                user_id="user-1",
                is_completed=True,
            )

        oldest = done(ServiceType.ACADEMY_BATCH, date(2026, 6, 25), time(16), time(17))
        evening = done(ServiceType.TURF, date(2026, 6, 30), time(20), time(21))
        afternoon = done(ServiceType.ACADEMY_PROGRAM, date(2026, 6, 30), time(16), time(17))

        assert _ids(service.get_latest_completed_sessions("user-1")) == [
            evening.session_id,
            afternoon.session_id,
            oldest.session_id,
        ]
        assert _ids(service.get_latest_completed_sessions("user-1", limit=2)) == [
            evening.session_id,
            afternoon.session_id,
        ]
        assert service.get_latest_completed_sessions("user-1", scope_id="coach-1") == []


class TestNormalization:
    def test_booking_time_status(self):
        assert booking_time_status(date(2026, 6, 30), TODAY) == BookingTimeStatus.PAST
        assert booking_time_status(TODAY, TODAY) == BookingTimeStatus.TODAY
        assert booking_time_status(date(2026, 7, 2), TODAY) == BookingTimeStatus.UPCOMING

    def test_missing_entity_and_zero_duration(self):
        row = SimpleNamespace(
            id="01J0000000000000000000000A",
            session_id="turf_01J00000_20260701_0600_abcd",
            entity_id="01J0000000000000000000000B",
            owner_id="turf-1",
            date=TODAY,
            start_time=time(6),
            end_time=time(6),
            user_id="user-1",
            is_cancelled=False,
            is_completed=False,
            cancellation_reason=None,
            feedback=None,
            rating=None,
            state=SessionState.BOOKED,
            created_at=None,
            updated_at=None,
            entity=None,
        )

        booking = normalize_session(ServiceType.TURF, row, TODAY)

        assert booking.duration == 60
        assert booking.supplier_name is None
        assert booking.price is None
        assert booking.supplier_type == SupplierType.TURF
