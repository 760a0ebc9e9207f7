# backend/tests/repositories/test_session_request_repository.py
from datetime import date, datetime, timedelta, timezone

import pytest

from courtside.core.enums import RequestStatus, ServiceType
from courtside.repositories import RepositoryFactory

T0 = datetime(2026, 6, 20, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def session(make_entity, make_session):
    coach = make_entity(ServiceType.COACH, owner_id="coach-1")
    return make_session(ServiceType.COACH, coach, date(2026, 7, 2))


@pytest.fixture
def requests(db):
    return RepositoryFactory.create_session_request_repository(db, ServiceType.COACH)


class TestPendingLedger:
    def test_create_and_find_pending(self, db, requests, session):
        created = requests.create_pending(session.session_id, "user-1")
        db.commit()

        assert created.status == RequestStatus.PENDING.value
        assert created.is_pending
        assert requests.has_pending(session.session_id, "user-1")
        assert not requests.has_pending(session.session_id, "user-2")

    def test_one_pending_request_per_user(self, db, requests, session):
        assert requests.create_pending(session.session_id, "user-1") is not None
        db.commit()

        assert requests.create_pending(session.session_id, "user-1") is None
        assert len(requests.list_for_session(session.session_id)) == 1

    def test_processed_requests_do_not_block_a_new_one(self, db, requests, session):
        first = requests.create_pending(session.session_id, "user-1")
        requests.reject_if_pending(first.id, "No")
        db.commit()

        assert requests.create_pending(session.session_id, "user-1") is not None
        db.commit()
        assert len(requests.list_for_session(session.session_id)) == 2

    def test_get_pending_is_oldest_first(self, db, requests, session):
        requests.create_pending(session.session_id, "user-late", requested_at=T0 + timedelta(1))
        requests.create_pending(session.session_id, "user-early", requested_at=T0)
        db.commit()

        assert requests.get_pending(session.session_id).user_id == "user-early"
        assert requests.get_pending(session.session_id, "user-late").user_id == "user-late"
        assert requests.get_pending(session.session_id, "nobody") is None


class TestProcessing:
    def test_approve_only_once(self, db, requests, session):
        request = requests.create_pending(session.session_id, "user-1")

        assert requests.approve_if_pending(request.id) is True
        assert requests.approve_if_pending(request.id) is False
        assert requests.reject_if_pending(request.id, "late") is False
        db.commit()
        db.refresh(request)

        assert request.status == RequestStatus.APPROVED.value
        assert request.processed_at is not None

    def test_reject_records_notes(self, db, requests, session):
        request = requests.create_pending(session.session_id, "user-1")

        assert requests.reject_if_pending(request.id, "Fully booked") is True
        db.commit()
        db.refresh(request)

        assert request.status == RequestStatus.REJECTED.value
        assert request.notes == "Fully booked"

    def test_reject_pending_for_session_skips_excluded(self, db, requests, session):
        keep = requests.create_pending(session.session_id, "user-1", requested_at=T0)
        requests.create_pending(session.session_id, "user-2", requested_at=T0 + timedelta(1))
        requests.create_pending(session.session_id, "user-3", requested_at=T0 + timedelta(2))

        assert requests.reject_pending_for_session(session.session_id, "Booked", keep.id) == 2
        db.commit()
        db.expire_all()

        statuses = {r.user_id: r.status for r in requests.list_for_session(session.session_id)}
        assert statuses == {"user-1": "pending", "user-2": "rejected", "user-3": "rejected"}
        assert [r.user_id for r in requests.list_for_session(session.session_id, "rejected")] == [
            "user-2",
            "user-3",
        ]

    def test_has_processed(self, db, requests, session):
        request = requests.create_pending(session.session_id, "user-1")
        assert not requests.has_processed(session.session_id)

        requests.reject_if_pending(request.id, "No")
        db.commit()

        assert requests.has_processed(session.session_id)
        assert requests.has_processed(session.session_id, "user-1")
        assert not requests.has_processed(session.session_id, "user-2")
