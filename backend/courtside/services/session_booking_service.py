# backend/courtside/services/session_booking_service.py
"""
Session Booking Service for the Courtside session platform.

Enforces the session lifecycle for every service type:

    open -> booked -> completed
    open | booked -> cancelled

and the request lifecycle (pending -> approved | rejected). Every mutation
validates input before touching the database, re-checks state with a
conditional update, and rolls back completely on any failure. Metrics are
recorded only after the transaction commits.
"""

from typing import Any, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from ..core.enums import RequestStatus
from ..core.exceptions import (
    DuplicateSessionRequestException,
    InvalidRatingException,
    SessionAlreadyFinalizedException,
    SessionNotBookedException,
    SessionNotCompletedException,
    SessionNotFoundException,
    SessionRequestAlreadyProcessedException,
    SessionRequestNotFoundException,
    SessionUnavailableException,
    ValidationException,
)
from ..models.registry import ServiceBinding, get_binding
from ..monitoring.session_metrics import SessionMetricsHook, session_metrics
from ..repositories.factory import RepositoryFactory
from ..repositories.session_repository import SessionRepository
from ..repositories.session_request_repository import SessionRequestRepository
from ..schemas.booking import SessionConfirmation
from ..schemas.session import (
    AvailableSessionFilters,
    SessionRead,
    SessionRequestRead,
    UserSessionFilters,
)
from .base import BaseService

DEFAULT_REJECTION_REASON = "Request rejected by supplier"
DEFAULT_CANCELLATION_REASON = "Session cancelled"
AUTO_REJECTED_BOOKED = "Session already booked"
AUTO_REJECTED_CANCELLED = "Session cancelled"

FiltersT = TypeVar("FiltersT", bound=BaseModel)


def parse_filters(model: Type[FiltersT], filters: Any) -> FiltersT:
    """Validate raw filters into ``model``, raising a ValidationException on bad input."""
    if isinstance(filters, model):
        return filters
    try:
        return model.model_validate(filters or {})
    except PydanticValidationError as exc:
        raise ValidationException(
            "Invalid filters",
            code="INVALID_FILTERS",
            details={"errors": exc.errors(include_url=False, include_context=False)},
        ) from exc


def validate_rating(rating: Any) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise InvalidRatingException(rating)
    return rating


class SessionBookingService(BaseService):
    """Request, confirm, reject, cancel, complete and review sessions."""

    def __init__(self, db: Session, metrics: Optional[SessionMetricsHook] = None):
        super().__init__(db)
        self.metrics = metrics or session_metrics

    def _stores(
        self, service_type: Any
    ) -> Tuple[ServiceBinding, SessionRepository, SessionRequestRepository]:
        binding = get_binding(service_type)
        return (
            binding,
            RepositoryFactory.create_session_repository(self.db, binding.service_type),
            RepositoryFactory.create_session_request_repository(self.db, binding.service_type),
        )

    def _load_session(
        self, binding: ServiceBinding, sessions: SessionRepository, session_id: str
    ) -> Any:
        session = sessions.get_by_session_id(session_id, for_update=True)
        if session is None:
            raise SessionNotFoundException(binding.service_type.value, session_id)
        return session

    def _missing_pending(
        self,
        binding: ServiceBinding,
        requests: SessionRequestRepository,
        session_id: str,
        user_id: Optional[str],
    ) -> Exception:
        """Pick the error for 'no pending request': never existed vs. already handled."""
        if requests.has_processed(session_id, user_id):
            return SessionRequestAlreadyProcessedException(binding.service_type.value, session_id)
        return SessionRequestNotFoundException(binding.service_type.value, session_id, user_id)

    # Request lifecycle

    @BaseService.measure_operation("request_session")
    def request_session(self, service_type: Any, session_id: str, user_id: str) -> Any:
        """
        Ask to book an open session.

        Raises:
            SessionNotFoundException: unknown session
            SessionUnavailableException: session booked, cancelled or completed
            DuplicateSessionRequestException: user already has a pending request
        """
        binding, sessions, requests = self._stores(service_type)
        if not session_id or not user_id:
            raise ValidationException(
                "session_id and user_id are required", code="MISSING_REQUIRED_FIELD"
            )
        st = binding.service_type.value

        with self.transaction():
            session = self._load_session(binding, sessions, session_id)
            if not session.is_open:
                raise SessionUnavailableException(st, session_id, session.state.value)
            if requests.has_pending(session_id, user_id):
                raise DuplicateSessionRequestException(st, session_id, user_id)

            request = requests.create_pending(session_id, user_id)
            if request is None:
                raise DuplicateSessionRequestException(st, session_id, user_id)
            # Re-read now that this transaction holds a write lock
            session = self._load_session(binding, sessions, session_id)
            if not session.is_open:
                raise SessionUnavailableException(st, session_id, session.state.value)

        self.log_operation("request_session", service_type=st, session_id=session_id)
        return request

    @BaseService.measure_operation("confirm_session_request")
    def confirm_session_request(
        self, service_type: Any, session_id: str, user_id: Optional[str] = None
    ) -> SessionConfirmation:
        """
        Approve a pending request and book the session for its user.

        Acts on ``user_id``'s pending request if given, otherwise the oldest
        pending one. Booking the session and approving the request happen in
        one transaction; other pending requests for the session are rejected
        in the same transaction.

        Raises:
            SessionNotFoundException: unknown session
            SessionRequestNotFoundException: no request was ever made
            SessionRequestAlreadyProcessedException: the request or session
                was handled first by someone else
            SessionUnavailableException: session no longer open
        """
        binding, sessions, requests = self._stores(service_type)
        st = binding.service_type.value

        with self.transaction():
            session = self._load_session(binding, sessions, session_id)
            request = requests.get_pending(session_id, user_id, for_update=True)
            if request is None:
                raise self._missing_pending(binding, requests, session_id, user_id)
            if not session.is_open:
                raise SessionUnavailableException(st, session_id, session.state.value)

            if not sessions.book_if_open(session_id, request.user_id):
                raise SessionRequestAlreadyProcessedException(st, session_id, "booked")
            if not requests.approve_if_pending(request.id):
                raise SessionRequestAlreadyProcessedException(st, session_id)

            auto_rejected = requests.reject_pending_for_session(
                session_id, AUTO_REJECTED_BOOKED, exclude_id=request.id
            )

        self.db.refresh(session)
        self.db.refresh(request)
        self.log_operation(
            "confirm_session_request",
            service_type=st,
            session_id=session_id,
            auto_rejected=auto_rejected,
        )
        return SessionConfirmation(
            session=SessionRead.model_validate(session),
            request=SessionRequestRead.model_validate(request),
            auto_rejected_requests=auto_rejected,
        )

    @BaseService.measure_operation("reject_session_request")
    def reject_session_request(
        self,
        service_type: Any,
        session_id: str,
        reason: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Any:
        """Reject a pending request. The session itself is left untouched."""
        binding, sessions, requests = self._stores(service_type)
        st = binding.service_type.value
        notes = (reason or "").strip() or DEFAULT_REJECTION_REASON

        with self.transaction():
            self._load_session(binding, sessions, session_id)
            request = requests.get_pending(session_id, user_id, for_update=True)
            if request is None:
                raise self._missing_pending(binding, requests, session_id, user_id)
            if not requests.reject_if_pending(request.id, notes):
                raise SessionRequestAlreadyProcessedException(st, session_id)

        self.db.refresh(request)
        self.log_operation("reject_session_request", service_type=st, session_id=session_id)
        return request

    # Session lifecycle

    @BaseService.measure_operation("cancel_session")
    def cancel_session(
        self, service_type: Any, session_id: str, reason: Optional[str] = None
    ) -> Any:
        """
        Cancel an open or booked session.

        Pending requests on the session are rejected along with it.
        """
        binding, sessions, requests = self._stores(service_type)
        st = binding.service_type.value
        cancellation_reason = (reason or "").strip() or DEFAULT_CANCELLATION_REASON

        with self.transaction():
            session = self._load_session(binding, sessions, session_id)
            if session.is_finalized:
                raise SessionAlreadyFinalizedException(st, session_id, session.state.value)
            if not sessions.cancel_if_active(session_id, cancellation_reason):
                raise SessionAlreadyFinalizedException(st, session_id)
            requests.reject_pending_for_session(session_id, AUTO_REJECTED_CANCELLED)

        self.db.refresh(session)
        self.metrics.session_cancelled(binding.service_type, session.owner_id, session.date)
        self.log_operation("cancel_session", service_type=st, session_id=session_id)
        return session

    @BaseService.measure_operation("complete_session")
    def complete_session(self, service_type: Any, session_id: str) -> Any:
        """Mark a booked session as completed. Open sessions cannot be completed."""
        binding, sessions, _ = self._stores(service_type)
        st = binding.service_type.value

        with self.transaction():
            session = self._load_session(binding, sessions, session_id)
            if session.is_finalized:
                raise SessionAlreadyFinalizedException(st, session_id, session.state.value)
            if session.user_id is None:
                raise SessionNotBookedException(st, session_id, session.state.value)
            if not sessions.complete_if_booked(session_id):
                raise SessionAlreadyFinalizedException(st, session_id)

        self.db.refresh(session)
        self.metrics.session_completed(binding.service_type, session.owner_id, session.date)
        self.log_operation("complete_session", service_type=st, session_id=session_id)
        return session

    @BaseService.measure_operation("add_session_feedback")
    def add_session_feedback(
        self, service_type: Any, session_id: str, feedback: str, rating: Any
    ) -> Any:
        """
        Attach feedback and a 1-5 rating to a completed session.

        Both are validated before the session is read.
        """
        binding, sessions, _ = self._stores(service_type)
        rating = validate_rating(rating)
        if not isinstance(feedback, str) or not feedback.strip():
            raise ValidationException("Feedback is required", code="FEEDBACK_REQUIRED")
        st = binding.service_type.value

        with self.transaction():
            session = self._load_session(binding, sessions, session_id)
            if not session.is_completed:
                raise SessionNotCompletedException(st, session_id, session.state.value)
            if not sessions.set_feedback_if_completed(session_id, feedback.strip(), rating):
                raise SessionNotCompletedException(st, session_id)

        self.db.refresh(session)
        self.log_operation("add_session_feedback", service_type=st, session_id=session_id)
        return session

    # Queries

    def get_session(self, service_type: Any, session_id: str) -> Any:
        binding, sessions, _ = self._stores(service_type)
        session = sessions.get_by_session_id(session_id)
        if session is None:
            raise SessionNotFoundException(binding.service_type.value, session_id)
        return session

    def get_session_requests(
        self, service_type: Any, session_id: str, status: Optional[Any] = None
    ) -> List[Any]:
        _, _, requests = self._stores(service_type)
        status_value = None
        if status is not None:
            try:
                status_value = RequestStatus(status).value
            except ValueError:
                raise ValidationException(
                    f"Invalid request status: {status!r}", code="INVALID_REQUEST_STATUS"
                ) from None
        return requests.list_for_session(session_id, status_value)

    @BaseService.measure_operation("get_available_sessions")
    def get_available_sessions(
        self, service_type: Any, filters: Optional[Any] = None
    ) -> List[Any]:
        """Open sessions ordered by (date, start_time)."""
        _, sessions, _ = self._stores(service_type)
        parsed = parse_filters(AvailableSessionFilters, filters)
        return sessions.find_available(
            start_date=parsed.start_date,
            end_date=parsed.end_date,
            entity_id=parsed.entity_id,
            owner_id=parsed.owner_id,
            limit=parsed.limit,
            offset=parsed.offset,
        )

    @BaseService.measure_operation("get_user_sessions")
    def get_user_sessions(
        self, service_type: Any, user_id: str, filters: Optional[Any] = None
    ) -> List[Any]:
        _, sessions, _ = self._stores(service_type)
        parsed = parse_filters(UserSessionFilters, filters)
        return sessions.find_for_user(
            user_id,
            status=parsed.status,
            start_date=parsed.start_date,
            end_date=parsed.end_date,
            limit=parsed.limit,
            offset=parsed.offset,
        )

