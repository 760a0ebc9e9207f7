# backend/courtside/services/user_booking_service.py
"""
User Booking Service for the Courtside session platform.

Builds one booking view over all four session stores. Each store is read on
its own worker thread with its own database session; the merge waits for
every read to finish before sorting, so one slow store never truncates the
result and one failing store fails the whole view instead of silently
hiding bookings.
"""

from concurrent.futures import ThreadPoolExecutor, wait
from datetime import date
from typing import Any, Callable, List, Optional, Sequence

from sqlalchemy.orm import Session, sessionmaker

from ..core.config import settings
from ..core.enums import BookingTimeStatus, ServiceType
from ..core.exceptions import ServiceException, ValidationException
from ..models.registry import SERVICE_BINDINGS, get_binding, service_types_for_supplier
from ..repositories.factory import RepositoryFactory
from ..repositories.session_repository import SessionRepository
from ..schemas.booking import BookingFilters, UnifiedBooking
from ..schemas.session import SessionRead
from ..utils.time_helpers import minutes_between
from .base import BaseService
from .session_booking_service import parse_filters

DEFAULT_DURATION_MINUTES = 60

StoreQuery = Callable[[SessionRepository, date], List[Any]]


def booking_time_status(session_date: date, today: date) -> BookingTimeStatus:
    """Day-granularity position of a session relative to today."""
    if session_date < today:
        return BookingTimeStatus.PAST
    if session_date == today:
        return BookingTimeStatus.TODAY
    return BookingTimeStatus.UPCOMING


def normalize_session(service_type: ServiceType, row: Any, today: date) -> UnifiedBooking:
    """Map one session row of any service type onto the unified booking shape."""
    binding = get_binding(service_type)
    entity = row.entity
    duration = minutes_between(row.start_time, row.end_time)
    return UnifiedBooking(
        id=row.id,
        session_type=binding.service_type,
        supplier_type=binding.supplier_type,
        supplier_id=row.owner_id,
        supplier_name=getattr(entity, "name", None),
        entity_id=row.entity_id,
        date=row.date,
        time=row.start_time,
        end_time=row.end_time,
        duration=duration if duration > 0 else DEFAULT_DURATION_MINUTES,
        status=booking_time_status(row.date, today),
        session_state=row.state,
        price=getattr(entity, "price", None),
        booking_id=row.session_id,
        location=getattr(entity, "location", None),
        sport=getattr(entity, "sport", None),
        created_at=row.created_at,
        original_data=SessionRead.model_validate(row).model_dump(mode="json"),
    )


def _ascending_key(booking: UnifiedBooking):
    return (booking.date, booking.time, booking.session_type.value, booking.id)


def _completed_key(booking: UnifiedBooking):
    return (booking.date, booking.end_time, booking.session_type.value, booking.id)


class UserBookingService(BaseService):
    """Unified, cross-type views of a user's bookings."""

    def __init__(
        self,
        db: Session,
        session_factory: Optional[Callable[[], Session]] = None,
        clock: Optional[Callable[[], date]] = None,
        max_workers: Optional[int] = None,
    ):
        super().__init__(db)
        self.session_factory = session_factory or sessionmaker(
            bind=db.get_bind(), autocommit=False, autoflush=False, expire_on_commit=False
        )
        self.clock = clock or date.today
        self.max_workers = max_workers or settings.aggregator_max_workers

    def _fetch_store(
        self, service_type: ServiceType, query: StoreQuery, today: date
    ) -> List[UnifiedBooking]:
        db = self.session_factory()
        try:
            repository = RepositoryFactory.create_session_repository(db, service_type)
            rows = query(repository, today)
            return [normalize_session(service_type, row, today) for row in rows]
        finally:
            db.close()

    def _collect(
        self, service_types: Sequence[ServiceType], query: StoreQuery, today: date
    ) -> List[UnifiedBooking]:
        """Run ``query`` against each store concurrently and concatenate the results."""
        if not service_types:
            return []

        workers = min(self.max_workers, len(service_types))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="bookings") as executor:
            futures = [
                (service_type, executor.submit(self._fetch_store, service_type, query, today))
                for service_type in service_types
            ]
            wait([future for _, future in futures])

        merged: List[UnifiedBooking] = []
        failed: List[str] = []
        for service_type, future in futures:
            exc = future.exception()
            if exc is not None:
                self.logger.error(
                    f"Failed to load {service_type.value} bookings: {exc}", exc_info=exc
                )
                failed.append(service_type.value)
                continue
            merged.extend(future.result())

        if failed:
            raise ServiceException(
                "Failed to load bookings",
                code="BOOKING_AGGREGATION_FAILED",
                details={"service_types": failed},
            )
        return merged

    @staticmethod
    def _check_limit(limit: int) -> int:
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValidationException("limit must be a positive integer", code="INVALID_LIMIT")
        return limit

    @BaseService.measure_operation("get_all_user_bookings")
    def get_all_user_bookings(
        self, user_id: str, filters: Optional[Any] = None
    ) -> List[UnifiedBooking]:
        """
        Every session the user booked, across service types.

        ``status`` upcoming includes today; past results are newest first,
        everything else soonest first.
        """
        parsed = parse_filters(BookingFilters, filters)
        today = self.clock()
        if parsed.supplier:
            service_types = service_types_for_supplier(parsed.supplier)
        else:
            service_types = list(SERVICE_BINDINGS)

        bookings = self._collect(
            service_types,
            lambda repo, _today: repo.find_bookings_for_user(user_id, owner_id=parsed.supplier_id),
            today,
        )

        if parsed.status == BookingTimeStatus.UPCOMING:
            bookings = [b for b in bookings if b.date >= today]
        elif parsed.status == BookingTimeStatus.PAST:
            bookings = [b for b in bookings if b.date < today]
        elif parsed.status == BookingTimeStatus.TODAY:
            bookings = [b for b in bookings if b.date == today]

        bookings.sort(key=_ascending_key, reverse=parsed.status == BookingTimeStatus.PAST)
        return bookings[parsed.offset : parsed.offset + parsed.limit]

    @BaseService.measure_operation("get_upcoming_sessions")
    def get_upcoming_sessions(
        self, user_id: str, scope_id: Optional[str] = None, limit: Optional[int] = None
    ) -> List[UnifiedBooking]:
        """Active sessions from today on, soonest first, optionally for one owner."""
        limit = self._check_limit(settings.dashboard_default_limit if limit is None else limit)
        bookings = self._collect(
            list(SERVICE_BINDINGS),
            lambda repo, today: repo.find_upcoming_for_user(
                user_id, today, owner_id=scope_id, limit=limit
            ),
            self.clock(),
        )
        bookings.sort(key=_ascending_key)
        return bookings[:limit]

    @BaseService.measure_operation("get_latest_completed_sessions")
    def get_latest_completed_sessions(
        self, user_id: str, scope_id: Optional[str] = None, limit: Optional[int] = None
    ) -> List[UnifiedBooking]:
        """Completed sessions, most recent (date, end time) first."""
        limit = self._check_limit(settings.dashboard_default_limit if limit is None else limit)
        bookings = self._collect(
            list(SERVICE_BINDINGS),
            lambda repo, _today: repo.find_completed_for_user(
                user_id, owner_id=scope_id, limit=limit
            ),
            self.clock(),
        )
        bookings.sort(key=_completed_key, reverse=True)
        return bookings[:limit]
