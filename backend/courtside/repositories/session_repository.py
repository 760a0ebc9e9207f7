# backend/courtside/repositories/session_repository.py
"""
Session Repository for the Courtside session platform.

One generic store over the four session tables, selected by service type.
Handles:
- Idempotent occurrence inserts guarded by the (entity_id, date, start_time)
  unique constraint
- Conditional state updates that only touch rows still in the expected state
- Listing queries for available, user and dashboard views
"""

from datetime import date
from typing import Any, List, Optional, Set, Tuple

from sqlalchemy import insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.enums import ServiceType
from ..core.exceptions import RepositoryException
from ..core.ulid_helper import build_session_id, generate_ulid
from ..models.registry import get_binding
from ..schemas.recurrence import Occurrence
from .base_repository import BaseRepository

OccurrenceKey = Tuple[str, date, Any]

OCCURRENCE_COLUMNS = ("entity_id", "date", "start_time")
SESSION_ID_ATTEMPTS = 3


class SessionRepository(BaseRepository[Any]):
    """Data access for one service type's sessions."""

    def __init__(self, db: Session, service_type: ServiceType):
        self.binding = get_binding(service_type)
        self.service_type = self.binding.service_type
        super().__init__(db, self.binding.session_model)

    # Lookups

    def get_by_session_id(self, session_id: str, for_update: bool = False) -> Optional[Any]:
        """
        Fetch a session by its public id, row-locking it where the dialect allows.

        Always refreshes from the database: an object already in the identity
        map may predate another transaction's commit.
        """
        query = (
            self._build_query()
            .filter(self.model.session_id == session_id)
            .populate_existing()
        )
        if for_update and self.dialect_name == "postgresql":
            query = query.with_for_update()
        try:
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting session {session_id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve session: {str(e)}")

    def existing_occurrence_keys(
        self, start_date: date, end_date: date, entity_ids: Optional[List[str]] = None
    ) -> Set[OccurrenceKey]:
        """Composite keys of sessions already stored in a date window."""
        query = self.db.query(
            self.model.entity_id, self.model.date, self.model.start_time
        ).filter(self.model.date >= start_date, self.model.date <= end_date)
        if entity_ids is not None:
            if not entity_ids:
                return set()
            query = query.filter(self.model.entity_id.in_(entity_ids))
        return {(row[0], row[1], row[2]) for row in self._execute_query(query)}

    # Writes

    def insert_occurrence(self, occurrence: Occurrence) -> Optional[str]:
        """
        Insert a session for an occurrence unless one already exists.

        Returns the new session_id, or None when the occurrence constraint
        reports the occurrence is already stored (for example by a
        concurrent generation run). Only that constraint is ignored; a
        clashing session_id is retried with a fresh id.
        """
        for attempt in range(1, SESSION_ID_ATTEMPTS + 1):
            session_id = build_session_id(
                self.binding.session_id_prefix,
                occurrence.entity_id,
                occurrence.date,
                occurrence.start_time,
            )
            try:
                return self._insert_once(occurrence, session_id)
            except IntegrityError as e:
                if "session_id" not in str(e.orig):
                    raise RepositoryException(f"Failed to insert session: {str(e)}") from e
                self.logger.warning(
                    "Session id %s already taken (attempt %d), retrying", session_id, attempt
                )
            except SQLAlchemyError as e:
                self.logger.error(
                    "Error inserting %s session for %s on %s: %s",
                    self.service_type.value,
                    occurrence.entity_id,
                    occurrence.date,
                    e,
                )
                raise RepositoryException(f"Failed to insert session: {str(e)}") from e

        raise RepositoryException(
            f"Could not allocate a unique session id for {occurrence.entity_id} "
            f"on {occurrence.date}"
        )

    def _insert_once(self, occurrence: Occurrence, session_id: str) -> Optional[str]:
        values = {
            "id": generate_ulid(),
            "session_id": session_id,
            "entity_id": occurrence.entity_id,
            "owner_id": occurrence.owner_id,
            "date": occurrence.date,
            "start_time": occurrence.start_time,
            "end_time": occurrence.end_time,
            "is_cancelled": False,
            "is_completed": False,
        }
        table = self.model.__table__
        dialect = self.dialect_name

        if dialect == "postgresql":
            stmt = (
                pg_insert(table)
                .values(**values)
                .on_conflict_do_nothing(constraint=f"uq_{table.name}_occurrence")
                .returning(table.c.session_id)
            )
            # A failed statement aborts the whole transaction on PostgreSQL
            with self.db.begin_nested():
                return self.db.execute(stmt).scalar_one_or_none()

        if dialect == "sqlite":
            stmt = (
                sqlite_insert(table)
                .values(**values)
                .on_conflict_do_nothing(index_elements=list(OCCURRENCE_COLUMNS))
            )
        else:
            stmt = insert(table).values(**values)
        result = self.db.execute(stmt)
        return session_id if getattr(result, "rowcount", 0) else None

    def book_if_open(self, session_id: str, user_id: str) -> bool:
        """Assign ``user_id`` only if the session is still open."""
        query = self._build_query().filter(
            self.model.session_id == session_id, self.model.open_clause()
        )
        return self._execute_update(query, {"user_id": user_id}) == 1

    def cancel_if_active(self, session_id: str, reason: str) -> bool:
        query = self._build_query().filter(
            self.model.session_id == session_id, self.model.active_clause()
        )
        return (
            self._execute_update(query, {"is_cancelled": True, "cancellation_reason": reason})
            == 1
        )

    def complete_if_booked(self, session_id: str) -> bool:
        query = self._build_query().filter(
            self.model.session_id == session_id,
            self.model.user_id.isnot(None),
            self.model.active_clause(),
        )
        return self._execute_update(query, {"is_completed": True}) == 1

    def set_feedback_if_completed(self, session_id: str, feedback: str, rating: int) -> bool:
        query = self._build_query().filter(
            self.model.session_id == session_id, self.model.is_completed.is_(True)
        )
        return self._execute_update(query, {"feedback": feedback, "rating": rating}) == 1

    # Listings

    def find_available(
        self,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        entity_id: Optional[str] = None,
        owner_id: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Any]:
        query = self._build_query().filter(self.model.open_clause())
        query = self._apply_window(query, start_date, end_date)
        if entity_id:
            query = query.filter(self.model.entity_id == entity_id)
        if owner_id:
            query = query.filter(self.model.owner_id == owner_id)
        query = self._ascending(query).offset(offset).limit(limit)
        return self._execute_query(query)

    def find_for_user(
        self,
        user_id: str,
        *,
        status: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Any]:
        """
        A user's sessions, optionally narrowed by state.

        ``status`` is one of booked, completed or cancelled; booked means
        still active (neither completed nor cancelled).
        """
        query = self._build_query().filter(self.model.user_id == user_id)
        if status == "booked":
            query = query.filter(self.model.active_clause())
        elif status == "completed":
            query = query.filter(self.model.is_completed.is_(True))
        elif status == "cancelled":
            query = query.filter(self.model.is_cancelled.is_(True))
        query = self._apply_window(query, start_date, end_date)
        query = self._ascending(query)
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return self._execute_query(query)

    def find_bookings_for_user(
        self, user_id: str, owner_id: Optional[str] = None
    ) -> List[Any]:
        """Every session booked by a user with its entity loaded, ascending."""
        query = self._with_entity(self._build_query().filter(self.model.user_id == user_id))
        if owner_id:
            query = query.filter(self.model.owner_id == owner_id)
        return self._execute_query(self._ascending(query))

    def find_upcoming_for_user(
        self,
        user_id: str,
        today: date,
        owner_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Any]:
        query = self._with_entity(
            self._build_query().filter(
                self.model.user_id == user_id,
                self.model.date >= today,
                self.model.active_clause(),
            )
        )
        if owner_id:
            query = query.filter(self.model.owner_id == owner_id)
        query = self._ascending(query)
        if limit is not None:
            query = query.limit(limit)
        return self._execute_query(query)

    def find_completed_for_user(
        self, user_id: str, owner_id: Optional[str] = None, limit: Optional[int] = None
    ) -> List[Any]:
        query = self._with_entity(
            self._build_query().filter(
                self.model.user_id == user_id, self.model.is_completed.is_(True)
            )
        )
        if owner_id:
            query = query.filter(self.model.owner_id == owner_id)
        query = query.order_by(self.model.date.desc(), self.model.end_time.desc())
        if limit is not None:
            query = query.limit(limit)
        return self._execute_query(query)

    # Helpers

    def _apply_window(
        self, query: Query, start_date: Optional[date], end_date: Optional[date]
    ) -> Query:
        if start_date:
            query = query.filter(self.model.date >= start_date)
        if end_date:
            query = query.filter(self.model.date <= end_date)
        return query

    def _ascending(self, query: Query) -> Query:
        return query.order_by(self.model.date.asc(), self.model.start_time.asc())

    def _with_entity(self, query: Query) -> Query:
        return query.options(joinedload(self.model.entity))
