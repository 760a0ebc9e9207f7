# backend/courtside/repositories/session_request_repository.py
"""
Session Request Repository (request ledger) for the Courtside session platform.

Pending requests are processed exactly once: approve and reject are
conditional updates that only match rows still pending, so a second
processor sees zero affected rows instead of overwriting the first.
"""

from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import RequestStatus, ServiceType
from ..core.exceptions import RepositoryException
from ..models.registry import get_binding
from .base_repository import BaseRepository

PENDING = RequestStatus.PENDING.value


class SessionRequestRepository(BaseRepository[Any]):
    def __init__(self, db: Session, service_type: ServiceType):
        self.binding = get_binding(service_type)
        self.service_type = self.binding.service_type
        super().__init__(db, self.binding.request_model)

    def has_pending(self, session_id: str, user_id: str) -> bool:
        return self.exists(session_id=session_id, user_id=user_id, status=PENDING)

    def get_pending(
        self, session_id: str, user_id: Optional[str] = None, for_update: bool = False
    ) -> Optional[Any]:
        """
        The pending request to act on.

        With ``user_id`` that user's pending request; otherwise the oldest
        pending request for the session.
        """
        query = self._build_query().filter(
            self.model.session_id == session_id, self.model.status == PENDING
        )
        if user_id is not None:
            query = query.filter(self.model.user_id == user_id)
        query = query.order_by(
            self.model.requested_at.asc(), self.model.id.asc()
        ).populate_existing()
        if for_update and self.dialect_name == "postgresql":
            query = query.with_for_update()
        try:
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading pending request for {session_id}: {str(e)}")
            raise RepositoryException(f"Failed to load pending request: {str(e)}")

    def has_processed(self, session_id: str, user_id: Optional[str] = None) -> bool:
        query = self._build_query().filter(
            self.model.session_id == session_id, self.model.status != PENDING
        )
        if user_id is not None:
            query = query.filter(self.model.user_id == user_id)
        return bool(self._execute_query(query.limit(1)))

    def list_for_session(self, session_id: str, status: Optional[str] = None) -> List[Any]:
        query = self._build_query().filter(self.model.session_id == session_id)
        if status:
            query = query.filter(self.model.status == status)
        return self._execute_query(query.order_by(self.model.requested_at.asc()))

    def create_pending(
        self,
        session_id: str,
        user_id: str,
        requested_at: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> Optional[Any]:
        """
        Insert a pending request.

        Returns None when the pending-per-user unique index rejects it, i.e.
        another pending request for the same (session, user) won a race.
        """
        request = self.model(
            session_id=session_id,
            user_id=user_id,
            status=PENDING,
            notes=notes,
            requested_at=requested_at or datetime.now(timezone.utc),
        )
        try:
            self.db.add(request)
            self.db.flush()
            return request
        except IntegrityError as exc:
            self.logger.warning(
                "Duplicate pending request for %s by %s: %s", session_id, user_id, exc
            )
            self.db.rollback()
            return None
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating request for {session_id}: {str(e)}")
            self.db.rollback()
            raise RepositoryException(f"Failed to create session request: {str(e)}")

    def approve_if_pending(self, request_id: str) -> bool:
        return self._process(request_id, RequestStatus.APPROVED, notes=None)

    def reject_if_pending(self, request_id: str, notes: str) -> bool:
        return self._process(request_id, RequestStatus.REJECTED, notes=notes)

    def reject_pending_for_session(
        self, session_id: str, notes: str, exclude_id: Optional[str] = None
    ) -> int:
        query = self._build_query().filter(
            self.model.session_id == session_id, self.model.status == PENDING
        )
        if exclude_id is not None:
            query = query.filter(self.model.id != exclude_id)
        return self._execute_update(
            query,
            {
                "status": RequestStatus.REJECTED.value,
                "notes": notes,
                "processed_at": datetime.now(timezone.utc),
            },
        )

    def _process(self, request_id: str, status: RequestStatus, notes: Optional[str]) -> bool:
        values = {"status": status.value, "processed_at": datetime.now(timezone.utc)}
        if notes is not None:
            values["notes"] = notes
        query = self._build_query().filter(
            self.model.id == request_id, self.model.status == PENDING
        )
        return self._execute_update(query, values) == 1
