# backend/courtside/models/session_request.py
"""
Session request ledgers.

A user asks for an open session by creating a pending request; the supplier
approves (which books the session) or rejects it. Each service type has its
own ledger with identical columns. A partial unique index allows at most one
pending request per (session, user) while keeping any number of processed
ones as history.
"""

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import declared_attr

from ..core.enums import RequestStatus
from ..core.ulid_helper import generate_ulid
from ..database import Base

_PENDING_ONLY = text("status = 'pending'")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionRequestMixin:
    __session_table__: str

    id = Column(String(26), primary_key=True, default=generate_ulid)
    user_id = Column(String(26), nullable=False, index=True)
    requested_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    status = Column(String(20), nullable=False, default=RequestStatus.PENDING.value)
    notes = Column(Text, nullable=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)

    @declared_attr
    def session_id(cls):
        return Column(
            String(64),
            ForeignKey(f"{cls.__session_table__}.session_id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )

    @declared_attr
    def __table_args__(cls):
        table = cls.__tablename__
        statuses = ", ".join(f"'{s.value}'" for s in RequestStatus)
        return (
            CheckConstraint(f"status IN ({statuses})", name=f"ck_{table}_status"),
            Index(
                f"uq_{table}_pending_per_user",
                "session_id",
                "user_id",
                unique=True,
                sqlite_where=_PENDING_ONLY,
                postgresql_where=_PENDING_ONLY,
            ),
        )

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING.value

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.session_id} user={self.user_id} {self.status}>"


class AcademyBatchSessionRequest(SessionRequestMixin, Base):
    __tablename__ = "academy_batch_session_requests"
    __session_table__ = "academy_batch_sessions"


class AcademyProgramSessionRequest(SessionRequestMixin, Base):
    __tablename__ = "academy_program_session_requests"
    __session_table__ = "academy_program_sessions"


class CoachSessionRequest(SessionRequestMixin, Base):
    __tablename__ = "coach_session_requests"
    __session_table__ = "coach_sessions"


class TurfSessionRequest(SessionRequestMixin, Base):
    __tablename__ = "turf_session_requests"
    __session_table__ = "turf_sessions"
