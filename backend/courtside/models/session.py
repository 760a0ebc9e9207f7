# backend/courtside/models/session.py
"""
Bookable session models.

One table per service type, all built from the same column set so the
booking rules apply identically everywhere. A session is keyed publicly by
``session_id`` and naturally by ``(entity_id, date, start_time)``; the latter
is a unique constraint so concurrent generation runs can never duplicate a
session.

State lives in three columns (``user_id``, ``is_cancelled``, ``is_completed``).
Check constraints rule out the combinations that do not map to a state and
``state`` exposes the derived value.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
    and_,
    false,
)
from sqlalchemy.orm import declared_attr, relationship
from sqlalchemy.sql import func

from ..core.enums import SessionState
from ..core.ulid_helper import generate_ulid
from ..database import Base


class BookableSessionMixin:
    """Shared columns, constraints and state helpers for session tables."""

    __entity_table__: str
    __entity_model__: str

    id = Column(String(26), primary_key=True, default=generate_ulid)
    session_id = Column(String(64), nullable=False, unique=True, index=True)
    owner_id = Column(String(26), nullable=False, index=True)

    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    # NULL means open
    user_id = Column(String(26), nullable=True, index=True)

    is_cancelled = Column(Boolean, nullable=False, default=False, server_default=false())
    is_completed = Column(Boolean, nullable=False, default=False, server_default=false())
    cancellation_reason = Column(Text, nullable=True)

    feedback = Column(Text, nullable=True)
    rating = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @declared_attr
    def entity_id(cls):
        return Column(
            String(26), ForeignKey(f"{cls.__entity_table__}.id"), nullable=False, index=True
        )

    @declared_attr
    def entity(cls):
        return relationship(cls.__entity_model__)

    @declared_attr
    def __table_args__(cls):
        table = cls.__tablename__
        return (
            UniqueConstraint("entity_id", "date", "start_time", name=f"uq_{table}_occurrence"),
            CheckConstraint(
                "NOT (is_cancelled AND is_completed)", name=f"ck_{table}_single_terminal_state"
            ),
            CheckConstraint(
                "NOT is_completed OR user_id IS NOT NULL", name=f"ck_{table}_completed_is_booked"
            ),
            CheckConstraint(
                "rating IS NULL OR (rating >= 1 AND rating <= 5)", name=f"ck_{table}_rating_range"
            ),
            Index(f"ix_{table}_user_date", "user_id", "date"),
        )

    @property
    def state(self) -> SessionState:
        if self.is_cancelled:
            return SessionState.CANCELLED
        if self.is_completed:
            return SessionState.COMPLETED
        if self.user_id is not None:
            return SessionState.BOOKED
        return SessionState.OPEN

    @property
    def is_open(self) -> bool:
        return self.state == SessionState.OPEN

    @property
    def is_finalized(self) -> bool:
        return bool(self.is_cancelled or self.is_completed)

    @classmethod
    def open_clause(cls):
        """SQL criteria matching sessions still open for booking."""
        return and_(
            cls.user_id.is_(None),
            cls.is_cancelled.is_(False),
            cls.is_completed.is_(False),
        )

    @classmethod
    def active_clause(cls):
        """SQL criteria matching sessions that are neither cancelled nor completed."""
        return and_(cls.is_cancelled.is_(False), cls.is_completed.is_(False))

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__} {self.session_id} {self.date} "
            f"{self.start_time}-{self.end_time} state={self.state.value}>"
        )


class AcademyBatchSession(BookableSessionMixin, Base):
    __tablename__ = "academy_batch_sessions"
    __entity_table__ = "academy_batches"
    __entity_model__ = "AcademyBatch"


class AcademyProgramSession(BookableSessionMixin, Base):
    __tablename__ = "academy_program_sessions"
    __entity_table__ = "academy_programs"
    __entity_model__ = "AcademyProgram"


class CoachSession(BookableSessionMixin, Base):
    __tablename__ = "coach_sessions"
    __entity_table__ = "coach_batches"
    __entity_model__ = "CoachBatch"


class TurfSession(BookableSessionMixin, Base):
    __tablename__ = "turf_sessions"
    __entity_table__ = "turf_grounds"
    __entity_model__ = "TurfGround"
