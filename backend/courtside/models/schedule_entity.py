# backend/courtside/models/schedule_entity.py
"""
Schedulable entities that own recurring sessions.

Academy batches, academy programs and coach batches repeat on a set of
weekdays at a fixed time. Turf grounds repeat every day across a list of
slots. Any schedule column left NULL falls back to the service defaults in
settings when sessions are generated.
"""

from typing import List, Optional

from sqlalchemy import Boolean, Column, DateTime, Numeric, String, Text, true
from sqlalchemy.sql import func

from ..core.ulid_helper import generate_ulid
from ..database import Base


def _split_csv(value: Optional[str]) -> Optional[List[str]]:
    if value is None:
        return None
    return [part.strip() for part in value.split(",") if part.strip()]


class ScheduleEntityMixin:
    """Columns shared by every schedulable entity."""

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    owner_id = Column(String(26), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    sport = Column(String(100), nullable=True)
    location = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.id} owner={self.owner_id}>"


class WeeklyScheduleMixin(ScheduleEntityMixin):
    """Entities that repeat on weekdays at one time of day."""

    # Comma separated weekday names, e.g. "Mon,Wed,Fri"
    days = Column(String(64), nullable=True)
    start_time = Column(String(5), nullable=True)
    end_time = Column(String(5), nullable=True)

    @property
    def day_list(self) -> Optional[List[str]]:
        return _split_csv(self.days)


class AcademyBatch(WeeklyScheduleMixin, Base):
    __tablename__ = "academy_batches"


class AcademyProgram(WeeklyScheduleMixin, Base):
    __tablename__ = "academy_programs"


class CoachBatch(WeeklyScheduleMixin, Base):
    __tablename__ = "coach_batches"


class TurfGround(ScheduleEntityMixin, Base):
    """A bookable ground. ``slots`` is a comma separated list of HH:MM-HH:MM."""

    __tablename__ = "turf_grounds"

    slots = Column(Text, nullable=True)

    @property
    def slot_list(self) -> Optional[List[str]]:
        return _split_csv(self.slots)
