# backend/courtside/schemas/session.py
"""
Session and session request schemas.

Read models mirror the ORM rows; filter models validate query input before
any database access and apply the configured paging defaults.
"""

from datetime import date, datetime, time
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..core.config import settings
from ..core.enums import RequestStatus, SessionState


class SessionRead(BaseModel):
    """A single bookable session."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    session_id: str
    entity_id: str
    owner_id: str
    date: date
    start_time: time
    end_time: time
    user_id: Optional[str] = None
    is_cancelled: bool = False
    is_completed: bool = False
    cancellation_reason: Optional[str] = None
    feedback: Optional[str] = None
    rating: Optional[int] = None
    state: SessionState
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SessionRequestRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    session_id: str
    user_id: str
    requested_at: datetime
    status: RequestStatus
    notes: Optional[str] = None
    processed_at: Optional[datetime] = None


class _DateRangeFilters(BaseModel):
    model_config = ConfigDict(extra="forbid")

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    limit: int = Field(default_factory=lambda: settings.available_sessions_default_limit, ge=1)
    offset: int = Field(default=0, ge=0)

    @field_validator("limit")
    @classmethod
    def _cap_limit(cls, value: int) -> int:
        return min(value, settings.available_sessions_max_limit)

    @model_validator(mode="after")
    def _check_range(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date")
        return self


class AvailableSessionFilters(_DateRangeFilters):
    """
    Filters for open-session listings.

    ``entity_id`` narrows to one batch/program/coach batch/ground and
    ``owner_id`` to one academy, coach or turf.
    """

    entity_id: Optional[str] = None
    owner_id: Optional[str] = None


class UserSessionFilters(_DateRangeFilters):
    status: Optional[Literal["booked", "completed", "cancelled"]] = None
