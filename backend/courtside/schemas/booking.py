# backend/courtside/schemas/booking.py
"""
Unified booking schemas.

Sessions from all four service types are normalized into ``UnifiedBooking``
so a user's bookings can be listed, filtered and sorted as one collection.
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.config import settings
from ..core.enums import BookingTimeStatus, ServiceType, SessionState, SupplierType
from .session import SessionRead, SessionRequestRead


class UnifiedBooking(BaseModel):
    """One session, whatever its service type, in the shape booking views expect."""

    id: str
    session_type: ServiceType
    supplier_type: SupplierType
    supplier_id: str
    supplier_name: Optional[str] = None
    entity_id: str
    date: date
    time: time
    end_time: time
    duration: int = 60
    status: BookingTimeStatus
    session_state: SessionState
    price: Optional[Decimal] = None
    booking_id: str
    location: Optional[str] = None
    sport: Optional[str] = None
    created_at: Optional[datetime] = None
    original_data: Dict[str, Any] = Field(default_factory=dict)


class BookingFilters(BaseModel):
    model_config = ConfigDict(extra="forbid")

    supplier: Optional[SupplierType] = None
    supplier_id: Optional[str] = None
    status: Optional[BookingTimeStatus] = None
    limit: int = Field(default_factory=lambda: settings.user_bookings_default_limit, ge=1)
    offset: int = Field(default=0, ge=0)


class SessionConfirmation(BaseModel):
    """Result of approving a request: the now-booked session and the approved request."""

    session: SessionRead
    request: SessionRequestRead
    auto_rejected_requests: int = 0
