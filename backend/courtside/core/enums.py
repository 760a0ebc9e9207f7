# backend/courtside/core/enums.py
"""
Core enums for the Courtside session platform.

These give the closed vocabularies (service types, session states, request
statuses) a single home so every layer compares against the same values.
"""

from enum import Enum


class ServiceType(str, Enum):
    """
    The four kinds of bookable sessions.

    Each value selects its own session table, request ledger and
    schedulable entity table.
    """

    ACADEMY_BATCH = "academy_batch"
    ACADEMY_PROGRAM = "academy_program"
    COACH = "coach"
    TURF = "turf"


class SupplierType(str, Enum):
    """Who supplies a session, as shown in unified booking views."""

    ACADEMY = "academy"
    COACH = "coach"
    TURF = "turf"


class SessionState(str, Enum):
    """
    Lifecycle state of a session.

    Derived from ``user_id``, ``is_cancelled`` and ``is_completed``;
    cancelled and completed are terminal.
    """

    OPEN = "open"
    BOOKED = "booked"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RequestStatus(str, Enum):
    """Session request statuses. Approved and rejected are terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class BookingTimeStatus(str, Enum):
    """Where a booking's date falls relative to today."""

    PAST = "past"
    TODAY = "today"
    UPCOMING = "upcoming"


class SessionMetric(str, Enum):
    TOTAL_SESSIONS = "total_sessions"
    COMPLETED_SESSIONS = "completed_sessions"
    CANCELLED_SESSIONS = "cancelled_sessions"
