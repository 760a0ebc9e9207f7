# backend/courtside/services/__init__.py
"""
Service layer for the Courtside session platform.

Services own transactions and business rules; repositories own queries.
"""

from .base import BaseService
from .session_booking_service import SessionBookingService
from .session_generation_service import SessionGenerationService
from .user_booking_service import UserBookingService

__all__ = [
    "BaseService",
    "SessionBookingService",
    "SessionGenerationService",
    "UserBookingService",
]
