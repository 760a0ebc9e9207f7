# backend/courtside/repositories/factory.py
"""
Repository Factory for the Courtside session platform.

Centralizes repository creation so services never construct repositories
for a service type directly.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from ..core.enums import ServiceType

if TYPE_CHECKING:
    from .schedule_entity_repository import ScheduleEntityRepository
    from .session_repository import SessionRepository
    from .session_request_repository import SessionRequestRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_session_repository(db: Session, service_type: ServiceType) -> "SessionRepository":
        """Create the session store for one service type."""
        from .session_repository import SessionRepository

        return SessionRepository(db, service_type)

    @staticmethod
    def create_session_request_repository(
        db: Session, service_type: ServiceType
    ) -> "SessionRequestRepository":
        """Create the request ledger for one service type."""
        from .session_request_repository import SessionRequestRepository

        return SessionRequestRepository(db, service_type)

    @staticmethod
    def create_schedule_entity_repository(
        db: Session, service_type: ServiceType
    ) -> "ScheduleEntityRepository":
        from .schedule_entity_repository import ScheduleEntityRepository

        return ScheduleEntityRepository(db, service_type)
