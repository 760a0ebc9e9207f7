from .base_repository import BaseRepository, IRepository
from .factory import RepositoryFactory
from .schedule_entity_repository import ScheduleEntityRepository
from .session_repository import SessionRepository
from .session_request_repository import SessionRequestRepository

__all__ = [
    "BaseRepository",
    "IRepository",
    "RepositoryFactory",
    "ScheduleEntityRepository",
    "SessionRepository",
    "SessionRequestRepository",
]
