# backend/courtside/repositories/schedule_entity_repository.py
"""Read access to the entities whose schedules drive session generation."""

from typing import Any, List

from sqlalchemy.orm import Session

from ..core.enums import ServiceType
from ..models.registry import get_binding
from .base_repository import BaseRepository


class ScheduleEntityRepository(BaseRepository[Any]):
    def __init__(self, db: Session, service_type: ServiceType):
        self.binding = get_binding(service_type)
        self.service_type = self.binding.service_type
        super().__init__(db, self.binding.entity_model)

    def list_active(self) -> List[Any]:
        """Active entities in a stable order, snapshotted once per generation run."""
        query = (
            self._build_query()
            .filter(self.model.is_active.is_(True))
            .order_by(self.model.created_at.asc(), self.model.id.asc())
        )
        return self._execute_query(query)
