# backend/courtside/models/__init__.py
"""
SQLAlchemy models for the Courtside session platform.

Importing this package registers every table on ``Base.metadata``.
"""

from .registry import SERVICE_BINDINGS, ServiceBinding, get_binding, parse_service_type
from .schedule_entity import AcademyBatch, AcademyProgram, CoachBatch, TurfGround
from .session import AcademyBatchSession, AcademyProgramSession, CoachSession, TurfSession
from .session_request import (
    AcademyBatchSessionRequest,
    AcademyProgramSessionRequest,
    CoachSessionRequest,
    TurfSessionRequest,
)

__all__ = [
    "AcademyBatch",
    "AcademyProgram",
    "CoachBatch",
    "TurfGround",
    "AcademyBatchSession",
    "AcademyProgramSession",
    "CoachSession",
    "TurfSession",
    "AcademyBatchSessionRequest",
    "AcademyProgramSessionRequest",
    "CoachSessionRequest",
    "TurfSessionRequest",
    "SERVICE_BINDINGS",
    "ServiceBinding",
    "get_binding",
    "parse_service_type",
]
