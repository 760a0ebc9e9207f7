# backend/courtside/models/registry.py
"""
Service type registry.

Maps each ServiceType to the models backing it so repositories and services
can stay generic and dispatch on the service type alone.
"""

from dataclasses import dataclass
from typing import Any, Dict, Type

from ..core.enums import ServiceType, SupplierType
from ..core.exceptions import InvalidServiceTypeException
from .schedule_entity import AcademyBatch, AcademyProgram, CoachBatch, TurfGround
from .session import AcademyBatchSession, AcademyProgramSession, CoachSession, TurfSession
from .session_request import (
    AcademyBatchSessionRequest,
    AcademyProgramSessionRequest,
    CoachSessionRequest,
    TurfSessionRequest,
)


@dataclass(frozen=True)
class ServiceBinding:
    service_type: ServiceType
    session_model: Type[Any]
    request_model: Type[Any]
    entity_model: Type[Any]
    session_id_prefix: str
    supplier_type: SupplierType
    # Grounds repeat daily over slots; everything else repeats on weekdays
    uses_daily_slots: bool = False


SERVICE_BINDINGS: Dict[ServiceType, ServiceBinding] = {
    ServiceType.ACADEMY_BATCH: ServiceBinding(
        service_type=ServiceType.ACADEMY_BATCH,
        session_model=AcademyBatchSession,
        request_model=AcademyBatchSessionRequest,
        entity_model=AcademyBatch,
        session_id_prefix="acad_batch",
        supplier_type=SupplierType.ACADEMY,
    ),
    ServiceType.ACADEMY_PROGRAM: ServiceBinding(
        service_type=ServiceType.ACADEMY_PROGRAM,
        session_model=AcademyProgramSession,
        request_model=AcademyProgramSessionRequest,
        entity_model=AcademyProgram,
        session_id_prefix="acad_prog",
        supplier_type=SupplierType.ACADEMY,
    ),
    ServiceType.COACH: ServiceBinding(
        service_type=ServiceType.COACH,
        session_model=CoachSession,
        request_model=CoachSessionRequest,
        entity_model=CoachBatch,
        session_id_prefix="coach",
        supplier_type=SupplierType.COACH,
    ),
    ServiceType.TURF: ServiceBinding(
        service_type=ServiceType.TURF,
        session_model=TurfSession,
        request_model=TurfSessionRequest,
        entity_model=TurfGround,
        session_id_prefix="turf",
        supplier_type=SupplierType.TURF,
        uses_daily_slots=True,
    ),
}


def parse_service_type(value: Any) -> ServiceType:
    """
    Coerce a raw value into a ServiceType.

    Raises:
        InvalidServiceTypeException: for anything outside the four supported types
    """
    if isinstance(value, ServiceType):
        return value
    try:
        return ServiceType(str(value).strip().lower())
    except ValueError:
        raise InvalidServiceTypeException(value, [t.value for t in ServiceType]) from None


def get_binding(service_type: Any) -> ServiceBinding:
    return SERVICE_BINDINGS[parse_service_type(service_type)]


def service_types_for_supplier(supplier_type: SupplierType) -> list:
    return [b.service_type for b in SERVICE_BINDINGS.values() if b.supplier_type == supplier_type]
