# backend/courtside/schemas/recurrence.py
"""
Recurrence rule schemas.

A rule is the resolved schedule of one entity for a generation run: the
entity's own overrides with service defaults filled in. Rules are immutable
snapshots so expansion is a pure function of (rules, month, today).
"""

from datetime import date, time
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..core.enums import ServiceType
from ..utils.time_helpers import parse_clock, parse_slot, weekday_index


class WeeklyRule(BaseModel):
    """Repeat on each listed weekday between ``start_time`` and ``end_time``."""

    model_config = ConfigDict(frozen=True)

    entity_id: str
    owner_id: str
    weekdays: Tuple[int, ...] = Field(default=(), description="Python weekday numbers, Mon=0")
    start_time: time
    end_time: time

    @field_validator("weekdays", mode="before")
    @classmethod
    def _parse_weekdays(cls, value):
        days = []
        for item in value or ():
            index = item if isinstance(item, int) else weekday_index(str(item))
            if not 0 <= index <= 6:
                raise ValueError(f"Weekday index out of range: {index}")
            if index not in days:
                days.append(index)
        return tuple(sorted(days))

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _parse_time(cls, value):
        if isinstance(value, str):
            return parse_clock(value)
        return value

    @model_validator(mode="after")
    def _check_order(self) -> "WeeklyRule":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class GroundSlotRule(BaseModel):
    """Repeat every calendar day across an ordered list of slots."""

    model_config = ConfigDict(frozen=True)

    entity_id: str
    owner_id: str
    slots: Tuple[Tuple[time, time], ...] = ()

    @field_validator("slots", mode="before")
    @classmethod
    def _parse_slots(cls, value):
        parsed: List[Tuple[time, time]] = []
        for item in value or ():
            slot = parse_slot(item) if isinstance(item, str) else tuple(item)
            if slot not in parsed:
                parsed.append(slot)
        return tuple(parsed)


class Occurrence(BaseModel):
    """One concrete session instance produced by expanding a rule."""

    model_config = ConfigDict(frozen=True)

    entity_id: str
    owner_id: str
    date: date
    start_time: time
    end_time: time

    @property
    def key(self) -> Tuple[str, date, time]:
        return (self.entity_id, self.date, self.start_time)


class EntityFailure(BaseModel):
    entity_id: str
    error: str


class GenerationResult(BaseModel):
    """Outcome of generating one service type for one month."""

    service_type: ServiceType
    year: int
    month: int
    entities: int = 0
    created: int = 0
    skipped_existing: int = 0
    failures: List[EntityFailure] = Field(default_factory=list)


class GenerationSummary(BaseModel):
    """Outcome of one scheduler trigger across all service types."""

    run_date: date
    months: List[Tuple[int, int]]
    results: List[GenerationResult] = Field(default_factory=list)

    @property
    def total_created(self) -> int:
        return sum(r.created for r in self.results)

    def created_for(self, service_type: ServiceType, year: int, month: int) -> int:
        return sum(
            r.created
            for r in self.results
            if r.service_type == service_type and (r.year, r.month) == (year, month)
        )
