# backend/courtside/services/session_generation_service.py
"""
Session Generation Service for the Courtside session platform.

Materializes recurring schedules into concrete sessions:
1. Snapshot the active entities of a service type and resolve their rules
   against the configured defaults
2. Expand the rules for the target month (pure, see recurrence.py)
3. Skip occurrences already stored, using one key lookup per run
4. Insert the rest with insert-or-ignore so overlapping runs never duplicate

Each entity is committed on its own; an entity that fails is logged and
reported while the run moves on to the next one.
"""

from datetime import date
from typing import Callable, Iterable, List, Optional, Set, Tuple

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import ServiceType
from ..models.registry import SERVICE_BINDINGS, ServiceBinding, get_binding
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..monitoring.session_metrics import SessionMetricsHook, session_metrics
from ..repositories.factory import RepositoryFactory
from ..repositories.session_repository import OccurrenceKey, SessionRepository
from ..schemas.recurrence import (
    EntityFailure,
    GenerationResult,
    GenerationSummary,
    GroundSlotRule,
    WeeklyRule,
)
from ..utils.time_helpers import month_bounds
from .base import BaseService
from .recurrence import Rule, expand_rule, target_months


def _default_schedule(service_type: ServiceType) -> Tuple[List[str], str, str]:
    if service_type == ServiceType.COACH:
        return (
            settings.coach_default_days,
            settings.coach_default_start_time,
            settings.coach_default_end_time,
        )
    return (
        settings.academy_default_days,
        settings.academy_default_start_time,
        settings.academy_default_end_time,
    )


def build_rule(binding: ServiceBinding, entity) -> Rule:
    """
    Resolve one entity's schedule into a rule.

    Blank or missing columns fall back to the service defaults.

    Raises:
        ValueError: when the entity's own schedule values are malformed
    """
    if binding.uses_daily_slots:
        return GroundSlotRule(
            entity_id=entity.id,
            owner_id=entity.owner_id,
            slots=entity.slot_list or settings.turf_default_slots,
        )

    default_days, default_start, default_end = _default_schedule(binding.service_type)
    return WeeklyRule(
        entity_id=entity.id,
        owner_id=entity.owner_id,
        weekdays=entity.day_list or default_days,
        start_time=entity.start_time or default_start,
        end_time=entity.end_time or default_end,
    )


class SessionGenerationService(BaseService):
    """Expands recurring schedules into bookable sessions."""

    def __init__(
        self,
        db: Session,
        metrics: Optional[SessionMetricsHook] = None,
        clock: Optional[Callable[[], date]] = None,
        lookahead_days: Optional[int] = None,
    ):
        super().__init__(db)
        self.metrics = metrics or session_metrics
        self.clock = clock or date.today
        self.lookahead_days = (
            settings.generation_lookahead_days if lookahead_days is None else lookahead_days
        )

    def load_rules(self, service_type: ServiceType) -> Tuple[List[Rule], List[EntityFailure]]:
        """Snapshot active entities and resolve their rules for this run."""
        binding = get_binding(service_type)
        entity_repository = RepositoryFactory.create_schedule_entity_repository(
            self.db, binding.service_type
        )

        rules: List[Rule] = []
        failures: List[EntityFailure] = []
        for entity in entity_repository.list_active():
            try:
                rules.append(build_rule(binding, entity))
            except ValueError as exc:
                self.logger.error(
                    f"Invalid schedule for {binding.service_type.value} entity {entity.id}: {exc}"
                )
                failures.append(EntityFailure(entity_id=entity.id, error=str(exc)))
        return rules, failures

    @BaseService.measure_operation("generate_for_month")
    def generate_for_month(
        self,
        service_type: ServiceType,
        year: int,
        month: int,
        today: Optional[date] = None,
    ) -> GenerationResult:
        """
        Generate one service type's sessions for one month.

        Dates before ``today`` are never generated. Re-running is safe and
        creates only what is missing.
        """
        binding = get_binding(service_type)
        today = today or self.clock()
        result = GenerationResult(service_type=binding.service_type, year=year, month=month)

        rules, failures = self.load_rules(binding.service_type)
        result.entities = len(rules) + len(failures)
        result.failures.extend(failures)

        first_day, last_day = month_bounds(year, month)
        if last_day < today or not rules:
            return result

        session_repository = RepositoryFactory.create_session_repository(
            self.db, binding.service_type
        )
        existing = session_repository.existing_occurrence_keys(
            max(first_day, today), last_day, [rule.entity_id for rule in rules]
        )

        for rule in rules:
            try:
                created, skipped = self._generate_for_rule(
                    session_repository, rule, year, month, today, existing
                )
            except Exception as exc:
                self.logger.exception(
                    f"Session generation failed for {binding.service_type.value} "
                    f"entity {rule.entity_id} ({year}-{month:02d})"
                )
                prometheus_metrics.inc_generation_failure(binding.service_type.value)
                result.failures.append(EntityFailure(entity_id=rule.entity_id, error=str(exc)))
                continue
            result.created += created
            result.skipped_existing += skipped

        prometheus_metrics.inc_sessions_generated(binding.service_type.value, result.created)
        self.log_operation(
            "generate_for_month",
            service_type=binding.service_type.value,
            year=year,
            month=month,
            created=result.created,
            skipped_existing=result.skipped_existing,
            failed_entities=len(result.failures),
        )
        return result

    @BaseService.measure_operation("generate_sessions")
    def generate_sessions(
        self,
        today: Optional[date] = None,
        service_types: Optional[Iterable[ServiceType]] = None,
    ) -> GenerationSummary:
        """
        Scheduler entry point.

        Covers the current month, plus next month when today is within the
        final days of the month.
        """
        today = today or self.clock()
        types = list(service_types) if service_types else list(SERVICE_BINDINGS)
        months = list(target_months(today, self.lookahead_days))
        summary = GenerationSummary(run_date=today, months=months)

        for year, month in months:
            for service_type in types:
                summary.results.append(self.generate_for_month(service_type, year, month, today))

        self.logger.info(
            f"Generated {summary.total_created} sessions for {len(months)} month(s)",
            extra={"run_date": today.isoformat(), "months": months},
        )
        return summary

    def _generate_for_rule(
        self,
        repository: SessionRepository,
        rule: Rule,
        year: int,
        month: int,
        today: date,
        existing: Set[OccurrenceKey],
    ) -> Tuple[int, int]:
        occurrences = expand_rule(rule, year, month, today)
        missing = [o for o in occurrences if o.key not in existing]
        skipped = len(occurrences) - len(missing)

        created = []
        with self.transaction():
            for occurrence in missing:
                if repository.insert_occurrence(occurrence):
                    created.append(occurrence)
                else:
                    # Stored by a concurrent run after our key lookup
                    skipped += 1

        for occurrence in created:
            existing.add(occurrence.key)
            self.metrics.session_created(
                repository.service_type, occurrence.owner_id, occurrence.date
            )
        return len(created), skipped
