from __future__ import annotations

from datetime import date
from unittest.mock import patch

from celery.schedules import crontab
import pytest

from courtside.core.enums import ServiceType
from courtside.schemas.recurrence import GenerationResult, GenerationSummary
import courtside.tasks.beat_schedule as beat
from courtside.tasks.celery_app import celery_app, create_celery_app, health_check
import courtside.tasks.session_generation as tasks


class _Session:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


def test_generation_task_success(monkeypatch):
    session = _Session()
    monkeypatch.setattr(tasks, "SessionLocal", lambda: session)
    seen = {}

    class _GenerationService:
        def __init__(self, db):
            seen["db"] = db

        def generate_sessions(self, today=None, service_types=None):
            seen["today"] = today
            seen["service_types"] = service_types
            return GenerationSummary(
                run_date=today,
                months=[(2026, 6), (2026, 7)],
                results=[
                    GenerationResult(
                        service_type=ServiceType.TURF, year=2026, month=7, created=16
                    ),
                    GenerationResult(
                        service_type=ServiceType.COACH,
                        year=2026,
                        month=7,
                        created=4,
                        failures=[{"entity_id": "c1", "error": "bad days"}],
                    ),
                ],
            )

    monkeypatch.setattr(tasks, "SessionGenerationService", _GenerationService)

    result = tasks.generate_recurring_sessions_task.run(
        run_date="2026-06-25", service_types=["turf", "coach"]
    )

    assert result == {
        "run_date": "2026-06-25",
        "months": ["2026-06", "2026-07"],
        "created": 20,
        "failed_entities": 1,
    }
    assert seen["db"] is session
    assert seen["today"] == date(2026, 6, 25)
    assert seen["service_types"] == [ServiceType.TURF, ServiceType.COACH]
    assert session.closed is True


def test_generation_task_against_database(monkeypatch, session_factory, make_entity):
    make_entity(ServiceType.TURF, slots="06:00-07:00")
    monkeypatch.setattr(tasks, "SessionLocal", session_factory)

    first = tasks.generate_recurring_sessions_task.run(run_date="2026-06-29")
    second = tasks.generate_recurring_sessions_task.run(run_date="2026-06-29")

    # June 29-30 plus all of July
    assert first["created"] == 33
    assert second["created"] == 0


def test_generation_task_retries_on_error(monkeypatch):
    session = _Session()
    monkeypatch.setattr(tasks, "SessionLocal", lambda: session)

    class _GenerationService:
        def __init__(self, _db):
            pass

        def generate_sessions(self, **_kwargs):
            raise RuntimeError("database unavailable")

    monkeypatch.setattr(tasks, "SessionGenerationService", _GenerationService)

    with patch.object(
        tasks.generate_recurring_sessions_task, "retry", side_effect=RuntimeError("retry")
    ):
        with pytest.raises(RuntimeError, match="retry"):
            tasks.generate_recurring_sessions_task.run(run_date="2026-06-25")

    assert session.closed is True


def test_task_registration():
    assert beat.SESSION_GENERATION_TASK in celery_app.tasks
    assert tasks.generate_recurring_sessions_task.max_retries == 3
    assert celery_app.conf.task_routes["sessions.*"] == {"queue": "sessions"}


def test_health_check_task():
    assert health_check.run()["status"] == "healthy"


def test_broker_url_gets_a_database_index(monkeypatch):
    monkeypatch.delenv("CELERY_BROKER_URL", raising=False)
    monkeypatch.setenv("REDIS_URL", "redis://cache:6379")

    app = create_celery_app()

    assert app.conf.broker_url == "redis://cache:6379/0"


class TestBeatSchedule:
    def test_three_daily_jobs(self):
        schedule = beat.get_beat_schedule("production")

        assert {entry["task"] for entry in schedule.values()} == {
            "billing.generate_monthly_fees",
            "turf.generate_tomorrow_slots",
            "sessions.generate_recurring_sessions",
        }

    def test_sessions_run_just_after_midnight(self):
        entry = beat.get_beat_schedule("production")["generate-recurring-sessions"]

        assert entry["schedule"] == crontab(hour=0, minute=5)
        assert entry["options"]["queue"] == "sessions"

    def test_development_runs_hourly(self):
        entry = beat.get_beat_schedule("development")["generate-recurring-sessions"]

        assert entry["schedule"] == crontab(minute=5)

    def test_unknown_environment_uses_base_schedule(self):
        assert beat.get_beat_schedule("staging") == beat.CELERYBEAT_SCHEDULE
