# backend/courtside/tasks/beat_schedule.py
"""
Celery Beat schedule configuration for Courtside.

Three independent daily jobs. Fee generation and tomorrow's ground slots are
run by other services' workers and are referenced here by task name only;
recurring session generation is implemented in session_generation.py.
"""

from typing import Any

from celery.schedules import crontab

from courtside.core.config import settings

MONTHLY_FEE_TASK = "billing.generate_monthly_fees"
GROUND_SLOT_TASK = "turf.generate_tomorrow_slots"
SESSION_GENERATION_TASK = "sessions.generate_recurring_sessions"

CELERYBEAT_SCHEDULE = {
    "generate-monthly-fees": {
        "task": MONTHLY_FEE_TASK,
        "schedule": crontab(hour=0, minute=0),
        "options": {"queue": "billing", "priority": 3},
    },
    "generate-tomorrow-ground-slots": {
        "task": GROUND_SLOT_TASK,
        "schedule": crontab(hour=0, minute=0),
        "options": {"queue": "turf", "priority": 3},
    },
    "generate-recurring-sessions": {
        "task": SESSION_GENERATION_TASK,
        "schedule": crontab(
            hour=settings.session_generation_hour, minute=settings.session_generation_minute
        ),
        "kwargs": {},
        "options": {"queue": "sessions", "priority": 5},
    },
}

SCHEDULE_CONFIG: dict[str, dict[str, dict[str, Any]]] = {
    "development": {
        # Run hourly locally so a fresh database fills up without waiting a day
        "generate-recurring-sessions": {
            "task": SESSION_GENERATION_TASK,
            "schedule": crontab(minute=settings.session_generation_minute),
            "kwargs": {},
            "options": {"queue": "sessions"},
        },
    },
}


def get_beat_schedule(environment: str = "production") -> dict[str, dict[str, Any]]:
    """
    Get the beat schedule for the specified environment.

    Args:
        environment: The environment name (production, development, test)

    Returns:
        Mapping of schedule entry name to Celery beat configuration dict
    """
    base: dict[str, dict[str, Any]] = dict(CELERYBEAT_SCHEDULE)
    overrides = SCHEDULE_CONFIG.get(environment)
    if overrides:
        base.update(overrides)
    return base
