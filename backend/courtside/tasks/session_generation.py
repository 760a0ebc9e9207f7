# backend/courtside/tasks/session_generation.py
"""
Celery task for recurring session generation.

Safe to run any number of times a day, and alongside a manual run: only
missing sessions are inserted.
"""

from datetime import date
import logging
from typing import Any, Dict, List, Optional

from courtside.database import SessionLocal
from courtside.models.registry import parse_service_type
from courtside.services.session_generation_service import SessionGenerationService
from courtside.tasks.beat_schedule import SESSION_GENERATION_TASK
from courtside.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(
    name=SESSION_GENERATION_TASK,
    bind=True,
    max_retries=3,
    default_retry_delay=60,
)
def generate_recurring_sessions_task(
    self: Any,
    run_date: Optional[str] = None,
    service_types: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """
    Generate sessions for the current month (and next month in its final week).

    Args:
        run_date: ISO date to treat as today; defaults to the worker's date
        service_types: restrict the run to these service types
    """
    today = date.fromisoformat(run_date) if run_date else date.today()
    types = [parse_service_type(t) for t in service_types] if service_types else None

    db = SessionLocal()
    try:
        service = SessionGenerationService(db)
        summary = service.generate_sessions(today=today, service_types=types)
        result = {
            "run_date": today.isoformat(),
            "months": [f"{year}-{month:02d}" for year, month in summary.months],
            "created": summary.total_created,
            "failed_entities": sum(len(r.failures) for r in summary.results),
        }
        logger.info("Recurring session generation completed", extra=result)
        return result
    except Exception as exc:
        logger.exception(
            "Recurring session generation failed", extra={"run_date": today.isoformat()}
        )
        raise self.retry(exc=exc)
    finally:
        db.close()
