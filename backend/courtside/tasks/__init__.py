# backend/courtside/tasks/__init__.py
"""
Celery tasks for Courtside.

Start a worker with:
    celery -A courtside.tasks.celery_app worker --loglevel=info -Q sessions
and the scheduler with:
    celery -A courtside.tasks.celery_app beat --loglevel=info
"""

from courtside.tasks.celery_app import celery_app

__all__ = ["celery_app"]
