#!/usr/bin/env python
# backend/courtside/commands/sessions.py
"""
Session management commands for Courtside.

Manual trigger for recurring session generation. Runs may overlap with the
scheduled Celery job; only missing sessions are ever inserted.

Usage:
    python -m courtside.commands.sessions generate                      # like the scheduler
    python -m courtside.commands.sessions generate --date 2026-06-25
    python -m courtside.commands.sessions generate --service turf --year 2026 --month 7
    python -m courtside.commands.sessions generate --async              # enqueue via Celery
"""

import argparse
from datetime import date
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from courtside.core.exceptions import DomainException
from courtside.database import SessionLocal
from courtside.models.registry import SERVICE_BINDINGS, parse_service_type
from courtside.services.session_generation_service import SessionGenerationService

logger = logging.getLogger(__name__)


def run_generation(
    run_date: Optional[date] = None,
    service_types: Optional[List[str]] = None,
    year: Optional[int] = None,
    month: Optional[int] = None,
) -> Dict[str, Any]:
    """Run generation synchronously and return a JSON-friendly summary."""
    types = [parse_service_type(t) for t in service_types] if service_types else None
    today = run_date or date.today()

    db = SessionLocal()
    try:
        service = SessionGenerationService(db)
        if year is not None and month is not None:
            results = [
                service.generate_for_month(service_type, year, month, today)
                for service_type in (types or list(SERVICE_BINDINGS))
            ]
        else:
            results = service.generate_sessions(today=today, service_types=types).results
    finally:
        db.close()

    return {
        "run_date": today.isoformat(),
        "results": [r.model_dump(mode="json") for r in results],
        "created": sum(r.created for r in results),
    }


def enqueue_generation(run_date: Optional[date], service_types: Optional[List[str]]) -> str:
    from courtside.tasks.session_generation import generate_recurring_sessions_task

    result = generate_recurring_sessions_task.delay(
        run_date=run_date.isoformat() if run_date else None, service_types=service_types
    )
    return str(result.id)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Courtside session management commands",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    generate = subparsers.add_parser("generate", help="Generate recurring sessions")
    generate.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Treat this ISO date as today (default: today)",
    )
    generate.add_argument(
        "--service",
        action="append",
        dest="services",
        help="Service type to generate (repeatable; default: all)",
    )
    generate.add_argument("--year", type=int, help="Generate one explicit month (with --month)")
    generate.add_argument("--month", type=int, choices=range(1, 13), metavar="1-12")
    generate.add_argument(
        "--async", action="store_true", dest="async_mode", help="Enqueue on Celery instead"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command != "generate":
        parser.print_help()
        return 1

    if (args.year is None) != (args.month is None):
        parser.error("--year and --month must be given together")

    try:
        if args.async_mode:
            if args.year is not None:
                parser.error("--async cannot be combined with --year/--month")
            task_id = enqueue_generation(args.date, args.services)
            print(json.dumps({"task_id": task_id}))
            return 0

        summary = run_generation(args.date, args.services, args.year, args.month)
    except DomainException as exc:
        logger.error(f"Session generation rejected: {exc.message}")
        return 2

    print(json.dumps(summary, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
