# backend/courtside/services/recurrence.py
"""
Recurrence expansion.

Pure calendar math: turns weekly and daily-slot rules into concrete
occurrences for a target month. Nothing here touches the database, so the
result depends only on the rules, the month and ``today``.
"""

from datetime import date, timedelta
from typing import Iterable, List, Sequence, Tuple, Union

from ..schemas.recurrence import GroundSlotRule, Occurrence, WeeklyRule
from ..utils.time_helpers import days_in_month, is_in_final_days_of_month, next_month

Rule = Union[WeeklyRule, GroundSlotRule]


def weekday_dates(year: int, month: int, weekday: int) -> List[date]:
    """
    All dates in a month falling on ``weekday`` (Monday=0).

    Scans forward from the 1st to the first match, then steps a week at a time.
    """
    current = date(year, month, 1)
    while current.weekday() != weekday:
        current += timedelta(days=1)

    dates = []
    while current.month == month:
        dates.append(current)
        current += timedelta(days=7)
    return dates


def expand_weekly_rule(rule: WeeklyRule, year: int, month: int, today: date) -> List[Occurrence]:
    occurrences = []
    for weekday in rule.weekdays:
        for day in weekday_dates(year, month, weekday):
            if day < today:
                continue
            occurrences.append(
                Occurrence(
                    entity_id=rule.entity_id,
                    owner_id=rule.owner_id,
                    date=day,
                    start_time=rule.start_time,
                    end_time=rule.end_time,
                )
            )
    occurrences.sort(key=lambda o: (o.date, o.start_time))
    return occurrences


def expand_ground_rule(
    rule: GroundSlotRule, year: int, month: int, today: date
) -> List[Occurrence]:
    occurrences = []
    for day_number in range(1, days_in_month(year, month) + 1):
        day = date(year, month, day_number)
        if day < today:
            continue
        for start, end in rule.slots:
            occurrences.append(
                Occurrence(
                    entity_id=rule.entity_id,
                    owner_id=rule.owner_id,
                    date=day,
                    start_time=start,
                    end_time=end,
                )
            )
    return occurrences


def expand_rule(rule: Rule, year: int, month: int, today: date) -> List[Occurrence]:
    if isinstance(rule, GroundSlotRule):
        return expand_ground_rule(rule, year, month, today)
    return expand_weekly_rule(rule, year, month, today)


def expand_month(
    rules: Iterable[Rule], year: int, month: int, today: date
) -> List[Occurrence]:
    """Expand every rule for the month, in rule order."""
    occurrences: List[Occurrence] = []
    for rule in rules:
        occurrences.extend(expand_rule(rule, year, month, today))
    return occurrences


def target_months(today: date, lookahead_days: int = 7) -> Sequence[Tuple[int, int]]:
    """
    Months a generation run on ``today`` must cover.

    The current month always; next month as well once today is inside the
    final ``lookahead_days`` days, so there is no gap at the rollover.
    """
    months = [(today.year, today.month)]
    if is_in_final_days_of_month(today, lookahead_days):
        months.append(next_month(today.year, today.month))
    return months
