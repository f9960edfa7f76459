"""Recurrence rules: validation and next-occurrence arithmetic.

Everything here is pure. Rules are validated when a task is created or edited,
so ``next_occurrence`` assumes ``interval >= 1`` and a known type.
"""

from collections.abc import Iterable
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

from .core.errors import ValidationError
from .core.models import WEEKDAYS, RecurrenceRule, RecurrenceType

__all__ = [
    "next_occurrence",
    "parse_weekdays",
    "validate_rule",
]

_WEEKDAY_ALIASES = {
    "monday": "mon",
    "tuesday": "tue",
    "wednesday": "wed",
    "thursday": "thu",
    "friday": "fri",
    "saturday": "sat",
    "sunday": "sun",
}


def parse_weekdays(value: str | Iterable[str] | None) -> tuple[str, ...]:
    """Normalize 'Mon,fri' / ['monday', 'FRI'] into ('mon', 'fri') in week order."""
    if value is None:
        return ()
    parts = value.split(",") if isinstance(value, str) else list(value)
    days: set[str] = set()
    for part in parts:
        key = part.strip().lower()
        if not key:
            continue
        key = _WEEKDAY_ALIASES.get(key, key)
        if key not in WEEKDAYS:
            raise ValidationError(f"unknown weekday '{part.strip()}' (use mon..sun)")
        days.add(key)
    return tuple(d for d in WEEKDAYS if d in days)


def validate_rule(
    recurrence_type: str | RecurrenceType | None,
    interval: int | None = 1,
    weekdays: str | Iterable[str] | None = None,
) -> RecurrenceRule:
    if recurrence_type is None:
        raise ValidationError("recurring task needs a recurrence type (daily, weekly, monthly)")
    try:
        rtype = RecurrenceType(str(recurrence_type).strip().lower())
    except ValueError:
        raise ValidationError(
            f"unknown recurrence type '{recurrence_type}' (use daily, weekly, monthly)"
        ) from None
    if interval is None:
        interval = 1
    if isinstance(interval, bool) or not isinstance(interval, int):
        raise ValidationError(f"recurrence interval must be an integer, got {interval!r}")
    if interval < 1:
        raise ValidationError(f"recurrence interval must be >= 1, got {interval}")
    days = parse_weekdays(weekdays)
    if days and rtype != RecurrenceType.WEEKLY:
        raise ValidationError("weekdays only apply to weekly recurrence")
    return RecurrenceRule(type=rtype, interval=interval, weekdays=days)


def _week_start(d: date) -> date:
    return d - timedelta(days=d.weekday())


def _next_weekly(base: date, interval: int, weekdays: set[int]) -> date:
    origin = _week_start(base)
    cursor = base + timedelta(days=1)
    # a matching weekday always exists within the next interval + 1 weeks
    limit = base + timedelta(weeks=interval + 1)
    while cursor <= limit:
        week_diff = (_week_start(cursor) - origin).days // 7
        if week_diff % interval == 0 and cursor.weekday() in weekdays:
            return cursor
        cursor += timedelta(days=1)
    return base + timedelta(weeks=interval)


def next_occurrence(base_date: date, rule: RecurrenceRule) -> date:
    """Return the first occurrence strictly after ``base_date``."""
    interval = rule.interval
    if rule.type == RecurrenceType.DAILY:
        return base_date + timedelta(days=interval)
    if rule.type == RecurrenceType.WEEKLY:
        if not rule.weekdays:
            return base_date + timedelta(weeks=interval)
        return _next_weekly(base_date, interval, rule.weekday_numbers)
    # relativedelta clamps Jan 31 + 1 month to the last day of February
    return base_date + relativedelta(months=interval)
