from datetime import date, datetime, time, timedelta

from dateutil import parser as dateutil_parser
from dateutil.parser import ParserError

from dayplan.core.errors import ValidationError
from dayplan.core.models import WEEKDAYS

_DAY_ALIASES = {
    "monday": "mon",
    "tuesday": "tue",
    "wednesday": "wed",
    "thursday": "thu",
    "friday": "fri",
    "saturday": "sat",
    "sunday": "sun",
}


def parse_day(spec: str, today: date) -> date:
    """Parse 'today', 'tomorrow', 'yesterday', a weekday name, or a calendar date.

    Weekday names mean the next such day, today included.
    """
    key = spec.strip().lower()
    if key == "today":
        return today
    if key == "yesterday":
        return today - timedelta(days=1)
    if key == "tomorrow":
        return today + timedelta(days=1)
    key = _DAY_ALIASES.get(key, key)
    if key in WEEKDAYS:
        days_ahead = (WEEKDAYS.index(key) - today.weekday()) % 7
        return today + timedelta(days=days_ahead)
    try:
        return date.fromisoformat(key)
    except ValueError:
        pass
    try:
        return dateutil_parser.parse(
            spec, default=datetime(today.year, today.month, today.day)
        ).date()
    except (ParserError, ValueError, OverflowError):
        raise ValidationError(
            f"cannot read date '{spec}' (use today, tomorrow, a weekday, or YYYY-MM-DD)"
        ) from None


_END_OF_DAY = time(23, 59)


def parse_deadline(spec: str, now: datetime) -> datetime:
    """Parse a deadline like 'fri', '2024-03-08', '17:00' or '2024-03-08 17:00'.

    A bare day means the end of that day. Naive results take the zone of ``now``.
    """
    key = spec.strip().lower()
    if key in ("today", "yesterday", "tomorrow") or _DAY_ALIASES.get(key, key) in WEEKDAYS:
        return datetime.combine(parse_day(key, now.date()), _END_OF_DAY, tzinfo=now.tzinfo)
    try:
        return datetime.combine(date.fromisoformat(key), _END_OF_DAY, tzinfo=now.tzinfo)
    except ValueError:
        pass
    default = datetime.combine(now.date(), _END_OF_DAY)
    try:
        parsed = dateutil_parser.parse(spec, default=default)
    except (ParserError, ValueError, OverflowError):
        raise ValidationError(
            f"cannot read deadline '{spec}' (use a day, HH:MM, or YYYY-MM-DD HH:MM)"
        ) from None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=now.tzinfo)


def relative_label(day: date, today: date) -> str:
    delta = (day - today).days
    if delta == 0:
        return "today"
    if delta == 1:
        return "tomorrow"
    if delta == -1:
        return "yesterday"
    if 1 < delta < 7:
        return day.strftime("%a").lower()
    return f"{day.day:02d}/{day.month:02d}"
