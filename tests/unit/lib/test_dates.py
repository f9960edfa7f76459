from datetime import date, datetime, timezone

import pytest

from dayplan.core.errors import ValidationError
from dayplan.lib.dates import parse_day, parse_deadline, relative_label

# Wednesday
TODAY = date(2024, 3, 6)


@pytest.mark.parametrize(
    ("spec", "expected"),
    [
        ("today", date(2024, 3, 6)),
        ("Tomorrow", date(2024, 3, 7)),
        ("yesterday", date(2024, 3, 5)),
        ("wed", date(2024, 3, 6)),
        ("friday", date(2024, 3, 8)),
        ("mon", date(2024, 3, 11)),
        ("2024-04-01", date(2024, 4, 1)),
        ("April 2", date(2024, 4, 2)),
    ],
)
def test_parse_day(spec, expected):
    assert parse_day(spec, TODAY) == expected


def test_parse_day_rejects_garbage():
    with pytest.raises(ValidationError, match="cannot read date"):
        parse_day("someday soon", TODAY)


def test_relative_label():
    assert relative_label(TODAY, TODAY) == "today"
    assert relative_label(date(2024, 3, 7), TODAY) == "tomorrow"
    assert relative_label(date(2024, 3, 5), TODAY) == "yesterday"
    assert relative_label(date(2024, 3, 9), TODAY) == "sat"
    assert relative_label(date(2024, 4, 1), TODAY) == "01/04"


NOW = datetime(2024, 3, 6, 9, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    ("spec", "expected"),
    [
        ("fri", datetime(2024, 3, 8, 23, 59, tzinfo=timezone.utc)),
        ("tomorrow", datetime(2024, 3, 7, 23, 59, tzinfo=timezone.utc)),
        ("2024-04-01", datetime(2024, 4, 1, 23, 59, tzinfo=timezone.utc)),
        ("17:00", datetime(2024, 3, 6, 17, 0, tzinfo=timezone.utc)),
        ("2024-04-01 08:15", datetime(2024, 4, 1, 8, 15, tzinfo=timezone.utc)),
    ],
)
def test_parse_deadline(spec, expected):
    assert parse_deadline(spec, NOW) == expected


def test_parse_deadline_rejects_garbage():
    with pytest.raises(ValidationError, match="cannot read deadline"):
        parse_deadline("whenever", NOW)
