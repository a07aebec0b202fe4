import pytest
from datetime import date, time

from study_planner.exceptions import InvalidTimeFormat, NonPositiveDuration, InvalidDayOfWeek
from study_planner.timeutils import TimeArithmetic


def test_duration_in_minutes():
    assert TimeArithmetic.duration_minutes("09:00", "10:30") == 90
    assert TimeArithmetic.duration_minutes("00:00", "23:59") == 1439


def test_duration_rejects_end_before_or_equal_start():
    with pytest.raises(NonPositiveDuration):
        TimeArithmetic.duration_minutes("10:00", "09:00")
    with pytest.raises(NonPositiveDuration):
        TimeArithmetic.duration_minutes("10:00", "10:00")


@pytest.mark.parametrize("value", ["24:00", "9:5", "09:60", "0900", "", "noon"])
def test_parse_rejects_malformed(value):
    with pytest.raises(InvalidTimeFormat):
        TimeArithmetic.parse(value)


def test_normalize_pads_single_digit_hour():
    assert TimeArithmetic.normalize("9:05") == "09:05"
    assert TimeArithmetic.normalize(time(7, 30)) == "07:30"


def test_invalid_time_format_is_a_value_error():
    # pydantic validators turn ValueError into a field error
    with pytest.raises(ValueError):
        TimeArithmetic.parse("25:00")


def test_day_of_week_starts_on_sunday():
    assert TimeArithmetic.day_of_week(date(2026, 10, 18)) == 0  # Sunday
    assert TimeArithmetic.day_of_week(date(2026, 10, 19)) == 1  # Monday
    assert TimeArithmetic.day_of_week(date(2026, 10, 24)) == 6  # Saturday


@pytest.mark.parametrize("day", [-1, 7, True, "1"])
def test_validate_day_rejects_out_of_range(day):
    with pytest.raises(InvalidDayOfWeek):
        TimeArithmetic.validate_day(day)
