import re
from datetime import date, datetime, time
from typing import Union

from study_planner.exceptions import InvalidTimeFormat, NonPositiveDuration, InvalidDayOfWeek

TIME_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")

# Durations are measured on a fixed day so no timezone or DST can leak in
REFERENCE_DATE = date(2000, 1, 1)

TimeValue = Union[str, time]


class TimeArithmetic:
    """
    Wall-clock arithmetic for weekly planner slots.
    Works on "HH:MM" values within a single day; overnight spans are not supported.
    """

    @staticmethod
    def parse(value: TimeValue) -> time:
        """
        Parse a 24-hour "HH:MM" (or "H:MM") string.

        Raises:
            InvalidTimeFormat: if the value does not match the pattern
        """
        if isinstance(value, time):
            return value.replace(second=0, microsecond=0)
        if not isinstance(value, str):
            raise InvalidTimeFormat(f"Invalid time value: {value!r}")

        match = TIME_PATTERN.match(value.strip())
        if not match:
            raise InvalidTimeFormat(f"Time must be in HH:MM format, got {value!r}")
        return time(int(match.group(1)), int(match.group(2)))

    @staticmethod
    def normalize(value: TimeValue) -> str:
        """Return the canonical zero-padded "HH:MM" form"""
        return TimeArithmetic.parse(value).strftime("%H:%M")

    @staticmethod
    def to_minutes(value: TimeValue) -> int:
        """Minutes since midnight"""
        parsed = TimeArithmetic.parse(value)
        return parsed.hour * 60 + parsed.minute

    @staticmethod
    def duration_minutes(start: TimeValue, end: TimeValue) -> int:
        """
        Whole minutes elapsed between start and end on the same day.

        Args:
            start: Start time "HH:MM"
            end: End time "HH:MM", strictly after start

        Returns:
            Integer number of minutes

        Raises:
            InvalidTimeFormat: if either value is malformed
            NonPositiveDuration: if end <= start
        """
        start_dt = datetime.combine(REFERENCE_DATE, TimeArithmetic.parse(start))
        end_dt = datetime.combine(REFERENCE_DATE, TimeArithmetic.parse(end))

        minutes = int((end_dt - start_dt).total_seconds() // 60)
        if minutes <= 0:
            raise NonPositiveDuration(f"End time {end} must be after start time {start}")
        return minutes

    @staticmethod
    def day_of_week(current_date: date) -> int:
        """Day-of-week index with 0=Sunday .. 6=Saturday"""
        return (current_date.weekday() + 1) % 7

    @staticmethod
    def validate_day(day_of_week: int) -> int:
        if not isinstance(day_of_week, int) or isinstance(day_of_week, bool) or not 0 <= day_of_week <= 6:
            raise InvalidDayOfWeek(f"Day of week must be between 0 and 6, got {day_of_week!r}")
        return day_of_week
