import datetime as dt
from typing import Tuple
from dateutil.rrule import rrule, DAILY

from shiftroster.models import (
    DAYS_PER_PERIOD, DAYS_PER_WEEK, SHIFT_DEFINITIONS, SHIFT_ORDER, SHIFTS_PER_DAY, ShiftType,
)


def date_list(start: dt.date, end: dt.date):
    return [d.date() for d in rrule(DAILY, dtstart=start, until=end)]


def period_dates(start: dt.date):
    """The 14 calendar dates covered by a period starting on ``start``."""
    return date_list(start, start + dt.timedelta(days=DAYS_PER_PERIOD - 1))


def global_shift_index(global_day: int, shift: ShiftType) -> int:
    return global_day * SHIFTS_PER_DAY + SHIFT_DEFINITIONS[shift]["ordinal"]


def slot_from_index(index: int) -> Tuple[int, ShiftType]:
    return index // SHIFTS_PER_DAY, SHIFT_ORDER[index % SHIFTS_PER_DAY]


def week_of(global_day: int) -> int:
    return global_day // DAYS_PER_WEEK


def day_in_week(global_day: int) -> int:
    return global_day % DAYS_PER_WEEK


def shift_end_time(start: dt.date, global_day: int, shift: ShiftType) -> dt.datetime:
    """End of a shift as a timestamp; nights finish on the next calendar day."""
    day = start + dt.timedelta(days=global_day)
    if shift == ShiftType.NIGHT:
        day += dt.timedelta(days=1)
    return dt.datetime.combine(day, dt.time(hour=SHIFT_DEFINITIONS[shift]["end"]))


def shift_bounds_hours(global_day: int, shift: ShiftType) -> Tuple[int, int]:
    """(start, end) of a shift in hours from the start of the period."""
    start = global_day * 24 + SHIFT_DEFINITIONS[shift]["start"]
    end = global_day * 24 + SHIFT_DEFINITIONS[shift]["end"]
    if end <= start:
        end += 24
    return start, end


def rest_hours(prev_day: int, prev_shift: ShiftType, next_day: int, next_shift: ShiftType) -> int:
    """Hours between the end of one shift and the start of a later one."""
    return shift_bounds_hours(next_day, next_shift)[0] - shift_bounds_hours(prev_day, prev_shift)[1]


def describe_slot(index: int) -> str:
    day, shift = slot_from_index(index)
    return f"day {day} {shift.value}"
