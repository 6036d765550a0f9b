"""
Hard constraints that a candidate assignment MUST satisfy.
Every check reads only the grid it is handed, so the same call against the
same grid always gives the same answer and never changes the grid.
"""

import logging
from enum import Enum
from typing import Optional, Sequence

from shiftroster.grid import ScheduleGrid
from shiftroster.models import DAYS_PER_PERIOD, TOTAL_SLOTS, GenerationConfig, ShiftType, Worker
from shiftroster.utils import global_shift_index, rest_hours, week_of

logger = logging.getLogger(__name__)


class Rejection(str, Enum):
    """Reason a candidate was refused."""
    NOT_PREFERRED = "not_preferred"
    ALREADY_WORKING_DAY = "already_working_day"
    WEEKLY_CAP = "weekly_cap"
    NIGHT_CAP = "night_cap"
    CONSECUTIVE_NIGHTS = "consecutive_nights"
    REST_RULE = "rest_rule"
    PATTERN_888 = "pattern_888"
    SINGLE_SHIFT_GAP = "single_shift_gap"
    CLUSTERING = "clustering"


def check_candidate(worker: Worker, global_day: int, shift: ShiftType, grid: ScheduleGrid,
                    config: GenerationConfig, coverage: Optional[float] = None) -> Optional[Rejection]:
    """Return the first rule the candidate breaks, or None if it is legal."""
    name = worker.name

    # 1. Worker must have asked for this slot
    if not worker.prefers(global_day, shift):
        return Rejection.NOT_PREFERRED

    # 2. One shift per day
    if grid.works_on_day(name, global_day):
        return Rejection.ALREADY_WORKING_DAY

    # 3. Weekly cap
    if weekly_cap_reached(name, global_day, grid, config):
        return Rejection.WEEKLY_CAP

    # 4. Night cap and no back-to-back nights
    if shift == ShiftType.NIGHT:
        if night_cap_reached(name, global_day, grid, config):
            return Rejection.NIGHT_CAP
        if has_adjacent_night(name, global_day, grid):
            return Rejection.CONSECUTIVE_NIGHTS

    # 5. Minimum rest across the day boundary (night -> morning is the only breach)
    if violates_rest_rule(name, global_day, shift, grid, config.min_rest_hours):
        return Rejection.REST_RULE

    # 6. work-gap-work-gap-work inside one window
    if would_create_888_pattern(name, global_day, shift, grid, config.pattern_window):
        return Rejection.PATTERN_888

    # 7. Optional cap on working days in any 3-day window
    if config.max_days_in_three is not None and would_exceed_days_in_three(
            name, global_day, grid, config.max_days_in_three):
        return Rejection.CLUSTERING

    # 8. Isolated single-shift gaps once the grid is well covered
    if coverage is None:
        coverage = grid.coverage_percent()
    if single_gap_rule_active(coverage, config) and would_create_single_shift_gap(
            name, global_day, shift, grid, config.single_gap_distance):
        return Rejection.SINGLE_SHIFT_GAP

    return None


def is_eligible(worker: Worker, global_day: int, shift: ShiftType, grid: ScheduleGrid,
                config: GenerationConfig, coverage: Optional[float] = None) -> bool:
    reason = check_candidate(worker, global_day, shift, grid, config, coverage)
    if reason is not None:
        logger.debug("Rejected %s for day %d %s: %s", worker.name, global_day, shift.value, reason.value)
    return reason is None


def weekly_cap_reached(worker_name: str, global_day: int, grid: ScheduleGrid,
                       config: GenerationConfig) -> bool:
    """Worker already holds the maximum number of shifts in this slot's week."""
    return grid.count_in_week(worker_name, week_of(global_day)) >= config.max_shifts_per_week


def night_cap_reached(worker_name: str, global_day: int, grid: ScheduleGrid,
                      config: GenerationConfig) -> bool:
    """Worker already holds the maximum number of nights in this slot's week."""
    nights = grid.count_in_week(worker_name, week_of(global_day), ShiftType.NIGHT)
    return nights >= config.max_nights_per_week


def has_adjacent_night(worker_name: str, global_day: int, grid: ScheduleGrid) -> bool:
    """Worker holds a night on the day before or the day after."""
    return (grid.get(global_day - 1, ShiftType.NIGHT) == worker_name
            or grid.get(global_day + 1, ShiftType.NIGHT) == worker_name)


def violates_rest_rule(worker_name: str, global_day: int, shift: ShiftType,
                       grid: ScheduleGrid, min_rest_hours: int = 8) -> bool:
    """Too little rest between this shift and the worker's shift on a neighbouring day."""
    previous = grid.shift_on_day(worker_name, global_day - 1)
    if previous is not None and rest_hours(global_day - 1, previous, global_day, shift) < min_rest_hours:
        return True
    following = grid.shift_on_day(worker_name, global_day + 1)
    if following is not None and rest_hours(global_day, shift, global_day + 1, following) < min_rest_hours:
        return True
    return False


def is_888_pattern(sequence: Sequence[Optional[str]], worker_name: str) -> bool:
    """True when ``sequence`` alternates worker / someone else, starting and ending on the worker.

    Empty cells do not count as a gap: the alternate positions must be held by
    another worker.
    """
    if len(sequence) < 3 or len(sequence) % 2 == 0:
        return False
    for pos, name in enumerate(sequence):
        if pos % 2 == 0:
            if name != worker_name:
                return False
        elif name is None or name == worker_name:
            return False
    return True


def would_create_888_pattern(worker_name: str, global_day: int, shift: ShiftType,
                             grid: ScheduleGrid, window: int = 5) -> bool:
    """Committing the candidate would complete an 888 pattern in some window.

    Covers the candidate's own pattern and the case where the candidate fills a
    gap position that completes the pattern for another worker.
    """
    index = global_shift_index(global_day, shift)
    first = max(0, index - window + 1)
    last = min(TOTAL_SLOTS - window, index)
    for start in range(first, last + 1):
        sequence = [worker_name if i == index else grid.at_index(i) for i in range(start, start + window)]
        for name in set(n for n in sequence if n is not None):
            if is_888_pattern(sequence, name):
                logger.debug("888 pattern for %s in slots %d-%d", name, start, start + window - 1)
                return True
    return False


def working_days_in_window(worker_name: str, first_day: int, grid: ScheduleGrid, span: int = 3) -> int:
    return sum(1 for day in range(first_day, first_day + span) if grid.works_on_day(worker_name, day))


def would_exceed_days_in_three(worker_name: str, global_day: int, grid: ScheduleGrid, limit: int) -> bool:
    """Working ``global_day`` would put more than ``limit`` working days in some 3-day window."""
    for first in range(max(0, global_day - 2), min(global_day, DAYS_PER_PERIOD - 3) + 1):
        others = sum(1 for day in range(first, first + 3)
                     if day != global_day and grid.works_on_day(worker_name, day))
        if others + 1 > limit:
            return True
    return False


def would_create_single_shift_gap(worker_name: str, global_day: int, shift: ShiftType,
                                  grid: ScheduleGrid, distance: int = 2) -> bool:
    """An existing assignment of the worker sits exactly ``distance`` slots away."""
    index = global_shift_index(global_day, shift)
    return any(abs(index - existing) == distance for existing in grid.assigned_indices(worker_name))


def count_single_shift_gaps(worker_name: str, grid: ScheduleGrid, distance: int = 2) -> int:
    """Number of consecutive assignment pairs of the worker separated by exactly one gap."""
    indices = grid.assigned_indices(worker_name)
    return sum(1 for a, b in zip(indices, indices[1:]) if b - a == distance)


def single_gap_rule_active(coverage: float, config: GenerationConfig) -> bool:
    return config.enforce_gap_rule and coverage >= config.gap_rule_threshold