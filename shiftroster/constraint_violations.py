"""
Hard constraint audit of a finished grid, and single-shift gap analysis.
The search controller runs the audit on every attempt before accepting it;
an attempt that fails the audit is discarded.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

from shiftroster.grid import ScheduleGrid
from shiftroster.hard_constraints import is_888_pattern, working_days_in_window
from shiftroster.models import (
    DAYS_PER_PERIOD, TOTAL_SLOTS, WEEKS_PER_PERIOD, GapAnalysis, GenerationConfig,
    ShiftType, SingleShiftGap, Worker,
)
from shiftroster.utils import describe_slot, global_shift_index, rest_hours, slot_from_index, week_of

logger = logging.getLogger(__name__)


class ViolationType(str, Enum):
    """Types of hard constraint violations."""
    DOUBLE_BOOKING = "double_booking"        # >1 shift on one day
    WEEKLY_CAP = "weekly_cap"                # >6 shifts in a week
    NIGHT_CAP = "night_cap"                  # >2 nights in a week
    CONSECUTIVE_NIGHTS = "consecutive_nights"  # nights on adjacent days
    REST_RULE = "rest_rule"                  # night followed by next-day morning
    PATTERN_888 = "pattern_888"              # work-gap-work-gap-work
    NOT_PREFERRED = "not_preferred"          # assigned outside preferences
    UNKNOWN_WORKER = "unknown_worker"        # name not in the worker pool
    CLUSTERING = "clustering"                # too many working days in 3 days


@dataclass
class ConstraintViolation:
    """Details of a specific constraint violation."""
    violation_type: ViolationType
    worker: str
    description: str
    severity: str = "CRITICAL"  # "CRITICAL", "HIGH"
    current_value: float = 0
    limit_value: float = 0
    affected_slots: List[int] = field(default_factory=list)  # Global Shift Indices


class HardConstraintViolationDetector:
    """Detects hard constraint violations in a finished grid."""

    def __init__(self, workers: Sequence[Worker], config: Optional[GenerationConfig] = None):
        self.workers = {w.name: w for w in workers}
        self.config = config or GenerationConfig()

    def detect_violations(self, grid: ScheduleGrid) -> List[ConstraintViolation]:
        """
        Analyze a grid and detect all hard constraint violations.

        Args:
            grid: Finished (or partially filled) assignment grid

        Returns:
            List of detected violations, critical first
        """
        violations = []
        names = grid.assigned_workers()

        violations.extend(self._check_known_workers(names))
        violations.extend(self._check_preferences(grid))
        for name in names:
            violations.extend(self._check_double_booking(grid, name))
            violations.extend(self._check_weekly_caps(grid, name))
            violations.extend(self._check_night_rules(grid, name))
            violations.extend(self._check_rest_rule(grid, name))
            violations.extend(self._check_days_in_three(grid, name))
        violations.extend(self._check_888_patterns(grid))

        return sorted(violations, key=lambda v: v.severity)

    def _check_known_workers(self, names: List[str]) -> List[ConstraintViolation]:
        return [
            ConstraintViolation(
                violation_type=ViolationType.UNKNOWN_WORKER,
                worker=name,
                description=f"{name} is not in the approved worker pool",
            )
            for name in names if name not in self.workers
        ]

    def _check_preferences(self, grid: ScheduleGrid) -> List[ConstraintViolation]:
        violations = []
        for index, day, shift, name in grid.iter_slots():
            worker = self.workers.get(name) if name else None
            if worker is not None and not worker.prefers(day, shift):
                violations.append(ConstraintViolation(
                    violation_type=ViolationType.NOT_PREFERRED,
                    worker=name,
                    description=f"{name} assigned to {describe_slot(index)} without marking it available",
                    severity="HIGH",
                    affected_slots=[index],
                ))
        return violations

    def _check_double_booking(self, grid: ScheduleGrid, name: str) -> List[ConstraintViolation]:
        violations = []
        for day in range(DAYS_PER_PERIOD):
            held = [global_shift_index(day, s) for s in ShiftType if grid.get(day, s) == name]
            if len(held) > 1:
                violations.append(ConstraintViolation(
                    violation_type=ViolationType.DOUBLE_BOOKING,
                    worker=name,
                    description=f"{name} holds {len(held)} shifts on day {day}",
                    current_value=len(held),
                    limit_value=1,
                    affected_slots=held,
                ))
        return violations

    def _check_weekly_caps(self, grid: ScheduleGrid, name: str) -> List[ConstraintViolation]:
        violations = []
        for week in range(WEEKS_PER_PERIOD):
            # count cells, not days, so a double booking also shows up here
            held = [i for i in grid.assigned_indices(name) if week_of(slot_from_index(i)[0]) == week]
            if len(held) > self.config.max_shifts_per_week:
                violations.append(ConstraintViolation(
                    violation_type=ViolationType.WEEKLY_CAP,
                    worker=name,
                    description=f"{name} works {len(held)} shifts in week {week + 1} "
                                f"(max {self.config.max_shifts_per_week})",
                    current_value=len(held),
                    limit_value=self.config.max_shifts_per_week,
                    affected_slots=held,
                ))
        return violations

    def _check_night_rules(self, grid: ScheduleGrid, name: str) -> List[ConstraintViolation]:
        violations = []
        for week in range(WEEKS_PER_PERIOD):
            nights = grid.count_in_week(name, week, ShiftType.NIGHT)
            if nights > self.config.max_nights_per_week:
                violations.append(ConstraintViolation(
                    violation_type=ViolationType.NIGHT_CAP,
                    worker=name,
                    description=f"{name} works {nights} nights in week {week + 1} "
                                f"(max {self.config.max_nights_per_week})",
                    current_value=nights,
                    limit_value=self.config.max_nights_per_week,
                ))
        for day in range(DAYS_PER_PERIOD - 1):
            if grid.get(day, ShiftType.NIGHT) == name and grid.get(day + 1, ShiftType.NIGHT) == name:
                violations.append(ConstraintViolation(
                    violation_type=ViolationType.CONSECUTIVE_NIGHTS,
                    worker=name,
                    description=f"{name} works nights on days {day} and {day + 1}",
                    affected_slots=[global_shift_index(day, ShiftType.NIGHT),
                                    global_shift_index(day + 1, ShiftType.NIGHT)],
                ))
        return violations

    def _check_rest_rule(self, grid: ScheduleGrid, name: str) -> List[ConstraintViolation]:
        violations = []
        for day in range(DAYS_PER_PERIOD - 1):
            for first in ShiftType:
                if grid.get(day, first) != name:
                    continue
                for second in ShiftType:
                    if grid.get(day + 1, second) != name:
                        continue
                    rest = rest_hours(day, first, day + 1, second)
                    if rest < self.config.min_rest_hours:
                        violations.append(ConstraintViolation(
                            violation_type=ViolationType.REST_RULE,
                            worker=name,
                            description=f"{name}: day {day} {first.value} -> day {day + 1} {second.value} "
                                        f"leaves {rest}h rest",
                            current_value=rest,
                            limit_value=self.config.min_rest_hours,
                            affected_slots=[global_shift_index(day, first), global_shift_index(day + 1, second)],
                        ))
        return violations

    def _check_days_in_three(self, grid: ScheduleGrid, name: str) -> List[ConstraintViolation]:
        limit = self.config.max_days_in_three
        if limit is None:
            return []
        violations = []
        for first in range(DAYS_PER_PERIOD - 2):
            days = working_days_in_window(name, first, grid)
            if days > limit:
                violations.append(ConstraintViolation(
                    violation_type=ViolationType.CLUSTERING,
                    worker=name,
                    description=f"{name} works {days} of days {first}-{first + 2} (max {limit})",
                    severity="HIGH",
                    current_value=days,
                    limit_value=limit,
                ))
        return violations

    def _check_888_patterns(self, grid: ScheduleGrid) -> List[ConstraintViolation]:
        violations = []
        window = self.config.pattern_window
        for start in range(TOTAL_SLOTS - window + 1):
            sequence = [grid.at_index(i) for i in range(start, start + window)]
            for name in sorted(set(n for n in sequence if n is not None)):
                if is_888_pattern(sequence, name):
                    violations.append(ConstraintViolation(
                        violation_type=ViolationType.PATTERN_888,
                        worker=name,
                        description=f"{name}: work/gap pattern across {describe_slot(start)} "
                                    f"to {describe_slot(start + window - 1)}",
                        affected_slots=list(range(start, start + window)),
                    ))
        return violations


def analyze_gap_patterns(grid: ScheduleGrid, worker_names: Sequence[str], distance: int = 2) -> GapAnalysis:
    """Count single-shift gaps (consecutive assignments ``distance`` slots apart) per worker."""
    counts: Dict[str, int] = {}
    gaps: List[SingleShiftGap] = []
    for name in worker_names:
        counts[name] = 0
        indices = grid.assigned_indices(name)
        for first, second in zip(indices, indices[1:]):
            if second - first == distance:
                counts[name] += 1
                gaps.append(SingleShiftGap(worker=name, first_index=first, second_index=second))
                logger.debug("Single-shift gap: %s %s -> %s", name, describe_slot(first), describe_slot(second))

    analysis = GapAnalysis(total_single_gaps=len(gaps), worker_gap_counts=counts, gaps=gaps)
    if gaps:
        worst = sorted(((c, n) for n, c in counts.items() if c), reverse=True)
        logger.info("Found %d single-shift gaps (%s)", len(gaps),
                    ", ".join(f"{n}: {c}" for c, n in worst))
    return analysis
