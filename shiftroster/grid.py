"""
Two-week assignment grid.

Cells are stored flat by Global Shift Index (day * 3 + shift ordinal) so the
chronological sequence needed for pattern detection is just the list order.
The (week, day, shift) view used by callers is layered on top.
"""

from typing import Dict, List, Optional, Tuple

from shiftroster.exceptions import AttemptFailure
from shiftroster.models import (
    DAYS_PER_PERIOD, DAYS_PER_WEEK, SHIFT_ORDER, TOTAL_SLOTS, WEEKS_PER_PERIOD, ShiftType,
)
from shiftroster.utils import global_shift_index, slot_from_index


class ScheduleGrid:
    """Assignment grid for a single attempt."""

    def __init__(self, cells: Optional[List[Optional[str]]] = None, read_only: bool = False):
        if cells is None:
            cells = [None] * TOTAL_SLOTS
        if len(cells) != TOTAL_SLOTS:
            raise ValueError(f"grid needs {TOTAL_SLOTS} cells, got {len(cells)}")
        self._cells: List[Optional[str]] = list(cells)
        self._read_only = read_only

    @classmethod
    def from_assignments(cls, assignments: Dict[Tuple[int, ShiftType], str]) -> "ScheduleGrid":
        """Build a grid from {(global_day, shift): worker}; used by tests and audits."""
        grid = cls()
        for (day, shift), worker in assignments.items():
            grid._cells[global_shift_index(day, shift)] = worker
        return grid

    def copy(self) -> "ScheduleGrid":
        return ScheduleGrid(self._cells)

    def read_only_copy(self) -> "ScheduleGrid":
        """Copy that refuses further assignments; handed out with finished results."""
        return ScheduleGrid(self._cells, read_only=True)

    @property
    def read_only(self) -> bool:
        return self._read_only

    def snapshot(self) -> Tuple[Optional[str], ...]:
        return tuple(self._cells)

    # Lookups

    def at_index(self, index: int) -> Optional[str]:
        if 0 <= index < TOTAL_SLOTS:
            return self._cells[index]
        return None

    def get(self, global_day: int, shift: ShiftType) -> Optional[str]:
        if not 0 <= global_day < DAYS_PER_PERIOD:
            return None
        return self._cells[global_shift_index(global_day, shift)]

    def get_cell(self, week: int, day: int, shift: ShiftType) -> Optional[str]:
        return self.get(week * DAYS_PER_WEEK + day, shift)

    def is_empty(self, global_day: int, shift: ShiftType) -> bool:
        return self.get(global_day, shift) is None

    def shift_on_day(self, worker: str, global_day: int) -> Optional[ShiftType]:
        """Shift the worker holds on ``global_day``, if any."""
        if not 0 <= global_day < DAYS_PER_PERIOD:
            return None
        for shift in SHIFT_ORDER:
            if self._cells[global_shift_index(global_day, shift)] == worker:
                return shift
        return None

    def works_on_day(self, worker: str, global_day: int) -> bool:
        return self.shift_on_day(worker, global_day) is not None

    def assigned_indices(self, worker: str) -> List[int]:
        """Sorted Global Shift Indices held by ``worker`` in this grid."""
        return [i for i, name in enumerate(self._cells) if name == worker]

    def count_in_week(self, worker: str, week: int, shift: Optional[ShiftType] = None) -> int:
        count = 0
        for day in range(week * DAYS_PER_WEEK, (week + 1) * DAYS_PER_WEEK):
            held = self.shift_on_day(worker, day)
            if held is not None and (shift is None or held == shift):
                count += 1
        return count

    def filled_count(self) -> int:
        return sum(1 for name in self._cells if name is not None)

    def coverage_percent(self) -> float:
        return self.filled_count() / TOTAL_SLOTS * 100.0

    def empty_indices(self) -> List[int]:
        return [i for i, name in enumerate(self._cells) if name is None]

    def assigned_workers(self) -> List[str]:
        seen = []
        for name in self._cells:
            if name is not None and name not in seen:
                seen.append(name)
        return seen

    # Mutation

    def assign(self, global_day: int, shift: ShiftType, worker: str) -> None:
        if self._read_only:
            raise ValueError("grid is read-only")
        index = global_shift_index(global_day, shift)
        current = self._cells[index]
        if current is not None:
            raise AttemptFailure(f"day {global_day} {shift.value} already held by {current}")
        held = self.shift_on_day(worker, global_day)
        if held is not None:
            raise AttemptFailure(f"{worker} already works {held.value} on day {global_day}")
        self._cells[index] = worker

    # Views

    def iter_slots(self):
        """Yield (index, global_day, shift, worker) in chronological order."""
        for index, worker in enumerate(self._cells):
            day, shift = slot_from_index(index)
            yield index, day, shift, worker

    def to_weeks(self) -> Dict[int, Dict[int, Dict[str, Optional[str]]]]:
        """Nested {week: {day: {shift: worker}}} view for collaborators."""
        weeks: Dict[int, Dict[int, Dict[str, Optional[str]]]] = {}
        for week in range(WEEKS_PER_PERIOD):
            weeks[week] = {}
            for day in range(DAYS_PER_WEEK):
                weeks[week][day] = {
                    shift.value: self.get_cell(week, day, shift) for shift in SHIFT_ORDER
                }
        return weeks

    def __eq__(self, other):
        if not isinstance(other, ScheduleGrid):
            return NotImplemented
        return self._cells == other._cells

    def __repr__(self):
        return f"ScheduleGrid(filled={self.filled_count()}/{TOTAL_SLOTS})"
