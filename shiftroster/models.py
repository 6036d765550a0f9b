from pydantic import BaseModel, Field, field_validator
from dataclasses import dataclass
from typing import Any, List, Optional, Dict
import datetime as dt
from enum import Enum

DAYS_PER_WEEK = 7
WEEKS_PER_PERIOD = 2
DAYS_PER_PERIOD = DAYS_PER_WEEK * WEEKS_PER_PERIOD   # 14
SHIFTS_PER_DAY = 3
TOTAL_SLOTS = DAYS_PER_PERIOD * SHIFTS_PER_DAY       # 42

# Week positions; every period starts on a Sunday
FRIDAY = 5
SATURDAY = 6
WEEKEND_DAYS = (FRIDAY, SATURDAY)
WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


class ShiftType(str, Enum):
    MORNING = "morning"    # 8h 07:00-15:00
    EVENING = "evening"    # 8h 15:00-23:00
    NIGHT = "night"        # 8h 23:00-07:00(+1)


# Ordinal fixes the position inside a day for the Global Shift Index
SHIFT_DEFINITIONS = {
    ShiftType.MORNING: {"ordinal": 0, "start": 7, "end": 15, "critical": True},
    ShiftType.EVENING: {"ordinal": 1, "start": 15, "end": 23, "critical": False},
    ShiftType.NIGHT: {"ordinal": 2, "start": 23, "end": 7, "critical": True},
}

# Chronological order inside a day
SHIFT_ORDER = [ShiftType.MORNING, ShiftType.EVENING, ShiftType.NIGHT]

# Fill order inside a day: security-critical nights first, evenings last
FILL_PRIORITY = [ShiftType.NIGHT, ShiftType.MORNING, ShiftType.EVENING]

# (week position, shift) pairs paid at premium rate
PREMIUM_SLOTS = {
    (FRIDAY, ShiftType.EVENING),
    (FRIDAY, ShiftType.NIGHT),
    (SATURDAY, ShiftType.MORNING),
    (SATURDAY, ShiftType.EVENING),
}


class Period(BaseModel):
    start_date: dt.date
    end_date: Optional[dt.date] = None
    label: str = ""
    is_active: bool = True

    def date_for(self, global_day: int) -> dt.date:
        """Calendar date of a global day index (0-13)."""
        return self.start_date + dt.timedelta(days=global_day)


class Worker(BaseModel):
    name: str
    approved: bool = True
    # preferences[global_day][shift] -> available
    preferences: List[Dict[ShiftType, bool]]

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("worker name must not be empty")
        return v

    @field_validator("preferences")
    @classmethod
    def _full_matrix(cls, v: List[Dict[ShiftType, bool]]) -> List[Dict[ShiftType, bool]]:
        if len(v) != DAYS_PER_PERIOD:
            raise ValueError(f"expected {DAYS_PER_PERIOD} days of preferences, got {len(v)}")
        return [{shift: bool(day.get(shift, False)) for shift in SHIFT_ORDER} for day in v]

    def prefers(self, global_day: int, shift: ShiftType) -> bool:
        if not 0 <= global_day < DAYS_PER_PERIOD:
            return False
        return self.preferences[global_day].get(shift, False)


@dataclass
class WorkerStats:
    """Running tallies for one worker inside one attempt."""
    total_shifts: int = 0
    night_shifts: int = 0
    morning_shifts: int = 0
    evening_shifts: int = 0
    weekend_shifts: int = 0
    premium_shifts: int = 0
    last_assigned_day: int = -1
    last_shift_end: Optional[dt.datetime] = None


class GenerationConfig(BaseModel):
    # Labour-safety caps
    max_shifts_per_week: int = 6
    max_nights_per_week: int = 2
    min_rest_hours: int = 8

    # Fatigue pattern policy
    pattern_window: int = 5            # work-gap-work-gap-work span ("888")
    single_gap_distance: int = 2       # index difference of a single-shift gap
    gap_rule_threshold: float = 60.0   # coverage % where single gaps become hard
    gap_escalation_threshold: float = 80.0
    enforce_gap_rule: bool = True
    max_days_in_three: Optional[int] = None   # working days allowed in any 3-day window; None disables

    # Team sizing and selection
    small_team_size: int = 4
    discard_score: float = -500.0

    # Search bounds
    max_attempts: int = Field(default=20, ge=1)
    max_candidate_checks: int = Field(default=100_000, ge=1)
    seed: Optional[int] = None


class ScoringWeights(BaseModel):
    base: float = 100

    # Night slots
    night_priority: float = 50
    night_cap_score: float = -1000
    night_second_penalty: float = 500
    night_per_shift_penalty: float = 20
    night_first_bonus: float = 15

    # Morning slots
    morning_priority: float = 30
    morning_week_missing_bonus: float = 1000
    morning_late_week_bonus: float = 500
    morning_late_week_from: int = 4
    morning_per_week_penalty: float = 300
    morning_first_bonus: float = 200

    # Evening slots
    evening_penalty: float = 20
    evening_small_team_offset: float = 10

    # Fairness
    load_per_shift_penalty: float = 5
    premium_penalty_large: float = 15
    premium_penalty_small: float = 8
    premium_first_bonus_large: float = 25
    premium_first_bonus_small: float = 35
    small_team_saturday_evening_bonus: float = 25
    weekend_penalty_large: float = 8
    weekend_penalty_small: float = 4
    consecutive_day_penalty: float = 20

    # Gap avoidance (layered on once coverage passes the thresholds)
    gap_penalty_moderate: float = 300
    gap_penalty_severe: float = 800
    existing_gap_penalty: float = 200

    # Tie-breaking noise
    noise_large: float = 50
    noise_small: float = 75


class ProblemInput(BaseModel):
    workers: List[Worker]
    period: Optional[Period] = None
    config: GenerationConfig = GenerationConfig()
    weights: ScoringWeights = ScoringWeights()


class SingleShiftGap(BaseModel):
    worker: str
    first_index: int
    second_index: int


class GapAnalysis(BaseModel):
    total_single_gaps: int = 0
    worker_gap_counts: Dict[str, int] = {}
    gaps: List[SingleShiftGap] = []


class VariationEstimate(BaseModel):
    raw: int
    estimated: str
    constrained_slots: int
    impossible_slots: int


class ScheduleResult(BaseModel):
    model_config = {"arbitrary_types_allowed": True, "frozen": True}

    success: bool
    message: str
    period: Period
    grid: Any                            # read-only ScheduleGrid of the winning attempt
    roster: Dict[str, Dict[str, Optional[str]]]  # date -> shift -> worker name
    workers: List[str]
    coverage_percent: float
    total_assigned_shifts: int
    total_possible_shifts: int = TOTAL_SLOTS
    gap_analysis: Optional[GapAnalysis] = None
    attempts_used: int
    selected_attempt: int
    failed_attempts: int = 0
    variations: Optional[VariationEstimate] = None
    empty_slots: List[Dict[str, Any]] = []
