"""
Heuristic ranking of legal candidates for a slot.
Scores are additive from a base of 100; higher is better. The random noise
term is what lets repeated attempts explore different legal rosters.
"""

import logging
import random
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from shiftroster.grid import ScheduleGrid
from shiftroster.hard_constraints import count_single_shift_gaps, would_create_single_shift_gap
from shiftroster.models import (
    PREMIUM_SLOTS, SATURDAY, WEEKEND_DAYS, GenerationConfig, ScoringWeights, ShiftType, Worker, WorkerStats,
)
from shiftroster.utils import day_in_week, week_of

logger = logging.getLogger(__name__)


def is_weekend_day(global_day: int) -> bool:
    return day_in_week(global_day) in WEEKEND_DAYS


def is_premium_slot(global_day: int, shift: ShiftType) -> bool:
    return (day_in_week(global_day), shift) in PREMIUM_SLOTS


@dataclass(frozen=True)
class TeamProfile:
    """Scoring constants picked once per attempt from the team size."""
    team_size: int
    small_team: bool
    premium_penalty: float
    premium_first_bonus: float
    saturday_evening_bonus: float
    weekend_penalty: float
    evening_offset: float
    noise: float

    @classmethod
    def for_team(cls, team_size: int, config: GenerationConfig, weights: ScoringWeights) -> "TeamProfile":
        small = team_size <= config.small_team_size
        if small:
            return cls(
                team_size=team_size,
                small_team=True,
                premium_penalty=weights.premium_penalty_small,
                premium_first_bonus=weights.premium_first_bonus_small,
                saturday_evening_bonus=weights.small_team_saturday_evening_bonus,
                weekend_penalty=weights.weekend_penalty_small,
                evening_offset=weights.evening_small_team_offset,
                noise=weights.noise_small,
            )
        return cls(
            team_size=team_size,
            small_team=False,
            premium_penalty=weights.premium_penalty_large,
            premium_first_bonus=weights.premium_first_bonus_large,
            saturday_evening_bonus=0.0,
            weekend_penalty=weights.weekend_penalty_large,
            evening_offset=0.0,
            noise=weights.noise_large,
        )


def gap_penalty(worker_name: str, global_day: int, shift: ShiftType, grid: ScheduleGrid,
                coverage: float, config: GenerationConfig, weights: ScoringWeights) -> float:
    """Penalty for single-shift gaps, escalating as coverage rises."""
    if coverage < config.gap_rule_threshold:
        return 0.0
    creates_gap = would_create_single_shift_gap(worker_name, global_day, shift, grid, config.single_gap_distance)
    if coverage < config.gap_escalation_threshold:
        return weights.gap_penalty_moderate if creates_gap else 0.0

    penalty = weights.gap_penalty_severe if creates_gap else 0.0
    existing = count_single_shift_gaps(worker_name, grid, config.single_gap_distance)
    return penalty + existing * weights.existing_gap_penalty


def score_candidate(worker_name: str, global_day: int, shift: ShiftType, stats: WorkerStats,
                    grid: ScheduleGrid, coverage: float, profile: TeamProfile,
                    config: GenerationConfig, weights: ScoringWeights, rng: random.Random) -> float:
    """Desirability of putting an already-legal worker in this slot."""
    score = weights.base
    week = week_of(global_day)

    if shift == ShiftType.NIGHT:
        score += weights.night_priority
        nights_this_week = grid.count_in_week(worker_name, week, ShiftType.NIGHT)
        if nights_this_week >= config.max_nights_per_week:
            return weights.night_cap_score
        if nights_this_week > 0:
            score -= weights.night_second_penalty
        score -= stats.night_shifts * weights.night_per_shift_penalty
        if stats.night_shifts == 0:
            score += weights.night_first_bonus

    elif shift == ShiftType.MORNING:
        score += weights.morning_priority
        mornings_this_week = grid.count_in_week(worker_name, week, ShiftType.MORNING)
        if mornings_this_week == 0:
            score += weights.morning_week_missing_bonus
            # urgency rises as the week closes without a morning
            if day_in_week(global_day) >= weights.morning_late_week_from:
                score += weights.morning_late_week_bonus
        else:
            score -= mornings_this_week * weights.morning_per_week_penalty
        if stats.morning_shifts == 0:
            score += weights.morning_first_bonus

    else:
        score -= weights.evening_penalty
        score += profile.evening_offset

    score -= stats.total_shifts * weights.load_per_shift_penalty

    if is_premium_slot(global_day, shift):
        score -= stats.premium_shifts * profile.premium_penalty
        if stats.premium_shifts == 0:
            score += profile.premium_first_bonus
        if day_in_week(global_day) == SATURDAY and shift == ShiftType.EVENING:
            score += profile.saturday_evening_bonus

    if is_weekend_day(global_day):
        score -= stats.weekend_shifts * profile.weekend_penalty

    if stats.last_assigned_day >= 0 and stats.last_assigned_day == global_day - 1:
        score -= weights.consecutive_day_penalty

    score -= gap_penalty(worker_name, global_day, shift, grid, coverage, config, weights)

    return score + rng.uniform(0, profile.noise)


def rank_candidates(candidates: Sequence[Worker], global_day: int, shift: ShiftType,
                    stats: dict, grid: ScheduleGrid, coverage: float, profile: TeamProfile,
                    config: GenerationConfig, weights: ScoringWeights,
                    rng: random.Random) -> List[Tuple[float, Worker]]:
    """Score candidates, drop the ones at or below the discard line, best first."""
    scored = []
    for worker in candidates:
        score = score_candidate(worker.name, global_day, shift, stats[worker.name], grid,
                                coverage, profile, config, weights, rng)
        if score > config.discard_score:
            scored.append((score, worker))
        else:
            logger.debug("Discarded %s for day %d %s (score %.1f)", worker.name, global_day, shift.value, score)
    scored.sort(key=lambda item: item[0], reverse=True)
    return scored
