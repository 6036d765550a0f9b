"""
Sequential solver that builds one roster attempt in three passes.
Pass 1 scores every legal candidate; passes 2 and 3 only fill what is still
empty, picking the least-loaded legal worker.
"""

import logging
import random
from typing import Dict, List, Optional

from shiftroster.exceptions import AttemptFailure
from shiftroster.grid import ScheduleGrid
from shiftroster.hard_constraints import check_candidate
from shiftroster.models import (
    DAYS_PER_PERIOD, FILL_PRIORITY, SATURDAY, SHIFT_DEFINITIONS, TOTAL_SLOTS,
    ProblemInput, ShiftType, Worker, WorkerStats,
)
from shiftroster.scoring import TeamProfile, is_premium_slot, is_weekend_day, rank_candidates
from shiftroster.utils import day_in_week, shift_end_time

logger = logging.getLogger(__name__)

STAGES = ["strict", "fill", "aggressive_fill"]


class PassResult:
    """Result from a single pass."""

    def __init__(self, stage: str, filled: int, coverage_percent: float, next_stage: Optional[str] = None):
        self.stage = stage
        self.filled = filled
        self.coverage_percent = coverage_percent
        self.next_stage = next_stage

    def __repr__(self):
        return f"PassResult({self.stage}: +{self.filled}, {self.coverage_percent:.1f}%)"


class AttemptResult:
    """A finished attempt: its grid, stats and per-pass coverage."""

    def __init__(self, attempt: int, grid: ScheduleGrid, stats: Dict[str, WorkerStats],
                 passes: List[PassResult], candidate_checks: int):
        self.attempt = attempt
        self.grid = grid
        self.stats = stats
        self.passes = passes
        self.candidate_checks = candidate_checks

    @property
    def pass_coverage(self) -> List[float]:
        return [p.coverage_percent for p in self.passes]

    @property
    def coverage_percent(self) -> float:
        return self.grid.coverage_percent()

    @property
    def total_assigned(self) -> int:
        return self.grid.filled_count()

    @property
    def complete(self) -> bool:
        return self.total_assigned == TOTAL_SLOTS


class SequentialSolver:
    """Builds a single attempt against a fresh grid and fresh worker stats."""

    def __init__(self, problem: ProblemInput, rng: Optional[random.Random] = None, attempt: int = 1):
        if problem.period is None:
            raise AttemptFailure("no period to build the roster for")
        self.problem = problem
        self.period = problem.period
        self.config = problem.config
        self.weights = problem.weights
        self.workers: List[Worker] = [w for w in problem.workers if w.approved]
        self.rng = rng or random.Random(self.config.seed)
        self.attempt = attempt

        self.grid = ScheduleGrid()
        self.stats: Dict[str, WorkerStats] = {w.name: WorkerStats() for w in self.workers}
        self.profile = TeamProfile.for_team(len(self.workers), self.config, self.weights)
        self.candidate_checks = 0
        self.pass_results: List[PassResult] = []

    def solve(self) -> AttemptResult:
        """Run all three passes and return the finished attempt."""
        if self.profile.small_team:
            logger.info("Attempt %d: small team (%d workers), relaxed premium weighting",
                        self.attempt, self.profile.team_size)
        for stage in STAGES:
            result = self.solve_stage(stage)
            logger.info("Attempt %d %s pass: +%d shifts, %.1f%% coverage",
                        self.attempt, stage, result.filled, result.coverage_percent)
        self._log_empty_slots()
        return AttemptResult(self.attempt, self.grid, self.stats, list(self.pass_results), self.candidate_checks)

    def solve_stage(self, stage_name: str) -> PassResult:
        if stage_name == "strict":
            filled = self._strict_pass()
        elif stage_name == "fill":
            filled = self._fill_pass(aggressive=False)
        elif stage_name == "aggressive_fill":
            filled = self._fill_pass(aggressive=True)
        else:
            raise ValueError(f"Unknown stage: {stage_name}. Valid stages: {', '.join(STAGES)}")

        position = STAGES.index(stage_name)
        next_stage = STAGES[position + 1] if position + 1 < len(STAGES) else None
        result = PassResult(stage_name, filled, self.grid.coverage_percent(), next_stage)
        self.pass_results.append(result)
        return result

    def _strict_pass(self) -> int:
        filled = 0
        for global_day in range(DAYS_PER_PERIOD):
            for shift in FILL_PRIORITY:
                if not self.grid.is_empty(global_day, shift):
                    continue
                coverage = self.grid.coverage_percent()
                candidates = self._candidates(global_day, shift, coverage)
                if not candidates:
                    continue
                ranked = rank_candidates(candidates, global_day, shift, self.stats, self.grid, coverage,
                                         self.profile, self.config, self.weights, self.rng)
                if not ranked:
                    continue
                best_score, best = ranked[0]
                self.assign(best, global_day, shift)
                filled += 1
                logger.debug("Assigned %s to day %d %s (score %.1f)", best.name, global_day, shift.value, best_score)
        return filled

    def _fill_pass(self, aggressive: bool) -> int:
        stage = "aggressive_fill" if aggressive else "fill"
        filled = 0
        for global_day in range(DAYS_PER_PERIOD):
            for shift in FILL_PRIORITY:
                if not self.grid.is_empty(global_day, shift):
                    continue
                candidates = self._candidates(global_day, shift, self.grid.coverage_percent())
                if not candidates:
                    continue
                chosen = self._select_fill_candidate(candidates, global_day, shift)
                self.assign(chosen, global_day, shift)
                filled += 1
                logger.debug("%s: filled day %d %s with %s", stage, global_day, shift.value, chosen.name)
        return filled

    def _select_fill_candidate(self, candidates: List[Worker], global_day: int, shift: ShiftType) -> Worker:
        """Least-loaded candidate; small teams spread Saturday evenings by premium count first."""
        if self.profile.small_team and day_in_week(global_day) == SATURDAY and shift == ShiftType.EVENING:
            return min(candidates, key=lambda w: (self.stats[w.name].premium_shifts,
                                                  self.stats[w.name].total_shifts))
        return min(candidates, key=lambda w: self.stats[w.name].total_shifts)

    def _candidates(self, global_day: int, shift: ShiftType, coverage: float) -> List[Worker]:
        eligible = []
        for worker in self.workers:
            self.candidate_checks += 1
            if self.candidate_checks > self.config.max_candidate_checks:
                raise AttemptFailure(
                    f"attempt {self.attempt} exceeded {self.config.max_candidate_checks} candidate checks")
            reason = check_candidate(worker, global_day, shift, self.grid, self.config, coverage)
            if reason is None:
                eligible.append(worker)
            else:
                logger.debug("Rejected %s for day %d %s: %s", worker.name, global_day, shift.value, reason.value)
        return eligible

    def assign(self, worker: Worker, global_day: int, shift: ShiftType) -> None:
        """Commit an assignment and update the worker's running stats."""
        self.grid.assign(global_day, shift, worker.name)

        stats = self.stats[worker.name]
        stats.total_shifts += 1
        if shift == ShiftType.NIGHT:
            stats.night_shifts += 1
        elif shift == ShiftType.MORNING:
            stats.morning_shifts += 1
        else:
            stats.evening_shifts += 1
        if is_weekend_day(global_day):
            stats.weekend_shifts += 1
        if is_premium_slot(global_day, shift):
            stats.premium_shifts += 1
        stats.last_assigned_day = global_day
        stats.last_shift_end = shift_end_time(self.period.start_date, global_day, shift)

    def _log_empty_slots(self) -> None:
        empty = self.grid.empty_indices()
        if not empty:
            logger.info("Attempt %d: all %d shifts filled", self.attempt, TOTAL_SLOTS)
            return
        for global_day in range(DAYS_PER_PERIOD):
            for shift in FILL_PRIORITY:
                if self.grid.is_empty(global_day, shift) and SHIFT_DEFINITIONS[shift]["critical"]:
                    logger.warning("Attempt %d: critical %s shift on day %d left empty",
                                   self.attempt, shift.value, global_day)
        logger.info("Attempt %d: %d/%d shifts filled (%d empty)",
                    self.attempt, TOTAL_SLOTS - len(empty), TOTAL_SLOTS, len(empty))
