import logging
import random
import time
from typing import List, Optional, Tuple

from shiftroster.constraint_violations import HardConstraintViolationDetector, analyze_gap_patterns
from shiftroster.exceptions import AttemptFailure, ConfigurationError, GenerationFailure, InputError
from shiftroster.grid import ScheduleGrid
from shiftroster.models import (
    DAYS_PER_PERIOD, DAYS_PER_WEEK, SHIFT_ORDER, GapAnalysis, Period, ProblemInput, ScheduleResult, Worker,
)
from shiftroster.sequential_solver import AttemptResult, SequentialSolver
from shiftroster.utils import week_of
from shiftroster.variations import calculate_possible_variations

logger = logging.getLogger(__name__)


def validate_problem(problem: ProblemInput) -> List[Worker]:
    """Check preconditions and return the approved worker pool."""
    period = problem.period
    if period is None:
        raise ConfigurationError("No active period found. Open a new period before generating a schedule.")
    if not period.is_active:
        raise ConfigurationError(f"Period '{period.label}' is not active.")
    if period.end_date is not None and (period.end_date - period.start_date).days != DAYS_PER_PERIOD - 1:
        raise ConfigurationError(
            f"Period must cover exactly {DAYS_PER_PERIOD} days, got {period.start_date} to {period.end_date}.")
    if period.start_date.isoweekday() != 7:
        raise ConfigurationError(
            f"Period must start on a Sunday, got {period.start_date:%A} {period.start_date}.")

    workers = [w for w in problem.workers if w.approved]
    if not workers:
        raise InputError("No approved submissions found. Approve at least one worker first.")
    names = [w.name for w in workers]
    duplicates = sorted(set(n for n in names if names.count(n) > 1))
    if duplicates:
        raise InputError(f"Duplicate worker names: {', '.join(duplicates)}")
    return workers


class ScheduleSearch:
    """Bounded multi-attempt search for the best roster."""

    def __init__(self, problem: ProblemInput, rng: Optional[random.Random] = None):
        self.workers = validate_problem(problem)
        self.problem = problem.model_copy(update={"workers": self.workers})
        self.config = problem.config
        self.rng = rng or random.Random(self.config.seed)
        self.detector = HardConstraintViolationDetector(self.workers, self.config)

    def run_attempt(self, attempt: int, rng: random.Random) -> AttemptResult:
        """Build one attempt and audit it; raises AttemptFailure if it is unusable."""
        result = SequentialSolver(self.problem, rng=rng, attempt=attempt).solve()
        violations = self.detector.detect_violations(result.grid)
        if violations:
            raise AttemptFailure(f"{len(violations)} hard constraint violations, first: {violations[0].description}")
        return result

    def search(self) -> ScheduleResult:
        variations = calculate_possible_variations(self.workers)
        names = [w.name for w in self.workers]

        best_complete: Optional[Tuple[AttemptResult, GapAnalysis]] = None
        best_partial: Optional[AttemptResult] = None
        attempts_run = 0
        failed = 0
        start_time = time.time()

        for attempt in range(1, self.config.max_attempts + 1):
            attempts_run = attempt
            # each attempt gets its own stream so attempts never share state
            attempt_rng = random.Random(self.rng.getrandbits(64))
            try:
                result = self.run_attempt(attempt, attempt_rng)
            except AttemptFailure as e:
                failed += 1
                logger.warning("Attempt %d/%d discarded: %s", attempt, self.config.max_attempts, e)
                continue

            logger.info("Attempt %d/%d: %.1f%% coverage", attempt, self.config.max_attempts, result.coverage_percent)
            if result.total_assigned == 0:
                continue

            if result.complete:
                gaps = analyze_gap_patterns(result.grid, names, self.config.single_gap_distance)
                logger.info("Attempt %d: full coverage with %d single-shift gaps", attempt, gaps.total_single_gaps)
                if best_complete is None or gaps.total_single_gaps < best_complete[1].total_single_gaps:
                    best_complete = (result, gaps)
                if gaps.total_single_gaps == 0:
                    logger.info("Attempt %d has no single-shift gaps, stopping early", attempt)
                    break
            elif best_partial is None or result.total_assigned > best_partial.total_assigned:
                best_partial = result

        elapsed = time.time() - start_time
        if best_complete is not None:
            chosen, gap_analysis = best_complete
        elif best_partial is not None:
            chosen, gap_analysis = best_partial, None
        else:
            raise GenerationFailure(
                f"No usable schedule after {attempts_run} attempts ({failed} failed). "
                "The worker pool cannot satisfy the constraints.",
                attempts=attempts_run, failed_attempts=failed)

        if gap_analysis is not None:
            message = (f"Optimized ({chosen.attempt}/{attempts_run}): {chosen.coverage_percent:.1f}% coverage "
                       f"with {gap_analysis.total_single_gaps} single-shift gaps")
        else:
            message = f"Best of {attempts_run}: {chosen.coverage_percent:.1f}% coverage (unable to achieve 100%)"
        logger.info("%s in %.2fs", message, elapsed)

        period = self.problem.period
        grid = chosen.grid.read_only_copy()
        return ScheduleResult(
            success=True,
            message=message,
            period=period,
            grid=grid,
            roster=build_roster(grid, period),
            workers=names,
            coverage_percent=chosen.coverage_percent,
            total_assigned_shifts=chosen.total_assigned,
            gap_analysis=gap_analysis,
            attempts_used=attempts_run,
            selected_attempt=chosen.attempt,
            failed_attempts=failed,
            variations=variations,
            empty_slots=list_empty_slots(grid, period),
        )


def generate_schedule(problem: ProblemInput, rng: Optional[random.Random] = None) -> ScheduleResult:
    """Main entry point: validate inputs and search for the best roster."""
    return ScheduleSearch(problem, rng=rng).search()


def build_roster(grid: ScheduleGrid, period: Period):
    """ISO date -> shift -> worker name (None when empty)."""
    return {
        period.date_for(day).isoformat(): {shift.value: grid.get(day, shift) for shift in SHIFT_ORDER}
        for day in range(DAYS_PER_PERIOD)
    }


def list_empty_slots(grid: ScheduleGrid, period: Period):
    empty = []
    for index, day, shift, worker in grid.iter_slots():
        if worker is None:
            empty.append({
                "index": index,
                "week": week_of(day),
                "day": day % DAYS_PER_WEEK,
                "global_day": day,
                "date": period.date_for(day).isoformat(),
                "shift": shift.value,
            })
    return empty
