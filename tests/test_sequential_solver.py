import datetime as dt
import random

import pytest

from shiftroster.constraint_violations import HardConstraintViolationDetector
from shiftroster.exceptions import AttemptFailure
from shiftroster.models import GenerationConfig, ProblemInput, ShiftType, WorkerStats
from shiftroster.sequential_solver import STAGES, SequentialSolver

NAMES = ["Alice", "Ben", "Chloe", "Dev", "Erin", "Farah"]


def solve(workers, period, seed=1, **config):
    problem = ProblemInput(workers=workers, period=period, config=GenerationConfig(**config))
    return SequentialSolver(problem, rng=random.Random(seed)).solve()


def test_attempt_respects_hard_constraints(make_worker, period):
    workers = [make_worker(n) for n in NAMES]
    for seed in range(5):
        result = solve(workers, period, seed=seed)
        assert HardConstraintViolationDetector(workers).detect_violations(result.grid) == []
        assert result.total_assigned > 0


def test_pass_coverage_never_drops(make_worker, period):
    workers = [make_worker(n) for n in NAMES[:4]]
    result = solve(workers, period)
    assert [p.stage for p in result.passes] == STAGES
    coverage = result.pass_coverage
    assert coverage == sorted(coverage)
    assert coverage[-1] == result.coverage_percent


def test_stats_match_grid(make_worker, period):
    workers = [make_worker(n) for n in NAMES[:5]]
    result = solve(workers, period)
    for worker in workers:
        stats = result.stats[worker.name]
        held = result.grid.assigned_indices(worker.name)
        assert stats.total_shifts == len(held)
        nights = sum(1 for day in range(14) if result.grid.get(day, ShiftType.NIGHT) == worker.name)
        assert stats.night_shifts == nights


def test_single_worker_is_capped(make_worker, period):
    result = solve([make_worker("Solo")], period)
    assert 0 < result.total_assigned <= 12
    for week in range(2):
        assert result.grid.count_in_week("Solo", week) <= 6
        assert result.grid.count_in_week("Solo", week, ShiftType.NIGHT) <= 2


def test_unapproved_workers_are_ignored(make_worker, period):
    result = solve([make_worker("A"), make_worker("B", approved=False)], period)
    assert "B" not in result.grid.assigned_workers()


def test_no_preferences_leaves_grid_empty(make_worker, period):
    result = solve([make_worker("A", shifts=[])], period)
    assert result.total_assigned == 0
    assert result.pass_coverage == [0.0, 0.0, 0.0]


def test_assign_updates_stats(make_worker, period):
    problem = ProblemInput(workers=[make_worker("A")], period=period)
    solver = SequentialSolver(problem, rng=random.Random(0))
    worker = solver.workers[0]
    solver.assign(worker, 5, ShiftType.EVENING)

    stats = solver.stats["A"]
    assert stats.total_shifts == 1
    assert stats.evening_shifts == 1
    assert stats.premium_shifts == 1
    assert stats.weekend_shifts == 1
    assert stats.last_assigned_day == 5
    assert stats.last_shift_end == dt.datetime(2025, 6, 6, 23, 0)

    solver.assign(worker, 6, ShiftType.NIGHT)
    # nights end the next morning
    assert solver.stats["A"].last_shift_end == dt.datetime(2025, 6, 8, 7, 0)


def test_assign_to_occupied_slot_fails(make_worker, period):
    problem = ProblemInput(workers=[make_worker("A"), make_worker("B")], period=period)
    solver = SequentialSolver(problem, rng=random.Random(0))
    solver.assign(solver.workers[0], 0, ShiftType.NIGHT)
    with pytest.raises(AttemptFailure):
        solver.assign(solver.workers[1], 0, ShiftType.NIGHT)
    with pytest.raises(AttemptFailure):
        solver.assign(solver.workers[0], 0, ShiftType.MORNING)


def test_unknown_stage(make_worker, period):
    solver = SequentialSolver(ProblemInput(workers=[make_worker("A")], period=period))
    with pytest.raises(ValueError):
        solver.solve_stage("nights")


def test_candidate_check_limit(make_worker, period):
    workers = [make_worker(n) for n in NAMES]
    with pytest.raises(AttemptFailure):
        solve(workers, period, max_candidate_checks=10)


def test_missing_period_fails(make_worker):
    with pytest.raises(AttemptFailure):
        SequentialSolver(ProblemInput(workers=[make_worker("A")]))


def test_same_seed_same_grid(make_worker, period):
    workers = [make_worker(n) for n in NAMES]
    assert solve(workers, period, seed=9).grid == solve(workers, period, seed=9).grid


def loaded_solver(make_worker, period, names):
    """Solver whose first two workers have opposite premium and total loads."""
    problem = ProblemInput(workers=[make_worker(n) for n in names], period=period)
    solver = SequentialSolver(problem, rng=random.Random(0))
    for name in names:
        solver.stats[name] = WorkerStats(total_shifts=9, premium_shifts=3)
    solver.stats[names[0]] = WorkerStats(total_shifts=5, premium_shifts=0)
    solver.stats[names[1]] = WorkerStats(total_shifts=1, premium_shifts=2)
    return solver


def test_small_team_saturday_evening_goes_to_fewest_premium(make_worker, period):
    solver = loaded_solver(make_worker, period, NAMES[:3])
    assert solver.profile.small_team
    assert solver._select_fill_candidate(solver.workers, 6, ShiftType.EVENING).name == "Alice"
    # every other slot goes to the least-loaded worker
    assert solver._select_fill_candidate(solver.workers, 6, ShiftType.MORNING).name == "Ben"
    assert solver._select_fill_candidate(solver.workers, 3, ShiftType.EVENING).name == "Ben"


def test_large_team_saturday_evening_goes_to_least_loaded(make_worker, period):
    solver = loaded_solver(make_worker, period, NAMES[:5])
    assert not solver.profile.small_team
    assert solver._select_fill_candidate(solver.workers, 6, ShiftType.EVENING).name == "Ben"


def test_fill_pass_only_touches_empty_slots(make_worker, period):
    problem = ProblemInput(workers=[make_worker(n) for n in NAMES[:4]], period=period)
    solver = SequentialSolver(problem, rng=random.Random(0))
    by_name = {w.name: w for w in solver.workers}
    solver.assign(by_name["Alice"], 0, ShiftType.NIGHT)
    solver.assign(by_name["Ben"], 3, ShiftType.MORNING)
    solver.assign(by_name["Chloe"], 9, ShiftType.EVENING)
    before = solver.grid.snapshot()

    result = solver.solve_stage("fill")

    after = solver.grid.snapshot()
    assert all(after[i] == name for i, name in enumerate(before) if name is not None)
    assert result.filled == solver.grid.filled_count() - 3
    assert result.filled > 0


def test_days_in_three_limit_holds_in_attempts(make_worker, period):
    workers = [make_worker(n) for n in NAMES]
    config = GenerationConfig(max_days_in_three=2)
    for seed in range(3):
        result = solve(workers, period, seed=seed, max_days_in_three=2)
        assert HardConstraintViolationDetector(workers, config).detect_violations(result.grid) == []
