import datetime as dt
import os
import random

from shiftroster.grid import ScheduleGrid
from shiftroster.models import DAYS_PER_PERIOD, GenerationConfig, Period, ProblemInput, ScheduleResult, ShiftType
from shiftroster.output_formatter import (
    analyze_empty_slots, calculate_worker_statistics, distribution_warnings, generate_rota_table, save_outputs,
)
from shiftroster.solver import generate_schedule

M, E, N = ShiftType.MORNING, ShiftType.EVENING, ShiftType.NIGHT


def small_result(make_worker, period):
    workers = [make_worker(n) for n in ["A", "B", "C", "D", "E"]]
    problem = ProblemInput(workers=workers, period=period, config=GenerationConfig(max_attempts=2))
    return generate_schedule(problem, rng=random.Random(5))


def test_rota_table(make_worker, period):
    result = small_result(make_worker, period)
    df = generate_rota_table(result)
    assert list(df.columns) == ["date", "week", "weekday", "morning", "evening", "night"]
    assert len(df) == 14
    assert df.iloc[0]["weekday"] == "Sunday"
    assert df.iloc[7]["week"] == 2
    assert df.iloc[0]["date"] == "2025-06-01"
    filled = sum((df[s] != "").sum() for s in ["morning", "evening", "night"])
    assert filled == result.total_assigned_shifts


def test_worker_statistics():
    grid = ScheduleGrid.from_assignments({(5, E): "A", (6, M): "A", (8, N): "A", (1, M): "B"})
    df = calculate_worker_statistics(grid, ["A", "B"])
    row = df[(df["worker"] == "A") & (df["week"] == 1)].iloc[0]
    assert row["total"] == 2
    assert row["premium"] == 2
    assert row["weekend"] == 2
    assert row["evening"] == 1 and row["morning"] == 1
    row = df[(df["worker"] == "A") & (df["week"] == 2)].iloc[0]
    assert row["night"] == 1
    assert set(df["single_shift_gaps"]) == {0}


def test_empty_grid_analysis():
    summary = analyze_empty_slots(ScheduleGrid(), ["A", "B", "C"])
    assert summary["total_empty"] == 42
    assert summary["critical_empty"] == 28
    assert summary["small_team"]
    assert not summary["mostly_evenings"]


def test_only_evenings_empty():
    names = [f"W{i}" for i in range(DAYS_PER_PERIOD * 2)]
    assignments = {}
    for day in range(DAYS_PER_PERIOD):
        assignments[(day, M)] = names[2 * day]
        assignments[(day, N)] = names[2 * day + 1]
    summary = analyze_empty_slots(ScheduleGrid.from_assignments(assignments), names)
    assert summary["total_empty"] == 14
    assert summary["critical_empty"] == 0
    assert summary["mostly_evenings"]
    assert summary["saturday_evening_empty"]
    assert summary["by_shift"]["evening"] == list(range(14))
    assert not summary["small_team"]


def test_distribution_warnings():
    grid = ScheduleGrid.from_assignments({(0, N): "A", (2, N): "A", (4, N): "A", (1, M): "A", (8, M): "B"})
    warnings = distribution_warnings(grid, ["A", "B"])
    assert warnings["night_overflow"] == ["A (week 1)"]
    assert warnings["missing_morning"] == ["A (week 2)", "B (week 1)"]


def test_save_outputs(make_worker, period, tmp_path):
    result = small_result(make_worker, period)
    paths = save_outputs(result, str(tmp_path / "out"))
    assert os.path.exists(paths["rota"])
    assert os.path.exists(paths["worker_stats"])
    with open(paths["rota"]) as f:
        assert f.readline().strip() == "date,week,weekday,morning,evening,night"


def test_rota_weekday_follows_calendar():
    period = Period(start_date=dt.date(2025, 6, 2), label="Monday start")
    result = ScheduleResult(
        success=True, message="", period=period, grid=ScheduleGrid(), roster={}, workers=[],
        coverage_percent=0.0, total_assigned_shifts=0, attempts_used=1, selected_attempt=1,
    )
    df = generate_rota_table(result)
    assert df.iloc[0]["date"] == "2025-06-02"
    assert df.iloc[0]["weekday"] == "Monday"
    assert df.iloc[6]["weekday"] == "Sunday"
