"""
Tabular views of a generated roster for the display and export layers.
"""

import logging
import os
from typing import Dict, List, Optional, Sequence

import pandas as pd

from shiftroster.constraint_violations import analyze_gap_patterns
from shiftroster.grid import ScheduleGrid
from shiftroster.models import (
    DAYS_PER_PERIOD, DAYS_PER_WEEK, FILL_PRIORITY, SATURDAY, SHIFT_ORDER, WEEKDAY_NAMES, WEEKS_PER_PERIOD,
    GenerationConfig, ScheduleResult, ShiftType,
)
from shiftroster.scoring import is_premium_slot, is_weekend_day
from shiftroster.utils import day_in_week, period_dates, week_of

logger = logging.getLogger(__name__)


def generate_rota_table(result: ScheduleResult) -> pd.DataFrame:
    """One row per day with the worker on each shift."""
    grid: ScheduleGrid = result.grid
    dates = period_dates(result.period.start_date)
    rows = []
    for day, date in enumerate(dates):
        row = {
            "date": date.isoformat(),
            "week": week_of(day) + 1,
            "weekday": WEEKDAY_NAMES[date.isoweekday() % DAYS_PER_WEEK],
        }
        for shift in SHIFT_ORDER:
            row[shift.value] = grid.get(day, shift) or ""
        rows.append(row)
    return pd.DataFrame(rows, columns=["date", "week", "weekday"] + [s.value for s in SHIFT_ORDER])


def calculate_worker_statistics(grid: ScheduleGrid, workers: Sequence[str],
                                config: Optional[GenerationConfig] = None) -> pd.DataFrame:
    """Per worker and week: shift counts by type, premium and weekend load, gaps."""
    config = config or GenerationConfig()
    gaps = analyze_gap_patterns(grid, workers, config.single_gap_distance)
    rows = []
    for name in workers:
        for week in range(WEEKS_PER_PERIOD):
            counts = {s.value: 0 for s in SHIFT_ORDER}
            premium = weekend = 0
            for day in range(week * DAYS_PER_WEEK, (week + 1) * DAYS_PER_WEEK):
                shift = grid.shift_on_day(name, day)
                if shift is None:
                    continue
                counts[shift.value] += 1
                if is_premium_slot(day, shift):
                    premium += 1
                if is_weekend_day(day):
                    weekend += 1
            rows.append({
                "worker": name,
                "week": week + 1,
                "total": sum(counts.values()),
                **counts,
                "premium": premium,
                "weekend": weekend,
            })
    df = pd.DataFrame(rows)
    if df.empty:
        return df
    df["single_shift_gaps"] = df["worker"].map(gaps.worker_gap_counts)
    return df.sort_values(["week", "total"], ascending=[True, False]).reset_index(drop=True)


def analyze_empty_slots(grid: ScheduleGrid, workers: Sequence[str],
                        config: Optional[GenerationConfig] = None) -> Dict[str, object]:
    """Group empty slots by shift type and judge whether the empties are the tolerable kind."""
    config = config or GenerationConfig()
    small_team = len(workers) <= config.small_team_size
    empty: Dict[str, List[int]] = {s.value: [] for s in FILL_PRIORITY}
    saturday_evening = False

    for day in range(DAYS_PER_PERIOD):
        for shift in FILL_PRIORITY:
            if grid.is_empty(day, shift):
                empty[shift.value].append(day)
                if day_in_week(day) == SATURDAY and shift == ShiftType.EVENING:
                    saturday_evening = True

    total = sum(len(days) for days in empty.values())
    evenings = len(empty[ShiftType.EVENING.value])
    critical = total - evenings
    if critical:
        logger.warning("%d critical night/morning shifts empty", critical)

    return {
        "total_empty": total,
        "by_shift": empty,
        "critical_empty": critical,
        "saturday_evening_empty": saturday_evening,
        "small_team": small_team,
        # evenings are covered informally by day staff
        "mostly_evenings": total > 0 and evenings >= critical,
    }


def distribution_warnings(grid: ScheduleGrid, workers: Sequence[str],
                          config: Optional[GenerationConfig] = None) -> Dict[str, List[str]]:
    """Workers over the weekly night cap, and workers with no morning in some week."""
    config = config or GenerationConfig()
    night_overflow = []
    missing_morning = []
    for name in workers:
        for week in range(WEEKS_PER_PERIOD):
            label = f"{name} (week {week + 1})"
            if grid.count_in_week(name, week, ShiftType.NIGHT) > config.max_nights_per_week:
                night_overflow.append(label)
            if grid.count_in_week(name, week, ShiftType.MORNING) == 0:
                missing_morning.append(label)
    return {"night_overflow": night_overflow, "missing_morning": missing_morning}


def save_outputs(result: ScheduleResult, out_dir: str = "out") -> Dict[str, str]:
    """Write the rota table and worker statistics as CSV files."""
    os.makedirs(out_dir, exist_ok=True)
    rota_path = os.path.join(out_dir, "rota.csv")
    stats_path = os.path.join(out_dir, "worker_stats.csv")
    generate_rota_table(result).to_csv(rota_path, index=False)
    calculate_worker_statistics(result.grid, result.workers).to_csv(stats_path, index=False)
    return {"rota": rota_path, "worker_stats": stats_path}
