"""
Reads period/config YAML and preference submissions from disk into models.
"""

import datetime as dt
import json
import logging
from typing import Any, Dict, List, Optional

import pandas as pd
import yaml

from shiftroster.models import (
    DAYS_PER_PERIOD, SHIFT_ORDER, GenerationConfig, Period, ProblemInput, ScoringWeights, Worker,
)

logger = logging.getLogger(__name__)

TRUE_STRINGS = {"true", "yes", "y", "1", "x"}


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    if value is None or pd.isna(value):
        return False
    return bool(value)


def _as_date(value: Any) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    return dt.date.fromisoformat(str(value)[:10])


def load_config(path: str) -> Dict[str, Any]:
    """Load period, generation config and scoring weights from a YAML file."""
    with open(path) as f:
        cfg = yaml.safe_load(f) or {}

    period = None
    raw_period = cfg.get("period")
    if raw_period:
        period = Period(
            start_date=_as_date(raw_period["start_date"]),
            end_date=_as_date(raw_period["end_date"]) if raw_period.get("end_date") else None,
            label=str(raw_period.get("label", "")),
            is_active=bool(raw_period.get("is_active", True)),
        )

    return {
        "period": period,
        "config": GenerationConfig(**(cfg.get("generation") or {})),
        "weights": ScoringWeights(**(cfg.get("weights") or {})),
    }


def load_submissions_csv(path: str) -> List[Worker]:
    """Read long-format preferences: one row per worker and day.

    Columns: name, day (0-13), morning, evening, night, and optionally approved.
    Days with no row are treated as unavailable.
    """
    df = pd.read_csv(path)
    missing = {"name", "day"} - set(df.columns)
    if missing:
        raise ValueError(f"{path}: missing columns {', '.join(sorted(missing))}")

    workers = []
    for name, rows in df.groupby("name", sort=False):
        preferences: List[Dict[str, bool]] = [{s.value: False for s in SHIFT_ORDER} for _ in range(DAYS_PER_PERIOD)]
        for _, r in rows.iterrows():
            day = int(r["day"])
            if not 0 <= day < DAYS_PER_PERIOD:
                logger.warning("%s: ignoring preference row for day %d", name, day)
                continue
            for shift in SHIFT_ORDER:
                preferences[day][shift.value] = _as_bool(r.get(shift.value))
        approved = _as_bool(rows["approved"].iloc[0]) if "approved" in rows.columns else True
        workers.append(Worker(name=str(name), approved=approved, preferences=preferences))
    return workers


def load_submissions_json(path: str) -> List[Worker]:
    """Read a JSON list of {name, approved, preferences} submissions.

    ``preferences`` may be a list of 14 day objects or an object keyed by day index.
    """
    with open(path) as f:
        raw = json.load(f)
    workers = []
    for item in raw:
        prefs = item.get("preferences", [])
        if isinstance(prefs, dict):
            prefs = [prefs.get(str(day), prefs.get(day, {})) for day in range(DAYS_PER_PERIOD)]
        workers.append(Worker.model_validate({**item, "preferences": prefs}))
    return workers


def load_problem(config_path: str, submissions_path: str, period: Optional[Period] = None) -> ProblemInput:
    """Build a ProblemInput from a YAML config and a CSV or JSON submissions file."""
    loaded = load_config(config_path)
    if submissions_path.endswith(".json"):
        workers = load_submissions_json(submissions_path)
    else:
        workers = load_submissions_csv(submissions_path)
    approved = sum(1 for w in workers if w.approved)
    logger.info("Loaded %d submissions (%d approved) from %s", len(workers), approved, submissions_path)
    return ProblemInput(
        workers=workers,
        period=period or loaded["period"],
        config=loaded["config"],
        weights=loaded["weights"],
    )
