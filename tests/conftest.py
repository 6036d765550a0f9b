import datetime as dt

import pytest

from shiftroster.models import DAYS_PER_PERIOD, SHIFT_ORDER, Period, Worker


def build_worker(name, shifts=SHIFT_ORDER, days=range(DAYS_PER_PERIOD), approved=True):
    wanted = set(days)
    preferences = [
        {shift: (day in wanted and shift in shifts) for shift in SHIFT_ORDER}
        for day in range(DAYS_PER_PERIOD)
    ]
    return Worker(name=name, approved=approved, preferences=preferences)


@pytest.fixture
def make_worker():
    """Worker factory: available for ``shifts`` on ``days`` (everything by default)."""
    return build_worker


@pytest.fixture
def period():
    # 2025-06-01 is a Sunday
    return Period(start_date=dt.date(2025, 6, 1), end_date=dt.date(2025, 6, 14), label="June 1 - June 14, 2025")
