"""
Coarse count of distinct preference-compatible rosters.
Purely informational: nothing in the search reads it.
"""

import logging
from typing import Sequence

from shiftroster.models import DAYS_PER_PERIOD, SHIFT_ORDER, VariationEstimate, Worker

logger = logging.getLogger(__name__)

VARIATION_CAP = 1_000_000


def format_variations(total: int) -> str:
    if total >= VARIATION_CAP:
        return f"{VARIATION_CAP:,}+"
    if total >= 10_000:
        return f"{int(total / 1000 + 0.5)}K+"
    if total >= 1_000:
        return f"{int(total / 100 + 0.5) * 100}+"
    return f"{total:,}"


def calculate_possible_variations(workers: Sequence[Worker], cap: int = VARIATION_CAP) -> VariationEstimate:
    """Multiply the number of willing workers over every slot with a real choice."""
    total = 1
    constrained = 0
    impossible = 0

    for global_day in range(DAYS_PER_PERIOD):
        for shift in SHIFT_ORDER:
            available = sum(1 for w in workers if w.prefers(global_day, shift))
            if available == 0:
                impossible += 1
            elif available == 1:
                constrained += 1
            else:
                total = min(total * available, cap)

    estimate = VariationEstimate(
        raw=total,
        estimated=format_variations(total),
        constrained_slots=constrained,
        impossible_slots=impossible,
    )
    logger.info("Possible variations: %s (%d constrained, %d impossible slots)",
                estimate.estimated, constrained, impossible)
    return estimate
