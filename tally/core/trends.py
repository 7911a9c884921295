"""Trend statistics derived from the full-precision raw series."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Sequence

from tally.core.constants import HOUR, LAST_DAY, MIN_HOURS
from tally.core.peak import peak_per_hour
from tally.core.series import Sample, safe_delta


@dataclass(frozen=True)
class Stats:
    total_signups: int
    average_per_hour: float
    peak_signups_per_hour: float
    estimated_completion: datetime | None
    days_remaining: int
    last_day_growth: int

    def to_dict(self) -> dict:
        d = asdict(self)
        d["estimated_completion"] = (
            self.estimated_completion.isoformat() if self.estimated_completion else None
        )
        return d


def last_day_growth(series: Sequence[Sample], now: datetime, window: timedelta = LAST_DAY) -> int:
    """Growth across the samples inside the trailing window; 0 with fewer than two."""
    cutoff = now - window
    recent = [s for s in series if s.timestamp >= cutoff]
    if len(recent) < 2:
        return 0
    return safe_delta(recent[0].count, recent[-1].count)


def compute_stats(
    series: Sequence[Sample],
    latest: Sample,
    target: int,
    now: datetime,
) -> Stats | None:
    """Compute the stats snapshot, or None when there are fewer than two samples."""
    if len(series) < 2:
        return None

    first = series[0]
    hours = (latest.timestamp - first.timestamp) / HOUR
    average = safe_delta(first.count, latest.count) / max(hours, MIN_HOURS)

    remaining = target - latest.count
    estimated_completion = None
    days_remaining = 0
    if average > 0 and remaining > 0:
        hours_remaining = remaining / average
        days_remaining = math.ceil(hours_remaining / 24)
        try:
            estimated_completion = now + hours_remaining * HOUR
        except OverflowError:
            # projected past datetime.max; days_remaining still reports the distance
            estimated_completion = None

    return Stats(
        total_signups=latest.count,
        average_per_hour=average,
        peak_signups_per_hour=peak_per_hour(series),
        estimated_completion=estimated_completion,
        days_remaining=days_remaining,
        last_day_growth=last_day_growth(series, now),
    )
