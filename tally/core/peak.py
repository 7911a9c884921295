"""Peak signups per hour over a sliding window."""

from __future__ import annotations

from datetime import timedelta
from typing import Sequence

from tally.core.constants import PEAK_WINDOW
from tally.core.interpolate import value_at
from tally.core.series import Sample, safe_delta


def peak_per_hour(series: Sequence[Sample], window: timedelta = PEAK_WINDOW) -> float:
    """Largest growth over any window ending at a sample time, scaled to one hour.

    The interpolated curve is piecewise-linear, so the window's maximum is
    attained with its right edge on a breakpoint; evaluating only at sample
    times is exact. Negative windows (counter regressions) floor to 0.
    """
    if len(series) < 2:
        return 0.0

    keys = [s.timestamp for s in series]
    per_hour = timedelta(hours=1) / window
    best = 0.0
    for sample in series:
        end = value_at(series, sample.timestamp, keys)
        start = value_at(series, sample.timestamp - window, keys)
        delta = safe_delta(start, end) * per_hour
        if delta > best:
            best = delta
    return best
