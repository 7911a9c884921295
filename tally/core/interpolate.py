"""Piecewise-linear interpolation over an ordered series."""

from __future__ import annotations

from bisect import bisect_left
from datetime import datetime
from typing import Sequence

from tally.core.series import Sample


def value_at(
    series: Sequence[Sample],
    t: datetime,
    keys: Sequence[datetime] | None = None,
) -> float:
    """Estimate the count at time t.

    Clamps to the boundary counts outside the series instead of extrapolating.
    Exact timestamp hits return that sample's count. Otherwise the tightest
    bracketing pair (pL.timestamp < t <= pR.timestamp) is found by binary
    search and interpolated linearly.

    The series must be ascending by timestamp and non-empty. Callers doing
    many lookups can pass the precomputed timestamp list as keys.
    """
    first, last = series[0], series[-1]
    if t <= first.timestamp:
        return first.count
    if t >= last.timestamp:
        return last.count

    if keys is None:
        keys = [s.timestamp for s in series]
    right = bisect_left(keys, t)
    p_r = series[right]
    if p_r.timestamp == t:
        return p_r.count

    p_l = series[right - 1]
    frac = (t - p_l.timestamp) / (p_r.timestamp - p_l.timestamp)
    return p_l.count + (p_r.count - p_l.count) * frac
