"""Resample a series into a regular bucket grid for charting.

Bucket width is a pure function of the visible span: fine resolution for
short ranges, about BUCKET_TARGET_POINTS buckets with round hour/day
boundaries for long ones. Buckets with no sample stay empty (count None);
filling them is a render-time concern handled by gap_value().
"""

from __future__ import annotations

import math
from datetime import timedelta
from typing import Sequence

from tally.core.constants import BUCKET_TARGET_POINTS, DAY, HOUR, MINUTE, WEEK
from tally.core.interpolate import value_at
from tally.core.series import Bucket, Sample


def _round_half_up(x: float) -> int:
    return math.floor(x + 0.5)


def bucket_width(span: timedelta, target_points: int = BUCKET_TARGET_POINTS) -> timedelta:
    """Choose the bucket width for a series spanning `span`.

    | span     | width                                             |
    |----------|---------------------------------------------------|
    | <= 1h    | 1 minute                                          |
    | <= 1d    | 10 minutes                                        |
    | <= 7d    | 1 hour                                            |
    | > 7d     | max(ceil(span / target), 1h), rounded to whole    |
    |          | hours up to 24h, whole days (>= 1) beyond that    |
    """
    if span <= HOUR:
        return MINUTE
    if span <= DAY:
        return 10 * MINUTE
    if span <= WEEK:
        return HOUR

    span_us = span // timedelta(microseconds=1)
    approx = timedelta(microseconds=-(-span_us // target_points))  # ceil
    width = max(approx, HOUR)

    hours = _round_half_up(width / HOUR)
    if hours <= 24:
        return hours * HOUR
    days = max(1, _round_half_up(hours / 24))
    return days * DAY


def resample(series: Sequence[Sample], target_points: int = BUCKET_TARGET_POINTS) -> list[Bucket]:
    """Walk first..last timestamp in bucket-width steps.

    Each bucket [start, start + width) takes the first unconsumed sample that
    falls inside it. A single forward pointer visits samples in order, so
    every sample lands in at most one bucket; samples skipped because an
    earlier one already claimed their bucket are never revisited.
    """
    if not series:
        return []

    first_ts = series[0].timestamp
    last_ts = series[-1].timestamp
    width = bucket_width(last_ts - first_ts, target_points)

    buckets: list[Bucket] = []
    j = 0
    n = len(series)
    start = first_ts
    while start <= last_ts:
        end = start + width
        while j < n and series[j].timestamp < start:
            j += 1

        if j < n and series[j].timestamp < end:
            buckets.append(Bucket(start=start, count=series[j].count))
            j += 1
        else:
            buckets.append(Bucket(start=start, count=None))
        start = end
    return buckets


def gap_value(buckets: Sequence[Bucket], index: int) -> int | None:
    """Display value for a bucket, interpolating across empty ones.

    Present buckets return their own count. Empty buckets interpolate
    linearly between the nearest present neighbours (clamping to the single
    neighbour at either edge). Returns None when no bucket holds data.
    """
    bucket = buckets[index]
    if bucket.count is not None:
        return bucket.count

    present = [Sample(timestamp=b.start, count=b.count) for b in buckets if b.count is not None]
    if not present:
        return None
    return _round_half_up(value_at(present, bucket.start))


def chart_points(buckets: Sequence[Bucket]) -> list[dict]:
    """Buckets as chart rows: raw count (None for gaps) plus a display value for tooltips."""
    present = [Sample(timestamp=b.start, count=b.count) for b in buckets if b.count is not None]
    keys = [s.timestamp for s in present]
    rows = []
    for b in buckets:
        if b.count is not None:
            display = b.count
        elif present:
            display = _round_half_up(value_at(present, b.start, keys))
        else:
            display = None
        rows.append({**b.to_dict(), "display": display})
    return rows
