"""Series model: samples, buckets, derived views, and the shared delta primitive.

A series is a plain list of Sample, ascending by timestamp. Nothing in Tally
mutates a series in place; every view (hourly, range-filtered, resampled) is
recomputed from the canonical raw series.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

from tally.core import constants


@dataclass(frozen=True)
class Sample:
    """One observed (timestamp, cumulative count) pair."""
    timestamp: datetime
    count: int
    id: int | None = None


@dataclass(frozen=True)
class Bucket:
    """Fixed-width chart interval. count is None when no sample fell inside."""
    start: datetime
    count: int | None

    def to_dict(self) -> dict:
        return {"timestamp": self.start.isoformat(), "count": self.count}


class TimeRange(str, Enum):
    ALL = "all"
    WEEK = "7d"
    DAY = "24h"
    HOUR = "1h"

    @property
    def window(self) -> timedelta | None:
        return _RANGE_WINDOWS[self]


_RANGE_WINDOWS = {
    TimeRange.ALL: None,
    TimeRange.WEEK: constants.WEEK,
    TimeRange.DAY: constants.DAY,
    TimeRange.HOUR: constants.HOUR,
}


@dataclass(frozen=True)
class SeriesViews:
    """The two named views of one raw series.

    raw keeps full precision for current count and trend statistics;
    hourly is the chart-density view.
    """
    raw: list[Sample]
    hourly: list[Sample]

    @property
    def latest(self) -> Sample | None:
        return self.raw[-1] if self.raw else None

    @property
    def is_empty(self) -> bool:
        return not self.raw


EMPTY_VIEWS = SeriesViews(raw=[], hourly=[])


def safe_delta(a: float, b: float) -> float:
    """Growth from count a to count b, floored at zero.

    Every rate computation goes through this so a counter regression reads as
    "no growth" everywhere instead of as a negative rate in some places.
    """
    return max(0, b - a)


def to_utc(value: datetime | str) -> datetime:
    """Normalize a backend timestamp (datetime or ISO-8601 string) to aware UTC."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def sort_samples(samples: list[Sample]) -> list[Sample]:
    """Order by timestamp, then id. Stable, so id-less ties keep arrival order."""
    return sorted(samples, key=lambda s: (s.timestamp, s.id if s.id is not None else -1))


def truncate_to_hour(ts: datetime) -> datetime:
    return ts.replace(minute=0, second=0, microsecond=0)


def downsample_hourly(raw: list[Sample]) -> list[Sample]:
    """One sample per distinct hour; the last sample within an hour wins.

    Counts are cumulative, so the last sample is also the hour's maximum in
    well-formed data. The returned timestamps are the hour starts.
    """
    by_hour: dict[datetime, Sample] = {}
    for sample in raw:
        hour = truncate_to_hour(sample.timestamp)
        by_hour[hour] = Sample(timestamp=hour, count=sample.count, id=sample.id)
    return [by_hour[hour] for hour in sorted(by_hour)]


def build_views(raw: list[Sample]) -> SeriesViews:
    """Derive both views from a raw series that is already in order."""
    if not raw:
        return EMPTY_VIEWS
    return SeriesViews(raw=list(raw), hourly=downsample_hourly(raw))


def filter_range(series: list[Sample], time_range: TimeRange, now: datetime) -> list[Sample]:
    """Samples within the trailing window of the selected range."""
    window = TimeRange(time_range).window
    if window is None:
        return list(series)
    cutoff = now - window
    return [s for s in series if s.timestamp >= cutoff]
