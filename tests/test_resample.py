"""Tests for tally.core.resample — adaptive bucket width, gap honesty, tooltip gap values."""

from datetime import timedelta

import pytest

from tally.core.resample import bucket_width, chart_points, gap_value, resample
from tally.core.series import Bucket, Sample
from tests.helpers import T0, at, series


MINUTE = timedelta(minutes=1)
HOUR = timedelta(hours=1)
DAY = timedelta(days=1)


class TestBucketWidth:
    """The width table, boundaries included."""

    @pytest.mark.parametrize("span,expected", [
        (timedelta(0), MINUTE),
        (timedelta(minutes=30), MINUTE),
        (HOUR, MINUTE),
        (HOUR + timedelta(seconds=1), 10 * MINUTE),
        (timedelta(hours=12), 10 * MINUTE),
        (DAY, 10 * MINUTE),
        (DAY + timedelta(seconds=1), HOUR),
        (timedelta(days=3), HOUR),
        (7 * DAY, HOUR),
    ])
    def test_short_spans(self, span, expected):
        assert bucket_width(span) == expected

    @pytest.mark.parametrize("span,expected", [
        (7 * DAY + timedelta(seconds=1), HOUR),   # ceil(span/240) < 1h -> floor at 1h
        (10 * DAY, HOUR),                         # exactly 1h
        (30 * DAY, 3 * HOUR),
        (40 * DAY, 4 * HOUR),
        (100 * DAY, 10 * HOUR),
        (240 * DAY, 24 * HOUR),                   # 24h still rounds to hours
        (250 * DAY, DAY),                         # 25h -> 1 day
        (365 * DAY, 2 * DAY),                     # 36.5h -> 37h -> round(1.54) days
        (1000 * DAY, 4 * DAY),                    # 100h -> round(4.17) days
    ])
    def test_long_spans_target_points(self, span, expected):
        assert bucket_width(span) == expected

    def test_half_hour_rounds_up(self):
        # 25 days / 240 = 2.5h
        assert bucket_width(25 * DAY) == 3 * HOUR

    def test_target_points_is_a_parameter(self):
        assert bucket_width(30 * DAY, target_points=30) == DAY

    def test_pure_function_of_span(self):
        assert bucket_width(50 * DAY) == bucket_width(50 * DAY)


class TestResample:
    def test_empty_input(self):
        assert resample([]) == []

    def test_single_sample_single_bucket(self):
        buckets = resample(series((0, 42)))
        assert buckets == [Bucket(start=T0, count=42)]

    def test_minute_buckets_for_short_span(self):
        s = series((0, 1), (1, 2), (2.5, 3), (5, 4))
        buckets = resample(s)
        assert [b.start for b in buckets] == [at(minutes=m) for m in range(6)]
        assert [b.count for b in buckets] == [1, 2, 3, None, None, 4]

    def test_first_sample_in_bucket_wins_and_rest_are_skipped(self):
        s = series((0, 1), (0.2, 2), (0.4, 3), (1.1, 4))
        buckets = resample(s)
        assert [b.count for b in buckets] == [1, 4]

    def test_bucket_count_formula(self):
        s = series((0, 0), (37, 5), (73 * 60 + 12, 100))  # ~3 days -> hourly buckets
        span = s[-1].timestamp - s[0].timestamp
        width = bucket_width(span)
        assert len(resample(s)) == span // width + 1

    def test_every_sample_in_at_most_one_bucket(self):
        s = [Sample(timestamp=at(minutes=7 * i), count=i) for i in range(200)]
        buckets = resample(s)
        counts = [b.count for b in buckets if b.count is not None]
        assert len(counts) == len(set(counts))
        assert set(counts) <= {x.count for x in s}

    def test_gaps_stay_absent(self):
        s = series((0, 10), (600, 20))  # 10 hours apart -> 10-minute buckets
        buckets = resample(s)
        assert buckets[0].count == 10
        assert buckets[-1].count == 20
        assert all(b.count is None for b in buckets[1:-1])
        assert len(buckets) == 61

    def test_zero_count_is_not_absent(self):
        buckets = resample(series((0, 0), (1, 0)))
        assert [b.count for b in buckets] == [0, 0]

    def test_ten_days_one_sample_per_day(self):
        s = [Sample(timestamp=at(days=d), count=d * 100) for d in range(11)]
        buckets = resample(s)
        assert len(buckets) == 241
        present = [b for b in buckets if b.count is not None]
        assert len(present) == 11
        assert buckets[-1].count == 1000

    def test_buckets_are_chronological(self):
        s = [Sample(timestamp=at(hours=5 * i), count=i) for i in range(60)]
        starts = [b.start for b in resample(s)]
        assert starts == sorted(starts)


class TestGapValue:
    BUCKETS = [
        Bucket(start=at(minutes=0), count=None),
        Bucket(start=at(minutes=1), count=10),
        Bucket(start=at(minutes=2), count=None),
        Bucket(start=at(minutes=3), count=None),
        Bucket(start=at(minutes=4), count=21),
        Bucket(start=at(minutes=5), count=None),
    ]

    def test_present_bucket_returns_own_count(self):
        assert gap_value(self.BUCKETS, 1) == 10

    def test_interior_gap_interpolates(self):
        assert gap_value(self.BUCKETS, 2) == 14   # 10 + 11/3 = 13.67
        assert gap_value(self.BUCKETS, 3) == 17   # 10 + 22/3 = 17.33

    def test_edges_clamp_to_single_neighbour(self):
        assert gap_value(self.BUCKETS, 0) == 10
        assert gap_value(self.BUCKETS, 5) == 21

    def test_all_absent_returns_none(self):
        buckets = [Bucket(start=at(minutes=m), count=None) for m in range(3)]
        assert gap_value(buckets, 1) is None

    def test_chart_points_agree_with_gap_value(self):
        rows = chart_points(self.BUCKETS)
        assert [r["display"] for r in rows] == [gap_value(self.BUCKETS, i) for i in range(len(self.BUCKETS))]
        assert [r["count"] for r in rows] == [b.count for b in self.BUCKETS]
        assert rows[1]["timestamp"] == at(minutes=1).isoformat()
