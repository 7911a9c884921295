"""Tests for tally.core.peak — sliding one-hour window peak rate."""

from datetime import timedelta

import pytest

from tally.core.peak import peak_per_hour
from tests.helpers import series


class TestPeakPerHour:
    def test_fewer_than_two_samples_is_zero(self):
        assert peak_per_hour([]) == 0
        assert peak_per_hour(series((0, 500))) == 0

    def test_documented_scenario(self):
        """Window ending at t0+90m: 40 - value_at(t0+30m)=10 -> 30."""
        s = series((0, 0), (30, 10), (90, 40))
        assert peak_per_hour(s) == pytest.approx(30.0)

    def test_window_uses_interpolated_left_edge(self):
        # Window ending at t=120 starts at t=60, where value_at interpolates 50
        s = series((0, 0), (120, 100))
        assert peak_per_hour(s) == pytest.approx(50.0)

    def test_burst_inside_long_series(self):
        s = series((0, 0), (60, 5), (120, 10), (150, 70), (180, 75), (240, 80))
        # Window ending at 180 spans 120..180: 75 - 10 = 65
        assert peak_per_hour(s) == pytest.approx(65.0)

    def test_short_series_counts_growth_since_start(self):
        # Both windows clamp their left edge to the first sample
        s = series((0, 100), (10, 130))
        assert peak_per_hour(s) == pytest.approx(30.0)

    def test_custom_window_scales_to_per_hour(self):
        s = series((0, 0), (30, 10), (60, 20))
        # 30-minute window: best delta 10 -> 20/h
        assert peak_per_hour(s, window=timedelta(minutes=30)) == pytest.approx(20.0)


class TestNonNegativity:
    def test_pure_regression_floors_to_zero(self):
        s = series((0, 100), (30, 80), (60, 50))
        assert peak_per_hour(s) == 0

    def test_regression_does_not_hide_real_growth(self):
        s = series((0, 0), (30, 50), (60, 20), (120, 40))
        assert peak_per_hour(s) > 0

    @pytest.mark.parametrize("counts", [
        [5, 4, 3, 2, 1],
        [0, 0, 0],
        [10, 0, 10, 0],
        [1000, 1, 999, 2],
    ])
    def test_never_negative(self, counts):
        s = series(*[(i * 20, c) for i, c in enumerate(counts)])
        assert peak_per_hour(s) >= 0
