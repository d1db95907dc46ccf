"""
Unit tests for metrics/impact.py: simple, weighted and uptime-corrected diffs.
"""
import pandas as pd
import pytest

from conftest import make_readings
from hvac_analytics.metrics import calculate_bin_stats, calculate_impact_metrics, calculate_uptime


def _alternating(n: int):
    ts = pd.date_range('2023-01-01', periods=n, freq='h')
    states = [i % 2 for i in range(n)]
    return make_readings(ts, control_state=states, temperature=5.0,
                         VS1_GT1=[10.0 if s else 8.0 for s in states])


class TestSimpleMetrics:

    def test_two_day_scenario(self, two_day_readings):
        bins = calculate_bin_stats(two_day_readings, 'VS1_GT1', 24)
        metrics = calculate_impact_metrics(bins, two_day_readings)
        assert metrics.simple_average_diff == 2.0
        assert metrics.simple_average_pct_diff == pytest.approx(25.0)
        assert metrics.uptime == 50.0
        assert metrics.uptime_corrected_diff == pytest.approx(1.0)
        assert metrics.uptime_corrected_pct_diff == pytest.approx(12.5)
        assert metrics.reliable_bins_count == 1

    def test_no_reliable_bins(self, two_day_readings):
        bins = calculate_bin_stats(two_day_readings, 'VS1_GT1', 100)
        metrics = calculate_impact_metrics(bins, two_day_readings)
        assert metrics.simple_average_diff == 0.0
        assert metrics.simple_average_pct_diff == 0.0
        assert metrics.reliable_bins_count == 0

    def test_zero_off_mean_gives_zero_pct(self):
        ts = pd.date_range('2024-01-01', periods=4, freq='h')
        readings = make_readings(ts, control_state=[1, 1, 0, 0], VS1_GT1=[5.0, 5.0, 0.0, 0.0])
        metrics = calculate_impact_metrics(calculate_bin_stats(readings, 'VS1_GT1', 1), readings)
        assert metrics.simple_average_diff == 5.0
        assert metrics.simple_average_pct_diff == 0.0


class TestWeightedMetrics:

    def test_null_below_one_year(self):
        readings = _alternating(8759)
        metrics = calculate_impact_metrics(calculate_bin_stats(readings, 'VS1_GT1', 30), readings)
        assert metrics.weighted_average_diff is None
        assert metrics.weighted_average_pct_diff is None

    def test_reported_at_one_year(self):
        readings = _alternating(8760)
        metrics = calculate_impact_metrics(calculate_bin_stats(readings, 'VS1_GT1', 30), readings)
        assert metrics.weighted_average_diff == pytest.approx(2.0)
        assert metrics.weighted_average_pct_diff == pytest.approx(25.0)

    def test_occurrence_weighting(self):
        ts = pd.date_range('2024-01-01', periods=12, freq='h')
        readings = make_readings(
            ts,
            control_state=[1, 1, 1, 1, 0, 0, 0, 0, 1, 1, 0, 0],
            temperature=[1.0] * 8 + [5.0] * 4,
            VS1_GT1=[10.0] * 4 + [8.0] * 4 + [20.0, 20.0, 10.0, 10.0],
        )
        bins = calculate_bin_stats(readings, 'VS1_GT1', 2)
        metrics = calculate_impact_metrics(bins, readings, min_rows_for_weighting=12)
        assert metrics.simple_average_diff == pytest.approx(6.0)
        assert metrics.weighted_average_diff == pytest.approx(14.0 / 3.0)


def test_uptime():
    ts = pd.date_range('2024-01-01', periods=4, freq='h')
    assert calculate_uptime(make_readings(ts, control_state=[1, 0, 0, 0], VS1_GT1=1.0)) == 25.0
    assert calculate_uptime(make_readings(ts[:0], VS1_GT1=1.0)) == 0.0
