"""
Unit tests for baseline/imputation.py: tiered OFF-state baseline.

Tests:
  - Temperature rounding
  - Each estimation tier and the fall-through order
  - Display window, signal range and AI-offline flags
  - Offline period extraction
"""
import numpy as np
import pandas as pd
import pytest

from conftest import make_readings
from hvac_analytics.core.config import WindowConfig
from hvac_analytics.core.schema import TimeSeriesPoint
from hvac_analytics.baseline import (
    round_temperature,
    build_off_state_index,
    transform_to_time_series,
    extract_offline_periods,
    signal_min_max,
    baseline_series,
)


def _hours(n: int, start='2024-01-01'):
    return pd.date_range(start, periods=n, freq='h')


class TestRoundTemperature:

    @pytest.mark.parametrize('temperature, expected', [
        (4.2, 4.0), (3.0, 4.0), (2.9, 2.0), (-1.0, 0.0), (-1.1, -2.0), (0.0, 0.0),
    ])
    def test_nearest_two_degrees(self, temperature, expected):
        assert round_temperature(temperature) == expected

    def test_missing(self):
        assert round_temperature(None) is None
        assert round_temperature(float('nan')) is None


class TestOffStateIndex:

    def test_only_off_rows_with_values(self):
        readings = make_readings(_hours(4), control_state=[0, 1, 0, 0], temperature=4.0,
                                 VS1_GT1=[1.0, 2.0, np.nan, 3.0])
        index = build_off_state_index(readings, 'VS1_GT1')
        assert len(index) == 2
        assert index.lookup(0, 4.0) == [1.0]
        assert index.lookup_hour(3) == [3.0]


class TestBaselineTiers:

    def test_off_row_uses_own_value(self):
        readings = make_readings(_hours(2), control_state=[0, 0], VS1_GT1=[7.0, 9.0])
        points = transform_to_time_series(readings, 'VS1_GT1')
        assert [p.baseline for p in points] == [7.0, 9.0]

    def test_same_hour_same_temperature(self):
        ts = pd.DatetimeIndex(['2024-01-01 10:00', '2024-01-02 10:00', '2024-01-03 10:00'])
        readings = make_readings(ts, control_state=[0, 0, 1], temperature=[4.0, 30.0, 4.2],
                                 VS1_GT1=[20.0, 50.0, 5.0])
        points = transform_to_time_series(readings, 'VS1_GT1')
        assert points[2].baseline == 20.0

    def test_same_hour_any_temperature(self):
        ts = pd.DatetimeIndex(['2024-01-01 10:00', '2024-01-02 10:00', '2024-01-03 10:00'])
        readings = make_readings(ts, control_state=[0, 0, 1], temperature=[4.0, 8.0, 30.0],
                                 VS1_GT1=[20.0, 22.0, 5.0])
        points = transform_to_time_series(readings, 'VS1_GT1')
        assert points[2].baseline == 21.0

    def test_missing_temperature_falls_to_hour(self):
        ts = pd.DatetimeIndex(['2024-01-01 10:00', '2024-01-02 10:00'])
        readings = make_readings(ts, control_state=[0, 1], temperature=[4.0, np.nan],
                                 VS1_GT1=[20.0, 5.0])
        assert transform_to_time_series(readings, 'VS1_GT1')[1].baseline == 20.0

    def test_window_same_temperature(self):
        """No OFF row at the current hour: OFF rows in the +/-48h window with the same bucket."""
        readings = make_readings(_hours(4), control_state=[0, 0, 0, 1], temperature=[4.0, 30.0, 30.0, 4.0],
                                 VS1_GT1=[10.0, 11.0, 12.0, 5.0])
        assert transform_to_time_series(readings, 'VS1_GT1')[3].baseline == 10.0

    def test_recent_off_rows(self):
        """No same-hour and no same-temperature OFF row: any OFF row in the previous 24h."""
        readings = make_readings(_hours(4), control_state=[0, 0, 0, 1], temperature=[4.0, 4.0, 4.0, 30.0],
                                 VS1_GT1=[10.0, 11.0, 12.0, 5.0])
        assert transform_to_time_series(readings, 'VS1_GT1')[3].baseline == 11.0

    def test_recent_off_rows_capped(self):
        """At most 20 OFF rows, newest first."""
        readings = make_readings(_hours(24), control_state=[0] * 23 + [1],
                                 temperature=[4.0] * 23 + [30.0],
                                 VS1_GT1=list(np.arange(23, dtype=float)) + [0.0])
        assert transform_to_time_series(readings, 'VS1_GT1')[-1].baseline == pytest.approx(12.5)

    def test_no_estimate(self):
        readings = make_readings(_hours(3), control_state=1, VS1_GT1=5.0)
        assert all(p.baseline is None for p in transform_to_time_series(readings, 'VS1_GT1'))


class TestTimeSeries:

    def test_window_limits_display_not_index(self):
        """OFF rows outside the window still feed the index."""
        ts = pd.DatetimeIndex(['2024-01-01 10:00', '2024-01-05 10:00', '2024-01-05 11:00'])
        readings = make_readings(ts, control_state=[0, 1, 1], intensity=[0.0, 1.0, 1.0],
                                 temperature=[4.0, 4.0, 4.0], VS1_GT1=[20.0, 5.0, 7.0])
        window = WindowConfig(pd.Timestamp('2024-01-05'), pd.Timestamp('2024-01-05 23:00'))
        points = transform_to_time_series(readings, 'VS1_GT1', window)
        assert [p.timestamp for p in points] == ['2024-01-05T10:00:00', '2024-01-05T11:00:00']
        assert points[0].baseline == 20.0

    def test_signal_range_from_display(self):
        readings = make_readings(_hours(3), control_state=0, intensity=1.0, VS1_GT1=[3.0, np.nan, 9.0])
        points = transform_to_time_series(readings, 'VS1_GT1')
        assert (points[0].signal_min, points[0].signal_max) == (3.0, 9.0)
        assert points[1].signal is None

    def test_default_signal_range(self):
        readings = make_readings(_hours(2), VS1_GT1=np.nan)
        assert signal_min_max(readings, 'VS1_GT1') == (0.0, 100.0)
        assert signal_min_max(readings, 'nope') == (0.0, 100.0)

    def test_offline_flag(self):
        readings = make_readings(_hours(3), intensity=[0.0, np.nan, 0.4], VS1_GT1=1.0)
        flags = [p.is_ai_offline for p in transform_to_time_series(readings, 'VS1_GT1')]
        assert flags == [True, True, False]

    def test_empty(self):
        assert transform_to_time_series(make_readings([], VS1_GT1=1.0), 'VS1_GT1') == []
        assert transform_to_time_series(make_readings(_hours(2), VS1_GT1=1.0), 'nope') == []

    def test_empty_window(self):
        readings = make_readings(_hours(2), VS1_GT1=1.0)
        window = WindowConfig('2030-01-01', '2030-01-02')
        assert baseline_series(readings, 'VS1_GT1', window) == {'time_series': [], 'offline_periods': []}


def _point(ts: str, offline: bool) -> TimeSeriesPoint:
    return TimeSeriesPoint(timestamp=ts, signal=1.0, signal_min=0.0, signal_max=1.0,
                           baseline=None, is_ai_offline=offline)


class TestOfflinePeriods:

    def test_periods_end_at_last_offline_point(self):
        points = [_point('t0', False), _point('t1', True), _point('t2', True),
                  _point('t3', False), _point('t4', True)]
        periods = extract_offline_periods(points)
        assert [(p.start, p.end) for p in periods] == [('t1', 't2'), ('t4', 't4')]

    def test_all_online(self):
        assert extract_offline_periods([_point('t0', False)]) == []

    def test_baseline_series(self):
        readings = make_readings(_hours(4), control_state=0, intensity=[1.0, 0.0, 0.0, 1.0], VS1_GT1=2.0)
        result = baseline_series(readings, 'VS1_GT1')
        assert len(result['time_series']) == 4
        assert [p.to_dict() for p in result['offline_periods']] == [
            {'start': '2024-01-01T01:00:00', 'end': '2024-01-01T02:00:00'},
        ]
