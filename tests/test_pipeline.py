"""
End-to-end tests for pipeline/queries.py (AnalyticsPipeline).

Tests:
  - Two-day ON/OFF scenario through classification, binning and metrics
  - Same scenario parsed from CSV text
  - Empty dataset never raises
  - Memoisation and idempotence
  - Category averaging
"""
from datetime import date

import pandas as pd
import pytest

from conftest import make_readings
from hvac_analytics.core.config import AnalysisConfig, WindowConfig, default_config
from hvac_analytics.ingestion import DatasetCache, empty_readings
from hvac_analytics.pipeline import AnalyticsPipeline


def _config(**overrides):
    params = dict(
        on_threshold=(0.9, 1.0),
        off_threshold=(0.0, 0.2),
        temperature_range=(-20.0, 40.0),
        min_samples_threshold=10,
        on_start=date(2024, 1, 1), on_end=date(2024, 1, 2),
        off_start=date(2024, 1, 1), off_end=date(2024, 1, 2),
    )
    params.update(overrides)
    return AnalysisConfig(**params)


def _scenario_csv() -> str:
    lines = ["timestamp,ai_flag,VS1_GT1,control_intensity,outdoor_temperature"]
    for ts in pd.date_range('2024-01-01', periods=48, freq='h'):
        day1 = ts.day == 1
        lines.append(f"{ts.isoformat()},0,{10.0 if day1 else 8.0},{0.95 if day1 else 0.05},5.0")
    return "\n".join(lines)


@pytest.fixture
def pipeline(two_day_readings):
    return AnalyticsPipeline(DatasetCache.from_readings(two_day_readings, name='two_days'))


class TestTwoDayScenario:

    def test_temperature_analysis(self, pipeline):
        result = pipeline.get_temperature_analysis(_config(), 'VS1_GT1', 'all')
        (b,) = result['bins']
        assert (b.on_mean, b.off_mean) == (10.0, 8.0)
        assert result['metrics'].simple_average_diff == 2.0
        assert result['metrics'].weighted_average_diff is None

    def test_from_csv_text(self):
        pipeline = AnalyticsPipeline(DatasetCache.from_text(_scenario_csv()))
        result = pipeline.get_temperature_analysis(_config(), 'VS1_GT1', 'all')
        assert result['metrics'].simple_average_diff == 2.0

    def test_daily_distribution(self, pipeline):
        days = pipeline.get_daily_distribution(_config())
        assert [(d.date, d.on_count, d.off_count) for d in days] == [
            ('2024-01-01', 24, 0), ('2024-01-02', 0, 24),
        ]

    def test_daily_distribution_follows_temperature_filter(self):
        ts = pd.date_range('2024-01-01', periods=48, freq='h')
        readings = make_readings(
            ts,
            intensity=[0.95] * 24 + [0.05] * 24,
            temperature=[30.0] * 12 + [5.0] * 36,
            VS1_GT1=1.0,
        )
        pipeline = AnalyticsPipeline(DatasetCache.from_readings(readings))
        config = _config(temperature_range=(0.0, 10.0))
        days = pipeline.get_daily_distribution(config)
        assert [(d.date, d.on_count, d.off_count) for d in days] == [
            ('2024-01-01', 12, 0), ('2024-01-02', 0, 24),
        ]
        assert sum(d.on_count + d.off_count for d in days) == len(pipeline.get_filtered_data(config))

    def test_scatter_and_availability(self, pipeline):
        assert len(pipeline.get_scatter_data(_config(), 'VS1_GT1')) == 48
        assert pipeline.get_signal_availability(_config(), 'VS1_GT1')['percentage'] == 100.0

    def test_savings(self, pipeline):
        window = WindowConfig('2024-01-01', '2024-01-02 23:00')
        daily = pipeline.get_savings(_config(), 'VS1_GT1', 10, window)
        assert [d.actual_savings for d in daily] == [pytest.approx(-48.0), 0.0]
        assert [d.forfeited_savings for d in daily] == [0.0, pytest.approx(-48.0)]
        weeks = pipeline.get_savings_rollup(_config(), 'VS1_GT1', 10, window, 'week')
        assert weeks[0].days == 2

    def test_savings_without_window(self, pipeline):
        """The ON period stands in for a missing window."""
        daily = pipeline.get_savings(_config(), 'VS1_GT1', 10, None)
        assert [d.date for d in daily] == ['2024-01-01', '2024-01-02']
        assert [d.actual_savings for d in daily] == [pytest.approx(-48.0), 0.0]

    def test_savings_without_window_or_on_period(self, pipeline):
        config = _config(on_start=None, on_end=None)
        assert pipeline.get_savings(config, 'VS1_GT1', 10, None) == []

    def test_weekend_filter_has_no_rows(self, pipeline):
        assert pipeline.get_temperature_analysis(_config(), 'VS1_GT1', 'weekend') == {
            'bins': [], 'metrics': None,
        }

    def test_baseline_and_comfort(self, pipeline):
        window = WindowConfig('2024-01-02', '2024-01-02 23:00')
        series = pipeline.get_baseline_series(window, 'VS1_GT1')
        assert len(series['time_series']) == 24
        assert all(p.baseline == 8.0 for p in series['time_series'])
        comfort = pipeline.get_comfort_groups(window)
        assert [g.signal_names for g in comfort['groups']] == [('VS1_GT1',)]

    def test_available_signals(self, pipeline):
        assert pipeline.available_signals() == ['VS1_GT1']


class TestCategoryAverage:

    MEMBERS = ['VS1_GT1', 'VS1_GT2']

    @pytest.fixture
    def category_pipeline(self):
        ts = pd.date_range('2024-01-01', periods=48, freq='h')
        readings = make_readings(
            ts,
            intensity=[0.95] * 24 + [0.05] * 24,
            VS1_GT1=[10.0] * 24 + [8.0] * 24,
            VS1_GT2=[20.0] * 24 + [14.0] * 24,
        )
        return AnalyticsPipeline(DatasetCache.from_readings(readings))

    def test_average_signal(self, category_pipeline):
        result = category_pipeline.get_temperature_analysis(_config(), 'average_signal', 'all',
                                                            self.MEMBERS)
        assert result['metrics'].simple_average_diff == pytest.approx(4.0)

    def test_scatter_and_availability(self, category_pipeline):
        points = category_pipeline.get_scatter_data(_config(), 'average_signal', self.MEMBERS)
        assert len(points) == 48
        assert {p.value for p in points} == {15.0, 11.0}
        availability = category_pipeline.get_signal_availability(_config(), 'average_signal', self.MEMBERS)
        assert availability['percentage'] == 100.0

    def test_savings(self, category_pipeline):
        window = WindowConfig('2024-01-01', '2024-01-02 23:00')
        daily = category_pipeline.get_savings(_config(), 'average_signal', 10, window, self.MEMBERS)
        assert [d.actual_savings for d in daily] == [pytest.approx(-96.0), 0.0]
        assert [d.forfeited_savings for d in daily] == [0.0, pytest.approx(-96.0)]
        weeks = category_pipeline.get_savings_rollup(_config(), 'average_signal', 10, window, 'week',
                                                     self.MEMBERS)
        assert weeks[0].days == 2

    def test_baseline(self, category_pipeline):
        window = WindowConfig('2024-01-02', '2024-01-02 23:00')
        series = category_pipeline.get_baseline_series(window, 'average_signal', self.MEMBERS)
        assert len(series['time_series']) == 24
        assert all(p.baseline == 11.0 for p in series['time_series'])

    def test_members_are_part_of_the_key(self, category_pipeline):
        both = category_pipeline.get_scatter_data(_config(), 'average_signal', self.MEMBERS)
        one = category_pipeline.get_scatter_data(_config(), 'average_signal', ['VS1_GT1'])
        assert {p.value for p in both} == {15.0, 11.0}
        assert {p.value for p in one} == {10.0, 8.0}


class TestEmptyDataset:

    @pytest.fixture
    def empty_pipeline(self):
        return AnalyticsPipeline(DatasetCache.from_readings(empty_readings(['VS1_GT1'])))

    def test_queries_return_empty(self, empty_pipeline):
        config = default_config(empty_pipeline.readings)
        window = WindowConfig('2024-01-01', '2024-01-02')
        assert len(empty_pipeline.get_filtered_data(config)) == 0
        assert empty_pipeline.get_daily_distribution(config) == []
        assert empty_pipeline.get_temperature_analysis(config, 'VS1_GT1', 'all') == {
            'bins': [], 'metrics': None,
        }
        assert empty_pipeline.get_scatter_data(config, 'VS1_GT1') == []
        assert empty_pipeline.get_savings(config, 'VS1_GT1', 30, window) == []
        assert empty_pipeline.get_savings_rollup(config, 'VS1_GT1', 30, window, 'month') == []
        assert empty_pipeline.get_signal_availability(config, 'VS1_GT1') == {'daily': [], 'percentage': 0.0}
        assert empty_pipeline.get_baseline_series(window, 'VS1_GT1') == {
            'time_series': [], 'offline_periods': [],
        }
        assert empty_pipeline.get_comfort_groups(window)['groups'] == []


class TestMemoisation:

    def test_identical_configs_share_result(self, pipeline):
        a = pipeline.get_filtered_data(_config(on_threshold=[0.9, 1.0]))
        b = pipeline.get_filtered_data(_config(on_threshold=(0.9, 1.0)))
        assert a is b

    def test_idempotent_across_pipelines(self, two_day_readings):
        first = AnalyticsPipeline(DatasetCache.from_readings(two_day_readings)).get_filtered_data(_config())
        second = AnalyticsPipeline(DatasetCache.from_readings(two_day_readings)).get_filtered_data(_config())
        pd.testing.assert_frame_equal(first, second)

    def test_changed_config_recomputes(self, pipeline):
        a = pipeline.get_filtered_data(_config())
        b = pipeline.get_filtered_data(_config(off_threshold=(0.5, 0.6)))
        assert len(a) == 48
        assert len(b) == 24

    def test_clear_results(self, pipeline):
        a = pipeline.get_temperature_analysis(_config(), 'VS1_GT1')
        pipeline.clear_results()
        b = pipeline.get_temperature_analysis(_config(), 'VS1_GT1')
        assert a is not b
        assert a == b
