"""
Query facade over the cached dataset.

AnalyticsPipeline is what a UI or CLI talks to. Every query is a pure function
of the ingested readings plus its arguments, so results are memoised by
(operation, *arguments). A changed configuration simply produces a new key;
older entries are superseded, not invalidated.

Returned frames and records are shared between callers and must be treated
as read-only.
"""
from typing import Any, Callable, Dict, Hashable, List, Optional, Sequence, Tuple

import pandas as pd

from ..core.config import (
    AnalysisConfig,
    WindowConfig,
    AVERAGE_SIGNAL,
    DEFAULT_MIN_SAMPLES,
)
from ..core.logging_setup import PipelineLogger
from ..core.schema import (
    DailyDistribution,
    ScatterPoint,
    SavingsData,
    SavingsRollup,
)
from ..filtering.filters import (
    apply_filters,
    filter_by_day_type,
    calculate_average_signal,
)
from ..ingestion.cache import DatasetCache
from ..ingestion.signals import available_signals
from ..metrics.temperature_binning import calculate_bin_stats
from ..metrics.impact import calculate_impact_metrics
from ..metrics.savings import (
    create_temperature_histogram,
    calculate_daily_savings,
    rollup_savings,
)
from ..metrics.distribution import daily_distribution, scatter_points, signal_availability
from ..baseline.imputation import baseline_series
from ..comfort.groups import comfort_groups


class AnalyticsPipeline:
    """
    Memoising query interface for one dataset.

    Usage:
        cache = DatasetCache('data/filtered_dataset.csv')
        pipeline = AnalyticsPipeline(cache)
        config = default_config(pipeline.readings)
        result = pipeline.get_temperature_analysis(config, 'VS1_GT1', 'weekdays')
    """

    def __init__(self, cache: DatasetCache):
        self.cache = cache
        self.logger = PipelineLogger('hvac_analytics.pipeline', dataset_name=cache.name)
        self._results: Dict[Tuple[Hashable, ...], Any] = {}

    @property
    def readings(self) -> pd.DataFrame:
        return self.cache.get_or_load()

    def _memo(self, key: Tuple[Hashable, ...], compute: Callable[[], Any]) -> Any:
        if key in self._results:
            self.logger.debug(f"Cache hit for {key[0]}")
            return self._results[key]
        self.logger.debug(f"Computing {key[0]}")
        result = compute()
        self._results[key] = result
        return result

    def clear_results(self):
        """Forget memoised results (the dataset cache is untouched)."""
        self._results.clear()

    def available_signals(self) -> List[str]:
        return self._memo(('available_signals',), lambda: available_signals(self.readings))

    # ------------------------------------------------------------------
    # Filtered views
    # ------------------------------------------------------------------

    def get_filtered_data(self, config: AnalysisConfig) -> pd.DataFrame:
        """Readings after classification, temperature and hour filters."""
        return self._memo(('filtered_data', config), lambda: apply_filters(self.readings, config))

    def get_daily_distribution(self, config: AnalysisConfig) -> List[DailyDistribution]:
        """ON/OFF row counts per day after classification, temperature and hour filters."""
        return self._memo(
            ('daily_distribution', config),
            lambda: daily_distribution(self.get_filtered_data(config)),
        )

    def get_scatter_data(self, config: AnalysisConfig, signal_name: str,
                         category_signals: Optional[Sequence[str]] = None) -> List[ScatterPoint]:
        members = _members(category_signals)
        return self._memo(
            ('scatter_data', config, signal_name, members),
            lambda: scatter_points(self._signal_frame(config, signal_name, members), signal_name),
        )

    def get_signal_availability(self, config: AnalysisConfig, signal_name: str,
                                category_signals: Optional[Sequence[str]] = None) -> Dict[str, Any]:
        members = _members(category_signals)
        return self._memo(
            ('signal_availability', config, signal_name, members),
            lambda: signal_availability(self._signal_frame(config, signal_name, members), signal_name),
        )

    def _signal_frame(self, config: AnalysisConfig, signal_name: str,
                      category_signals: Optional[Tuple[str, ...]]) -> pd.DataFrame:
        return _with_average(self.get_filtered_data(config), signal_name, category_signals)

    def _analysis_frame(self, config: AnalysisConfig, signal_name: str, day_filter: str,
                        category_signals: Optional[Tuple[str, ...]]) -> pd.DataFrame:
        frame = filter_by_day_type(self.get_filtered_data(config), day_filter)
        return _with_average(frame, signal_name, category_signals)

    # ------------------------------------------------------------------
    # Temperature-normalised analysis
    # ------------------------------------------------------------------

    def get_temperature_analysis(self, config: AnalysisConfig, signal_name: str,
                                 day_filter: str = 'all',
                                 category_signals: Optional[Sequence[str]] = None) -> Dict[str, Any]:
        """
        Temperature bins and impact metrics for one signal.

        Args:
            config: Analysis configuration
            signal_name: Signal column, or AVERAGE_SIGNAL with category_signals
            day_filter: 'all', 'weekdays', 'weekend' or a weekday name
            category_signals: Signals averaged into AVERAGE_SIGNAL

        Returns:
            {'bins': [TemperatureBin], 'metrics': ImpactMetrics or None}
        """
        members = _members(category_signals)

        def compute():
            frame = self._analysis_frame(config, signal_name, day_filter, members)
            if len(frame) == 0:
                return {'bins': [], 'metrics': None}
            bins = calculate_bin_stats(frame, signal_name, config.min_samples_threshold)
            metrics = calculate_impact_metrics(bins, frame)
            self.logger.info(
                f"{signal_name} ({day_filter}): {len(bins)} bins, "
                f"{metrics.reliable_bins_count} reliable, diff {metrics.simple_average_diff:.3f}"
            )
            return {'bins': bins, 'metrics': metrics}

        return self._memo(('temperature_analysis', config, signal_name, day_filter, members), compute)

    # ------------------------------------------------------------------
    # Savings
    # ------------------------------------------------------------------

    def get_savings(self, config: AnalysisConfig, signal_name: str,
                    min_samples: int = DEFAULT_MIN_SAMPLES,
                    window: Optional[WindowConfig] = None,
                    category_signals: Optional[Sequence[str]] = None) -> List[SavingsData]:
        """
        Daily actual/potential/forfeited savings over a window.

        Without a window the configuration's ON period is used; with neither
        there is nothing to report.
        """
        members = _members(category_signals)
        if window is None and config.has_on_period:
            window = WindowConfig(config.on_start, config.on_end)

        def compute():
            frame = self._signal_frame(config, signal_name, members)
            if len(frame) == 0 or window is None or not window.is_bounded:
                return []
            histogram = create_temperature_histogram(frame, signal_name, min_samples)
            return calculate_daily_savings(frame, histogram, window.start, window.end)

        return self._memo(('savings', config, signal_name, min_samples, window, members), compute)

    def get_savings_rollup(self, config: AnalysisConfig, signal_name: str,
                           min_samples: int = DEFAULT_MIN_SAMPLES,
                           window: Optional[WindowConfig] = None,
                           period: str = 'week',
                           category_signals: Optional[Sequence[str]] = None) -> List[SavingsRollup]:
        """Savings summed per ISO week or calendar month."""
        members = _members(category_signals)
        return self._memo(
            ('savings_rollup', config, signal_name, min_samples, window, period, members),
            lambda: rollup_savings(
                self.get_savings(config, signal_name, min_samples, window, members), period),
        )

    # ------------------------------------------------------------------
    # Time-series views
    # ------------------------------------------------------------------

    def get_baseline_series(self, window: Optional[WindowConfig], signal_name: str,
                            category_signals: Optional[Sequence[str]] = None) -> Dict[str, Any]:
        """AI signal against its estimated OFF-state baseline, with offline periods."""
        members = _members(category_signals)
        return self._memo(
            ('baseline_series', window, signal_name, members),
            lambda: baseline_series(_with_average(self.readings, signal_name, members), signal_name, window),
        )

    def get_comfort_groups(self, window: Optional[WindowConfig] = None) -> Dict[str, Any]:
        """Comfort groups, their averaged time series, and per-group stats."""
        return self._memo(('comfort_groups', window), lambda: comfort_groups(self.readings, window))


def _members(category_signals: Optional[Sequence[str]]) -> Optional[Tuple[str, ...]]:
    return tuple(category_signals) if category_signals else None


def _with_average(frame: pd.DataFrame, signal_name: str,
                  category_signals: Optional[Tuple[str, ...]]) -> pd.DataFrame:
    """Add the AVERAGE_SIGNAL column when the category average is requested."""
    if signal_name == AVERAGE_SIGNAL and category_signals:
        return calculate_average_signal(frame, category_signals)
    return frame
