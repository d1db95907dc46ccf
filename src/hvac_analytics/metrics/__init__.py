"""Temperature-normalised metrics: bins, impact, savings, distributions."""

from .temperature_binning import (
    temperature_bin,
    temperature_bins,
    order_percentile,
    calculate_bin_stats,
    reliable_bins,
    overlap_bins,
)
from .impact import calculate_impact_metrics, calculate_uptime
from .savings import (
    TemperatureHistogram,
    create_temperature_histogram,
    calculate_daily_savings,
    rollup_savings,
    summarize_savings,
)
from .distribution import daily_distribution, scatter_points, signal_availability

__all__ = [
    'temperature_bin',
    'temperature_bins',
    'order_percentile',
    'calculate_bin_stats',
    'reliable_bins',
    'overlap_bins',
    'calculate_impact_metrics',
    'calculate_uptime',
    'TemperatureHistogram',
    'create_temperature_histogram',
    'calculate_daily_savings',
    'rollup_savings',
    'summarize_savings',
    'daily_distribution',
    'scatter_points',
    'signal_availability',
]
