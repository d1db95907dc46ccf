"""Counterfactual OFF-state baseline estimation."""

from .imputation import (
    OffStateIndex,
    FallbackWindow,
    round_temperature,
    build_off_state_index,
    estimate_baseline,
    signal_min_max,
    transform_to_time_series,
    extract_offline_periods,
    baseline_series,
)

__all__ = [
    'OffStateIndex',
    'FallbackWindow',
    'round_temperature',
    'build_off_state_index',
    'estimate_baseline',
    'signal_min_max',
    'transform_to_time_series',
    'extract_offline_periods',
    'baseline_series',
]
