"""
Composable row filters.

Every filter is a pure function `readings x bounds -> readings` returning a
new frame; the order in which they are chained does not change the result
set. Rows with a missing value in the filtered column are excluded.
"""
from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..core.config import (
    AnalysisConfig,
    TIMESTAMP_COL,
    TEMPERATURE_COL,
    AVERAGE_SIGNAL,
    FULL_DAY_HOURS,
)
from ..classification.control_state import filter_by_control_and_dates

WEEKDAY_NAMES = ['monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday']
DAY_FILTERS = ['all', 'weekdays', 'weekend'] + WEEKDAY_NAMES


def filter_by_temperature(readings: pd.DataFrame, temperature_range: Tuple[float, float]) -> pd.DataFrame:
    """Keep rows whose outdoor temperature lies in the inclusive range."""
    low, high = temperature_range
    temps = readings[TEMPERATURE_COL]
    return readings.loc[temps.notna() & (temps >= low) & (temps <= high)].reset_index(drop=True)


def filter_by_hour(readings: pd.DataFrame, hour_range: Tuple[int, int]) -> pd.DataFrame:
    """Keep rows whose hour of day lies in the inclusive range. [0, 24] keeps everything."""
    if tuple(hour_range) == FULL_DAY_HOURS:
        return readings
    low, high = hour_range
    hours = readings[TIMESTAMP_COL].dt.hour
    return readings.loc[(hours >= low) & (hours <= high)].reset_index(drop=True)


def filter_by_date_range(readings: pd.DataFrame,
                         start: Optional[pd.Timestamp],
                         end: Optional[pd.Timestamp]) -> pd.DataFrame:
    """Keep rows with start <= timestamp <= end. Unbounded when either end is None."""
    if start is None or end is None:
        return readings
    ts = readings[TIMESTAMP_COL]
    return readings.loc[(ts >= pd.Timestamp(start)) & (ts <= pd.Timestamp(end))].reset_index(drop=True)


def is_weekend(timestamps: pd.Series) -> pd.Series:
    """Saturday or Sunday."""
    return timestamps.dt.dayofweek >= 5


def filter_by_day_type(readings: pd.DataFrame, day_filter: str = 'all') -> pd.DataFrame:
    """
    Restrict rows to a day type.

    Args:
        readings: Readings frame
        day_filter: 'all', 'weekdays', 'weekend' or a weekday name ('monday' ... 'sunday')

    Raises:
        ValueError: On an unknown day filter
    """
    key = day_filter.lower()
    if key == 'all':
        return readings
    if key not in DAY_FILTERS:
        raise ValueError(f"Unknown day filter: {day_filter!r}")

    timestamps = readings[TIMESTAMP_COL]
    if key == 'weekdays':
        mask = ~is_weekend(timestamps)
    elif key == 'weekend':
        mask = is_weekend(timestamps)
    else:
        mask = timestamps.dt.dayofweek == WEEKDAY_NAMES.index(key)
    return readings.loc[mask].reset_index(drop=True)


def apply_filters(readings: pd.DataFrame, config: AnalysisConfig) -> pd.DataFrame:
    """Control-day classification, then temperature, then hour-of-day."""
    filtered = filter_by_control_and_dates(readings, config)
    filtered = filter_by_temperature(filtered, config.temperature_range)
    filtered = filter_by_hour(filtered, config.hour_range)
    return filtered


def calculate_average_signal(readings: pd.DataFrame, signal_names: Sequence[str],
                             column: str = AVERAGE_SIGNAL) -> pd.DataFrame:
    """
    Add the element-wise mean of several signals as a new column.

    Missing values are ignored; a row where every member is missing gets NaN.
    """
    result = readings.copy()
    members = [name for name in signal_names if name in result.columns]
    if members:
        result[column] = result[members].mean(axis=1, skipna=True)
    else:
        result[column] = np.nan
    return result


def apply_value_range_filter(readings: pd.DataFrame, signal_name: str,
                             low_percentile: float, high_percentile: float) -> pd.DataFrame:
    """
    Keep rows whose signal value lies between two empirical percentiles (0-100).

    Percentile positions are order statistics: floor for the lower bound,
    ceil for the upper bound, clamped to the sample. Rows with a missing value
    are removed; with no valid values at all the input is returned unchanged.
    """
    values = np.sort(readings[signal_name].dropna().to_numpy())
    if len(values) == 0:
        return readings

    low_index = int(np.floor(low_percentile / 100 * len(values)))
    high_index = int(np.ceil(high_percentile / 100 * len(values)))
    low_value = values[low_index] if low_index < len(values) else values[0]
    high_value = values[high_index] if high_index < len(values) else values[-1]

    series = readings[signal_name]
    return readings.loc[series.notna() & (series >= low_value) & (series <= high_value)].reset_index(drop=True)
