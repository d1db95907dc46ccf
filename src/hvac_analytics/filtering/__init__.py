"""Composable row filters applied before every analysis view."""

from .filters import (
    WEEKDAY_NAMES,
    DAY_FILTERS,
    filter_by_temperature,
    filter_by_hour,
    filter_by_date_range,
    filter_by_day_type,
    is_weekend,
    apply_filters,
    calculate_average_signal,
    apply_value_range_filter,
)

__all__ = [
    'WEEKDAY_NAMES',
    'DAY_FILTERS',
    'filter_by_temperature',
    'filter_by_hour',
    'filter_by_date_range',
    'filter_by_day_type',
    'is_weekend',
    'apply_filters',
    'calculate_average_signal',
    'apply_value_range_filter',
]
