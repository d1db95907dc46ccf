"""Day-level AI ON/OFF classification."""

from .control_state import (
    DayClassification,
    day_keys,
    daily_intensity_means,
    classify_days,
    filter_by_control_and_dates,
)

__all__ = [
    'DayClassification',
    'day_keys',
    'daily_intensity_means',
    'classify_days',
    'filter_by_control_and_dates',
]
