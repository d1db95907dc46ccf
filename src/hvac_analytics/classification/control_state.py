"""
Day-level AI control classification.

Each calendar day is labelled ON (the optimizer was driving setpoints), OFF,
or excluded. The per-row control flag in the dataset is discarded in favour
of the day verdict.

Intensity mode:
  1. ON pass: days inside the ON date range whose mean control intensity lies
     inside on_threshold (closed interval).
  2. OFF pass: days inside the OFF date range, not already ON, whose mean
     control intensity lies inside off_threshold.
  Days without a single valid intensity sample qualify for neither.

Split-by-dates mode: the same two passes without the intensity test; every
day with data inside the range qualifies.

ON always wins when the two date ranges overlap.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import FrozenSet, Iterable, Optional, Tuple

import pandas as pd

from ..core.config import (
    AnalysisConfig,
    TIMESTAMP_COL,
    CONTROL_STATE_COL,
    CONTROL_INTENSITY_COL,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DayClassification:
    on_days: FrozenSet[pd.Timestamp]
    off_days: FrozenSet[pd.Timestamp]

    def state_of(self, day) -> Optional[int]:
        """1 for ON, 0 for OFF, None when the day is excluded."""
        day = pd.Timestamp(day).normalize()
        if day in self.on_days:
            return 1
        if day in self.off_days:
            return 0
        return None


def day_keys(readings: pd.DataFrame) -> pd.Series:
    """Calendar day (midnight timestamp) of every row."""
    return readings[TIMESTAMP_COL].dt.normalize()


def _in_date_range(days: pd.Series, start: date, end: date) -> pd.Series:
    return (days >= pd.Timestamp(start)) & (days <= pd.Timestamp(end))


def daily_intensity_means(
    readings: pd.DataFrame,
    start: date,
    end: date,
    exclude: Iterable[pd.Timestamp] = (),
) -> pd.Series:
    """
    Mean control intensity per day within an inclusive date range.

    Args:
        readings: Readings frame
        start: First calendar day (inclusive)
        end: Last calendar day (inclusive)
        exclude: Days to leave out of the computation

    Returns:
        Series indexed by day; days with no valid intensity sample are absent
    """
    days = day_keys(readings)
    mask = _in_date_range(days, start, end) & readings[CONTROL_INTENSITY_COL].notna()
    exclude = list(exclude)
    if exclude:
        mask &= ~days.isin(exclude)
    return readings.loc[mask, CONTROL_INTENSITY_COL].groupby(days[mask]).mean()


def _days_within(means: pd.Series, threshold: Tuple[float, float]) -> FrozenSet[pd.Timestamp]:
    low, high = threshold
    return frozenset(means.index[(means >= low) & (means <= high)])


def _days_present(readings: pd.DataFrame, start: date, end: date,
                  exclude: FrozenSet[pd.Timestamp]) -> FrozenSet[pd.Timestamp]:
    days = day_keys(readings)
    present = set(days[_in_date_range(days, start, end)].unique())
    return frozenset(pd.Timestamp(d) for d in present) - exclude


def classify_days(readings: pd.DataFrame, config: AnalysisConfig) -> DayClassification:
    """Label every calendar day ON, OFF or excluded."""
    on_days: FrozenSet[pd.Timestamp] = frozenset()
    off_days: FrozenSet[pd.Timestamp] = frozenset()

    if len(readings) == 0:
        return DayClassification(on_days, off_days)

    if config.control_mode == 'split_by_dates':
        if config.has_on_period:
            on_days = _days_present(readings, config.on_start, config.on_end, frozenset())
        if config.has_off_period:
            off_days = _days_present(readings, config.off_start, config.off_end, on_days)
    else:
        if config.has_on_period:
            on_means = daily_intensity_means(readings, config.on_start, config.on_end)
            on_days = _days_within(on_means, config.on_threshold)
        if config.has_off_period:
            off_means = daily_intensity_means(readings, config.off_start, config.off_end,
                                              exclude=on_days)
            off_days = _days_within(off_means, config.off_threshold)

    logger.debug(f"Classified {len(on_days)} ON days and {len(off_days)} OFF days")
    return DayClassification(on_days, off_days)


def filter_by_control_and_dates(readings: pd.DataFrame, config: AnalysisConfig) -> pd.DataFrame:
    """
    Keep rows on classified days and overwrite their control state with the day verdict.

    Returns a new DataFrame; the input is not modified.
    """
    if len(readings) == 0:
        return readings.iloc[0:0].copy()

    classification = classify_days(readings, config)
    days = day_keys(readings)
    on_mask = days.isin(list(classification.on_days))
    off_mask = days.isin(list(classification.off_days))

    result = readings.loc[on_mask | off_mask].copy()
    result[CONTROL_STATE_COL] = on_mask[on_mask | off_mask].astype('int64').values
    return result.reset_index(drop=True)
