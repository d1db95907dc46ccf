"""
Savings estimation.

Step 1 builds two temperature-bin -> diff maps (weekday and weekend), with
diff = OFF mean - ON mean, kept only for bins where both states reach
`min_samples`. Missing bins count as a zero diff downstream.

Step 2 walks every row inside the savings window and accrues the diff of
its bin into the row's day:
  - ON row:  actual and potential
  - OFF row: potential and forfeited
so that potential = actual + forfeited for every day.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Sequence

import numpy as np
import pandas as pd

from ..core.config import TIMESTAMP_COL, TEMPERATURE_COL, CONTROL_STATE_COL
from ..core.schema import SavingsData, SavingsRollup
from ..filtering.filters import is_weekend
from .temperature_binning import temperature_bins

ROLLUP_PERIODS = ('week', 'month')


@dataclass(frozen=True)
class TemperatureHistogram:
    weekday: Dict[float, float] = field(default_factory=dict)
    weekend: Dict[float, float] = field(default_factory=dict)

    def diff_for(self, bin_value: float, weekend: bool) -> float:
        table = self.weekend if weekend else self.weekday
        return table.get(bin_value, 0.0)


def _bin_diffs(readings: pd.DataFrame, signal_name: str, min_samples: int) -> Dict[float, float]:
    diffs = {}
    if len(readings) == 0:
        return diffs
    for bin_value, group in readings.groupby(temperature_bins(readings[TEMPERATURE_COL]), sort=True):
        is_on = group[CONTROL_STATE_COL] == 1
        on_values = group.loc[is_on, signal_name]
        off_values = group.loc[~is_on, signal_name]
        if len(on_values) >= min_samples and len(off_values) >= min_samples:
            diffs[float(bin_value)] = float(off_values.mean() - on_values.mean())
    return diffs


def create_temperature_histogram(readings: pd.DataFrame, signal_name: str,
                                 min_samples: int) -> TemperatureHistogram:
    """
    Build the weekday/weekend bin -> (OFF mean - ON mean) maps for a signal.

    Rows missing either the temperature or the signal value are ignored.
    """
    if len(readings) == 0 or signal_name not in readings.columns:
        return TemperatureHistogram()

    valid = readings.loc[readings[TEMPERATURE_COL].notna() & readings[signal_name].notna()]
    weekend = is_weekend(valid[TIMESTAMP_COL])
    return TemperatureHistogram(
        weekday=_bin_diffs(valid.loc[~weekend], signal_name, min_samples),
        weekend=_bin_diffs(valid.loc[weekend], signal_name, min_samples),
    )


def _as_day(value) -> pd.Timestamp:
    return pd.Timestamp(value).normalize()


def calculate_daily_savings(readings: pd.DataFrame, histogram: TemperatureHistogram,
                            start: date, end: date) -> List[SavingsData]:
    """
    Project per-day savings over an inclusive calendar-day window.

    Args:
        readings: Filtered readings (control_state set by classification)
        histogram: Bin diffs from create_temperature_histogram
        start: First day of the savings window
        end: Last day of the savings window

    Returns:
        SavingsData per day with data, sorted by date
    """
    if len(readings) == 0 or start is None or end is None:
        return []

    days = readings[TIMESTAMP_COL].dt.normalize()
    frame = readings.loc[(days >= _as_day(start)) & (days <= _as_day(end))]
    if len(frame) == 0:
        return []

    bins = temperature_bins(frame[TEMPERATURE_COL])
    weekend = is_weekend(frame[TIMESTAMP_COL])
    diff = pd.Series(
        np.where(weekend, bins.map(histogram.weekend), bins.map(histogram.weekday)),
        index=frame.index,
        dtype=float,
    ).fillna(0.0)
    is_on = frame[CONTROL_STATE_COL] == 1

    per_row = pd.DataFrame({
        'day': frame[TIMESTAMP_COL].dt.normalize(),
        'actual': diff.where(is_on, 0.0),
        'potential': diff,
        'forfeited': diff.where(~is_on, 0.0),
        'on': is_on.astype(int),
    })
    daily = per_row.groupby('day', sort=True).agg(
        actual=('actual', 'sum'),
        potential=('potential', 'sum'),
        forfeited=('forfeited', 'sum'),
        on=('on', 'sum'),
        total=('on', 'size'),
    )

    return [
        SavingsData(
            date=day.strftime('%Y-%m-%d'),
            actual_savings=float(row['actual']),
            potential_savings=float(row['potential']),
            forfeited_savings=float(row['forfeited']),
            uptime=float(row['on']) / row['total'] * 100 if row['total'] > 0 else 0.0,
        )
        for day, row in daily.iterrows()
    ]


def _period_start(dates: pd.Series, period: str) -> pd.Series:
    if period == 'week':
        return dates - pd.to_timedelta(dates.dt.dayofweek, unit='D')
    return dates.dt.to_period('M').dt.start_time


def _period_label(start: pd.Timestamp, period: str) -> str:
    if period == 'week':
        iso = start.isocalendar()
        return f"{iso[0]}-W{iso[1]:02d}"
    return start.strftime('%Y-%m')


def rollup_savings(daily: Sequence[SavingsData], period: str = 'week') -> List[SavingsRollup]:
    """
    Aggregate daily savings by calendar week (Monday start) or month.

    Savings are summed; uptime is the mean of the daily uptimes.
    """
    if period not in ROLLUP_PERIODS:
        raise ValueError(f"Unknown rollup period: {period!r}")
    if not daily:
        return []

    frame = pd.DataFrame([d.to_dict() for d in daily])
    frame['period'] = _period_start(pd.to_datetime(frame['date']), period)
    grouped = frame.groupby('period', sort=True).agg(
        actual=('actual_savings', 'sum'),
        potential=('potential_savings', 'sum'),
        forfeited=('forfeited_savings', 'sum'),
        uptime=('uptime', 'mean'),
        days=('date', 'count'),
    )

    return [
        SavingsRollup(
            period=start.strftime('%Y-%m-%d'),
            label=_period_label(start, period),
            actual_savings=float(row['actual']),
            potential_savings=float(row['potential']),
            forfeited_savings=float(row['forfeited']),
            uptime=float(row['uptime']),
            days=int(row['days']),
        )
        for start, row in grouped.iterrows()
    ]


def summarize_savings(daily: Sequence[SavingsData]) -> Dict[str, Any]:
    """Totals over a savings window and the mean daily uptime."""
    days = len(daily)
    return {
        'total_actual': float(sum(d.actual_savings for d in daily)),
        'total_potential': float(sum(d.potential_savings for d in daily)),
        'total_forfeited': float(sum(d.forfeited_savings for d in daily)),
        'days': days,
        'average_uptime': float(sum(d.uptime for d in daily) / days) if days else 0.0,
    }
