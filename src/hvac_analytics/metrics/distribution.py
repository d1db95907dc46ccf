"""
Simple per-day and per-row views over filtered readings: ON/OFF day
distribution, scatter points, and signal availability.
"""
from typing import Any, Dict, List

import pandas as pd

from ..core.config import TIMESTAMP_COL, TEMPERATURE_COL, CONTROL_STATE_COL
from ..core.schema import DailyDistribution, ScatterPoint, SignalAvailability


def _date_strings(readings: pd.DataFrame) -> pd.Series:
    return readings[TIMESTAMP_COL].dt.strftime('%Y-%m-%d')


def daily_distribution(readings: pd.DataFrame) -> List[DailyDistribution]:
    """ON and OFF row counts per calendar day, sorted by date."""
    if len(readings) == 0:
        return []

    is_on = readings[CONTROL_STATE_COL] == 1
    counts = pd.DataFrame({'date': _date_strings(readings), 'on': is_on, 'off': ~is_on}) \
        .groupby('date', sort=True)[['on', 'off']].sum()
    return [
        DailyDistribution(date=day, on_count=int(row['on']), off_count=int(row['off']))
        for day, row in counts.iterrows()
    ]


def scatter_points(readings: pd.DataFrame, signal_name: str) -> List[ScatterPoint]:
    """(temperature, value, state) for every row with both values present."""
    if len(readings) == 0 or signal_name not in readings.columns:
        return []

    valid = readings.loc[readings[TEMPERATURE_COL].notna() & readings[signal_name].notna()]
    return [
        ScatterPoint(temperature=float(t), value=float(v), control_state=int(s))
        for t, v, s in zip(valid[TEMPERATURE_COL], valid[signal_name], valid[CONTROL_STATE_COL])
    ]


def signal_availability(readings: pd.DataFrame, signal_name: str) -> Dict[str, Any]:
    """
    Daily available/missing counts for a signal plus the overall availability.

    Returns:
        {'daily': [SignalAvailability, ...], 'percentage': float}
    """
    if len(readings) == 0 or signal_name not in readings.columns:
        return {'daily': [], 'percentage': 0.0}

    present = readings[signal_name].notna()
    counts = pd.DataFrame({'date': _date_strings(readings), 'available': present, 'missing': ~present}) \
        .groupby('date', sort=True)[['available', 'missing']].sum()

    daily = [
        SignalAvailability(date=day, available=int(row['available']), missing=int(row['missing']))
        for day, row in counts.iterrows()
    ]
    total = len(readings)
    return {
        'daily': daily,
        'percentage': float(present.sum()) / total * 100 if total else 0.0,
    }
