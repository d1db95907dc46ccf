"""
Counterfactual baseline estimation.

For every row of a display window, estimate what the signal would have been
with the optimizer OFF. An index of OFF-state values keyed by
(hour of day, temperature rounded to the nearest 2 degrees) is built over
the whole dataset, then each row takes the first estimate available:

  1. the row is OFF                  -> its own value
  2. same hour, same temperature     -> mean of indexed OFF values
  3. same hour, any temperature      -> mean of indexed OFF values
  4. +/-48 h around the first displayed row, same temperature bucket
                                     -> mean of up to 10 OFF values, newest first
  5. previous 24 h, any OFF row      -> mean of up to 20 OFF values, newest first
  6. nothing found                   -> None

Rows where the control-intensity signal is 0 or missing are flagged as AI
offline; contiguous flagged rows collapse into offline periods.
"""
import logging
import math
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from ..core.config import (
    WindowConfig,
    TIMESTAMP_COL,
    CONTROL_STATE_COL,
    CONTROL_INTENSITY_COL,
    TEMPERATURE_COL,
    BASELINE_TEMPERATURE_TOLERANCE,
    BASELINE_WINDOW_HOURS,
    BASELINE_TEMPERATURE_SAMPLE_CAP,
    BASELINE_LOOKBACK_HOURS,
    BASELINE_LOOKBACK_SAMPLE_CAP,
    DEFAULT_SIGNAL_RANGE,
)
from ..core.schema import TimeSeriesPoint, OfflinePeriod
from ..filtering.filters import filter_by_date_range

logger = logging.getLogger(__name__)

IndexKey = Tuple[int, Optional[float]]


def round_temperature(temperature: Optional[float],
                      tolerance: float = BASELINE_TEMPERATURE_TOLERANCE) -> Optional[float]:
    """Round to the nearest multiple of `tolerance` (halves round up); None for missing."""
    if temperature is None or (isinstance(temperature, float) and math.isnan(temperature)):
        return None
    return float(math.floor(temperature / tolerance + 0.5) * tolerance)


def _mean(values: List[float]) -> Optional[float]:
    if not values:
        return None
    return float(np.mean(values))


class OffStateIndex:
    """OFF-state signal values bucketed by (hour, rounded temperature)."""

    def __init__(self):
        self._buckets: Dict[IndexKey, List[float]] = defaultdict(list)
        self._by_hour: Dict[int, List[float]] = defaultdict(list)

    def add(self, hour: int, temperature_bucket: Optional[float], value: float):
        self._buckets[(hour, temperature_bucket)].append(value)
        self._by_hour[hour].append(value)

    def lookup(self, hour: int, temperature_bucket: Optional[float]) -> List[float]:
        return self._buckets.get((hour, temperature_bucket), [])

    def lookup_hour(self, hour: int) -> List[float]:
        return self._by_hour.get(hour, [])

    def __len__(self) -> int:
        return sum(len(v) for v in self._buckets.values())


def build_off_state_index(readings: pd.DataFrame, signal_name: str) -> OffStateIndex:
    """Index every OFF row with a valid signal value."""
    index = OffStateIndex()
    if len(readings) == 0 or signal_name not in readings.columns:
        return index

    off = readings.loc[(readings[CONTROL_STATE_COL] == 0) & readings[signal_name].notna()]
    for hour, temperature, value in zip(off[TIMESTAMP_COL].dt.hour,
                                        off[TEMPERATURE_COL],
                                        off[signal_name]):
        index.add(int(hour), round_temperature(temperature), float(value))
    return index


@dataclass
class FallbackWindow:
    """
    Rows around the first displayed timestamp used by the fallback tiers.

    Arrays are in timestamp order; scans run newest-first.
    """
    timestamps: np.ndarray
    states: np.ndarray
    temperature_buckets: List[Optional[float]]
    values: np.ndarray

    @classmethod
    def around(cls, readings: pd.DataFrame, signal_name: str, anchor: pd.Timestamp,
               hours: int = BASELINE_WINDOW_HOURS) -> 'FallbackWindow':
        span = pd.Timedelta(hours=hours)
        ts = readings[TIMESTAMP_COL]
        rows = readings.loc[(ts >= anchor - span) & (ts <= anchor + span)]
        return cls(
            timestamps=rows[TIMESTAMP_COL].to_numpy(),
            states=rows[CONTROL_STATE_COL].to_numpy(),
            temperature_buckets=[round_temperature(t) for t in rows[TEMPERATURE_COL]],
            values=rows[signal_name].to_numpy(dtype=float),
        )

    def off_values_at_temperature(self, bucket: float,
                                  cap: int = BASELINE_TEMPERATURE_SAMPLE_CAP) -> List[float]:
        found = []
        for i in range(len(self.values) - 1, -1, -1):
            if self.states[i] != 0 or self.temperature_buckets[i] != bucket:
                continue
            if np.isnan(self.values[i]):
                continue
            found.append(float(self.values[i]))
            if len(found) >= cap:
                break
        return found

    def recent_off_values(self, current: pd.Timestamp, hours: int = BASELINE_LOOKBACK_HOURS,
                          cap: int = BASELINE_LOOKBACK_SAMPLE_CAP) -> List[float]:
        earliest = (current - pd.Timedelta(hours=hours)).to_datetime64()
        latest = current.to_datetime64()
        found = []
        for i in range(len(self.values) - 1, -1, -1):
            if self.timestamps[i] > latest:
                continue
            if self.timestamps[i] < earliest:
                break
            if self.states[i] != 0 or np.isnan(self.values[i]):
                continue
            found.append(float(self.values[i]))
            if len(found) >= cap:
                break
        return found


def estimate_baseline(
    timestamp: pd.Timestamp,
    control_state: int,
    temperature: Optional[float],
    value: Optional[float],
    index: OffStateIndex,
    window: FallbackWindow,
) -> Optional[float]:
    """Baseline for one row, taking the first tier that yields samples."""
    has_value = value is not None and not math.isnan(value)
    if control_state == 0 and has_value:
        return float(value)

    hour = timestamp.hour
    bucket = round_temperature(temperature)

    if bucket is not None:
        estimate = _mean(index.lookup(hour, bucket))
        if estimate is not None:
            return estimate

    estimate = _mean(index.lookup_hour(hour))
    if estimate is not None:
        return estimate

    if bucket is not None:
        estimate = _mean(window.off_values_at_temperature(bucket))
        if estimate is not None:
            return estimate

    return _mean(window.recent_off_values(timestamp))


def signal_min_max(readings: pd.DataFrame, signal_name: str) -> Tuple[float, float]:
    """Observed range of a signal, or DEFAULT_SIGNAL_RANGE when it has no values."""
    if signal_name not in readings.columns:
        return DEFAULT_SIGNAL_RANGE
    values = readings[signal_name].dropna()
    if len(values) == 0:
        return DEFAULT_SIGNAL_RANGE
    return float(values.min()), float(values.max())


def _optional(value) -> Optional[float]:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    return float(value)


def transform_to_time_series(readings: pd.DataFrame, signal_name: str,
                             window: Optional[WindowConfig] = None) -> List[TimeSeriesPoint]:
    """
    Signal, display range, baseline and offline flag for every row in the window.

    Args:
        readings: Full dataset (the index and fallback window use all of it)
        signal_name: Signal to estimate
        window: Display window; None or unbounded shows every row

    Returns:
        TimeSeriesPoint list in timestamp order
    """
    if len(readings) == 0 or signal_name not in readings.columns:
        return []

    display = readings
    if window is not None and window.is_bounded:
        display = filter_by_date_range(readings, window.start, window.end)
    if len(display) == 0:
        return []

    low, high = signal_min_max(display, signal_name)
    index = build_off_state_index(readings, signal_name)
    fallback = FallbackWindow.around(readings, signal_name, display[TIMESTAMP_COL].iloc[0])
    logger.debug(f"Baseline index for {signal_name}: {len(index)} OFF samples")

    points = []
    for ts, state, temperature, value, intensity in zip(
            display[TIMESTAMP_COL], display[CONTROL_STATE_COL], display[TEMPERATURE_COL],
            display[signal_name], display[CONTROL_INTENSITY_COL]):
        points.append(TimeSeriesPoint(
            timestamp=ts.isoformat(),
            signal=_optional(value),
            signal_min=low,
            signal_max=high,
            baseline=estimate_baseline(ts, int(state), _optional(temperature), _optional(value),
                                       index, fallback),
            is_ai_offline=_optional(intensity) in (None, 0.0),
        ))
    return points


def extract_offline_periods(points: List[TimeSeriesPoint]) -> List[OfflinePeriod]:
    """Collapse consecutive offline points into {start, end} periods."""
    periods = []
    start = None
    for i, point in enumerate(points):
        if point.is_ai_offline:
            if start is None:
                start = point.timestamp
        elif start is not None:
            periods.append(OfflinePeriod(start=start, end=points[i - 1].timestamp))
            start = None

    if start is not None:
        periods.append(OfflinePeriod(start=start, end=points[-1].timestamp))
    return periods


def baseline_series(readings: pd.DataFrame, signal_name: str,
                    window: Optional[WindowConfig] = None) -> Dict[str, Any]:
    """Time series plus offline periods for the AI-vs-baseline view."""
    points = transform_to_time_series(readings, signal_name, window)
    return {
        'time_series': points,
        'offline_periods': extract_offline_periods(points),
    }
