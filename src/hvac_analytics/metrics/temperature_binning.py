"""
Temperature binning and reliability.

Rows are grouped into 2-degree outdoor temperature buckets
(bin = floor(t / 2) * 2) and split by control state. A bin is reliable when
both states have at least `min_samples` values; unreliable bins are still
returned (the dashboard dims them) but never feed the impact metrics.
"""
import math
from typing import List, Sequence

import numpy as np
import pandas as pd

from ..core.config import (
    TEMPERATURE_COL,
    CONTROL_STATE_COL,
    TEMPERATURE_BIN_WIDTH,
    LOW_PERCENTILE,
    HIGH_PERCENTILE,
)
from ..core.schema import TemperatureBin


def temperature_bin(temperature: float, width: float = TEMPERATURE_BIN_WIDTH) -> float:
    """Lower edge of the bucket containing `temperature`."""
    return float(math.floor(temperature / width) * width)


def temperature_bins(temperatures: pd.Series, width: float = TEMPERATURE_BIN_WIDTH) -> pd.Series:
    """Vectorised temperature_bin; missing temperatures stay missing."""
    return np.floor(temperatures / width) * width


def order_percentile(sorted_values: np.ndarray, percentile: float) -> float:
    """
    Empirical percentile as a plain order statistic (no interpolation).

    Index floor(n * p), clamped to the last element; 0 for an empty sample.
    """
    n = len(sorted_values)
    if n == 0:
        return 0.0
    index = min(int(math.floor(n * percentile)), n - 1)
    return float(sorted_values[index])


def _state_values(group: pd.DataFrame, signal_name: str, state: int) -> np.ndarray:
    return np.sort(group.loc[group[CONTROL_STATE_COL] == state, signal_name].to_numpy(dtype=float))


def _valid_rows(readings: pd.DataFrame, signal_name: str) -> pd.DataFrame:
    return readings.loc[readings[TEMPERATURE_COL].notna() & readings[signal_name].notna(),
                        [TEMPERATURE_COL, CONTROL_STATE_COL, signal_name]]


def calculate_bin_stats(readings: pd.DataFrame, signal_name: str, min_samples: int) -> List[TemperatureBin]:
    """
    Per-bin ON/OFF statistics for one signal.

    Args:
        readings: Filtered readings (control_state already set by classification)
        signal_name: Signal column to analyse
        min_samples: Minimum ON and OFF count for a reliable bin

    Returns:
        TemperatureBin list sorted by bin; empty when there is nothing to bin
    """
    if len(readings) == 0 or signal_name not in readings.columns:
        return []

    valid = _valid_rows(readings, signal_name)
    if len(valid) == 0:
        return []

    result = []
    for bin_value, group in valid.groupby(temperature_bins(valid[TEMPERATURE_COL]), sort=True):
        on_values = _state_values(group, signal_name, 1)
        off_values = _state_values(group, signal_name, 0)

        result.append(TemperatureBin(
            bin=float(bin_value),
            on_mean=float(on_values.mean()) if len(on_values) else 0.0,
            on_count=len(on_values),
            on_p25=order_percentile(on_values, LOW_PERCENTILE),
            on_p975=order_percentile(on_values, HIGH_PERCENTILE),
            off_mean=float(off_values.mean()) if len(off_values) else 0.0,
            off_count=len(off_values),
            off_p25=order_percentile(off_values, LOW_PERCENTILE),
            off_p975=order_percentile(off_values, HIGH_PERCENTILE),
            is_reliable=len(on_values) >= min_samples and len(off_values) >= min_samples,
        ))
    return result


def reliable_bins(bins: Sequence[TemperatureBin]) -> List[TemperatureBin]:
    return [b for b in bins if b.is_reliable]


def overlap_bins(on_bins: Sequence[float], off_bins: Sequence[float]) -> List[float]:
    """Bins present in both lists, in ON order."""
    off_set = set(off_bins)
    return [b for b in on_bins if b in off_set]
