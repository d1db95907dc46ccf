"""
Comfort groups: temperature sensors split into a fixed number of groups and
averaged per timestamp for trend display.

The split is deterministic without persisted state: signal names are sorted,
a seed is derived from the sorted names (CRC32), and a Fisher-Yates shuffle
driven by numpy's seeded generator orders them before slicing into groups of
ceil(n / group_count). Trailing groups may be smaller or absent.
"""
import logging
import math
import zlib
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from ..core.config import (
    WindowConfig,
    TIMESTAMP_COL,
    COMFORT_GROUP_COUNT,
    COMFORT_SIGNAL_MARKER,
)
from ..core.schema import GroupData, GroupStats
from ..filtering.filters import filter_by_date_range
from ..ingestion.signals import available_signals

logger = logging.getLogger(__name__)

OVERALL_COLUMNS = ['overall_average', 'min_average', 'max_average']


def comfort_signals(readings: pd.DataFrame, marker: str = COMFORT_SIGNAL_MARKER) -> List[str]:
    """Temperature-class signals (names containing the GT marker)."""
    return [name for name in available_signals(readings) if marker in name]


def partition_seed(sorted_names: Sequence[str]) -> int:
    """Stable integer seed for a set of names (independent of PYTHONHASHSEED)."""
    return zlib.crc32('\n'.join(sorted_names).encode('utf-8'))


def deterministic_shuffle(names: Sequence[str], seed: int) -> List[str]:
    """Fisher-Yates shuffle with a seeded generator."""
    rng = np.random.default_rng(seed)
    shuffled = list(names)
    for i in range(len(shuffled) - 1, 0, -1):
        j = int(rng.integers(0, i + 1))
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def partition_groups(signal_names: Sequence[str], group_count: int = COMFORT_GROUP_COUNT) -> List[GroupData]:
    """
    Split signals into at most `group_count` groups, the same way on every run.

    Args:
        signal_names: Signals to partition (order does not matter)
        group_count: Number of groups

    Returns:
        Non-empty groups, numbered from 1
    """
    if not signal_names:
        return []

    ordered = sorted(signal_names)
    shuffled = deterministic_shuffle(ordered, partition_seed(ordered))
    size = math.ceil(len(shuffled) / group_count)

    groups = []
    for i in range(group_count):
        members = shuffled[i * size:(i + 1) * size]
        if members:
            groups.append(GroupData(group_id=f"group_{i + 1}", name=f"Group {i + 1}",
                                    signal_names=tuple(members)))
    return groups


def group_time_series(readings: pd.DataFrame, groups: Sequence[GroupData]) -> pd.DataFrame:
    """
    Per-timestamp mean of each group's members (missing members ignored).

    Returns:
        DataFrame with a timestamp column and one column per group name,
        one row per distinct timestamp in ascending order
    """
    columns = [TIMESTAMP_COL] + [g.name for g in groups]
    if len(readings) == 0 or not groups:
        return pd.DataFrame(columns=columns)

    series = pd.DataFrame({TIMESTAMP_COL: readings[TIMESTAMP_COL]})
    for group in groups:
        members = [s for s in group.signal_names if s in readings.columns]
        series[group.name] = readings[members].mean(axis=1, skipna=True) if members else np.nan

    series = series.drop_duplicates(subset=TIMESTAMP_COL, keep='last')
    return series.sort_values(TIMESTAMP_COL).reset_index(drop=True)


def calculate_overall_stats(time_series: pd.DataFrame, groups: Sequence[GroupData]) -> pd.DataFrame:
    """Add mean/min/max across the group values at each timestamp."""
    result = time_series.copy()
    group_values = result[[g.name for g in groups]].astype(float)
    result['overall_average'] = group_values.mean(axis=1, skipna=True)
    result['min_average'] = group_values.min(axis=1, skipna=True)
    result['max_average'] = group_values.max(axis=1, skipna=True)
    return result


def calculate_group_stats(time_series: pd.DataFrame, groups: Sequence[GroupData]) -> List[GroupStats]:
    """Latest value, min, max and point count per group."""
    stats = []
    for group in groups:
        values = time_series[group.name].dropna() if group.name in time_series.columns else pd.Series(dtype=float)
        if len(values) == 0:
            stats.append(GroupStats(group.group_id, group.name, None, None, None, 0))
            continue
        stats.append(GroupStats(
            group_id=group.group_id,
            name=group.name,
            current_average=float(values.iloc[-1]),
            min_value=float(values.min()),
            max_value=float(values.max()),
            data_point_count=int(len(values)),
        ))
    return stats


def comfort_groups(readings: pd.DataFrame, window: Optional[WindowConfig] = None,
                   group_count: int = COMFORT_GROUP_COUNT) -> Dict[str, Any]:
    """
    Groups, enriched time series and per-group stats for the comfort view.

    Returns:
        {'groups': [GroupData], 'time_series': DataFrame, 'stats': [GroupStats]}
    """
    if len(readings) == 0:
        return {'groups': [], 'time_series': pd.DataFrame(columns=[TIMESTAMP_COL] + OVERALL_COLUMNS),
                'stats': []}

    groups = partition_groups(comfort_signals(readings), group_count)
    series = group_time_series(readings, groups)
    if window is not None and window.is_bounded:
        series = filter_by_date_range(series, window.start, window.end)

    logger.debug(f"Comfort groups: {len(groups)} groups over {len(series)} timestamps")
    return {
        'groups': groups,
        'time_series': calculate_overall_stats(series, groups),
        'stats': calculate_group_stats(series, groups),
    }
