"""
ON-vs-OFF impact metrics over reliable temperature bins.

simple diff      mean(ON bin means) - mean(OFF bin means), every bin weighted equally
weighted diff    sum(bin diff * bin share of ON+OFF occurrences); reported only
                 when the analysed rows cover WEIGHTED_METRIC_MIN_ROWS (one year
                 of hourly data), otherwise None
uptime           ON rows / all rows * 100
uptime-corrected simple figures scaled by uptime / 100
"""
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from ..core.config import CONTROL_STATE_COL, WEIGHTED_METRIC_MIN_ROWS
from ..core.schema import ImpactMetrics, TemperatureBin
from .temperature_binning import reliable_bins


def _pct(diff: float, reference: float) -> float:
    return diff / abs(reference) * 100 if reference != 0 else 0.0


def calculate_uptime(readings: pd.DataFrame) -> float:
    """Share of ON rows, in percent (0 for no rows)."""
    total = len(readings)
    if total == 0:
        return 0.0
    return float((readings[CONTROL_STATE_COL] == 1).sum()) / total * 100


def calculate_impact_metrics(
    bins: Sequence[TemperatureBin],
    readings: pd.DataFrame,
    min_rows_for_weighting: int = WEIGHTED_METRIC_MIN_ROWS,
) -> ImpactMetrics:
    """
    Summarise reliable bins into impact metrics.

    Args:
        bins: All bins from calculate_bin_stats (unreliable ones are ignored)
        readings: The rows the bins were computed from (uptime and weighting gate)
        min_rows_for_weighting: Row count from which the weighted figures are reported

    Returns:
        ImpactMetrics; degenerate inputs produce zeros rather than errors
    """
    reliable = reliable_bins(bins)

    simple_diff = 0.0
    simple_pct = 0.0
    weighted_diff = 0.0
    weighted_pct = 0.0

    if reliable:
        on_means = np.array([b.on_mean for b in reliable])
        off_means = np.array([b.off_mean for b in reliable])
        off_mean = float(off_means.mean())

        simple_diff = float(on_means.mean()) - off_mean
        simple_pct = _pct(simple_diff, off_mean)

        counts = np.array([b.total_count for b in reliable], dtype=float)
        total = counts.sum()
        if total > 0:
            weights = counts / total
            weighted_diff = float(np.sum((on_means - off_means) * weights) / weights.sum())
            weighted_off_mean = float(np.sum(off_means * weights))
            weighted_pct = _pct(weighted_diff, weighted_off_mean)

    uptime = calculate_uptime(readings)
    weighting_ok = len(readings) >= min_rows_for_weighting

    weighted_diff_out: Optional[float] = weighted_diff if weighting_ok else None
    weighted_pct_out: Optional[float] = weighted_pct if weighting_ok else None

    return ImpactMetrics(
        simple_average_diff=simple_diff,
        simple_average_pct_diff=simple_pct,
        weighted_average_diff=weighted_diff_out,
        weighted_average_pct_diff=weighted_pct_out,
        uptime=uptime,
        uptime_corrected_diff=simple_diff * (uptime / 100),
        uptime_corrected_pct_diff=simple_pct * (uptime / 100),
        reliable_bins_count=len(reliable),
    )
