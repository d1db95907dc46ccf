"""
Analysis configuration management.

Every dashboard query is driven by an immutable AnalysisConfig. The dataclass
is frozen so that structurally identical configurations hash equally and can
be used directly as cache keys by the query facade.

Tunable constants for all pipeline stages are centralised here.
"""
from dataclasses import dataclass, asdict, replace as dc_replace
from datetime import date, datetime, timedelta
from typing import Dict, Any, Optional, Tuple
import json
import os

import pandas as pd


# ============================================================================
# Dataset layout
# ============================================================================
TIMESTAMP_COL = 'timestamp'
CONTROL_STATE_COL = 'control_state'
CONTROL_INTENSITY_COL = 'control_intensity'
TEMPERATURE_COL = 'outdoor_temperature'
AVERAGE_SIGNAL = 'average_signal'

RESERVED_COLUMNS = (TIMESTAMP_COL, CONTROL_STATE_COL, CONTROL_INTENSITY_COL, TEMPERATURE_COL)

DEFAULT_DATASET_SOURCE = os.environ.get('HVAC_DATASET', 'filtered_dataset.csv')

# ============================================================================
# Ingestion
# ============================================================================
INGESTION_CHUNK_SIZE = 200          # rows per chunk between yield points
HTTP_TIMEOUT = 30                   # seconds

# ============================================================================
# Temperature binning
# ============================================================================
TEMPERATURE_BIN_WIDTH = 2           # degrees C
LOW_PERCENTILE = 0.025
HIGH_PERCENTILE = 0.975
DEFAULT_MIN_SAMPLES = 30

# Empirical gate: occurrence weighting is only reported once the filtered
# sample covers a full year of hourly rows. Tunable.
WEIGHTED_METRIC_MIN_ROWS = 365 * 24

# ============================================================================
# Baseline imputation
# ============================================================================
BASELINE_TEMPERATURE_TOLERANCE = 2  # index buckets rounded to nearest 2 degrees
BASELINE_WINDOW_HOURS = 48          # +/- around the first displayed row
BASELINE_TEMPERATURE_SAMPLE_CAP = 10
BASELINE_LOOKBACK_HOURS = 24
BASELINE_LOOKBACK_SAMPLE_CAP = 20
DEFAULT_SIGNAL_RANGE = (0.0, 100.0)

# ============================================================================
# Comfort groups
# ============================================================================
COMFORT_GROUP_COUNT = 6
COMFORT_SIGNAL_MARKER = '_GT'

# ============================================================================
# Default windows
# ============================================================================
DEFAULT_ANALYSIS_DAYS = 400
DEFAULT_VIEW_DAYS = 11
DEFAULT_TEMPERATURE_RANGE = (-20.0, 40.0)
FULL_DAY_HOURS = (0, 24)

CONTROL_MODES = ('intensity', 'split_by_dates')


def _to_date(value) -> Optional[date]:
    """Coerce str/datetime/Timestamp/date to a calendar date (None passes through)."""
    if value is None:
        return None
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return pd.Timestamp(value).date()


def _to_timestamp(value) -> Optional[pd.Timestamp]:
    if value is None:
        return None
    return pd.Timestamp(value)


def _pair(value) -> Tuple[float, float]:
    low, high = value
    return (low, high)


@dataclass(frozen=True)
class AnalysisConfig:
    """Configuration for a single analysis query."""
    on_threshold: Tuple[float, float] = (0.9, 1.0)
    off_threshold: Tuple[float, float] = (0.0, 0.2)
    temperature_range: Tuple[float, float] = DEFAULT_TEMPERATURE_RANGE
    hour_range: Tuple[int, int] = FULL_DAY_HOURS
    min_samples_threshold: int = DEFAULT_MIN_SAMPLES
    on_start: Optional[date] = None
    on_end: Optional[date] = None
    off_start: Optional[date] = None
    off_end: Optional[date] = None
    control_mode: str = 'intensity'  # 'intensity' or 'split_by_dates'

    def __post_init__(self):
        # Normalise containers and dates so equal configs hash equally
        for name in ('on_threshold', 'off_threshold', 'temperature_range', 'hour_range'):
            object.__setattr__(self, name, _pair(getattr(self, name)))
        for name in ('on_start', 'on_end', 'off_start', 'off_end'):
            object.__setattr__(self, name, _to_date(getattr(self, name)))

        if self.control_mode not in CONTROL_MODES:
            raise ValueError(f"Unknown control mode: {self.control_mode!r}")
        for name in ('on_threshold', 'off_threshold', 'temperature_range', 'hour_range'):
            low, high = getattr(self, name)
            if low > high:
                raise ValueError(f"{name} lower bound exceeds upper bound: {low} > {high}")
        if self.min_samples_threshold < 0:
            raise ValueError("min_samples_threshold must be non-negative")

    @property
    def has_on_period(self) -> bool:
        return self.on_start is not None and self.on_end is not None

    @property
    def has_off_period(self) -> bool:
        return self.off_start is not None and self.off_end is not None

    def replace(self, **changes) -> 'AnalysisConfig':
        """Return a copy with the given fields changed."""
        return dc_replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary for serialization."""
        data = asdict(self)
        for name in ('on_threshold', 'off_threshold', 'temperature_range', 'hour_range'):
            data[name] = list(data[name])
        for name in ('on_start', 'on_end', 'off_start', 'off_end'):
            data[name] = data[name].isoformat() if data[name] is not None else None
        return data

    def to_json(self, file_path: str):
        """Save config to JSON file."""
        with open(file_path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AnalysisConfig':
        """Create config from dictionary."""
        return cls(**data)

    @classmethod
    def from_json(cls, file_path: str) -> 'AnalysisConfig':
        with open(file_path) as f:
            return cls.from_dict(json.load(f))


@dataclass(frozen=True)
class WindowConfig:
    """Inclusive timestamp window for the baseline and comfort-group views."""
    start: Optional[pd.Timestamp] = None
    end: Optional[pd.Timestamp] = None

    def __post_init__(self):
        object.__setattr__(self, 'start', _to_timestamp(self.start))
        object.__setattr__(self, 'end', _to_timestamp(self.end))
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValueError(f"Window start {self.start} is after end {self.end}")

    @property
    def is_bounded(self) -> bool:
        return self.start is not None and self.end is not None


# ============================================================================
# Defaults derived from a dataset
# ============================================================================

def _last_timestamp(readings: Optional[pd.DataFrame]) -> pd.Timestamp:
    if readings is None or len(readings) == 0:
        return pd.Timestamp(datetime.now())
    return pd.Timestamp(readings[TIMESTAMP_COL].iloc[-1])


def default_config(readings: Optional[pd.DataFrame] = None) -> AnalysisConfig:
    """
    Build the starting configuration for a dataset.

    ON and OFF periods both cover the last DEFAULT_ANALYSIS_DAYS days of data;
    the temperature range spans the observed outdoor temperatures.

    Args:
        readings: Ingested readings, or None when nothing is loaded yet

    Returns:
        AnalysisConfig with dashboard defaults
    """
    end = _last_timestamp(readings)
    start = end - timedelta(days=DEFAULT_ANALYSIS_DAYS)

    temperature_range = DEFAULT_TEMPERATURE_RANGE
    if readings is not None and len(readings) > 0:
        temps = readings[TEMPERATURE_COL].dropna()
        if len(temps) > 0:
            temperature_range = (float(temps.min()), float(temps.max()))

    return AnalysisConfig(
        temperature_range=temperature_range,
        on_start=start,
        on_end=end,
        off_start=start,
        off_end=end,
    )


def default_window(readings: Optional[pd.DataFrame] = None,
                   days: int = DEFAULT_VIEW_DAYS) -> WindowConfig:
    """Window covering the last `days` days of the dataset."""
    end = _last_timestamp(readings)
    return WindowConfig(start=end - timedelta(days=days), end=end)
