"""Test configuration and shared fixtures for hvac_analytics tests."""
import sys
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

# Add src/ to path so tests run without an installed package
src_dir = str(Path(__file__).resolve().parent.parent / 'src')
if src_dir not in sys.path:
    sys.path.insert(0, src_dir)


def make_readings(timestamps, control_state=0, intensity=np.nan, temperature=5.0, **signals):
    """
    Build a readings frame in ingestion layout.

    Scalars are broadcast to every row; signal keyword arguments become
    signal columns between control_state and control_intensity.
    """
    timestamps = pd.DatetimeIndex(timestamps)
    n = len(timestamps)

    def column(value, dtype=float):
        if np.isscalar(value) or value is None:
            return np.full(n, np.nan if value is None else value, dtype=dtype)
        return np.asarray(value, dtype=dtype)

    data = {'timestamp': timestamps, 'control_state': column(control_state, 'int64')}
    for name, values in signals.items():
        data[name] = column(values)
    data['control_intensity'] = column(intensity)
    data['outdoor_temperature'] = column(temperature)
    return pd.DataFrame(data)


@pytest.fixture
def two_day_readings():
    """48 hourly rows: day 1 intensity 0.95 / signal 10, day 2 intensity 0.05 / signal 8."""
    ts = pd.date_range('2024-01-01', periods=48, freq='h')
    return make_readings(
        ts,
        control_state=[1] * 24 + [0] * 24,
        intensity=[0.95] * 24 + [0.05] * 24,
        temperature=5.0,
        VS1_GT1=[10.0] * 24 + [8.0] * 24,
    )
