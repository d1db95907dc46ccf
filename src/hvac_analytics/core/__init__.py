"""Core infrastructure for the analytics pipeline."""

# Config
from .config import (
    AnalysisConfig,
    WindowConfig,
    default_config,
    default_window,
    TIMESTAMP_COL,
    CONTROL_STATE_COL,
    CONTROL_INTENSITY_COL,
    TEMPERATURE_COL,
    AVERAGE_SIGNAL,
    RESERVED_COLUMNS,
    DEFAULT_DATASET_SOURCE,
    DEFAULT_MIN_SAMPLES,
    WEIGHTED_METRIC_MIN_ROWS,
)

# Result records
from .schema import (
    TemperatureBin,
    ImpactMetrics,
    SavingsData,
    SavingsRollup,
    DailyDistribution,
    ScatterPoint,
    SignalAvailability,
    TimeSeriesPoint,
    OfflinePeriod,
    GroupData,
    GroupStats,
    records_to_dicts,
)

# Logging
from .logging_setup import (
    setup_pipeline_logger,
    PipelineLogger,
)

__all__ = [
    # Config
    'AnalysisConfig',
    'WindowConfig',
    'default_config',
    'default_window',
    'TIMESTAMP_COL',
    'CONTROL_STATE_COL',
    'CONTROL_INTENSITY_COL',
    'TEMPERATURE_COL',
    'AVERAGE_SIGNAL',
    'RESERVED_COLUMNS',
    'DEFAULT_DATASET_SOURCE',
    'DEFAULT_MIN_SAMPLES',
    'WEIGHTED_METRIC_MIN_ROWS',
    # Records
    'TemperatureBin',
    'ImpactMetrics',
    'SavingsData',
    'SavingsRollup',
    'DailyDistribution',
    'ScatterPoint',
    'SignalAvailability',
    'TimeSeriesPoint',
    'OfflinePeriod',
    'GroupData',
    'GroupStats',
    'records_to_dicts',
    # Logging
    'setup_pipeline_logger',
    'PipelineLogger',
]
